"""
Placeholder substitution for node text fields.

Templates reference context values with double braces:

    "Hello {{ name }}, you wrote: {{last_message}}"

Resolution order:
1. Every context variable, as ``{{ key }}`` (whitespace inside braces allowed)
2. Built-ins ``{{user_id}}`` and ``{{timestamp}}``
3. ``{{last_message}}`` / ``{{message}}`` -> content of the newest chat message

Placeholders that match nothing are left verbatim so that missing data
stays visible in the output instead of silently disappearing.
"""

import json
import logging
import re
from typing import Any

from autoflow.graph.context import ExecutionContext, utc_now_iso

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")


def to_text(value: Any) -> str:
    """Render a context value the way it appears inside text.

    Booleans render lowercase, integral floats drop the trailing ``.0``,
    containers render as JSON and ``None`` renders as an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def _replace_token(text: str, pattern: str, replacement: str) -> str:
    # Callable replacement so backslashes in values are taken literally
    return re.sub(pattern, lambda _match: replacement, text)


def substitute_variables(template: str, context: ExecutionContext) -> str:
    """Resolve ``{{...}}`` placeholders in ``template`` against ``context``."""
    result = template

    for key, value in context.variables.items():
        pattern = r"\{\{\s*" + re.escape(str(key)) + r"\s*\}\}"
        result = _replace_token(result, pattern, to_text(value))

    result = _replace_token(result, r"\{\{user_id\}\}", to_text(context.user_id))
    result = _replace_token(result, r"\{\{timestamp\}\}", utc_now_iso())

    last_message = context.last_message
    if last_message is not None:
        result = _replace_token(result, r"\{\{last_message\}\}", last_message.content)
        result = _replace_token(result, r"\{\{message\}\}", last_message.content)

    unresolved = unresolved_placeholders(result)
    if unresolved:
        logger.debug(
            f"Leaving unresolved placeholders verbatim: {unresolved}",
            extra={"event": "template_unresolved", "node_id": context.current_node_id},
        )

    return result


def unresolved_placeholders(text: str) -> list[str]:
    """Names of the ``{{...}}`` placeholders still present in ``text``."""
    return PLACEHOLDER_PATTERN.findall(text)
