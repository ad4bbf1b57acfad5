"""
Condition evaluation for condition nodes.

Two forms are supported.

Free-form expressions, limited to two phrases:

    "{{intent}} contains 'refund'"    case-insensitive substring test
    "{{status}} equals 'open'"        case-sensitive match on the text value

The variable reference may be wrapped in ``{{ }}`` and the literal may be
quoted; both are stripped. Anything else evaluates to False rather than
raising, so a malformed expression just routes down the false branch.

Structured comparisons, from a variable/operator/value triple:

    equals | ==, not_equals | !=, greater_than | >, less_than | <, contains
"""

import logging
import math
from typing import Any

from autoflow.graph.template import to_text

logger = logging.getLogger(__name__)

_BRACES = "{}"
_QUOTES = "'\""


def _strip_chars(text: str, chars: str) -> str:
    return "".join(ch for ch in text if ch not in chars)


def _split_phrase(condition: str, keyword: str) -> tuple[str, str]:
    """Left operand and the literal that follows the first ``keyword``.

    A second occurrence of the keyword ends the literal.
    """
    left, _, rest = condition.partition(keyword)
    right = rest.split(keyword)[0]
    return left.strip(), right.strip()


def evaluate_expression(condition: str, variables: dict[str, Any]) -> bool:
    """
    Evaluate a free-form condition against context variables.

    Examples:
        >>> evaluate_expression("{{topic}} contains 'Billing'", {"topic": "billing issue"})
        True
        >>> evaluate_expression("status equals open", {"status": "open"})
        True
        >>> evaluate_expression("score > 5", {"score": 9})
        False
    """
    if "contains" in condition:
        variable, search_term = _split_phrase(condition, "contains")
        value = to_text(variables.get(_strip_chars(variable, _BRACES)))
        return _strip_chars(search_term, _QUOTES).lower() in value.lower()

    if "equals" in condition:
        variable, expected = _split_phrase(condition, "equals")
        value = to_text(variables.get(_strip_chars(variable, _BRACES)))
        return value == _strip_chars(expected, _QUOTES)

    logger.info(
        f"Condition '{condition}' matches no supported phrase, evaluating to false",
        extra={"event": "condition_unparsed"},
    )
    return False


def to_number(value: Any) -> float:
    """Numeric coercion for ordering comparisons; NaN when not numeric.

    Blank strings count as zero. NaN compares false against everything, so
    a non-numeric operand never satisfies greater_than or less_than.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def loosely_equal(left: Any, right: Any) -> bool:
    """Equality that tolerates number/text mixes, so ``"1"`` equals ``1``."""
    if left is None or right is None:
        return left is None and right is None
    if left == right:
        return True
    numeric = (int, float)
    if isinstance(left, numeric) or isinstance(right, numeric):
        a, b = to_number(left), to_number(right)
        if not (math.isnan(a) or math.isnan(b)):
            return a == b
    return to_text(left) == to_text(right)


def compare(left: Any, operator: str, right: Any) -> bool:
    """Apply a structured comparison operator. Unknown operators yield False."""
    if operator in ("equals", "=="):
        return loosely_equal(left, right)
    if operator in ("not_equals", "!="):
        return not loosely_equal(left, right)
    if operator in ("greater_than", ">"):
        return to_number(left) > to_number(right)
    if operator in ("less_than", "<"):
        return to_number(left) < to_number(right)
    if operator == "contains":
        return to_text(right).lower() in to_text(left).lower()

    logger.info(
        f"Unknown comparison operator '{operator}', evaluating to false",
        extra={"event": "condition_unknown_operator"},
    )
    return False
