"""
Logging setup and per-run trace correlation.

Engine modules log through plain ``logging.getLogger(__name__)``. What ties
the records of one workflow run together is the trace context: a ContextVar
holding ``workflow_id``, ``execution_id`` and the ``node_id`` currently
executing. Both formatters read it at format time, so no call site has to
pass ids around.

    WorkflowExecutor.execute()      set_trace_context(execution_id=..., workflow_id=...)
      per node                      set_trace_context(node_id=...)
        handler / template code     logger.info(..., extra={"event": "template_unresolved"})

Records may carry ``extra`` fields (``event``, ``node_id``, ``model``); the
JSON formatter emits them as top-level keys, the console formatter appends
the event name.
"""

import json
import logging
import os
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import IO, Any

_trace: ContextVar[dict[str, Any] | None] = ContextVar("autoflow_trace", default=None)

# Order matters for the console prefix
TRACE_FIELDS = ("workflow_id", "execution_id", "node_id")
RECORD_EXTRAS = ("event", "node_id", "model")

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[35m",
}
RESET = "\x1b[0m"

# Third-party loggers that are routed through our root handler in JSON mode
THIRD_PARTY_LOGGERS = ("LiteLLM", "httpx", "httpcore")


def strip_ansi_codes(text: str) -> str:
    """Drop terminal colour sequences (LiteLLM likes to emit them)."""
    return _ANSI.sub("", text)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message,
    the trace context and any recognised ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": strip_ansi_codes(record.getMessage()),
            **get_trace_context(),
        }

        for name in RECORD_EXTRAS:
            value = getattr(record, name, None)
            if value is None:
                continue
            entry[name] = strip_ansi_codes(value) if isinstance(value, str) else value

        if record.exc_info:
            entry["exception"] = strip_ansi_codes(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Coloured console output.

    ``[INFO    ] [wf:support | exec:1a2b3c4d | node:reply] Step 3 [node_started]``
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, "")
        parts = [f"{color}[{record.levelname:<8}]{RESET}"]

        prefix = self._trace_prefix()
        if prefix:
            parts.append(prefix)

        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event is not None:
            parts.append(f"[{event}]")

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

    @staticmethod
    def _trace_prefix() -> str:
        trace = get_trace_context()
        labels = {"workflow_id": "wf", "execution_id": "exec", "node_id": "node"}
        shown = []
        for name in TRACE_FIELDS:
            value = trace.get(name)
            if not value:
                continue
            if name == "execution_id":
                value = str(value)[-8:]
            shown.append(f"{labels[name]}:{value}")
        return f"[{' | '.join(shown)}]" if shown else ""


def resolve_format(format: str) -> str:
    """Turn ``auto`` into ``json`` or ``human``.

    ``auto`` means JSON when ``LOG_FORMAT=json`` or ``ENV=production``.
    """
    if format != "auto":
        return format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return "json"
    if os.getenv("ENV", "development").lower() == "production":
        return "json"
    return "human"


def configure_logging(
    level: str = "INFO",
    format: str = "auto",
    stream: IO[str] | None = None,
) -> None:
    """
    Install a single root handler. Call once at startup.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        format: "json", "human" or "auto" (see resolve_format)
        stream: Where to write; defaults to stderr so stdout stays clean
            for command output
    """
    resolved = resolve_format(format)

    handler = logging.StreamHandler(stream or sys.stderr)
    if resolved == "json":
        handler.setFormatter(StructuredFormatter())
        _silence_third_party_banners()
    else:
        handler.setFormatter(HumanReadableFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    if resolved == "json":
        for name in THIRD_PARTY_LOGGERS:
            third_party = logging.getLogger(name)
            third_party.handlers.clear()
            third_party.propagate = True


def _silence_third_party_banners() -> None:
    """Colour codes and LiteLLM's debug banner would corrupt JSON lines."""
    os.environ["NO_COLOR"] = "1"

    import litellm

    litellm.suppress_debug_info = True


def set_trace_context(**fields: Any) -> None:
    """Merge ``fields`` into the current run's trace context.

    Example:
        set_trace_context(execution_id=uuid.uuid4().hex, workflow_id="support-triage")
    """
    _trace.set({**(_trace.get() or {}), **fields})


def get_trace_context() -> dict[str, Any]:
    """Copy of the current trace context ({} outside a run)."""
    return dict(_trace.get() or {})


def clear_trace_context() -> None:
    _trace.set(None)
