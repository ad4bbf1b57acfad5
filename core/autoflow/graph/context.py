"""Execution context threaded through one workflow run."""

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from autoflow.graph.node import CAMEL_MODEL_CONFIG


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2025-01-01T12:00:00.000Z."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_message_id(prefix: str = "msg") -> str:
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"{prefix}_{millis}_{uuid.uuid4().hex[:6]}"


class ChatMessage(BaseModel):
    """A single chat message in a conversation."""

    id: str = Field(default_factory=new_message_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: str = Field(default_factory=utc_now_iso)

    model_config = CAMEL_MODEL_CONFIG

    def to_llm_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ExecutionContext(BaseModel):
    """
    Mutable state owned by a single workflow run.

    Created fresh by the caller, passed by reference through the whole walk,
    mutated in place by the executor and node handlers, and handed back to
    the caller at the end. ``messages`` only ever grows during a run.
    """

    variables: dict[str, Any] = Field(default_factory=dict)
    messages: list[ChatMessage] = Field(default_factory=list)
    current_node_id: str | None = None
    user_id: int | str
    assistant_id: int | str | None = None

    model_config = CAMEL_MODEL_CONFIG

    @property
    def last_message(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def to_llm_messages(self) -> list[dict[str, str]]:
        """Conversation history in the ``{role, content}`` shape LLM providers expect."""
        return [msg.to_llm_dict() for msg in self.messages]

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase field names of the HTTP boundary."""
        return self.model_dump(mode="json", by_alias=True)
