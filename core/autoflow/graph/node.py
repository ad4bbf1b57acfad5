"""
Node Protocol - The typed building blocks of a workflow.

A workflow node has a closed ``type`` and an open ``data`` mapping holding
its per-type configuration. The ``data`` mapping is parsed on demand into
one of four config records, so handlers work against typed fields while
unknown or missing keys stay harmless:

- trigger:   TriggerConfig   (triggerType)
- ai_action: AiActionConfig  (prompt, model, temperature, instructions)
- condition: ConditionConfig (condition | variable/operator/value)
- output:    OutputConfig    (outputType, content, variableName, url)
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

# Shared pydantic config: snake_case in Python, camelCase on the wire.
CAMEL_MODEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "allow",
}


class NodeType(StrEnum):
    """Closed set of node kinds the engine can execute."""

    TRIGGER = "trigger"
    AI_ACTION = "ai_action"
    CONDITION = "condition"
    OUTPUT = "output"


class TriggerType(StrEnum):
    MANUAL = "manual"
    MESSAGE = "message"
    SCHEDULE = "schedule"


class OutputType(StrEnum):
    MESSAGE = "message"
    VARIABLE = "variable"
    WEBHOOK = "webhook"


# Defaults applied by the AI action handler
DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 50  # 0-100 scale


class TriggerConfig(BaseModel):
    """Configuration of a trigger node."""

    trigger_type: str | None = None
    schedule: str | None = None

    model_config = CAMEL_MODEL_CONFIG


class AiActionConfig(BaseModel):
    """Configuration of an AI action node.

    ``temperature`` is stored on the 0-100 scale used throughout the system.
    """

    prompt: str | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=100)
    instructions: str | None = None

    model_config = CAMEL_MODEL_CONFIG


class ConditionConfig(BaseModel):
    """Configuration of a condition node.

    Either a free-form ``condition`` string or the structured
    ``variable``/``operator``/``value`` triple.
    """

    condition: str | None = None
    variable: str | None = None
    operator: str | None = None
    value: Any = None

    model_config = CAMEL_MODEL_CONFIG


class OutputConfig(BaseModel):
    """Configuration of an output node."""

    output_type: str | None = None
    content: str | None = None
    variable_name: str | None = None
    url: str | None = None
    webhook_url: str | None = None

    model_config = CAMEL_MODEL_CONFIG


NodeConfig = TriggerConfig | AiActionConfig | ConditionConfig | OutputConfig

NODE_CONFIG_TYPES: dict[NodeType, type[BaseModel]] = {
    NodeType.TRIGGER: TriggerConfig,
    NodeType.AI_ACTION: AiActionConfig,
    NodeType.CONDITION: ConditionConfig,
    NodeType.OUTPUT: OutputConfig,
}


class WorkflowNode(BaseModel):
    """
    A single node in a workflow graph.

    Example:
        WorkflowNode(
            id="check-refund",
            type=NodeType.CONDITION,
            label="Refund request?",
            data={"condition": "{{message}} contains 'refund'"},
        )
    """

    id: str
    type: NodeType
    label: str = ""
    position: dict[str, float] = Field(
        default_factory=dict, description="Editor layout coordinates, unused by the engine"
    )
    data: dict[str, Any] = Field(
        default_factory=dict, description="Per-type configuration, see NODE_CONFIG_TYPES"
    )

    model_config = CAMEL_MODEL_CONFIG

    @field_validator("data", mode="before")
    @classmethod
    def _none_data_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def parse_config(self) -> NodeConfig:
        """Parse ``data`` into the typed config record for this node's type.

        Raises:
            pydantic.ValidationError: if a known key holds a value of the wrong type
        """
        return NODE_CONFIG_TYPES[self.type].model_validate(self.data)


@dataclass
class ExecutionResult:
    """Outcome of executing a single node.

    On success ``data`` is shallow-merged into the context variables.
    ``next_node_id`` is an optional routing hint; no built-in handler sets it.
    """

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    next_node_id: str | None = None
