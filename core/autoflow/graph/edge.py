"""
Edge Protocol - How nodes connect in a workflow.

A connection links a source node to a target node. Connections leaving a
condition node may carry a ``condition`` tag ("true" / "false") that selects
the branch taken for the node's boolean outcome. Untagged connections are
unconditional; when a node has several, the first one wins.

Connections are not validated up front: a connection whose source or
target does not exist is simply unusable at traversal time.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from autoflow.graph.node import CAMEL_MODEL_CONFIG, NodeType, TriggerType, WorkflowNode


class WorkflowConnection(BaseModel):
    """
    A directed connection between two nodes.

    Examples:
        # Unconditional
        WorkflowConnection(id="c1", source="trigger", target="reply")

        # Branch taken when a condition node evaluates to true
        WorkflowConnection(id="c2", source="is-refund", target="refund", condition="true")
    """

    id: str
    source: str = Field(description="Source node ID")
    target: str = Field(description="Target node ID")
    condition: str | None = Field(
        default=None, description="Branch tag for condition sources: 'true' or 'false'"
    )

    model_config = CAMEL_MODEL_CONFIG

    @field_validator("condition", mode="before")
    @classmethod
    def _normalise_condition(cls, value: Any) -> Any:
        # Editors store the tag as either a JSON boolean or a string
        if isinstance(value, bool):
            return "true" if value else "false"
        return value


class WorkflowSpec(BaseModel):
    """
    A complete workflow as stored and exchanged at the HTTP boundary.

    Example:
        WorkflowSpec(
            id="support-flow",
            name="Support triage",
            nodes=[...],
            connections=[...],
            assistant_id=3,
        )
    """

    id: str
    name: str = ""
    description: str = ""
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: list[WorkflowConnection] = Field(default_factory=list)
    assistant_id: int | str | None = None

    model_config = CAMEL_MODEL_CONFIG

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Storage backends hand out integer ids
        return str(value) if isinstance(value, int) else value

    def get_node(self, node_id: str) -> WorkflowNode | None:
        """Get a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def trigger_nodes(self, trigger_types: set[str] | None = None) -> list[WorkflowNode]:
        """All trigger nodes, optionally restricted to the given trigger types."""
        triggers = [n for n in self.nodes if n.type == NodeType.TRIGGER]
        if trigger_types is None:
            return triggers
        return [n for n in triggers if n.data.get("triggerType") in trigger_types]

    def chat_trigger_nodes(self) -> list[WorkflowNode]:
        """Trigger nodes that react to an inbound chat message."""
        return self.trigger_nodes({TriggerType.MESSAGE.value, TriggerType.MANUAL.value})
