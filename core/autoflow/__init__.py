"""
Autoflow - workflow execution engine for AI assistants.

Workflows are directed graphs of typed nodes (triggers, AI actions,
conditions, outputs). The engine walks a graph from a trigger node against
a live conversational context and returns the updated context.
"""

from autoflow.errors import AutoflowError, TriggerNotFoundError, WorkflowDefinitionError
from autoflow.graph import (
    ChatMessage,
    ExecutionContext,
    ExecutionResult,
    GraphIndex,
    NodeType,
    WorkflowConnection,
    WorkflowExecutor,
    WorkflowNode,
    WorkflowSpec,
    create_workflow_engine,
)

__version__ = "0.1.0"

__all__ = [
    "AutoflowError",
    "WorkflowDefinitionError",
    "TriggerNotFoundError",
    "ChatMessage",
    "ExecutionContext",
    "ExecutionResult",
    "GraphIndex",
    "NodeType",
    "WorkflowConnection",
    "WorkflowExecutor",
    "WorkflowNode",
    "WorkflowSpec",
    "create_workflow_engine",
]
