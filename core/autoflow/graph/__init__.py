"""Graph structures: Nodes, Connections, Context and Execution."""

from autoflow.graph.context import ChatMessage, ExecutionContext
from autoflow.graph.edge import WorkflowConnection, WorkflowSpec
from autoflow.graph.executor import (
    DEFAULT_MAX_EXECUTIONS,
    ExecutionReport,
    WorkflowExecutor,
    create_workflow_engine,
)
from autoflow.graph.handlers import (
    AiActionHandler,
    ConditionHandler,
    NodeHandler,
    OutputHandler,
    TriggerHandler,
    default_handlers,
)
from autoflow.graph.index import GraphIndex
from autoflow.graph.node import (
    AiActionConfig,
    ConditionConfig,
    ExecutionResult,
    NodeType,
    OutputConfig,
    OutputType,
    TriggerConfig,
    TriggerType,
    WorkflowNode,
)
from autoflow.graph.template import substitute_variables

__all__ = [
    # Node
    "WorkflowNode",
    "NodeType",
    "TriggerType",
    "OutputType",
    "TriggerConfig",
    "AiActionConfig",
    "ConditionConfig",
    "OutputConfig",
    "ExecutionResult",
    # Connection
    "WorkflowConnection",
    "WorkflowSpec",
    # Context
    "ChatMessage",
    "ExecutionContext",
    # Index
    "GraphIndex",
    # Handlers
    "NodeHandler",
    "TriggerHandler",
    "AiActionHandler",
    "ConditionHandler",
    "OutputHandler",
    "default_handlers",
    # Executor
    "WorkflowExecutor",
    "ExecutionReport",
    "DEFAULT_MAX_EXECUTIONS",
    "create_workflow_engine",
    # Substitution
    "substitute_variables",
]
