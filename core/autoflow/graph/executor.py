"""
Workflow Executor - Walks a workflow graph.

The executor:
1. Indexes the workflow's nodes and connections once
2. Starts at the node the caller picked (usually a trigger)
3. Dispatches each node to the handler for its type
4. Merges handler output into the context variables
5. Follows the outgoing connection chosen for the result
6. Returns the caller's context, updated in place

A walk ends when a node has no outgoing connection, a node fails, the next
node id is unknown, or the execution cap is reached. None of these raise:
the caller always gets the context back as accumulated so far.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from autoflow.graph.context import ExecutionContext
from autoflow.graph.edge import WorkflowConnection
from autoflow.graph.handlers import NodeHandler, default_handlers
from autoflow.graph.index import GraphIndex
from autoflow.graph.node import ExecutionResult, NodeType, WorkflowNode
from autoflow.llm.provider import LLMProvider
from autoflow.observability import set_trace_context
from autoflow.runtime.webhook_delivery import WebhookDelivery

DEFAULT_MAX_EXECUTIONS = 50


@dataclass
class ExecutionReport:
    """How the last walk went. Observability only; the context is the result."""

    execution_id: str = ""
    path: list[str] = field(default_factory=list)  # Node IDs executed, in order
    terminated_by: str = "end"  # end, missing_node, node_failed, max_executions, error
    error: str | None = None

    @property
    def steps_executed(self) -> int:
        return len(self.path)

    @property
    def completed(self) -> bool:
        """True when the walk ran off the end of the graph."""
        return self.terminated_by == "end"


class WorkflowExecutor:
    """
    Executes one workflow graph against an execution context.

    Example:
        executor = WorkflowExecutor(
            nodes=workflow.nodes,
            connections=workflow.connections,
            llm=LiteLLMProvider(),
        )

        context = ExecutionContext(user_id=1, variables={"x": "1"})
        context = await executor.execute("trigger-1", context)
    """

    def __init__(
        self,
        nodes: Iterable[WorkflowNode],
        connections: Iterable[WorkflowConnection],
        llm: LLMProvider | None = None,
        webhook: WebhookDelivery | None = None,
        handlers: dict[NodeType, NodeHandler] | None = None,
        max_executions: int = DEFAULT_MAX_EXECUTIONS,
        workflow_id: str | None = None,
    ):
        """
        Initialize the executor.

        Args:
            nodes: All nodes of the workflow
            connections: All connections of the workflow
            llm: LLM provider used by AI action nodes
            webhook: Delivery used by webhook output nodes
            handlers: Per-type handler overrides, merged over the defaults
            max_executions: Hard cap on node executions per walk
            workflow_id: Optional workflow ID for log correlation
        """
        self.index = GraphIndex(nodes, connections)
        self.handlers = {**default_handlers(llm=llm, webhook=webhook), **(handlers or {})}
        self.max_executions = max_executions
        self.workflow_id = workflow_id
        self.last_report: ExecutionReport | None = None
        self.logger = logging.getLogger(__name__)

    def register_handler(self, node_type: NodeType, handler: NodeHandler) -> None:
        """Replace the handler used for ``node_type``."""
        self.handlers[node_type] = handler

    async def execute(self, start_node_id: str, context: ExecutionContext) -> ExecutionContext:
        """
        Walk the graph from ``start_node_id``.

        Args:
            start_node_id: Node to start from, typically a trigger chosen by the caller
            context: Context owned by this run; mutated in place

        Returns:
            The same context, with variables and messages updated
        """
        report = ExecutionReport(execution_id=uuid.uuid4().hex)
        self.last_report = report

        trace = {"execution_id": report.execution_id}
        if self.workflow_id:
            trace["workflow_id"] = self.workflow_id
        set_trace_context(**trace)

        self.logger.info(
            f"🚀 Starting workflow at node '{start_node_id}' ({len(self.index)} nodes)",
            extra={"event": "workflow_started"},
        )

        current_node_id: str | None = start_node_id
        executions = 0

        while current_node_id and executions < self.max_executions:
            node = self.index.get_node(current_node_id)
            if node is None:
                self.logger.error(
                    f"Node {current_node_id} not found",
                    extra={"event": "node_missing", "node_id": current_node_id},
                )
                report.terminated_by = "missing_node"
                report.error = f"Node {current_node_id} not found"
                break

            context.current_node_id = current_node_id
            set_trace_context(node_id=current_node_id)
            report.path.append(current_node_id)
            executions += 1

            self.logger.info(
                f"▶ Step {executions}: {node.label or node.id} ({node.type})",
                extra={"event": "node_started", "node_id": node.id},
            )

            try:
                result = await self._execute_node(node, context)
            except Exception as e:
                self.logger.exception(
                    f"Error executing node {current_node_id}: {e}",
                    extra={"event": "node_failed", "node_id": node.id},
                )
                report.terminated_by = "error"
                report.error = str(e)
                break

            if not result.success:
                self.logger.error(
                    f"Node {current_node_id} execution failed: {result.error}",
                    extra={"event": "node_failed", "node_id": node.id},
                )
                report.terminated_by = "node_failed"
                report.error = result.error
                break

            if result.data:
                context.variables.update(result.data)

            self.logger.info(
                f"   ✓ Node {node.id} completed",
                extra={"event": "node_completed", "node_id": node.id},
            )

            current_node_id = self._next_node_id(node, result)
        else:
            if current_node_id and executions >= self.max_executions:
                self.logger.warning(
                    f"Workflow execution stopped: maximum executions reached "
                    f"({self.max_executions})",
                    extra={"event": "max_executions_reached"},
                )
                report.terminated_by = "max_executions"

        self.logger.info(
            f"🏁 Workflow finished after {report.steps_executed} step(s): {report.terminated_by}",
            extra={"event": "workflow_completed"},
        )
        return context

    async def _execute_node(self, node: WorkflowNode, context: ExecutionContext) -> ExecutionResult:
        """Dispatch a node to the handler for its type."""
        handler = self.handlers.get(node.type)
        if handler is None:
            return ExecutionResult(success=False, error=f"Unknown node type: {node.type}")
        return await handler.execute(node, context)

    def _next_node_id(self, node: WorkflowNode, result: ExecutionResult) -> str | None:
        """Pick the next node from the node's outgoing connections."""
        if result.next_node_id:
            return result.next_node_id

        connections = self.index.get_outgoing(node.id)
        if not connections:
            return None

        if node.type == NodeType.CONDITION:
            condition_met = bool((result.data or {}).get("conditionMet", False))
            branch = "true" if condition_met else "false"
            for connection in connections:
                if connection.condition == branch:
                    return self._checked_target(connection)

            self.logger.info(
                f"No '{branch}' branch on condition node {node.id}, taking first connection",
                extra={"event": "condition_branch_fallback", "node_id": node.id},
            )

        return self._checked_target(connections[0])

    def _checked_target(self, connection: WorkflowConnection) -> str:
        if connection.target not in self.index:
            self.logger.warning(
                f"Connection {connection.id} points at unknown node {connection.target}",
                extra={"event": "dangling_connection", "node_id": connection.source},
            )
        return connection.target


def create_workflow_engine(
    nodes: Iterable[WorkflowNode],
    connections: Iterable[WorkflowConnection],
    llm: LLMProvider | None = None,
    webhook: WebhookDelivery | None = None,
    **kwargs,
) -> WorkflowExecutor:
    """Build an executor for one workflow's graph."""
    return WorkflowExecutor(nodes, connections, llm=llm, webhook=webhook, **kwargs)
