"""
Workflow Runtime - Entry points that start workflow runs.

The executor only knows how to walk a graph. This module owns the choices
around a walk:

1. Which trigger node a run starts from
2. What the fresh ExecutionContext is seeded with
3. How a chat turn is answered: by the first workflow that speaks, or
   directly by the LLM when no workflow produces a reply
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from autoflow.config import RuntimeConfig
from autoflow.errors import TriggerNotFoundError, WorkflowDefinitionError
from autoflow.graph.context import ChatMessage, ExecutionContext, new_message_id
from autoflow.graph.edge import WorkflowSpec
from autoflow.graph.executor import ExecutionReport, WorkflowExecutor
from autoflow.graph.node import DEFAULT_MODEL, WorkflowNode
from autoflow.llm.provider import LLMError, LLMProvider
from autoflow.runtime.webhook_delivery import WebhookDelivery

logger = logging.getLogger(__name__)

DEFAULT_ASSISTANT_TEMPERATURE = 30  # 0-100 scale
APOLOGY_PREFIX = "I apologize, but I'm having trouble connecting to the AI service right now."


@dataclass
class AssistantSettings:
    """The assistant a chat turn is addressed to."""

    name: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_ASSISTANT_TEMPERATURE
    instructions: str | None = None
    id: int | str | None = None


@dataclass
class WorkflowRunResult:
    """Outcome of a manual run."""

    context: ExecutionContext
    report: ExecutionReport

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "context": self.context.to_wire(),
            "messages": [m.model_dump(mode="json", by_alias=True) for m in self.context.messages],
            "executedNodes": self.report.path,
            "terminatedBy": self.report.terminated_by,
            "error": self.report.error,
        }


@dataclass
class ChatReply:
    """Outcome of a chat turn."""

    reply: ChatMessage
    messages: list[ChatMessage] = field(default_factory=list)
    workflow_executed: bool = False
    workflow_id: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "response": self.reply.model_dump(mode="json", by_alias=True),
            "messages": [m.model_dump(mode="json", by_alias=True) for m in self.messages],
            "workflowExecuted": self.workflow_executed,
        }


class WorkflowRuntime:
    """
    Starts workflow runs with shared collaborators.

    Example:
        runtime = WorkflowRuntime(llm=LiteLLMProvider())
        result = await runtime.run_manual(workflow, variables={"topic": "billing"})

        reply = await runtime.respond(
            [workflow], history=[], message="Hi!", assistant=AssistantSettings(name="Ava")
        )
    """

    def __init__(
        self,
        llm: LLMProvider,
        webhook: WebhookDelivery | None = None,
        config: RuntimeConfig | None = None,
    ):
        self.llm = llm
        self.config = config or RuntimeConfig()
        if webhook is None and self.config.webhook_url:
            webhook = WebhookDelivery(
                url=self.config.webhook_url, timeout=self.config.webhook_timeout
            )
        self.webhook = webhook

    def create_executor(self, workflow: WorkflowSpec) -> WorkflowExecutor:
        return WorkflowExecutor(
            workflow.nodes,
            workflow.connections,
            llm=self.llm,
            webhook=self.webhook,
            max_executions=self.config.max_executions,
            workflow_id=workflow.id,
        )

    def find_trigger_node(self, workflow: WorkflowSpec, trigger: str | None = None) -> WorkflowNode:
        """The trigger node with id ``trigger``, or the first trigger node.

        Raises:
            TriggerNotFoundError: if no trigger node matches
        """
        for node in workflow.trigger_nodes():
            if trigger is None or node.id == trigger:
                return node
        raise TriggerNotFoundError(workflow.id, trigger)

    async def run_manual(
        self,
        workflow: WorkflowSpec,
        trigger: str | None = None,
        variables: dict[str, Any] | None = None,
        user_id: int | str = 1,
    ) -> WorkflowRunResult:
        """
        Run a workflow from a trigger node with caller-supplied variables.

        Raises:
            WorkflowDefinitionError: if the workflow has no nodes
            TriggerNotFoundError: if no trigger node matches
        """
        if not workflow.nodes:
            raise WorkflowDefinitionError(f"Workflow '{workflow.id}' has no nodes")

        trigger_node = self.find_trigger_node(workflow, trigger)
        context = ExecutionContext(
            variables=dict(variables or {}),
            messages=[],
            user_id=user_id,
            assistant_id=workflow.assistant_id,
        )

        executor = self.create_executor(workflow)
        context = await executor.execute(trigger_node.id, context)
        logger.info(f"Executed workflow: {workflow.name or workflow.id}")
        return WorkflowRunResult(context=context, report=executor.last_report)

    async def respond(
        self,
        workflows: Iterable[WorkflowSpec],
        history: list[ChatMessage],
        message: str,
        assistant: AssistantSettings,
        user_id: int | str = 1,
    ) -> ChatReply:
        """
        Answer one chat turn.

        Every chat trigger (``message`` or ``manual``) of every workflow is
        tried in order, each on a fresh context holding the history plus the
        new user message. The first run that appends an assistant message
        supplies the reply. Without one, the LLM answers directly.
        """
        user_message = ChatMessage(id=new_message_id("msg"), role="user", content=message)
        conversation = [*history, user_message]

        for workflow in workflows:
            if not workflow.nodes:
                continue
            executor = self.create_executor(workflow)

            for trigger_node in workflow.chat_trigger_nodes():
                context = ExecutionContext(
                    variables={},
                    messages=list(conversation),
                    user_id=user_id,
                    assistant_id=assistant.id,
                )
                context = await executor.execute(trigger_node.id, context)

                produced = [
                    m for m in context.messages[len(conversation) :] if m.role == "assistant"
                ]
                if produced:
                    logger.info(
                        f"Workflow-driven conversation with {assistant.name}",
                        extra={"event": "chat_workflow_reply"},
                    )
                    reply = ChatMessage(
                        id=new_message_id("msg"), role="assistant", content=produced[-1].content
                    )
                    return ChatReply(
                        reply=reply,
                        messages=[*conversation, reply],
                        workflow_executed=True,
                        workflow_id=workflow.id,
                    )

        reply = await self._direct_reply(conversation, assistant)
        return ChatReply(reply=reply, messages=[*conversation, reply], workflow_executed=False)

    async def _direct_reply(
        self, conversation: list[ChatMessage], assistant: AssistantSettings
    ) -> ChatMessage:
        """Ask the LLM directly; an LLM failure becomes an apology message."""
        try:
            content = await self.llm.generate_response(
                [m.to_llm_dict() for m in conversation],
                assistant.model or self.config.model,
                assistant.temperature / 100,
                instructions=assistant.instructions,
            )
        except LLMError as e:
            logger.warning(
                f"Direct reply for {assistant.name} failed: {e}",
                extra={"event": "chat_llm_failed", "model": assistant.model},
            )
            return ChatMessage(
                id=new_message_id("msg"), role="assistant", content=f"{APOLOGY_PREFIX} {e}"
            )

        logger.info(
            f"Direct conversation with {assistant.name}",
            extra={"event": "chat_direct_reply", "model": assistant.model},
        )
        return ChatMessage(id=new_message_id("msg"), role="assistant", content=content)
