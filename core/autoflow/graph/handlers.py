"""
Node handlers - per-type execution logic.

Every handler shares one contract: ``(node, context) -> ExecutionResult``.
Handlers never raise for expected faults (bad configuration, a failing
LLM call); they return a failed result and the executor stops the walk.

    trigger   -> TriggerHandler    gate on how the run was started
    ai_action -> AiActionHandler   call the LLM with a rendered prompt
    condition -> ConditionHandler  evaluate a boolean for branch selection
    output    -> OutputHandler     emit a chat message, variable or webhook
"""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from pydantic import ValidationError

from autoflow.graph.conditions import compare, evaluate_expression
from autoflow.graph.context import ChatMessage, ExecutionContext, new_message_id, utc_now_iso
from autoflow.graph.node import (
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    AiActionConfig,
    ConditionConfig,
    ExecutionResult,
    NodeConfig,
    NodeType,
    OutputConfig,
    OutputType,
    TriggerConfig,
    TriggerType,
    WorkflowNode,
)
from autoflow.graph.template import substitute_variables
from autoflow.llm.provider import LLMProvider
from autoflow.runtime.webhook_delivery import WebhookDelivery, WebhookDeliveryError

logger = logging.getLogger(__name__)


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'data'}: {err['msg']}"
        for err in error.errors()
    )


class NodeHandler(ABC):
    """Executes nodes of one type."""

    node_type: ClassVar[NodeType]

    async def execute(self, node: WorkflowNode, context: ExecutionContext) -> ExecutionResult:
        """Parse the node's configuration and run the handler."""
        try:
            config = node.parse_config()
        except ValidationError as e:
            return ExecutionResult(
                success=False,
                error=f"Invalid {node.type} configuration: {_describe_validation_error(e)}",
            )
        return await self.handle(node, config, context)

    @abstractmethod
    async def handle(
        self, node: WorkflowNode, config: NodeConfig, context: ExecutionContext
    ) -> ExecutionResult:
        pass


class TriggerHandler(NodeHandler):
    """Entry point of a run.

    Scheduling itself is someone else's job: a schedule trigger is only
    executed once a scheduler has decided to start the run.
    """

    node_type = NodeType.TRIGGER

    async def handle(
        self, node: WorkflowNode, config: TriggerConfig, context: ExecutionContext
    ) -> ExecutionResult:
        trigger_type = config.trigger_type

        if trigger_type == TriggerType.MANUAL:
            return ExecutionResult(success=True, data={"triggered": True})

        if trigger_type == TriggerType.MESSAGE:
            last_message = context.last_message
            if last_message is not None and last_message.role == "user":
                return ExecutionResult(
                    success=True,
                    data={
                        "message": last_message.content,
                        "timestamp": last_message.timestamp,
                    },
                )
            return ExecutionResult(success=False, error="No user message found")

        if trigger_type == TriggerType.SCHEDULE:
            return ExecutionResult(success=True, data={"scheduledTime": utc_now_iso()})

        return ExecutionResult(success=False, error=f"Unknown trigger type: {trigger_type}")


class AiActionHandler(NodeHandler):
    """Calls the LLM with the rendered prompt appended to the conversation.

    The generated text is returned as ``aiResponse``; turning it into a chat
    message is left to a downstream output node (or the caller).
    """

    node_type = NodeType.AI_ACTION

    def __init__(self, llm: LLMProvider | None = None):
        self.llm = llm

    async def handle(
        self, node: WorkflowNode, config: AiActionConfig, context: ExecutionContext
    ) -> ExecutionResult:
        if not config.prompt:
            return ExecutionResult(success=False, error="No prompt specified for AI action")

        if self.llm is None:
            return ExecutionResult(
                success=False, error="AI action failed: no LLM provider configured"
            )

        prompt = substitute_variables(config.prompt, context)
        messages = context.to_llm_messages()
        messages.append({"role": "user", "content": prompt})

        model = config.model or DEFAULT_MODEL
        temperature = config.temperature if config.temperature is not None else DEFAULT_TEMPERATURE

        try:
            response = await self.llm.generate_response(
                messages,
                model,
                temperature / 100,  # stored as 0-100, providers expect 0-1
                instructions=config.instructions,
            )
        except Exception as e:
            logger.warning(f"AI action '{node.id}' failed: {e}", extra={"model": model})
            return ExecutionResult(success=False, error=f"AI action failed: {e}")

        return ExecutionResult(success=True, data={"aiResponse": response, "prompt": prompt})


class ConditionHandler(NodeHandler):
    """Evaluates a boolean that the executor uses to pick the outgoing branch."""

    node_type = NodeType.CONDITION

    async def handle(
        self, node: WorkflowNode, config: ConditionConfig, context: ExecutionContext
    ) -> ExecutionResult:
        if not config.condition and not config.variable:
            return ExecutionResult(success=False, error="No condition specified")

        try:
            result = False
            if config.condition:
                result = evaluate_expression(config.condition, context.variables)
            elif config.operator and config.value is not None:
                left = context.variables.get(config.variable)
                result = compare(left, config.operator, config.value)
        except Exception as e:
            return ExecutionResult(success=False, error=f"Condition evaluation failed: {e}")

        return ExecutionResult(
            success=True, data={"conditionResult": result, "conditionMet": result}
        )


class OutputHandler(NodeHandler):
    """Externalises workflow data as a chat message, a variable or a webhook call."""

    node_type = NodeType.OUTPUT

    def __init__(self, webhook: WebhookDelivery | None = None):
        self.webhook = webhook

    async def handle(
        self, node: WorkflowNode, config: OutputConfig, context: ExecutionContext
    ) -> ExecutionResult:
        content = substitute_variables(config.content or "", context)

        output_type = config.output_type

        if output_type == OutputType.MESSAGE:
            context.messages.append(
                ChatMessage(
                    id=new_message_id("output"),
                    role="assistant",
                    content=content,
                    timestamp=utc_now_iso(),
                )
            )
        elif output_type == OutputType.VARIABLE:
            context.variables[config.variable_name or "output"] = content
        elif output_type == OutputType.WEBHOOK:
            await self._deliver_webhook(node, config, context, content)
        else:
            logger.info(
                f"Output ({output_type}): {content}",
                extra={"event": "output_unknown_type", "node_id": node.id},
            )

        return ExecutionResult(
            success=True, data={"output": content, "outputType": config.output_type}
        )

    async def _deliver_webhook(
        self,
        node: WorkflowNode,
        config: OutputConfig,
        context: ExecutionContext,
        content: str,
    ) -> None:
        url = self.webhook.resolve_url(config) if self.webhook else config.url or config.webhook_url
        if self.webhook is None or url is None:
            logger.info(
                f"Webhook output (no delivery configured): {content}",
                extra={"event": "webhook_not_configured", "node_id": node.id},
            )
            return

        try:
            await self.webhook.deliver(content, node, context, url)
        except WebhookDeliveryError as e:
            logger.warning(
                str(e), extra={"event": "webhook_delivery_failed", "node_id": node.id}
            )


def default_handlers(
    llm: LLMProvider | None = None,
    webhook: WebhookDelivery | None = None,
) -> dict[NodeType, NodeHandler]:
    """One handler per node type, wired to the given collaborators."""
    handlers: list[NodeHandler] = [
        TriggerHandler(),
        AiActionHandler(llm),
        ConditionHandler(),
        OutputHandler(webhook),
    ]
    return {handler.node_type: handler for handler in handlers}
