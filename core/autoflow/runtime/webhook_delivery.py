"""Webhook delivery for output nodes.

Output nodes with ``outputType: "webhook"`` hand their rendered content to
a ``WebhookDelivery``. The target URL comes from the node (``url`` or
``webhookUrl``) and falls back to the configured default.
"""

import logging
from typing import Any

import httpx

from autoflow.errors import AutoflowError
from autoflow.graph.context import ExecutionContext, utc_now_iso
from autoflow.graph.node import OutputConfig, WorkflowNode

logger = logging.getLogger(__name__)


class WebhookDeliveryError(AutoflowError):
    """The webhook endpoint could not be reached or rejected the payload."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Webhook delivery to {url} failed: {message}")


class WebhookDelivery:
    """
    POSTs output content as JSON to a webhook endpoint.

    Example:
        webhook = WebhookDelivery(url="https://hooks.example.com/flow")
        engine = create_workflow_engine(nodes, connections, llm=llm, webhook=webhook)
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}

    def resolve_url(self, config: OutputConfig) -> str | None:
        """Node-level URL first, then the configured default."""
        return config.url or config.webhook_url or self.url

    def build_payload(
        self, content: str, node: WorkflowNode, context: ExecutionContext
    ) -> dict[str, Any]:
        return {
            "content": content,
            "nodeId": node.id,
            "userId": context.user_id,
            "assistantId": context.assistant_id,
            "timestamp": utc_now_iso(),
        }

    async def deliver(
        self,
        content: str,
        node: WorkflowNode,
        context: ExecutionContext,
        url: str,
    ) -> int:
        """Send the payload and return the HTTP status code.

        Raises:
            WebhookDeliveryError: on transport errors or non-2xx responses
        """
        payload = self.build_payload(content, node, context)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            raise WebhookDeliveryError(url, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise WebhookDeliveryError(
                url, f"HTTP {response.status_code}", status_code=response.status_code
            )

        logger.info(f"📤 Webhook delivered to {url} ({response.status_code})")
        return response.status_code
