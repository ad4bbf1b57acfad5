"""Tests for WorkflowRuntime: manual runs and the chat flow."""

import pytest

from autoflow.config import RuntimeConfig
from autoflow.errors import TriggerNotFoundError, WorkflowDefinitionError
from autoflow.graph.context import ChatMessage
from autoflow.graph.edge import WorkflowSpec
from autoflow.llm import LLMAuthenticationError, MockLLMProvider
from autoflow.runtime.webhook_delivery import WebhookDelivery
from autoflow.runtime.workflow_runtime import AssistantSettings, WorkflowRuntime


def _workflow(workflow_id, nodes, connections=()):
    return WorkflowSpec.model_validate(
        {
            "id": workflow_id,
            "name": workflow_id.title(),
            "assistantId": 3,
            "nodes": nodes,
            "connections": [
                {"id": f"c{i}", "source": source, "target": target}
                for i, (source, target) in enumerate(connections)
            ],
        }
    )


def _reply_workflow(trigger_type="message"):
    return _workflow(
        "reply",
        [
            {"id": "start", "type": "trigger", "data": {"triggerType": trigger_type}},
            {"id": "ask", "type": "ai_action", "data": {"prompt": "Reply to: {{message}}"}},
            {
                "id": "say",
                "type": "output",
                "data": {"outputType": "message", "content": "{{aiResponse}}"},
            },
        ],
        [("start", "ask"), ("ask", "say")],
    )


def _silent_workflow():
    return _workflow(
        "silent",
        [
            {"id": "start", "type": "trigger", "data": {"triggerType": "message"}},
            {
                "id": "store",
                "type": "output",
                "data": {"outputType": "variable", "variableName": "seen", "content": "yes"},
            },
        ],
        [("start", "store")],
    )


@pytest.fixture
def config():
    return RuntimeConfig(max_executions=50, webhook_url=None)


# ---- Trigger selection ----


class TestFindTriggerNode:
    def test_first_trigger_by_default(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        assert runtime.find_trigger_node(_reply_workflow()).id == "start"

    def test_explicit_trigger(self, config):
        workflow = _workflow(
            "two",
            [
                {"id": "t1", "type": "trigger", "data": {"triggerType": "manual"}},
                {"id": "t2", "type": "trigger", "data": {"triggerType": "schedule"}},
            ],
        )
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        assert runtime.find_trigger_node(workflow, "t2").id == "t2"

    def test_missing_trigger_raises(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        with pytest.raises(TriggerNotFoundError, match="no trigger node 'nope'"):
            runtime.find_trigger_node(_reply_workflow(), "nope")

    def test_non_trigger_id_is_not_accepted(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        with pytest.raises(TriggerNotFoundError):
            runtime.find_trigger_node(_reply_workflow(), "ask")


# ---- Manual runs ----


class TestRunManual:
    @pytest.mark.asyncio
    async def test_seeds_variables_and_returns_report(self, config):
        workflow = _workflow(
            "manual",
            [
                {"id": "go", "type": "trigger", "data": {"triggerType": "manual"}},
                {
                    "id": "greet",
                    "type": "output",
                    "data": {"outputType": "message", "content": "Hello {{name}}"},
                },
            ],
            [("go", "greet")],
        )
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)

        result = await runtime.run_manual(workflow, variables={"name": "Ana"})

        assert result.context.messages[0].content == "Hello Ana"
        assert result.context.assistant_id == 3
        assert result.context.user_id == 1
        assert result.report.path == ["go", "greet"]

        wire = result.to_wire()
        assert wire["success"] is True
        assert wire["executedNodes"] == ["go", "greet"]
        assert wire["context"]["variables"]["name"] == "Ana"
        assert wire["messages"][0]["content"] == "Hello Ana"

    @pytest.mark.asyncio
    async def test_caller_variables_are_not_mutated(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        variables = {"name": "Ana"}

        await runtime.run_manual(_silent_workflow(), trigger=None, variables=variables)

        assert variables == {"name": "Ana"}

    @pytest.mark.asyncio
    async def test_empty_workflow_raises(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)
        with pytest.raises(WorkflowDefinitionError):
            await runtime.run_manual(_workflow("empty", []))

    @pytest.mark.asyncio
    async def test_configured_execution_cap(self):
        workflow = _workflow(
            "loop",
            [{"id": "t", "type": "trigger", "data": {"triggerType": "manual"}}],
            [("t", "t")],
        )
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=RuntimeConfig(max_executions=4))

        result = await runtime.run_manual(workflow)

        assert result.report.steps_executed == 4
        assert result.report.terminated_by == "max_executions"


# ---- Chat ----


class TestRespond:
    @pytest.mark.asyncio
    async def test_workflow_reply_wins(self, config):
        llm = MockLLMProvider(responses=["From the workflow"])
        runtime = WorkflowRuntime(llm=llm, config=config)
        history = [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello!"),
        ]

        reply = await runtime.respond(
            [_silent_workflow(), _reply_workflow()], history, "Need help", AssistantSettings("Ava")
        )

        assert reply.workflow_executed is True
        assert reply.workflow_id == "reply"
        assert reply.reply.content == "From the workflow"
        assert reply.reply.role == "assistant"
        assert [m.content for m in reply.messages] == [
            "Hi",
            "Hello!",
            "Need help",
            "From the workflow",
        ]
        assert llm.last_call.messages[-1] == {"role": "user", "content": "Reply to: Need help"}
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_manual_triggers_also_answer_chat(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(responses=["ok"]), config=config)

        reply = await runtime.respond(
            [_reply_workflow("manual")], [], "Hi", AssistantSettings("Ava")
        )

        assert reply.workflow_executed is True

    @pytest.mark.asyncio
    async def test_schedule_triggers_are_ignored(self, config):
        llm = MockLLMProvider(responses=["direct"])
        runtime = WorkflowRuntime(llm=llm, config=config)

        reply = await runtime.respond(
            [_reply_workflow("schedule")], [], "Hi", AssistantSettings("Ava")
        )

        assert reply.workflow_executed is False
        assert reply.reply.content == "direct"

    @pytest.mark.asyncio
    async def test_falls_back_to_direct_llm(self, config):
        llm = MockLLMProvider(responses=["Direct answer"])
        runtime = WorkflowRuntime(llm=llm, config=config)
        assistant = AssistantSettings(
            "Ava", model="gpt-4o-mini", temperature=70, instructions="Be kind"
        )

        reply = await runtime.respond(
            [_silent_workflow(), _workflow("empty", [])], [], "Hello", assistant
        )

        assert reply.workflow_executed is False
        assert reply.workflow_id is None
        assert reply.reply.content == "Direct answer"
        call = llm.last_call
        assert call.messages == [{"role": "user", "content": "Hello"}]
        assert call.model == "gpt-4o-mini"
        assert call.temperature == pytest.approx(0.7)
        assert call.system == "Be kind"

    @pytest.mark.asyncio
    async def test_default_assistant_temperature(self, config):
        llm = MockLLMProvider()
        runtime = WorkflowRuntime(llm=llm, config=config)

        await runtime.respond([], [], "Hello", AssistantSettings("Ava"))

        assert llm.last_call.temperature == pytest.approx(0.3)
        assert llm.last_call.model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_llm_failure_becomes_apology(self, config):
        llm = MockLLMProvider(error=LLMAuthenticationError("Invalid API key."))
        runtime = WorkflowRuntime(llm=llm, config=config)

        reply = await runtime.respond([], [], "Hello", AssistantSettings("Ava"))

        assert reply.workflow_executed is False
        assert reply.reply.content.startswith("I apologize")
        assert reply.reply.content.endswith("Invalid API key.")
        assert [m.role for m in reply.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_wire_format(self, config):
        runtime = WorkflowRuntime(llm=MockLLMProvider(), config=config)

        wire = (await runtime.respond([], [], "Hello", AssistantSettings("Ava"))).to_wire()

        assert wire["workflowExecuted"] is False
        assert wire["response"]["content"] == "Mock response"
        assert len(wire["messages"]) == 2


def test_webhook_built_from_config():
    runtime = WorkflowRuntime(
        llm=MockLLMProvider(),
        config=RuntimeConfig(webhook_url="https://hooks.example.com", webhook_timeout=2.5),
    )

    assert isinstance(runtime.webhook, WebhookDelivery)
    assert runtime.webhook.url == "https://hooks.example.com"
    assert runtime.webhook.timeout == 2.5
