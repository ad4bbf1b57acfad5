"""
Command-line interface for Autoflow.

Usage:
    autoflow run workflows/support.json --var topic=billing
    autoflow run workflows/support.json --trigger trigger-1 --input '{"x": "1"}'
    autoflow chat workflows/support.json "I need a refund" --history history.json
    autoflow info workflows/support.json

Offline runs:
    autoflow run workflows/support.json --mock-llm "Canned reply"
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from autoflow.config import RuntimeConfig
from autoflow.errors import AutoflowError, WorkflowDefinitionError
from autoflow.graph.context import ChatMessage
from autoflow.graph.edge import WorkflowSpec
from autoflow.graph.index import GraphIndex
from autoflow.llm import LiteLLMProvider, LLMProvider, MockLLMProvider
from autoflow.observability import configure_logging
from autoflow.runtime.workflow_runtime import AssistantSettings, WorkflowRuntime


def load_workflow(path: str | Path) -> WorkflowSpec:
    """Read a workflow JSON file (camelCase keys, as exported by the editor)."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise WorkflowDefinitionError(f"Cannot read workflow {path}: {e}") from e
    if not isinstance(data, dict):
        raise WorkflowDefinitionError(f"Workflow {path} must be a JSON object")

    data.setdefault("id", path.stem)
    try:
        return WorkflowSpec.model_validate(data)
    except ValidationError as e:
        raise WorkflowDefinitionError(f"Invalid workflow {path}: {e}") from e


def load_history(path: str | Path) -> list[ChatMessage]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return TypeAdapter(list[ChatMessage]).validate_python(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise AutoflowError(f"Cannot read history {path}: {e}") from e


def parse_variables(pairs: list[str], raw_input: str | None) -> dict[str, Any]:
    """Merge ``--input`` JSON with ``--var KEY=VALUE`` pairs (pairs win)."""
    variables: dict[str, Any] = {}
    if raw_input:
        try:
            loaded = json.loads(raw_input)
        except json.JSONDecodeError as e:
            raise AutoflowError(f"--input is not valid JSON: {e}") from e
        if not isinstance(loaded, dict):
            raise AutoflowError("--input must be a JSON object")
        variables.update(loaded)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise AutoflowError(f"--var expects KEY=VALUE, got '{pair}'")
        variables[key] = value
    return variables


def _build_llm(args: argparse.Namespace, config: RuntimeConfig) -> LLMProvider:
    if args.mock_llm is not None:
        return MockLLMProvider(default_response=args.mock_llm)
    return LiteLLMProvider(
        api_key=config.api_key, api_base=config.api_base, max_tokens=config.max_tokens
    )


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_run(args: argparse.Namespace) -> int:
    """Execute a workflow from a trigger node."""
    config = RuntimeConfig()
    if args.max_executions is not None:
        config.max_executions = args.max_executions

    workflow = load_workflow(args.workflow)
    variables = parse_variables(args.var, args.input)
    runtime = WorkflowRuntime(llm=_build_llm(args, config), config=config)

    result = asyncio.run(runtime.run_manual(workflow, trigger=args.trigger, variables=variables))
    _print_json(result.to_wire())
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    """Answer one chat message through a workflow's chat triggers."""
    config = RuntimeConfig()
    workflow = load_workflow(args.workflow)
    history = load_history(args.history) if args.history else []
    assistant = AssistantSettings(
        name=args.assistant,
        model=args.model or config.model,
        temperature=args.temperature,
        instructions=args.instructions,
        id=workflow.assistant_id,
    )
    runtime = WorkflowRuntime(llm=_build_llm(args, config), config=config)

    reply = asyncio.run(runtime.respond([workflow], history, args.message, assistant))
    if args.json:
        _print_json(reply.to_wire())
    else:
        source = "workflow" if reply.workflow_executed else "direct"
        print(f"[{source}] {reply.reply.content}")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Describe a workflow's graph."""
    workflow = load_workflow(args.workflow)
    index = GraphIndex(workflow.nodes, workflow.connections)

    _print_json(
        {
            "id": workflow.id,
            "name": workflow.name,
            "nodes": [
                {"id": n.id, "type": str(n.type), "label": n.label} for n in workflow.nodes
            ],
            "connections": [
                c.model_dump(mode="json", by_alias=True, exclude_none=True)
                for c in workflow.connections
            ],
            "triggers": [n.id for n in workflow.trigger_nodes()],
            "danglingConnections": [c.id for c in index.dangling_connections()],
        }
    )
    return 0


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    """Register run, chat and info."""
    run_parser = subparsers.add_parser("run", help="Execute a workflow manually")
    run_parser.add_argument("workflow", help="Path to a workflow JSON file")
    run_parser.add_argument("--trigger", help="Trigger node ID (default: first trigger)")
    run_parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Seed a context variable (repeatable)",
    )
    run_parser.add_argument("--input", help="Context variables as a JSON object")
    run_parser.add_argument(
        "--mock-llm", metavar="TEXT", help="Answer every LLM call with TEXT (no API calls)"
    )
    run_parser.add_argument(
        "--max-executions", type=int, help="Cap on node executions for this run"
    )
    run_parser.set_defaults(func=cmd_run)

    chat_parser = subparsers.add_parser("chat", help="Answer a chat message")
    chat_parser.add_argument("workflow", help="Path to a workflow JSON file")
    chat_parser.add_argument("message", help="The user's message")
    chat_parser.add_argument("--history", help="JSON file with prior chat messages")
    chat_parser.add_argument("--assistant", default="Assistant", help="Assistant name")
    chat_parser.add_argument("--model", help="Model for direct replies")
    chat_parser.add_argument(
        "--temperature", type=float, default=30, help="Direct reply temperature (0-100)"
    )
    chat_parser.add_argument("--instructions", help="System instructions for direct replies")
    chat_parser.add_argument(
        "--mock-llm", metavar="TEXT", help="Answer every LLM call with TEXT (no API calls)"
    )
    chat_parser.add_argument("--json", action="store_true", help="Print the full reply as JSON")
    chat_parser.set_defaults(func=cmd_chat)

    info_parser = subparsers.add_parser("info", help="Show a workflow's graph")
    info_parser.add_argument("workflow", help="Path to a workflow JSON file")
    info_parser.set_defaults(func=cmd_info)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="autoflow",
        description="Autoflow - Run AI assistant workflows",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--log-format", choices=["auto", "json", "human"], help="Log output format"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    register_commands(subparsers)

    args = parser.parse_args(argv)

    config = RuntimeConfig()
    configure_logging(
        level=args.log_level or config.log_level,
        format=args.log_format or config.log_format,
    )

    try:
        return args.func(args)
    except AutoflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
