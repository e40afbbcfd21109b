"""
CLI entry point for medi-assist.

Subcommands: flows, invoke, triage, chat, direct.
Flow results are printed as JSON (camelCase keys, as on the wire). A flow
failure prints its user-safe message and exits 1; invalid input exits 2.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Optional, Sequence

import structlog
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from medi_assist.config.settings import get_settings
from medi_assist.flows.errors import AgentFailure, ConfigurationError, FlowError, ValidationError
from medi_assist.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _print_result(result: BaseModel) -> None:
    print(json.dumps(result.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


def _parse_input(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("__root__", f"input is not valid JSON: {e.msg}") from e


def _run(coro: Any) -> int:
    """Run a flow coroutine and map failures to exit codes."""
    try:
        result = asyncio.run(coro)
    except AgentFailure as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except ConfigurationError as e:
        logger.error("medi_assist_not_configured", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_result(result)
    return 0


def _cmd_flows() -> int:
    """Show a Rich table of the registered flows."""
    from medi_assist.agents import FLOWS

    table = Table(title="Registered flows", show_header=True, header_style="bold")
    table.add_column("Flow", style="cyan")
    table.add_column("Input", style="dim")
    table.add_column("Output", style="dim")
    table.add_column("Temperature", justify="right")
    table.add_column("Tools")
    for flow in FLOWS.values():
        info = flow.describe()
        tools = getattr(flow, "tools", {})
        table.add_row(
            info["name"],
            info["input_schema"],
            info["output_schema"],
            f"{info['temperature']:.1f}",
            ", ".join(tools) or "-",
        )
    Console().print(table)
    return 0


def _cmd_invoke(flow_name: str, raw_input: str) -> int:
    from medi_assist.agents import FLOWS

    flow = FLOWS.get(flow_name)
    if flow is None:
        print(f"Error: unknown flow '{flow_name}'. Available: {', '.join(sorted(FLOWS))}", file=sys.stderr)
        return 2
    try:
        value = _parse_input(raw_input)
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    return _run(flow.invoke(value))


def _cmd_triage(symptoms: str, age: Optional[int], sex: Optional[str], history: Optional[str]) -> int:
    from medi_assist.agents import triage_and_referral

    value: dict = {"symptoms": symptoms}
    context = {k: v for k, v in (("age", age), ("sex", sex), ("history", history)) if v is not None}
    if context:
        value["patientContext"] = context
    return _run(triage_and_referral(value))


def _cmd_chat(message: str) -> int:
    from medi_assist.agents import process_chat_message

    return _run(process_chat_message({"message": message}))


def _cmd_direct(prompt: str) -> int:
    from medi_assist.inference.direct import call_direct

    try:
        text = asyncio.run(call_direct(prompt))
    except FlowError as e:
        logger.error("direct_call_failed", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(text)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse CLI args and dispatch to subcommands. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="MediAssist: schema-validated AI flows (list, invoke, triage, chat, direct).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("flows", help="List registered flows.")

    inv_p = subparsers.add_parser("invoke", help="Invoke one flow with a JSON input.")
    inv_p.add_argument("flow", help="Flow name (e.g. medicoMnemonicsGeneratorFlow).")
    inv_p.add_argument("--input", required=True, help="Flow input as a JSON object (camelCase keys).")

    tri_p = subparsers.add_parser("triage", help="Analyse symptoms and draft a referral when warranted.")
    tri_p.add_argument("symptoms", help="Symptom description (at least 10 characters).")
    tri_p.add_argument("--age", type=int, default=None, help="Patient age in years.")
    tri_p.add_argument("--sex", default=None, help="Patient sex.")
    tri_p.add_argument("--history", default=None, help="Relevant medical history.")

    chat_p = subparsers.add_parser("chat", help="Send one message to the chat assistant.")
    chat_p.add_argument("message", help="User message.")

    dir_p = subparsers.add_parser("direct", help="Send a raw prompt straight to the Gemini endpoint.")
    dir_p.add_argument("prompt", help="Prompt text.")

    args = parser.parse_args(argv)
    configure_logging(get_settings().logging)

    if args.command == "flows":
        return _cmd_flows()
    if args.command == "invoke":
        return _cmd_invoke(args.flow, args.input)
    if args.command == "triage":
        return _cmd_triage(args.symptoms, args.age, args.sex, args.history)
    if args.command == "chat":
        return _cmd_chat(args.message)
    if args.command == "direct":
        return _cmd_direct(args.prompt)
    return 1


if __name__ == "__main__":
    sys.exit(main())
