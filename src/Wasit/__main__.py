"""Wasit command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Prompt
from rich.table import Table

from Wasit import __version__
from Wasit.capabilities.cache import CapabilityCache
from Wasit.capabilities.discovery import Discovery, build_snapshot
from Wasit.commands import (
    build_request,
    ensure_process_id,
    ensure_template,
    load_batch_file,
    parse_assignments,
)
from Wasit.config import Settings, get_settings
from Wasit.dispatch.batch import BatchOrchestrator, BatchResult
from Wasit.dispatch.router import DispatchResult, RequestRouter, format_dispatch_summary
from Wasit.dispatch.templates import list_templates
from Wasit.errors import InvalidRequestError, WasitError
from Wasit.intent.risk import RiskAssessment, resolve_confirmation_reply
from Wasit.logging_setup import setup_logging
from Wasit.transport.gateway import GatewayTransport

console = Console()

_LEVEL_STYLE = {"low": "green", "medium": "yellow", "high": "red"}


async def _prompt_confirmation(assessment: RiskAssessment) -> str | None:
    style = _LEVEL_STYLE.get(assessment.level, "white")
    console.print(f"\n[bold {style}]{assessment.title}[/]")
    console.print(assessment.message)
    for warning in assessment.warnings:
        console.print(f"  [yellow]![/] {warning}")
    for consequence in assessment.consequences:
        console.print(f"  - {consequence}")
    choices = ", ".join(
        f"[bold]{o.id}[/]" + (" (recommended)" if o.recommended and "recommended" not in o.label else "")
        for o in assessment.options
    )
    console.print(f"Options: {choices}")
    default = assessment.recommended.id if assessment.recommended else "cancel"
    reply = await asyncio.to_thread(Prompt.ask, "Your choice", default=default, console=console)
    return resolve_confirmation_reply(reply, assessment.options)


class _Runtime:
    def __init__(self, settings: Settings, *, interactive: bool) -> None:
        self.transport = GatewayTransport(settings, timeout=settings.execution_timeout_ms / 1000)
        self.discovery = Discovery(self.transport, settings)
        self.cache = CapabilityCache(self.discovery, ttl_seconds=settings.cache_ttl_seconds)
        self.router = RequestRouter(
            self.cache,
            self.transport,
            settings,
            confirm=_prompt_confirmation if interactive else None,
        )
        self.batches = BatchOrchestrator(self.router)

    async def close(self) -> None:
        await self.transport.aclose()


def _print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def _print_dispatch(result: DispatchResult) -> None:
    console.print(format_dispatch_summary(result))
    if result.risk is not None and result.status != "executed":
        console.print(f"  Risk: [{_LEVEL_STYLE.get(result.risk.level, 'white')}]{result.risk.level}[/]")
    if result.simulation is not None:
        for line in result.simulation.errors:
            console.print(f"  [red]x[/] {line}")
        for line in result.simulation.warnings + result.simulation.recommendations:
            console.print(f"  [yellow]-[/] {line}")
    if result.data is not None:
        console.print(result.data)
    if result.error is not None:
        for solution in result.error.solutions:
            console.print(f"  [dim]hint:[/] {solution}")


def _print_batch(result: BatchResult) -> None:
    table = Table(title=f"Batch {result.batch_id}")
    table.add_column("#", justify="right")
    table.add_column("Request")
    table.add_column("Status")
    table.add_column("Detail")
    for item in result.results:
        status = "[green]ok[/]" if item.success else "[red]failed[/]"
        detail = item.error.message if item.error else item.summary
        table.add_row(str(item.sequence_number), item.request, status, detail)
    console.print(table)
    console.print(
        f"{result.successful_operations}/{result.total_operations} succeeded, "
        f"{result.failed_operations} failed"
    )


async def _cmd_discover(args: argparse.Namespace, runtime: _Runtime) -> int:
    result = await runtime.cache.get_or_discover(args.process_id, force_refresh=args.refresh)
    if args.json:
        _print_json(result.to_dict())
    elif result.success and result.snapshot is not None:
        console.print(Markdown(result.snapshot.documentation))
    else:
        console.print(f"[red]Discovery failed:[/] {result.error.message if result.error else 'unknown error'}")
    return 0 if result.success else 1


async def _cmd_run(args: argparse.Namespace, runtime: _Runtime) -> int:
    result = await runtime.router.execute(args.request_obj)
    if args.json:
        _print_json(result.to_dict())
    else:
        _print_dispatch(result)
    return 0 if result.success else 1


async def _cmd_batch(args: argparse.Namespace, runtime: _Runtime) -> int:
    rollback = args.rollback or args.file_rollback
    result = await runtime.batches.execute_batch(args.process_id, args.batch_items, rollback_on_error=rollback)
    if args.json:
        _print_json(result.to_dict())
    else:
        _print_batch(result)
    return 0 if result.success else 1


async def _cmd_template(args: argparse.Namespace, runtime: _Runtime) -> int:
    result = await runtime.batches.execute_template(
        args.process_id, args.name, parse_assignments(args.set), confirmed=args.yes
    )
    if args.json:
        _print_json(result.to_dict())
    else:
        _print_batch(result)
    return 0 if result.success else 1


def _cmd_templates() -> int:
    for template in list_templates():
        params = ", ".join(template["parameters"]) or "none"
        rollback = "rollback on error" if template["rollbackOnError"] else "no rollback"
        console.print(f"[bold]{template['name']}[/] ({params}; {rollback})")
        console.print(f"  {template['description']}")
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    try:
        raw = Path(args.file).read_text(encoding="utf-8")
        snapshot = build_snapshot(args.process_id or "local", raw, discovered_at=0.0)
    except OSError as exc:
        console.print(f"[red]Cannot read {args.file}:[/] {exc}")
        return 2
    except WasitError as exc:
        console.print(f"[red]{exc.message}[/]")
        return 1
    if args.raw:
        sys.stdout.write(snapshot.documentation)
    else:
        console.print(Markdown(snapshot.documentation))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wasit",
        description="Wasit - talk to remote compute processes in plain language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wasit discover <pid>                              Show the handlers a process declares
  wasit run <pid> "transfer 100 tokens to alice"    Match, assess and execute a request
  wasit run <pid> "burn 500" --mode validate        Simulate without sending
  wasit batch <pid> steps.json --rollback           Run an ordered batch
  wasit template <pid> full-token-audit             Run a workflow template
""",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--gateway", default=None, help="Override the message gateway URL")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("discover", help="Discover a process's handlers")
    p.add_argument("process_id")
    p.add_argument("--refresh", action="store_true", help="Ignore cached capabilities")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("run", help="Execute one free-text request")
    p.add_argument("process_id")
    p.add_argument("request", nargs="?", default="")
    p.add_argument("--action", default=None, help="Call this handler directly instead of matching")
    p.add_argument("--mode", default="auto", help="auto | read | write | validate")
    p.add_argument("--param", action="append", default=[], metavar="KEY=VALUE")
    p.add_argument("--yes", "-y", action="store_true", help="Pre-approve any confirmation prompt")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("batch", help="Execute a JSON batch file in order")
    p.add_argument("process_id")
    p.add_argument("file")
    p.add_argument("--rollback", action="store_true", help="Stop and roll back on the first failure")
    p.add_argument("--yes", "-y", action="store_true")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("template", help="Run a named workflow template")
    p.add_argument("process_id")
    p.add_argument("name")
    p.add_argument("--set", action="append", default=[], metavar="KEY=VALUE")
    p.add_argument("--yes", "-y", action="store_true")
    p.add_argument("--json", action="store_true")

    sub.add_parser("templates", help="List workflow templates")

    p = sub.add_parser("render", help="Render a saved Info payload as markdown")
    p.add_argument("file")
    p.add_argument("--process-id", default=None)
    p.add_argument("--raw", action="store_true", help="Print markdown source")
    return parser


def _validate(args: argparse.Namespace) -> None:
    """Fail fast on bad input before any network work starts."""
    if args.command in ("discover", "batch", "template"):
        args.process_id = ensure_process_id(args.process_id)
    if args.command == "run":
        args.request_obj = build_request(
            args.process_id,
            args.request,
            parameters=parse_assignments(args.param),
            mode=args.mode,
            action=args.action,
            confirmed=args.yes,
        )
    elif args.command == "batch":
        args.batch_items, args.file_rollback = load_batch_file(args.file, confirmed=args.yes)
    elif args.command == "template":
        args.name = ensure_template(args.name)
        parse_assignments(args.set)


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    interactive = sys.stdin.isatty() and not getattr(args, "yes", False)
    runtime = _Runtime(settings, interactive=interactive)
    try:
        if args.command == "discover":
            return await _cmd_discover(args, runtime)
        if args.command == "run":
            return await _cmd_run(args, runtime)
        if args.command == "batch":
            return await _cmd_batch(args, runtime)
        return await _cmd_template(args, runtime)
    finally:
        await runtime.close()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.gateway:
        settings = settings.model_copy(update={"gateway_url": args.gateway})
    setup_logging(args.log_level or settings.log_level)

    try:
        _validate(args)
    except InvalidRequestError as exc:
        console.print(f"[red]Error:[/] {exc.message}")
        raise SystemExit(2)

    if args.command == "templates":
        raise SystemExit(_cmd_templates())
    if args.command == "render":
        raise SystemExit(_cmd_render(args))

    try:
        exit_code = asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
