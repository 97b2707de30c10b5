"""DevMind CLI - run the CJ.DevMind agents from the command line.

Usage:
    devmind architect "Online bookstore with a REST API"
    devmind component "Login form with validation framework: vue"
    devmind devops docker "Containerize the API and the frontend"
    devmind integration stripe setup --config apiKey=sk_test_123
    devmind dashboard update
    devmind status --project-dir ./my-app
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from devmind import __version__
from devmind.core.config import DevMindConfig, load_config
from devmind.core.enums import AgentType, DevOpsKind, Framework
from devmind.core.exceptions import DevMindError
from devmind.core.logging import configure_logging
from devmind.core.models import TaskResult
from devmind.facade import DevMind


app = typer.Typer(
    name="devmind",
    help="CJ.DevMind - cooperating agents that scaffold web projects",
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"CJ.DevMind {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    project_dir: Annotated[
        Optional[Path], typer.Option("--project-dir", "-p", help="Project directory (default: cwd)")
    ] = None,
    config: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Path to devmind.yaml")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING, ERROR")
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version"),
    ] = False,
) -> None:
    """Global options shared by every command."""
    ctx.obj = {"project_dir": project_dir, "config": config, "log_level": log_level}


# =============================================================================
# Helpers
# =============================================================================
def _build_config(ctx: typer.Context) -> DevMindConfig:
    options = ctx.obj or {}
    config_path = options.get("config")
    try:
        config = load_config(str(config_path) if config_path else None)
    except FileNotFoundError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    except DevMindError as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(1)

    updates: dict[str, Any] = {}
    if options.get("log_level"):
        updates["log_level"] = options["log_level"].upper()
    if options.get("project_dir"):
        updates["workspace"] = config.workspace.model_copy(
            update={"project_dir": Path(options["project_dir"]).resolve()}
        )
    if updates:
        config = config.model_copy(update=updates)

    configure_logging(config.log_level)
    return config


async def _run_agent(
    config: DevMindConfig, agent_type: AgentType, spec: str, options: dict[str, Any]
) -> TaskResult:
    async with DevMind(config) as devmind:
        await devmind.register_default_agents()
        return await devmind.run_agent(agent_type, spec, **options)


def _execute(ctx: typer.Context, agent_type: AgentType, spec: str, **options: Any) -> TaskResult:
    """Run one agent and print its outcome; exit 1 on any failure."""
    config = _build_config(ctx)
    console.print(Panel(
        f"[bold]Agent:[/bold] {agent_type.value}\n"
        f"[bold]Spec:[/bold] {spec}\n"
        f"[bold]Project:[/bold] {config.workspace.project_dir}\n"
        f"[bold]LLM:[/bold] {config.llm.provider} ({config.llm.model})",
        title="CJ.DevMind",
        border_style="blue",
    ))
    try:
        result = asyncio.run(_run_agent(config, agent_type, spec, options))
    except DevMindError as exc:
        console.print(f"[red]Error ({exc.error_code}):[/red] {exc.message}")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if not result.succeeded:
        console.print(f"[red]Error:[/red] {result.error_message}")
        raise typer.Exit(1)

    _print_result(result)
    return result


def _print_result(result: TaskResult) -> None:
    if result.files:
        table = Table(title="Generated files")
        table.add_column("Path", style="cyan")
        for path in result.files:
            table.add_row(path)
        console.print(table)
    for key, value in result.output_data.items():
        if key in ("blueprint", "files") or isinstance(value, (dict, list)) and not value:
            continue
        console.print(f"[bold]{key}:[/bold] {value}")
    duration = f" in {result.duration_seconds:.2f}s" if result.duration_seconds is not None else ""
    console.print(f"[green]Done{duration}.[/green]")


def _parse_key_values(pairs: Optional[list[str]]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--config")
        parsed[key.strip()] = value
    return parsed


# =============================================================================
# Commands
# =============================================================================
@app.command("architect")
def architect(
    ctx: typer.Context,
    spec: Annotated[str, typer.Argument(help="Project description")],
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Blueprint path")] = None,
) -> None:
    """Design the project architecture."""
    options = {"output": output} if output else {}
    _execute(ctx, AgentType.ARCHITECT, spec, **options)


@app.command("component")
def component(
    ctx: typer.Context,
    spec: Annotated[str, typer.Argument(help="Component description (inline options allowed)")],
    framework: Annotated[Optional[Framework], typer.Option("--framework", "-f", help="Target framework")] = None,
    styling: Annotated[Optional[str], typer.Option("--styling", "-s", help="Styling method")] = None,
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Component name")] = None,
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Components directory")] = None,
) -> None:
    """Generate a UI component with story, test, docs and styles."""
    options: dict[str, Any] = {}
    if framework:
        options["framework"] = framework.value
    if styling:
        options["styling"] = styling
    if name:
        options["name"] = name
    if output:
        options["output"] = output
    _execute(ctx, AgentType.COMPONENT, spec, **options)


@app.command("dashboard")
def dashboard(
    ctx: typer.Context,
    action: Annotated[str, typer.Argument(help="init, update, status, start, stop or a customisation")],
) -> None:
    """Create, refresh or customise the project dashboard."""
    _execute(ctx, AgentType.DASHBOARD, action)


@app.command("devops")
def devops(
    ctx: typer.Context,
    kind: Annotated[DevOpsKind, typer.Argument(help="ci, cd, docker, iac or monitoring")],
    spec: Annotated[Optional[str], typer.Argument(help="What to automate, or a config file path")] = None,
) -> None:
    """Generate CI/CD, Docker, IaC or monitoring configuration."""
    _execute(ctx, AgentType.DEVOPS, spec or kind.value, kind=kind.value)


@app.command("integration")
def integration(
    ctx: typer.Context,
    service: Annotated[str, typer.Argument(help="Service name (stripe, github, ...)")],
    action: Annotated[str, typer.Argument(help="setup, test, update or delete")] = "setup",
    config: Annotated[
        Optional[list[str]], typer.Option("--config", "-c", help="Service setting as key=value (repeatable)")
    ] = None,
    no_client: Annotated[bool, typer.Option("--no-client", help="Skip client code generation")] = False,
) -> None:
    """Set up, test, update or delete a third-party integration."""
    settings = _parse_key_values(config)
    _execute(
        ctx,
        AgentType.INTEGRATION,
        service,
        action=action,
        config=settings,
        generate_client=not no_client,
    )


@app.command("sync")
def sync(
    ctx: typer.Context,
    spec: Annotated[str, typer.Argument(help="What to connect between frontend and backend")],
) -> None:
    """Generate the frontend ↔ backend integration layer."""
    _execute(ctx, AgentType.FRONTEND_SYNC, spec)


@app.command("test")
def test(
    ctx: typer.Context,
    spec: Annotated[str, typer.Argument(help="Source file path or test description")],
) -> None:
    """Generate a Jest configuration, test suite and mocks."""
    _execute(ctx, AgentType.TESTING, spec)


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show agent statuses and shared-context counters."""
    config = _build_config(ctx)

    async def _load():
        async with DevMind(config) as devmind:
            return await devmind.get_shared_context()

    try:
        snapshot = asyncio.run(_load())
    except DevMindError as exc:
        console.print(f"[red]Error ({exc.error_code}):[/red] {exc.message}")
        raise typer.Exit(1)

    table = Table(title=f"{snapshot.project_name} agents")
    table.add_column("Agent", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Last activity")
    for name, record in sorted(snapshot.agent_statuses.items()):
        table.add_row(
            name,
            record.agent_type.value if record.agent_type else "-",
            record.status.value,
            record.last_activity.isoformat(timespec="seconds"),
        )
    console.print(table)
    console.print(
        f"Decisions: {len(snapshot.decisions)}  "
        f"Resources: {len(snapshot.resources)}  "
        f"LLM calls: {snapshot.metrics.llm_calls}  "
        f"Tokens: {snapshot.metrics.total_tokens}  "
        f"Files: {snapshot.metrics.files_generated}"
    )


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
