"""agentthreads CLI - serve the API or run tools from the shell."""

import asyncio
import json
import os
import socket
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Optional

import typer
import uvicorn

from agentthreads.config import configure_logging, load_settings
from agentthreads.errors import AgentThreadsError
from agentthreads.workspace import Workspace, build_workspace


def is_port_available(host: str, port: int) -> bool:
    """Check if a port is available for binding."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def find_available_port(host: str, start_port: int, max_attempts: int = 10) -> int:
    """Find an available port starting from start_port."""
    for offset in range(max_attempts):
        port = start_port + offset
        if is_port_available(host, port):
            return port
    raise RuntimeError(f"No available port found in range {start_port}-{start_port + max_attempts - 1}")

app = typer.Typer(
    name="agentthreads",
    help="Agent tools for creating conversation threads.",
    no_args_is_help=False,
)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", "-h", help="Host to bind to")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to bind to")] = 2027,
    reload: Annotated[bool, typer.Option("--reload", "-r", help="Enable auto-reload")] = False,
    work_dir: Annotated[
        Optional[str], typer.Option("--work-dir", "-w", help="Project directory for new threads")
    ] = None,
) -> None:
    """Start the agentthreads server."""
    if work_dir:
        resolved = Path(work_dir).resolve()
        if not resolved.exists():
            typer.echo(f"Error: Working directory does not exist: {work_dir}", err=True)
            raise typer.Exit(1)
        os.environ["AGENTTHREADS_WORK_DIR"] = str(resolved)

    actual_port = port
    if not is_port_available(host, port):
        try:
            actual_port = find_available_port(host, port)
            typer.echo(f"Port {port} is in use, using {actual_port} instead")
        except RuntimeError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    typer.echo(f"Starting agentthreads on http://{host}:{actual_port}")
    typer.echo("Press Ctrl+C to stop")

    uvicorn.run(
        "agentthreads.server:app",
        host=host,
        port=actual_port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from agentthreads import __version__

    typer.echo(f"agentthreads v{__version__}")


def _load_workspace() -> Workspace:
    try:
        return build_workspace(load_settings())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def tools() -> None:
    """List the registered tools."""
    workspace = _load_workspace()
    for tool in workspace.dispatcher.tools():
        typer.echo(f"{tool.name} ({tool.kind})")


@app.command()
def schema(name: Annotated[str, typer.Argument(help="Tool name")]) -> None:
    """Print a tool's input JSON schema."""
    workspace = _load_workspace()
    try:
        tool = workspace.dispatcher.get(name)
    except AgentThreadsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(tool.input_schema(), indent=2))


@app.command("create-thread")
def create_thread(
    title: Annotated[
        Optional[str], typer.Option("--title", "-t", help="Title for the new thread")
    ] = None,
    work_dir: Annotated[
        Optional[str], typer.Option("--work-dir", "-w", help="Project directory")
    ] = None,
) -> None:
    """Create a thread through the create_thread tool and print its ID."""
    settings = load_settings()
    if work_dir:
        settings = replace(settings, work_dir=work_dir)
    configure_logging(settings)

    try:
        workspace = build_workspace(settings)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    raw_input = {} if title is None else {"title": title}

    async def _run() -> str:
        try:
            result = await workspace.dispatcher.dispatch("create_thread", raw_input)
            return str(result.output)
        finally:
            await workspace.close()

    try:
        thread_id = asyncio.run(_run())
    except AgentThreadsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(thread_id)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """agentthreads - agent tools for conversation threads."""
    if ctx.invoked_subcommand is None:
        serve()


if __name__ == "__main__":
    app()
