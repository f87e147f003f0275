"""chatgraph CLI — Typer-based command-line interface."""

from __future__ import annotations

import asyncio
import json

import typer
from langchain_core.messages import HumanMessage
from rich.console import Console
from rich.table import Table

from chatgraph import __version__

app = typer.Typer(
    name="chatgraph",
    help="chatgraph - streaming LangGraph agent",
    no_args_is_help=True,
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"chatgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
) -> None:
    """chatgraph - streaming LangGraph agent."""


# ════════════════════════════════════════════════════════════
# run — start API server
# ════════════════════════════════════════════════════════════


@app.command()
def run(
    port: int = typer.Option(8000, "--port", "-p", help="Port number"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host address"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Start the API server (uvicorn)."""
    import uvicorn

    console.print(f"[green]Starting chatgraph API on {host}:{port}[/green]")
    uvicorn.run("chatgraph.api.app:app", host=host, port=port, reload=reload)


# ════════════════════════════════════════════════════════════
# chat — terminal chat
# ════════════════════════════════════════════════════════════


@app.command()
def chat(
    message: str | None = typer.Option(None, "--message", "-m", help="Single message to send"),
    thread: str = typer.Option("cli:default", "--thread", "-t", help="Thread ID"),
) -> None:
    """Chat with the assistant from the terminal (streamed)."""
    from chatgraph.agent.runner import GraphRunner
    from chatgraph.core.config.loader import load_config

    config = load_config()
    runner = GraphRunner(config)

    if message:
        # Single message mode
        asyncio.run(_stream_turn(runner, thread, message))
        return

    # Interactive mode
    console.print("[bold]chatgraph interactive mode[/bold] (type 'exit' or 'quit' to leave)\n")

    async def _interactive() -> None:
        while True:
            try:
                user_input = console.input("[bold blue]You:[/bold blue] ")
            except (KeyboardInterrupt, EOFError):
                console.print("\nBye!")
                break

            text = user_input.strip()
            if not text:
                continue
            if text.lower() in ("exit", "quit"):
                console.print("Bye!")
                break

            await _stream_turn(runner, thread, text)

    asyncio.run(_interactive())


async def _stream_turn(runner, thread_id: str, text: str) -> None:
    """Print one streamed turn: tokens inline, tool activity dimmed."""
    from chatgraph.agent.events import ErrorEvent, TokenEvent, ToolEndEvent, ToolStartEvent

    console.print("\n[bold cyan]chatgraph:[/bold cyan] ", end="")
    async for event in runner.stream(thread_id, [HumanMessage(content=text)]):
        if isinstance(event, TokenEvent):
            console.print(event.token, end="", markup=False, highlight=False)
        elif isinstance(event, ToolStartEvent):
            console.print(f"\n[dim]→ {event.tool}({json.dumps(event.input, default=str)})[/dim]")
        elif isinstance(event, ToolEndEvent):
            console.print(f"[dim]← {event.tool}: {str(event.output)[:200]}[/dim]")
        elif isinstance(event, ErrorEvent):
            console.print(f"\n[red]Error: {event.error}[/red]")
    console.print("\n")


# ════════════════════════════════════════════════════════════
# tools — list built-in tools
# ════════════════════════════════════════════════════════════


@app.command()
def tools() -> None:
    """List the tools available to the agent."""
    from chatgraph.agent.tools import make_tools
    from chatgraph.core.config.loader import load_config

    registry = make_tools(load_config())

    table = Table(title="chatgraph tools")
    table.add_column("Name", style="cyan")
    table.add_column("Group", style="magenta")
    table.add_column("Description", style="green")
    for entry in registry.get_catalog():
        table.add_row(entry["name"], entry["group"], entry["description"])
    console.print(table)
