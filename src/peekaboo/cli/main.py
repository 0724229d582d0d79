"""
Command-line interface for peekaboo.

``peekaboo serve`` runs the MCP server on stdio. The remaining commands run
the same operations once and print the result, which is handy for checking
what an agent would see.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.tree import Tree

from peekaboo import __version__
from peekaboo.filesystem.enumerator import FileSystemItem
from peekaboo.filesystem.exceptions import FileSystemError
from peekaboo.filesystem.tools import SandboxTools
from peekaboo.settings import PeekabooSettings

# Load environment variables
load_dotenv()

# stdout carries the MCP transport when serving
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Setup rich logging on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )
    # Reduce noise from the MCP SDK
    logging.getLogger("mcp").setLevel(logging.WARNING)


def _load_settings(
    config_file: Optional[Path], root: Optional[Path], **overrides: Any
) -> PeekabooSettings:
    """Settings from file or environment, with command-line overrides applied."""
    values = {key: value for key, value in overrides.items() if value is not None}
    if root is not None:
        values["root_directory"] = root

    if config_file is not None:
        return PeekabooSettings.from_file(config_file, **values)
    return PeekabooSettings(**values)


def _build_tools(ctx: click.Context) -> SandboxTools:
    settings: PeekabooSettings = ctx.obj["settings"]
    return SandboxTools(settings.to_sandbox_config())


def _fail(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    raise SystemExit(1)


def _add_to_tree(tree: Tree, items: list[FileSystemItem]) -> None:
    for item in items:
        if item.is_directory:
            branch = tree.add(f"[bold blue]{item.name}/[/bold blue]")
            if item.children:
                _add_to_tree(branch, item.children)
        else:
            size = f" [dim]({item.size} bytes)[/dim]" if item.size is not None else ""
            tree.add(f"{item.name}{size}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Root directory (default: PEEKABOO_ROOT_DIRECTORY or working directory)",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML or JSON settings file",
)
@click.option(
    "--recursive/--no-recursive",
    default=None,
    help="List subdirectories recursively",
)
@click.option(
    "--max-depth",
    type=int,
    default=None,
    help="Maximum recursion depth",
)
@click.option(
    "--timeout-ms",
    type=int,
    default=None,
    help="Per-operation timeout in milliseconds (0 disables)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def cli(
    ctx: click.Context,
    root: Optional[Path],
    config_file: Optional[Path],
    recursive: Optional[bool],
    max_depth: Optional[int],
    timeout_ms: Optional[int],
    verbose: bool,
):
    """Peekaboo - read-only, sandboxed filesystem access for AI agents."""
    try:
        settings = _load_settings(
            config_file,
            root,
            recursive=recursive,
            max_depth=max_depth,
            timeout_ms=timeout_ms,
        )
    except (ValueError, FileNotFoundError) as e:
        _fail(f"Invalid settings: {e}")

    setup_logging(verbose, settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def serve(ctx: click.Context):
    """
    Run the MCP server on stdio.

    Examples:

        # Serve the current directory
        peekaboo serve

        # Serve a project two levels deep
        peekaboo --root ~/src/project --max-depth 2 serve
    """
    from peekaboo.server import run_stdio

    settings: PeekabooSettings = ctx.obj["settings"]
    err_console.print(
        Panel(
            f"[bold cyan]Peekaboo MCP[/bold cyan] {__version__}\n\n"
            f"Root: [green]{settings.root_directory}[/green]\n"
            f"Recursive: [green]{settings.recursive}[/green]\n"
            f"Max depth: [green]{settings.max_depth}[/green]",
            title="Serving on stdio",
        )
    )
    run_stdio(settings.to_sandbox_config())


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print the raw listing as JSON")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool):
    """List the root as a tree."""
    tools = _build_tools(ctx)

    try:
        items = asyncio.run(tools.list_tree())
    except FileSystemError as e:
        _fail(str(e))

    if as_json:
        console.print_json(json.dumps([item.to_dict() for item in items]))
        return

    tree = Tree(f"[bold]{tools.root}[/bold]")
    _add_to_tree(tree, items)
    console.print(tree)


@cli.command()
@click.argument("path")
@click.pass_context
def read(ctx: click.Context, path: str):
    """Read a file inside the root."""
    tools = _build_tools(ctx)
    result = asyncio.run(tools.execute_tool("read_file", {"path": path}))

    if not result["success"]:
        _fail(result["error"])

    lexer = Syntax.guess_lexer(result["absolute_path"], code=result["content"])
    console.print(Syntax(result["content"], lexer, line_numbers=True))


@cli.command(name="search-path")
@click.argument("pattern")
@click.pass_context
def search_path(ctx: click.Context, pattern: str):
    """
    Find files and directories by glob.

    Examples:

        peekaboo search-path "*.py"

        peekaboo search-path "**/tests/*.{py,yaml}"
    """
    tools = _build_tools(ctx)
    result = asyncio.run(tools.execute_tool("search_path", {"pattern": pattern}))

    if not result["success"]:
        _fail(result["error"])
    console.print(result["text"], markup=False)


@cli.command(name="search-content")
@click.argument("query")
@click.option("--include", "-i", default=None, help='Only search files matching a glob (e.g. "*.md")')
@click.option("--case-sensitive", is_flag=True, help="Match case exactly")
@click.option("--max-results", "-n", type=int, default=None, help="Maximum number of files to report")
@click.pass_context
def search_content(
    ctx: click.Context,
    query: str,
    include: Optional[str],
    case_sensitive: bool,
    max_results: Optional[int],
):
    """Search file contents with a regular expression."""
    tools = _build_tools(ctx)
    result = asyncio.run(
        tools.execute_tool(
            "search_content",
            {
                "query": query,
                "include": include,
                "ignore_case": not case_sensitive,
                "max_results": max_results,
            },
        )
    )

    if not result["success"]:
        _fail(result["error"])
    console.print(result["text"], markup=False)


@cli.command()
@click.pass_context
def health(ctx: click.Context):
    """Show server status and effective configuration."""
    tools = _build_tools(ctx)
    console.print_json(json.dumps(tools.health_check()))


if __name__ == "__main__":
    cli()
