"""
MCP server exposing the sandbox over stdio.

The server is a thin adapter: every tool forwards to :class:`SandboxTools`,
which owns validation, resource limits and error mapping. Failures are
raised as ``ToolError`` so the client sees them as tool errors rather than
as successful text.
"""

import json
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from peekaboo import __version__
from peekaboo.filesystem.config import SandboxConfig
from peekaboo.filesystem.tools import SandboxTools

logger = logging.getLogger(__name__)

SERVER_NAME = "peekaboo-mcp"
TREE_RESOURCE_URI = "peekaboo://tree"


def _unwrap(result: dict[str, Any]) -> dict[str, Any]:
    """Raise a ToolError for a failed tool result, return it otherwise."""
    if not result.get("success"):
        raise ToolError(f"[{result.get('error_code')}] {result.get('error')}")
    return result


def create_server(config: SandboxConfig, tools: Optional[SandboxTools] = None) -> FastMCP:
    """
    Build the MCP server for one sandbox root.

    Args:
        config: Sandbox configuration
        tools: Pre-built dispatcher (one is created from config if omitted)

    Returns:
        FastMCP application with tools and the tree resource registered
    """
    tools = tools or SandboxTools(config)
    app = FastMCP(SERVER_NAME)

    @app.resource(
        TREE_RESOURCE_URI,
        name="tree",
        description="Every file and directory under the root",
        mime_type="application/json",
    )
    async def tree() -> str:
        resources = await tools.list_resources()
        return json.dumps(resources, indent=2)

    @app.tool(description="List every file and directory under the root")
    async def list_files() -> str:
        result = _unwrap(await tools.execute_tool("list_files"))
        return json.dumps(result["items"], indent=2)

    @app.tool(description="Read a text file inside the root (path or file:// URI)")
    async def read_file(path: str) -> str:
        result = _unwrap(await tools.execute_tool("read_file", {"path": path}))
        return result["content"]

    @app.tool(
        description='Search for files and directories by name pattern '
        '(supports * and ** wildcards, e.g. "*.js", "**/test/*.json")'
    )
    async def search_path(pattern: str) -> str:
        result = _unwrap(await tools.execute_tool("search_path", {"pattern": pattern}))
        return result["text"]

    @app.tool(
        description="Search for a regular expression in file contents. "
        "Returns matching lines with line numbers."
    )
    async def search_content(
        query: str,
        include: Optional[str] = None,
        ignore_case: bool = True,
        max_results: Optional[int] = None,
    ) -> str:
        result = _unwrap(
            await tools.execute_tool(
                "search_content",
                {
                    "query": query,
                    "include": include,
                    "ignore_case": ignore_case,
                    "max_results": max_results,
                },
            )
        )
        return result["text"]

    @app.tool(description="Get server health status and metrics")
    async def health_check() -> str:
        return json.dumps(tools.health_check(), indent=2)

    logger.info(f"Created {SERVER_NAME} {__version__} for {config.root_directory}")
    return app


def run_stdio(config: SandboxConfig) -> None:
    """Serve the sandbox over stdio until the client disconnects."""
    app = create_server(config)
    logger.info(f"Serving {config.root_directory} over stdio")
    app.run(transport="stdio")
