"""
Operation dispatcher for sandboxed filesystem access.

Maps client requests (list resources, read resource, tool calls) onto the
enumerator, reader and searchers, and turns results into plain data for the
transport layer. Each top-level request gets its own ResourceGovernor.
"""

import logging
import time
from pathlib import Path
from typing import Any, Optional

from peekaboo import __version__
from peekaboo.filesystem.config import SandboxConfig
from peekaboo.filesystem.enumerator import FileSystemItem, list_directory, walk_items
from peekaboo.filesystem.exceptions import (
    FileSystemError,
    InternalFileSystemError,
    InvalidParameterError,
    InvalidUriError,
    MissingParameterError,
    UnknownOperationError,
)
from peekaboo.filesystem.governor import ResourceGovernor
from peekaboo.filesystem.metrics import MetricsCollector, OperationMetrics
from peekaboo.filesystem.mime import DIRECTORY_MIME_TYPE, get_mime_type
from peekaboo.filesystem.reader import RestrictedFileReader
from peekaboo.filesystem.search import SearchResult, search_by_path, search_content

logger = logging.getLogger(__name__)

FILE_URI_PREFIX = "file://"


def format_path_matches(paths: list[str]) -> str:
    """Render path search results as text."""
    if not paths:
        return "No files found matching the pattern"
    return f"Found {len(paths)} matches:\n" + "\n".join(paths)


def format_content_results(results: list[SearchResult]) -> str:
    """Render content search results as text."""
    if not results:
        return "No matches found"

    lines = [f"Found matches in {len(results)} files:", ""]
    for result in results:
        lines.append(result.path)
        for match in result.matches:
            lines.append(f"  Line {match.line_number}: {match.line_text}")
        lines.append("")
    return "\n".join(lines)


def _error_result(error: Exception, **context: Any) -> dict[str, Any]:
    """Failure payload; unexpected exceptions are reported as internal errors."""
    if not isinstance(error, FileSystemError):
        error = InternalFileSystemError(f"Unexpected error: {error}")
    return {
        "success": False,
        **context,
        "error": str(error),
        "error_type": type(error).__name__,
        "error_code": int(error.code),
    }


class SandboxTools:
    """
    Unified sandbox interface for agent tool calling.

    Usage:
        config = SandboxConfig(root_directory=Path("/srv/project"))
        tools = SandboxTools(config)

        # Get tool schemas for the agent
        schemas = tools.get_tool_schemas()

        # Execute tool call
        result = await tools.execute_tool(
            tool_name="search_path",
            arguments={"pattern": "**/*.py"},
        )
    """

    def __init__(self, config: SandboxConfig):
        """
        Initialize sandbox tools.

        Args:
            config: Sandbox configuration
        """
        self.config = config
        self.reader = RestrictedFileReader(config)
        self.metrics = MetricsCollector()
        self._governor = ResourceGovernor(config.resource_limits)
        self._started_at = time.monotonic()

    @property
    def root(self) -> Path:
        return self.config.root_directory

    def new_governor(self) -> ResourceGovernor:
        """Governor scoped to a single top-level request."""
        return self._governor.for_request()

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for all available tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": "list_files",
                    "description": "List every file and directory under the root, "
                    "with size and modification time.",
                    "parameters": {"type": "object", "properties": {}},
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "read_file",
                    "description": "Read the contents of a text file inside the root.",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "Path relative to the root, or a file:// URI",
                            },
                        },
                        "required": ["path"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "search_path",
                    "description": "Search for files and directories by name pattern",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "pattern": {
                                "type": "string",
                                "description": "Search pattern (supports * and ** wildcards, "
                                'e.g., "*.js", "**/test/*.json")',
                            },
                        },
                        "required": ["pattern"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "search_content",
                    "description": "Search for content within files. "
                    "Returns matching lines with line numbers.",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "query": {
                                "type": "string",
                                "description": "Regular expression to search for in file contents",
                            },
                            "include": {
                                "type": "string",
                                "description": 'Optional file pattern to search in (e.g., "*.js", "*.md")',
                            },
                            "ignore_case": {
                                "type": "boolean",
                                "description": "Case-insensitive search (default: true)",
                            },
                            "max_results": {
                                "type": "integer",
                                "minimum": 1,
                                "description": "Maximum number of files to report "
                                "(capped by the server limit)",
                            },
                        },
                        "required": ["query"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "health_check",
                    "description": "Get server health status and metrics",
                    "parameters": {"type": "object", "properties": {}},
                },
            },
        ]

    async def list_tree(self) -> list[FileSystemItem]:
        """List the whole root with the configured recursion settings."""
        governor = self.new_governor()
        governor.reset_size()
        return await governor.run_with_timeout(
            list_directory(
                self.root,
                ".",
                recursive=self.config.recursive,
                max_depth=self.config.max_depth,
                governor=governor,
            ),
            "list_directory",
        )

    async def list_resources(self) -> dict[str, Any]:
        """
        List the root as flat resource entries.

        Returns:
            Dict with ``resources``: one entry per item in pre-order

        Raises:
            FileSystemError: If the listing fails or exceeds a limit
        """
        metric = self.metrics.start_operation("list_resources")
        try:
            items = await self.list_tree()
        except Exception as e:
            self.metrics.end_operation(metric, False, str(e))
            raise

        resources = []
        for item in walk_items(items):
            resources.append(
                {
                    "uri": f"{FILE_URI_PREFIX}{self.root}{item.path}",
                    "name": item.path,
                    "mime_type": (
                        DIRECTORY_MIME_TYPE if item.is_directory else get_mime_type(item.name)
                    ),
                    "metadata": {
                        "type": item.kind.value,
                        "size": item.size,
                        "has_children": bool(item.children),
                    },
                }
            )

        self.metrics.end_operation(metric, True)
        return {"resources": resources}

    async def read_resource(self, uri: str) -> dict[str, Any]:
        """
        Read a file given a ``file://`` URI or a bare path.

        Raises:
            InvalidUriError: If the URI has a scheme other than file://
            FileSystemError: If the path is outside the root, missing,
                a directory, or too large
        """
        path = self._strip_uri(uri)

        metric = self.metrics.start_operation("read_resource")
        governor = self.new_governor()
        try:
            result = await governor.run_with_timeout(
                self.reader.read_file(path, governor=governor),
                "read_file",
            )
        except Exception as e:
            self.metrics.end_operation(metric, False, str(e))
            raise

        self.metrics.end_operation(metric, True)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mime_type": get_mime_type(result.absolute_path.name),
                    "text": result.content,
                }
            ]
        }

    async def execute_tool(
        self, tool_name: str, arguments: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Execute a tool call from an agent.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (from the function call)

        Returns:
            Tool execution result as a dict; failures have ``success: False``

        Raises:
            UnknownOperationError: If tool name is unknown
            MissingParameterError: If a required argument is missing
        """
        arguments = arguments or {}

        if tool_name == "list_files":
            return await self._list_files()
        elif tool_name == "read_file":
            return await self._read_file(self._require(tool_name, arguments, "path"))
        elif tool_name == "search_path":
            return await self._search_path(self._require(tool_name, arguments, "pattern"))
        elif tool_name == "search_content":
            return await self._search_content(
                query=self._require(tool_name, arguments, "query"),
                include=arguments.get("include"),
                ignore_case=arguments.get("ignore_case", arguments.get("ignoreCase")) is not False,
                max_results=arguments.get("max_results", arguments.get("maxResults")),
            )
        elif tool_name == "health_check":
            return self.health_check()
        else:
            raise UnknownOperationError(tool_name)

    def _failed(
        self, metric: OperationMetrics, error: Exception, **context: Any
    ) -> dict[str, Any]:
        if isinstance(error, FileSystemError):
            logger.warning(f"{metric.operation} failed: {error}")
        else:
            logger.error(f"{metric.operation} unexpected error: {error}")
        self.metrics.end_operation(metric, False, str(error))
        return _error_result(error, **context)

    @staticmethod
    def _require(tool_name: str, arguments: dict[str, Any], name: str) -> Any:
        value = arguments.get(name)
        if value is None or value == "":
            raise MissingParameterError(tool_name, name)
        return value

    def _result_limit(self, requested: Any) -> int:
        """Client-requested result count, capped by the configured maximum."""
        cap = self.config.max_search_results
        if requested is None or requested == "":
            return cap

        try:
            value = int(requested)
        except (TypeError, ValueError):
            raise InvalidParameterError("search_content", "max_results", requested) from None
        if isinstance(requested, bool) or value < 1:
            raise InvalidParameterError("search_content", "max_results", requested)
        return min(value, cap)

    @staticmethod
    def _strip_uri(uri: str) -> str:
        if uri.startswith(FILE_URI_PREFIX):
            return uri[len(FILE_URI_PREFIX):]
        if "://" in uri:
            raise InvalidUriError(uri)
        return uri

    async def _list_files(self) -> dict[str, Any]:
        """List files tool implementation."""
        metric = self.metrics.start_operation("list_files")
        try:
            items = await self.list_tree()
        except Exception as e:
            return self._failed(metric, e)

        self.metrics.end_operation(metric, True)
        return {
            "success": True,
            "items": [item.to_dict() for item in items],
            "count": sum(1 for _ in walk_items(items)),
        }

    async def _read_file(self, path: str) -> dict[str, Any]:
        """Read file tool implementation."""
        metric = self.metrics.start_operation("read_file")
        governor = self.new_governor()
        try:
            result = await governor.run_with_timeout(
                self.reader.read_file(self._strip_uri(path), governor=governor),
                "read_file",
            )
        except Exception as e:
            return self._failed(metric, e, path=path)

        self.metrics.end_operation(metric, True)
        return {
            "success": True,
            "path": result.path,
            "absolute_path": str(result.absolute_path),
            "content": result.content,
            "size": result.size,
        }

    async def _search_path(self, pattern: str) -> dict[str, Any]:
        """Search path tool implementation."""
        metric = self.metrics.start_operation("search_path")
        governor = self.new_governor()
        try:
            paths = await governor.run_with_timeout(
                search_by_path(self.root, pattern),
                "search_path",
            )
        except Exception as e:
            return self._failed(metric, e, pattern=pattern)

        self.metrics.end_operation(metric, True)
        return {
            "success": True,
            "pattern": pattern,
            "matching_paths": paths,
            "count": len(paths),
            "text": format_path_matches(paths),
        }

    async def _search_content(
        self,
        query: str,
        include: Optional[str] = None,
        ignore_case: bool = True,
        max_results: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Search content tool implementation.

        A client-supplied ``max_results`` can lower the configured cap but
        never raise it.
        """
        metric = self.metrics.start_operation("search_content")
        governor = self.new_governor()
        try:
            limit = self._result_limit(max_results)
            results = await governor.run_with_timeout(
                search_content(
                    self.root,
                    query,
                    include=include,
                    ignore_case=ignore_case,
                    max_results=limit,
                    governor=governor,
                ),
                "search_content",
            )
        except Exception as e:
            return self._failed(metric, e, query=query)

        self.metrics.end_operation(metric, True)
        return {
            "success": True,
            "query": query,
            "results": [result.model_dump() for result in results],
            "count": len(results),
            "text": format_content_results(results),
        }

    def health_check(self) -> dict[str, Any]:
        """
        Get server status, metrics summary and effective configuration.

        Returns:
            Dict with status, version, uptime, metrics and config
        """
        uptime = time.monotonic() - self._started_at
        return {
            "success": True,
            "status": "healthy",
            "version": __version__,
            "uptime_seconds": round(uptime, 3),
            "metrics": self.metrics.get_metrics()["summary"],
            "config": {
                "root_directory": str(self.config.root_directory),
                "recursive": self.config.recursive,
                "max_depth": self.config.max_depth,
                "timeout_ms": self.config.timeout_ms,
                "max_file_size_bytes": self.config.max_file_size_bytes,
                "max_total_size_bytes": self.config.max_total_size_bytes,
            },
        }
