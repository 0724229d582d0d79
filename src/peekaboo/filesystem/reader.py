"""
Restricted file reader for the sandbox root.
"""

import asyncio
import logging
import stat
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from peekaboo.filesystem.config import SandboxConfig
from peekaboo.filesystem.exceptions import PathIsDirectoryError, classify_os_error
from peekaboo.filesystem.governor import ResourceGovernor
from peekaboo.filesystem.validator import PathLike, to_item_path, validate_path

logger = logging.getLogger(__name__)


class ReadResult(BaseModel):
    """Contents of a file read from inside the root."""

    absolute_path: Path = Field(description="Resolved absolute path of the file")
    path: str = Field(description="Root-relative path with a leading slash")
    content: str = Field(description="File contents decoded as UTF-8")
    size: int = Field(description="File size in bytes")


class RestrictedFileReader:
    """
    Reads UTF-8 text files that lie inside the configured root.

    Usage:
        config = SandboxConfig(root_directory=Path("/srv/project"))
        reader = RestrictedFileReader(config)

        try:
            result = await reader.read_file("src/main.py")
        except PathTraversalError as e:
            print(f"Access denied: {e}")
    """

    def __init__(self, config: SandboxConfig):
        """
        Initialize the file reader.

        Args:
            config: Sandbox configuration
        """
        self.config = config

    async def read_file(
        self,
        path: PathLike,
        governor: Optional[ResourceGovernor] = None,
        encoding: str = "utf-8",
    ) -> ReadResult:
        """
        Read a file with security checks.

        Args:
            path: Root-relative path, or an absolute path inside the root
            governor: Applies the per-file size ceiling before reading
            encoding: Text encoding (default: utf-8)

        Returns:
            ReadResult with the resolved path and content

        Raises:
            PathTraversalError: If the path escapes the root
            FileMissingError: If the file doesn't exist
            PathIsDirectoryError: If the path is a directory
            FileAccessDeniedError: If the file can't be opened
            FileSizeLimitExceededError: If the file is too large
            UnicodeDecodeError: If the file can't be decoded
        """
        root = self.config.root_directory
        resolved_path = validate_path(root, path)
        display_path = to_item_path(resolved_path.relative_to(root).as_posix())

        try:
            stats = await asyncio.to_thread(resolved_path.stat)
        except OSError as e:
            raise classify_os_error(e, display_path) from e

        if stat.S_ISDIR(stats.st_mode):
            raise PathIsDirectoryError(display_path)

        if governor is not None:
            governor.check_file_size(stats.st_size, display_path)

        try:
            data = await asyncio.to_thread(resolved_path.read_bytes)
        except OSError as e:
            raise classify_os_error(e, display_path) from e

        # No newline translation; content is the file as stored
        try:
            content = data.decode(encoding)
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode file {display_path}: {e}")
            raise

        logger.debug(f"Successfully read file: {display_path} ({stats.st_size} bytes)")
        return ReadResult(
            absolute_path=resolved_path,
            path=display_path,
            content=content,
            size=stats.st_size,
        )
