"""
Sandboxed filesystem access for agents.

This module exposes a read-only view of one directory tree: bounded
listing, file reads, and search by path pattern or by content, with every
path confined to the configured root and every request bounded by a
ResourceGovernor.
"""

from peekaboo.filesystem.config import ResourceLimits, SandboxConfig
from peekaboo.filesystem.enumerator import (
    FileSystemItem,
    ItemKind,
    list_directory,
    walk_items,
)
from peekaboo.filesystem.exceptions import (
    DirectoryNotFoundError,
    ErrorCode,
    FileAccessDeniedError,
    FileMissingError,
    FileSizeLimitExceededError,
    FileSystemError,
    InternalFileSystemError,
    InvalidParameterError,
    InvalidPatternError,
    InvalidUriError,
    MissingParameterError,
    OperationTimeoutError,
    PathIsDirectoryError,
    PathNotDirectoryError,
    PathTraversalError,
    SearchError,
    TotalSizeExceededError,
    UnknownOperationError,
)
from peekaboo.filesystem.governor import ResourceGovernor
from peekaboo.filesystem.reader import ReadResult, RestrictedFileReader
from peekaboo.filesystem.search import (
    SearchMatch,
    SearchResult,
    compile_glob,
    search_by_path,
    search_content,
)
from peekaboo.filesystem.tools import SandboxTools
from peekaboo.filesystem.validator import validate_path

__all__ = [
    # Configuration
    "ResourceLimits",
    "SandboxConfig",
    # Core
    "validate_path",
    "ResourceGovernor",
    "FileSystemItem",
    "ItemKind",
    "list_directory",
    "walk_items",
    "SearchMatch",
    "SearchResult",
    "compile_glob",
    "search_by_path",
    "search_content",
    "ReadResult",
    "RestrictedFileReader",
    "SandboxTools",
    # Errors
    "ErrorCode",
    "FileSystemError",
    "PathTraversalError",
    "DirectoryNotFoundError",
    "PathNotDirectoryError",
    "FileMissingError",
    "PathIsDirectoryError",
    "FileAccessDeniedError",
    "FileSizeLimitExceededError",
    "TotalSizeExceededError",
    "OperationTimeoutError",
    "SearchError",
    "InvalidPatternError",
    "InvalidUriError",
    "UnknownOperationError",
    "MissingParameterError",
    "InvalidParameterError",
    "InternalFileSystemError",
]
