"""
Exceptions for sandboxed filesystem operations.

Every exception carries a numeric ``code`` from :class:`ErrorCode` so the
transport layer can report a stable identifier next to the message.
"""

import errno
from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Stable error identifiers reported to clients."""

    # Security errors (1xxx)
    PATH_TRAVERSAL = 1001

    # Filesystem errors (2xxx)
    FILE_NOT_FOUND = 2001
    DIRECTORY_NOT_FOUND = 2002
    NOT_A_DIRECTORY = 2003
    NOT_A_FILE = 2004
    PERMISSION_DENIED = 2005

    # Resource limit errors (3xxx)
    FILE_TOO_LARGE = 3001
    TOTAL_SIZE_EXCEEDED = 3002
    OPERATION_TIMEOUT = 3003

    # Protocol errors (4xxx)
    INVALID_URI = 4001
    UNKNOWN_OPERATION = 4002
    MISSING_PARAMETER = 4003
    INVALID_PATTERN = 4004
    INVALID_PARAMETER = 4005

    # Internal errors (5xxx)
    INTERNAL_ERROR = 5000


class FileSystemError(Exception):
    """Base exception for sandboxed filesystem operations."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class PathTraversalError(FileSystemError):
    """
    Raised when a requested path would resolve outside the root.

    The message is fixed and deliberately omits the requested and resolved
    paths.
    """

    code = ErrorCode.PATH_TRAVERSAL
    MESSAGE = "Path traversal detected: Access outside root directory is not allowed"

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)


class DirectoryNotFoundError(FileSystemError):
    """Raised when a directory to list does not exist."""

    code = ErrorCode.DIRECTORY_NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Directory not found: {path}")


class PathNotDirectoryError(FileSystemError):
    """Raised when a path to list exists but is not a directory."""

    code = ErrorCode.NOT_A_DIRECTORY

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Not a directory: {path}")


class FileMissingError(FileSystemError):
    """Raised when a file to read does not exist."""

    code = ErrorCode.FILE_NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class PathIsDirectoryError(FileSystemError):
    """Raised when a directory is read as if it were a file."""

    code = ErrorCode.NOT_A_FILE

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot read directory as file: {path}")


class FileAccessDeniedError(FileSystemError):
    """Raised when the operating system denies access to a path."""

    code = ErrorCode.PERMISSION_DENIED

    def __init__(self, path: str, reason: str = "Permission denied"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class FileSizeLimitExceededError(FileSystemError):
    """Raised when a single file exceeds the per-file size ceiling."""

    code = ErrorCode.FILE_TOO_LARGE

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File size ({size} bytes) exceeds maximum allowed size ({limit} bytes): {path}"
        )


class TotalSizeExceededError(FileSystemError):
    """Raised when the bytes observed in one request exceed the total ceiling."""

    code = ErrorCode.TOTAL_SIZE_EXCEEDED

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Total size ({size} bytes) exceeds maximum allowed size ({limit} bytes)"
        )


class OperationTimeoutError(FileSystemError):
    """Raised when an operation does not finish within its time bound."""

    code = ErrorCode.OPERATION_TIMEOUT

    def __init__(self, operation: str, timeout_ms: int):
        self.operation = operation
        self.timeout_ms = timeout_ms
        super().__init__(f"Operation timed out after {timeout_ms}ms: {operation}")


class SearchError(FileSystemError):
    """Raised when a search operation fails."""

    pass


class InvalidPatternError(SearchError):
    """Raised when a glob pattern or query cannot be compiled."""

    code = ErrorCode.INVALID_PATTERN

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class InvalidUriError(FileSystemError):
    """Raised when a resource URI uses an unsupported scheme."""

    code = ErrorCode.INVALID_URI

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Only file:// URIs are supported: {uri}")


class UnknownOperationError(FileSystemError, ValueError):
    """Raised when a client asks for an operation that does not exist."""

    code = ErrorCode.UNKNOWN_OPERATION

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class MissingParameterError(FileSystemError, ValueError):
    """Raised when a required operation parameter is absent or empty."""

    code = ErrorCode.MISSING_PARAMETER

    def __init__(self, operation: str, parameter: str):
        self.operation = operation
        self.parameter = parameter
        super().__init__(f"Missing required parameter '{parameter}' for {operation}")


class InvalidParameterError(FileSystemError, ValueError):
    """Raised when an operation parameter has an unusable value."""

    code = ErrorCode.INVALID_PARAMETER

    def __init__(self, operation: str, parameter: str, value: object):
        self.operation = operation
        self.parameter = parameter
        self.value = value
        super().__init__(f"Invalid value for '{parameter}' in {operation}: {value!r}")


class InternalFileSystemError(FileSystemError):
    """Raised for unexpected failures with no more specific kind."""

    code = ErrorCode.INTERNAL_ERROR


def classify_os_error(error: OSError, path: str, *, listing: bool = False) -> FileSystemError:
    """
    Map an ``OSError`` to the most specific sandbox exception.

    Args:
        error: The underlying operating system error
        path: Root-relative path to report in the message
        listing: True when the error came from reading a directory

    Returns:
        The matching FileSystemError (InternalFileSystemError if unrecognized)
    """
    code: Optional[int] = error.errno
    if code == errno.ENOENT:
        return DirectoryNotFoundError(path) if listing else FileMissingError(path)
    if code == errno.ENOTDIR:
        return PathNotDirectoryError(path)
    if code == errno.EISDIR:
        return PathIsDirectoryError(path)
    if code in (errno.EACCES, errno.EPERM):
        return FileAccessDeniedError(path)
    return InternalFileSystemError(f"{type(error).__name__}: {error.strerror or error}")
