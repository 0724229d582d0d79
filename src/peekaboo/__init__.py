"""
Peekaboo - a read-only, root-confined view of a directory tree for AI agents.

This package lists, reads and searches files under a single configured root
and serves those operations over the Model Context Protocol.
"""

__version__ = "2.0.0"

from peekaboo.filesystem import (
    FileSystemError,
    FileSystemItem,
    ResourceGovernor,
    ResourceLimits,
    SandboxConfig,
    SandboxTools,
    SearchMatch,
    SearchResult,
)

from peekaboo.settings import PeekabooSettings

__all__ = [
    # Version
    "__version__",
    # Filesystem
    "FileSystemError",
    "FileSystemItem",
    "ResourceGovernor",
    "ResourceLimits",
    "SandboxConfig",
    "SandboxTools",
    "SearchMatch",
    "SearchResult",
    # Settings
    "PeekabooSettings",
]
