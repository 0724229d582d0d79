"""
Path validation for the sandbox root.

Every read, listing and directory descent goes through
:func:`validate_path`. Two layers are applied: string-level rejection of
traversal patterns before anything touches the filesystem, then a
resolution check that the resolved path is the root or lies below it.
"""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Union

from peekaboo.filesystem.exceptions import PathTraversalError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Checked against the raw requested path, case-insensitively.
_TRAVERSAL_PATTERNS = [
    # ".." as a whole segment: "..", "../x", "x/..", "a\..\b"
    re.compile(r"(?:^|[\\/])\.\.(?:[\\/]|$)"),
    # Windows drive letter: "C:\", "c:/"
    re.compile(r"^[a-z]:[\\/]", re.IGNORECASE),
    re.compile(r"\x00"),
    # Percent-encoded dot-dot, including double encoding (%252e)
    re.compile(r"%(?:25)*2e(?:%(?:25)*2e|\.)|\.%(?:25)*2e", re.IGNORECASE),
    re.compile(r"\.{3,}"),
]

_ABSOLUTE_MARKER = re.compile(r"^[\\/]")


def resolve_root(root: PathLike) -> Path:
    """Resolve the root directory to its absolute canonical form."""
    return Path(root).expanduser().resolve()


def is_within_directory(path: Path, directory: Path) -> bool:
    """Check if path is directory itself or lies below it (prevents path traversal)."""
    try:
        path.relative_to(directory)
        return True
    except ValueError:
        return False


def has_traversal_pattern(requested: str) -> bool:
    """Return True if the raw path contains a known traversal pattern."""
    return any(pattern.search(requested) for pattern in _TRAVERSAL_PATTERNS)


def _strip_root_prefix(raw: str, root_path: Path) -> str:
    """Drop the root itself from an absolute request; the root is trusted."""
    root_text = str(root_path)
    if raw == root_text:
        return ""
    for separator in ("/", "\\"):
        prefix = root_text.rstrip(separator) + separator
        if raw.startswith(prefix):
            return raw[len(prefix):]
    return raw


def validate_path(root: PathLike, requested: PathLike) -> Path:
    """
    Resolve a client-supplied path against the root and reject escapes.

    ``"."`` and ``""`` resolve to the root. An absolute path is accepted only
    if it already names a location inside the root, which makes validating a
    previously returned path idempotent.

    Args:
        root: Sandbox root directory
        requested: Root-relative (or in-root absolute) path from the client

    Returns:
        Resolved absolute path inside the root

    Raises:
        PathTraversalError: If the path matches a traversal pattern or
            resolves outside the root
    """
    root_path = resolve_root(root)
    raw = str(requested) if requested is not None else ""

    if has_traversal_pattern(_strip_root_prefix(raw, root_path)):
        logger.warning("Rejected path with traversal pattern")
        raise PathTraversalError()

    if _ABSOLUTE_MARKER.match(raw):
        candidate = Path(raw)
        if not candidate.is_absolute():
            logger.warning("Rejected non-absolute path with leading separator")
            raise PathTraversalError()
        resolved = candidate.resolve()
    else:
        resolved = (root_path / raw).resolve()

    if not is_within_directory(resolved, root_path):
        logger.warning("Rejected path resolving outside the root directory")
        raise PathTraversalError()

    return resolved


def to_item_path(relative: Union[str, PurePosixPath]) -> str:
    """
    Render a root-relative path the way listings report it.

    ``"sub/file.txt"`` becomes ``"/sub/file.txt"``; the root itself is ``"/"``.
    """
    text = str(relative)
    if text in ("", "."):
        return "/"
    return "/" + text.lstrip("/")
