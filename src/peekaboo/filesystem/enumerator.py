"""
Bounded directory enumeration inside the sandbox root.
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from peekaboo.filesystem.exceptions import (
    DirectoryNotFoundError,
    FileAccessDeniedError,
    PathNotDirectoryError,
    PathTraversalError,
    classify_os_error,
)
from peekaboo.filesystem.governor import ResourceGovernor
from peekaboo.filesystem.validator import (
    PathLike,
    resolve_root,
    to_item_path,
    validate_path,
)

logger = logging.getLogger(__name__)


class ItemKind(str, Enum):
    """Kind of a listed filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"


class FileSystemItem(BaseModel):
    """
    One filesystem entry, identified by its root-relative path.

    ``size`` and ``modified_at`` are absent when metadata could not be read
    (a degraded entry). ``children`` is absent when the directory was not
    explored, and an empty list when it was explored and is empty.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Base name of the entry")
    path: str = Field(description="Root-relative path with a leading slash")
    kind: ItemKind = Field(description="File or directory")
    size: Optional[int] = Field(default=None, description="Size in bytes")
    modified_at: Optional[datetime] = Field(
        default=None, description="Last modification time (UTC)"
    )
    children: Optional[list["FileSystemItem"]] = Field(
        default=None, description="Entries of an explored directory"
    )

    @property
    def is_directory(self) -> bool:
        return self.kind == ItemKind.DIRECTORY

    @property
    def relative_path(self) -> str:
        """Path without the leading slash, suitable for joining to the root."""
        return self.path.lstrip("/")

    def to_dict(self) -> dict:
        """Plain-data form with absent fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class _EntryInfo(NamedTuple):
    name: str
    is_dir: bool
    size: Optional[int]
    modified_at: Optional[datetime]


def _scan_directory(path: Path) -> list[_EntryInfo]:
    """Read one directory and the metadata of its entries (blocking)."""
    entries = []
    with os.scandir(path) as iterator:
        for entry in iterator:
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False

            try:
                stats = entry.stat()
            except OSError as e:
                logger.debug(f"No metadata for {entry.name}: {e}")
                entries.append(_EntryInfo(entry.name, is_dir, None, None))
                continue

            entries.append(
                _EntryInfo(
                    entry.name,
                    is_dir,
                    stats.st_size,
                    datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                )
            )
    return entries


def _join(base: str, name: str) -> str:
    return name if base in ("", ".") else f"{base}/{name}"


async def list_directory(
    root: PathLike,
    relative_path: str = ".",
    recursive: bool = False,
    max_depth: int = 10,
    current_depth: int = 0,
    governor: Optional[ResourceGovernor] = None,
) -> list[FileSystemItem]:
    """
    List the entries under a root-relative directory.

    Entries come back in directory-read order. When ``recursive`` is set,
    subdirectories are explored one at a time while ``current_depth`` is
    below ``max_depth``.

    Args:
        root: Sandbox root directory
        relative_path: Directory to list, relative to the root
        recursive: Descend into subdirectories
        max_depth: Deepest level whose directories are still explored
        current_depth: Depth of ``relative_path`` (0 for the top call)
        governor: Receives the size of every entry with metadata

    Returns:
        List of FileSystemItem objects

    Raises:
        PathTraversalError: If relative_path escapes the root
        DirectoryNotFoundError: If the directory does not exist
        PathNotDirectoryError: If the path is not a directory
        FileAccessDeniedError: If the directory cannot be read
        TotalSizeExceededError: If the governor's total ceiling is exceeded
    """
    root_path = resolve_root(root)
    full_path = validate_path(root_path, relative_path)
    base = full_path.relative_to(root_path).as_posix()

    return await _list_validated(
        root_path, full_path, base, recursive, max_depth, current_depth, governor,
        display_path=relative_path,
    )


async def _list_validated(
    root_path: Path,
    full_path: Path,
    base: str,
    recursive: bool,
    max_depth: int,
    current_depth: int,
    governor: Optional[ResourceGovernor],
    display_path: str,
) -> list[FileSystemItem]:
    try:
        entries = await asyncio.to_thread(_scan_directory, full_path)
    except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
        raise classify_os_error(e, display_path, listing=True) from e

    items = []
    for entry in entries:
        item_relative = _join(base, entry.name)

        if entry.size is not None and governor is not None:
            governor.track_size(entry.size)

        children = None
        if recursive and entry.is_dir and current_depth < max_depth:
            children = await _list_subdirectory(
                root_path, item_relative, max_depth, current_depth + 1, governor
            )

        items.append(
            FileSystemItem(
                name=entry.name,
                path=to_item_path(item_relative),
                kind=ItemKind.DIRECTORY if entry.is_dir else ItemKind.FILE,
                size=entry.size,
                modified_at=entry.modified_at,
                children=children,
            )
        )

    logger.debug(f"Listed {len(items)} entries in {to_item_path(base)}")
    return items


async def _list_subdirectory(
    root_path: Path,
    relative_path: str,
    max_depth: int,
    current_depth: int,
    governor: Optional[ResourceGovernor],
) -> Optional[list[FileSystemItem]]:
    """
    Explore a subdirectory, or return None if it cannot be explored.

    The directory is validated again before descent. A link leading outside
    the root and a directory that vanished or cannot be read leave the entry
    unexplored; size-limit failures propagate.
    """
    try:
        full_path = validate_path(root_path, relative_path)
        return await _list_validated(
            root_path,
            full_path,
            relative_path,
            recursive=True,
            max_depth=max_depth,
            current_depth=current_depth,
            governor=governor,
            display_path=relative_path,
        )
    except PathTraversalError:
        logger.warning(f"Not descending into /{relative_path}: target is outside the root")
    except (DirectoryNotFoundError, PathNotDirectoryError, FileAccessDeniedError) as e:
        logger.debug(f"Not descending into /{relative_path}: {e}")
    return None


def walk_items(items: list[FileSystemItem]) -> Iterator[FileSystemItem]:
    """Yield every item of a tree in pre-order."""
    for item in items:
        yield item
        if item.children:
            yield from walk_items(item.children)
