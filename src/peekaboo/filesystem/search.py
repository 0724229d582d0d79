"""
Search by path pattern and by file content inside the sandbox root.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from peekaboo.filesystem.enumerator import FileSystemItem, ItemKind, list_directory
from peekaboo.filesystem.exceptions import (
    FileSizeLimitExceededError,
    InvalidPatternError,
    PathTraversalError,
)
from peekaboo.filesystem.governor import ResourceGovernor
from peekaboo.filesystem.validator import PathLike, resolve_root, validate_path

logger = logging.getLogger(__name__)

# Directories never reported or descended into by searches.
EXCLUDED_DIRECTORIES = frozenset({"node_modules", "dist", ".git"})

# Depth of the listing searches run over when no tree is supplied.
FULL_SCAN_DEPTH = 10

MAX_MATCHES_PER_FILE = 5

_DOUBLE_STAR = "__DOUBLE_STAR__"
_BRACE_GROUP = re.compile(r"\{([^}]+)\}")


class SearchMatch(BaseModel):
    """One matching line of a file."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(description="1-based line number")
    line_text: str = Field(description="Line content with surrounding whitespace trimmed")


class SearchResult(BaseModel):
    """A file with at least one matching line."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Root-relative path with a leading slash")
    matches: list[SearchMatch] = Field(description="Up to five matching lines")


def glob_to_regex(pattern: str) -> str:
    """
    Translate a glob into an unanchored regular expression body.

    Each step runs on the output of the previous one, so the order is
    significant: ``**`` is parked in a placeholder before single ``*`` is
    expanded, and ``**/`` becomes an optional run of whole segments.

    Example:
        >>> glob_to_regex("src/**/*.{ts,js}")
        'src/(?:.*/)?[^/]*\\\\.(ts|js)'
    """
    regex = pattern.replace(".", r"\.")
    regex = regex.replace("?", "[^/]")
    regex = regex.replace("**", _DOUBLE_STAR)
    regex = regex.replace("*", "[^/]*")
    regex = regex.replace(_DOUBLE_STAR + "/", "(?:.*/)?")
    regex = regex.replace(_DOUBLE_STAR, ".*")
    return _BRACE_GROUP.sub(lambda m: "(" + "|".join(m.group(1).split(",")) + ")", regex)


def compile_glob(pattern: str) -> re.Pattern:
    """
    Compile a glob into a case-insensitive matcher for item paths.

    - ``**/...`` matches anywhere in the path.
    - A pattern containing ``/`` is anchored at the root.
    - A pattern without ``/`` matches the last segment in any directory.

    All matchers are anchored at the end of the path.

    Raises:
        InvalidPatternError: If the translated pattern is not a valid regex
    """
    if pattern.startswith("**/"):
        anchored = glob_to_regex(pattern)
    elif "/" in pattern:
        anchored = "^/" + glob_to_regex(pattern.lstrip("/"))
    else:
        anchored = "^.*/" + glob_to_regex(pattern)

    try:
        return re.compile(anchored + "$", re.IGNORECASE)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e))


def is_excluded(path: str) -> bool:
    """Check whether a path lies in (or is) an excluded directory."""
    return any(segment in EXCLUDED_DIRECTORIES for segment in path.split("/"))


async def search_by_path(
    root: PathLike,
    pattern: str,
    items: Optional[list[FileSystemItem]] = None,
) -> list[str]:
    """
    Find entries whose root-relative path matches a glob.

    Args:
        root: Sandbox root directory
        pattern: Glob pattern (``*``, ``**``, ``?`` and ``{a,b}`` supported)
        items: Previously listed tree; a full listing is made if omitted

    Returns:
        Matching paths in pre-order

    Raises:
        InvalidPatternError: If the pattern cannot be compiled
    """
    regex = compile_glob(pattern)

    if items is None:
        items = await list_directory(root, ".", recursive=True, max_depth=FULL_SCAN_DEPTH)

    results: list[str] = []

    def collect(level: list[FileSystemItem]) -> None:
        for item in level:
            if is_excluded(item.path):
                continue
            if regex.search(item.path):
                results.append(item.path)
            if item.children:
                collect(item.children)

    collect(items)
    logger.info(f"Path search for {pattern!r} found {len(results)} matches")
    return results


async def search_content(
    root: PathLike,
    query: str,
    include: Optional[str] = None,
    ignore_case: bool = True,
    max_results: Optional[int] = None,
    governor: Optional[ResourceGovernor] = None,
) -> list[SearchResult]:
    """
    Search file contents line by line with a regular expression.

    ``query`` is a regex; callers wanting a literal search must escape it.
    Files that cannot be read as UTF-8 text are skipped. At most
    ``MAX_MATCHES_PER_FILE`` lines are reported per file, and no more files
    are examined once ``max_results`` files have matched.

    Args:
        root: Sandbox root directory
        query: Regular expression to look for in each line
        include: Optional glob a file's path must match to be read
        ignore_case: Match the query case-insensitively
        max_results: Maximum number of files to report
        governor: Applies the per-file ceiling (oversized files are skipped)
            and counts the bytes read toward the total ceiling

    Returns:
        List of SearchResult objects in pre-order

    Raises:
        InvalidPatternError: If the query or include pattern is invalid
        TotalSizeExceededError: If the bytes read exceed the total ceiling
    """
    flags = re.IGNORECASE if ignore_case else 0
    try:
        regex = re.compile(query, flags)
    except re.error as e:
        raise InvalidPatternError(query, str(e))

    include_regex = compile_glob(include) if include else None

    root_path = resolve_root(root)
    items = await list_directory(root_path, ".", recursive=True, max_depth=FULL_SCAN_DEPTH)

    results: list[SearchResult] = []

    async def visit(level: list[FileSystemItem]) -> None:
        for item in level:
            if max_results and len(results) >= max_results:
                break
            if is_excluded(item.path):
                continue

            if item.kind == ItemKind.FILE and (
                include_regex is None or include_regex.search(item.path)
            ):
                content = await _read_candidate(root_path, item, governor)
                if content is not None:
                    matches = _match_lines(content, regex)
                    if matches:
                        results.append(SearchResult(path=item.path, matches=matches))

            if item.children:
                await visit(item.children)

    await visit(items)
    logger.info(f"Content search for {query!r} matched {len(results)} files")
    return results


def _match_lines(content: str, regex: re.Pattern) -> list[SearchMatch]:
    matches = []
    for index, line in enumerate(content.split("\n"), start=1):
        if regex.search(line):
            matches.append(SearchMatch(line_number=index, line_text=line.strip()))
            if len(matches) >= MAX_MATCHES_PER_FILE:
                break
    return matches


async def _read_candidate(
    root_path: Path, item: FileSystemItem, governor: Optional[ResourceGovernor]
) -> Optional[str]:
    """Read a candidate file as UTF-8, or return None if it should be skipped."""
    try:
        full_path = validate_path(root_path, item.relative_path)
    except PathTraversalError:
        logger.debug(f"Skipping {item.path}: resolves outside the root")
        return None

    if governor is not None and item.size is not None:
        try:
            governor.check_file_size(item.size, item.path)
        except FileSizeLimitExceededError:
            logger.debug(f"Skipping {item.path}: larger than the per-file limit")
            return None

    try:
        data = await asyncio.to_thread(full_path.read_bytes)
    except OSError as e:
        logger.debug(f"Skipping unreadable file {item.path}: {e}")
        return None

    if governor is not None:
        governor.track_size(len(data))

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug(f"Skipping non-UTF-8 file {item.path}")
        return None
