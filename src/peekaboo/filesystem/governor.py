"""
Resource governance for listing, reading and searching.

The governor bounds a single request: how long it may run, how large a
single file may be, and how many bytes one listing or search pass may
observe. Enumerators and searchers only report sizes; the governor decides.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from peekaboo.filesystem.config import ResourceLimits
from peekaboo.filesystem.exceptions import (
    FileSizeLimitExceededError,
    OperationTimeoutError,
    TotalSizeExceededError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceGovernor:
    """
    Enforces a timeout, a per-file size ceiling and a cumulative byte ceiling.

    The running total is request-scoped state. Use one governor per
    in-flight top-level request (see :meth:`for_request`); sharing one
    instance between concurrent requests mixes their byte counts.

    Timeouts use :func:`asyncio.wait_for`, so the timed-out coroutine is
    cancelled at its next suspension point and cannot report further sizes.
    Blocking work already handed to a worker thread (a single directory scan
    or file read) is not interrupted; it finishes in the background and its
    result is discarded.

    Usage:
        governor = ResourceGovernor(ResourceLimits(timeout_ms=5000))
        items = await governor.run_with_timeout(
            list_directory(root, ".", True, 10, governor=governor),
            "list_directory",
        )
    """

    def __init__(self, limits: Optional[ResourceLimits] = None):
        self.limits = limits or ResourceLimits()
        self._total_size = 0

    def for_request(self) -> "ResourceGovernor":
        """Create a fresh governor with the same limits for a new request."""
        return ResourceGovernor(self.limits)

    async def run_with_timeout(
        self,
        operation: Awaitable[T],
        label: str,
        timeout_ms: Optional[int] = None,
    ) -> T:
        """
        Await an operation, failing if it exceeds the time bound.

        Args:
            operation: Coroutine or awaitable to run
            label: Operation name used in logs and errors
            timeout_ms: Override for the configured timeout (0 disables it)

        Returns:
            The operation's result

        Raises:
            OperationTimeoutError: If the bound elapses first
        """
        timeout = timeout_ms if timeout_ms is not None else self.limits.timeout_ms
        if not timeout:
            return await operation

        try:
            return await asyncio.wait_for(operation, timeout=timeout / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"{label} timed out after {timeout}ms")
            raise OperationTimeoutError(label, timeout)

    def check_file_size(self, size: int, path: str) -> None:
        """
        Reject a file larger than the per-file ceiling.

        Raises:
            FileSizeLimitExceededError: If a limit is set and size exceeds it
        """
        limit = self.limits.max_file_size_bytes
        if not limit:
            return
        if size > limit:
            logger.warning(f"File too large: {path} ({size} bytes > {limit} bytes)")
            raise FileSizeLimitExceededError(path, size, limit)

    def track_size(self, size: int) -> None:
        """
        Add observed bytes to the running total.

        The total is updated before the check, so an overflowing call leaves
        the counter above the limit until :meth:`reset_size`.

        Raises:
            TotalSizeExceededError: If a limit is set and the new total exceeds it
        """
        self._total_size += size

        limit = self.limits.max_total_size_bytes
        if limit and self._total_size > limit:
            logger.warning(
                f"Total size exceeded ({self._total_size} bytes > {limit} bytes)"
            )
            raise TotalSizeExceededError(self._total_size, limit)

    def reset_size(self) -> None:
        """Zero the running total at the start of a top-level request."""
        self._total_size = 0

    def get_total_size(self) -> int:
        """Current running total in bytes."""
        return self._total_size
