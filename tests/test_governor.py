"""
Tests for the ResourceGovernor.
"""

import asyncio

import pytest

from peekaboo.filesystem import (
    FileSizeLimitExceededError,
    OperationTimeoutError,
    ResourceGovernor,
    ResourceLimits,
    TotalSizeExceededError,
)


async def _slow(value, delay: float):
    await asyncio.sleep(delay)
    return value


class TestRunWithTimeout:
    """Test the time bound."""

    @pytest.mark.asyncio
    async def test_returns_value_before_bound(self):
        """Test that a fast operation's result is returned."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=1000))
        assert await governor.run_with_timeout(_slow("done", 0), "fast") == "done"

    @pytest.mark.asyncio
    async def test_timeout_reports_configured_bound(self):
        """Test that a slow operation fails with the configured bound."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=20))

        with pytest.raises(OperationTimeoutError) as exc_info:
            await governor.run_with_timeout(_slow("late", 1.0), "slow_op")

        error = exc_info.value
        assert error.timeout_ms == 20
        assert error.operation == "slow_op"
        assert "20ms" in str(error)
        assert int(error.code) == 3003

    @pytest.mark.asyncio
    async def test_override_timeout(self):
        """Test that an explicit timeout overrides the configured one."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=10_000))

        with pytest.raises(OperationTimeoutError) as exc_info:
            await governor.run_with_timeout(_slow("late", 1.0), "slow_op", timeout_ms=20)
        assert exc_info.value.timeout_ms == 20

    @pytest.mark.asyncio
    async def test_zero_override_disables_timeout(self):
        """Test that an explicit zero timeout disables the configured one."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=10))
        assert await governor.run_with_timeout(_slow("done", 0.05), "op", timeout_ms=0) == "done"

    @pytest.mark.asyncio
    async def test_no_timeout_configured(self):
        """Test that operations run unbounded without a timeout."""
        governor = ResourceGovernor()
        assert await governor.run_with_timeout(_slow(42, 0.01), "op") == 42

    @pytest.mark.asyncio
    async def test_timed_out_operation_is_cancelled(self):
        """Test that the abandoned coroutine stops and reports no more sizes."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=20))

        async def tracking():
            await asyncio.sleep(0.2)
            governor.track_size(100)

        with pytest.raises(OperationTimeoutError):
            await governor.run_with_timeout(tracking(), "tracking")

        await asyncio.sleep(0.3)
        assert governor.get_total_size() == 0

    @pytest.mark.asyncio
    async def test_operation_errors_propagate(self):
        """Test that failures inside the operation are not masked."""
        governor = ResourceGovernor(ResourceLimits(timeout_ms=1000))

        async def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await governor.run_with_timeout(failing(), "failing")


class TestFileSize:
    """Test the per-file ceiling."""

    def test_within_limit(self):
        """Test that sizes at or below the limit pass."""
        governor = ResourceGovernor(ResourceLimits(max_file_size_bytes=100))
        governor.check_file_size(100, "/a.txt")

    def test_over_limit(self):
        """Test that a larger size reports observed and configured bounds."""
        governor = ResourceGovernor(ResourceLimits(max_file_size_bytes=100))

        with pytest.raises(FileSizeLimitExceededError) as exc_info:
            governor.check_file_size(101, "/big.bin")

        error = exc_info.value
        assert error.size == 101
        assert error.limit == 100
        assert "/big.bin" in str(error)

    def test_no_limit(self):
        """Test that a missing or zero limit disables the check."""
        ResourceGovernor().check_file_size(10**12, "/huge")
        ResourceGovernor(ResourceLimits(max_file_size_bytes=0)).check_file_size(10**12, "/huge")


class TestTotalSize:
    """Test the cumulative ceiling."""

    def test_accumulates(self):
        """Test that sizes add up across calls."""
        governor = ResourceGovernor(ResourceLimits(max_total_size_bytes=100))
        governor.track_size(30)
        governor.track_size(30)
        assert governor.get_total_size() == 60

    def test_fails_when_first_exceeded(self):
        """Test that reaching the limit passes and exceeding it fails."""
        governor = ResourceGovernor(ResourceLimits(max_total_size_bytes=100))
        governor.track_size(60)
        governor.track_size(40)

        with pytest.raises(TotalSizeExceededError) as exc_info:
            governor.track_size(1)

        assert exc_info.value.size == 101
        assert exc_info.value.limit == 100

    def test_reset_behaves_like_fresh(self):
        """Test that reset_size restores the initial state."""
        governor = ResourceGovernor(ResourceLimits(max_total_size_bytes=100))
        governor.track_size(90)
        governor.reset_size()

        assert governor.get_total_size() == 0
        governor.track_size(100)
        assert governor.get_total_size() == 100

    def test_for_request_is_independent(self):
        """Test that per-request governors share limits but not totals."""
        shared = ResourceGovernor(ResourceLimits(max_total_size_bytes=100))
        first = shared.for_request()
        second = shared.for_request()

        first.track_size(80)
        second.track_size(80)

        assert first.limits == second.limits == shared.limits
        assert first.get_total_size() == 80
        assert second.get_total_size() == 80
        assert shared.get_total_size() == 0
