# FILE: tests/test_deadline.py
"""Tests for architect/pipeline/deadline.py"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import asyncio

import pytest

from architect.errors import ErrorType, OperationCancelled, RemoteStoreTimeout, StageTimeoutError
from architect.pipeline.deadline import CancellationToken, run_bounded


async def _value_after(delay, value="done"):
    await asyncio.sleep(delay)
    return value


class TestRunBounded:
    async def test_returns_result(self):
        """Completes normally within the deadline."""
        assert await run_bounded(_value_after(0), timeout_s=1.0) == "done"

    async def test_timeout_raises_stage_timeout(self):
        """Expiry raises StageTimeoutError mapped to TIMEOUT."""
        with pytest.raises(StageTimeoutError) as exc:
            await run_bounded(_value_after(5), timeout_s=0.05, label="Refinement")
        assert exc.value.error_type == ErrorType.TIMEOUT
        assert "Refinement" in str(exc.value)

    async def test_custom_timeout_error(self):
        with pytest.raises(RemoteStoreTimeout):
            await run_bounded(_value_after(5), timeout_s=0.05, timeout_error=RemoteStoreTimeout)

    async def test_propagates_exceptions(self):
        async def boom():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await run_bounded(boom(), timeout_s=1.0)

    async def test_no_timeout(self):
        """timeout_s=None waits without a deadline."""
        assert await run_bounded(_value_after(0.01), timeout_s=None) == "done"


class TestCancellation:
    async def test_token_cancels_running_call(self):
        """Firing the token ends the wait with OperationCancelled."""
        token = CancellationToken()

        async def cancel_soon():
            await asyncio.sleep(0.02)
            token.cancel("Project closed")

        canceller = asyncio.create_task(cancel_soon())
        with pytest.raises(OperationCancelled) as exc:
            await run_bounded(_value_after(5), timeout_s=5.0, token=token)
        await canceller
        assert "Project closed" in str(exc.value)

    async def test_already_cancelled_token(self):
        """A fired token prevents the call from starting."""
        token = CancellationToken()
        token.cancel()
        started = []

        async def record():
            started.append(True)

        with pytest.raises(OperationCancelled):
            await run_bounded(record(), timeout_s=1.0, token=token)
        assert started == []

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.cancelled
        assert token.reason == "first"
