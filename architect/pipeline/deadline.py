# FILE: architect/pipeline/deadline.py
"""
Bounded waits with explicit cancellation.

Every pipeline stage and every remote store call runs through run_bounded():
it finishes with the awaited result, or raises the caller's timeout error when
the deadline passes, or OperationCancelled when the token fires first.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, Type, TypeVar

from architect.errors import ArchitectError, OperationCancelled, StageTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared by the stages of a single run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "Operation cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled(self.reason or "Operation cancelled")


def _consume_outcome(task: "asyncio.Future") -> None:
    # Abandoned tasks may still fail later; their exception must be retrieved.
    if not task.cancelled():
        task.exception()


async def run_bounded(
    awaitable: Awaitable[T],
    *,
    timeout_s: Optional[float],
    token: Optional[CancellationToken] = None,
    label: str = "operation",
    timeout_error: Type[ArchitectError] = StageTimeoutError,
) -> T:
    """Await with a deadline and an optional cancellation token."""
    if token is not None and token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()

    task = asyncio.ensure_future(awaitable)
    waiters = {task}
    cancel_waiter: Optional[asyncio.Task] = None
    if token is not None:
        cancel_waiter = asyncio.ensure_future(token.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout_s, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if cancel_waiter is not None and not cancel_waiter.done():
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_consume_outcome)

    if cancel_waiter is not None and cancel_waiter in done:
        logger.info(f"[deadline] {label} cancelled")
        raise OperationCancelled(token.reason if token and token.reason else f"{label} cancelled")

    logger.warning(f"[deadline] {label} timed out after {timeout_s}s")
    raise timeout_error(f"{label} timed out after {timeout_s:g}s")


__all__ = ["CancellationToken", "run_bounded"]
