"""
Cooperative cancellation for long-running searches.

The token is checked between catalog queries and between candidate
comparisons. It is backed by a threading.Event so a UI thread can cancel
a search running on an event loop in another thread.
"""

import asyncio
import threading
from typing import Awaitable, Iterable, Optional, TypeVar

T = TypeVar("T")


class SearchCancelledError(Exception):
    """Raised when a search is cancelled through its token."""


class CancellationToken:
    """Signal that a running search should stop."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelledError(self.reason or "search cancelled")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled()


async def gather_or_cancel(coroutines: Iterable[Awaitable[T]]) -> list[T]:
    """
    Run coroutines as tasks and return their results in input order.

    On the first failure the remaining tasks are cancelled and awaited
    before the error propagates, so nothing keeps running afterwards.
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
