"""Cooperative cancellation token shared by one sync run."""

from __future__ import annotations

import asyncio
import contextlib

from rbacsync.contracts.exceptions import OperationCancelledError


class CancelToken:
    """Signals that the caller wants in-flight work to stop.

    Checked before every remote attempt and raced against every backoff
    sleep, so an interrupt surfaces without waiting for the delay to elapse.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = "operation cancelled"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if reason and not self._event.is_set():
            self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self._reason)

    async def sleep(self, seconds: float) -> None:
        """Sleep for *seconds*, raising :class:`OperationCancelledError` as soon as the token fires."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        self.raise_if_cancelled()
