"""Retry, backoff, and cancellation for individual role store operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, NoReturn, TypeVar

import httpx

from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import RetryPolicy
from rbacsync.contracts.exceptions import (
    NetworkError,
    OperationCancelledError,
    RemoteAPIError,
    RetryExhaustedError,
)

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


class RetryState(StrEnum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    RETRY_WAIT = "retry_wait"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


TransitionHook = Callable[[str, RetryState, RetryState], None]


def is_retryable(exc: BaseException) -> bool:
    """Network failures and 5xx responses are transient; everything else fails fast."""
    if isinstance(exc, NetworkError | httpx.TransportError):
        return True
    if isinstance(exc, RemoteAPIError):
        return exc.retryable
    if isinstance(exc, httpx.HTTPStatusError):
        return 500 <= exc.response.status_code < 600
    return False


class RetryingTransport:
    """Runs one operation with bounded, unjittered exponential backoff.

    The operation is attempted up to ``1 + max_retries`` times. The wait before
    attempt *i* (1-indexed, i >= 2) is ``base_delay * 2 ** (i - 2)``.

    States: ``IDLE -> ATTEMPTING -> {SUCCEEDED, RETRY_WAIT -> ATTEMPTING, FAILED, CANCELLED}``.
    """

    def __init__(self, policy: RetryPolicy | None = None, *, on_transition: TransitionHook | None = None) -> None:
        self._policy = policy or RetryPolicy()
        self._on_transition = on_transition

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def max_attempts(self) -> int:
        return self._policy.max_retries + 1

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before the 1-indexed *attempt*; zero for the first one."""
        if attempt < 2:
            return 0.0
        return self._policy.base_delay * 2 ** (attempt - 2)

    async def call(
        self,
        op: Callable[[], Awaitable[T]],
        *,
        cancel: CancelToken,
        operation: str = "remote call",
    ) -> T:
        state = RetryState.IDLE
        attempts = 0
        result: Any = None
        last_error: BaseException | None = None

        while True:
            match state:
                case RetryState.IDLE:
                    next_state = RetryState.CANCELLED if cancel.cancelled else RetryState.ATTEMPTING

                case RetryState.ATTEMPTING:
                    attempts += 1
                    try:
                        result = await op()
                    except OperationCancelledError:
                        next_state = RetryState.CANCELLED
                    except Exception as exc:
                        last_error = exc
                        if is_retryable(exc) and attempts < self.max_attempts:
                            next_state = RetryState.RETRY_WAIT
                        else:
                            self._transition(operation, state, RetryState.FAILED)
                            self._fail(operation, attempts, exc)
                    else:
                        next_state = RetryState.SUCCEEDED

                case RetryState.RETRY_WAIT:
                    delay = self.backoff_delay(attempts + 1)
                    _LOG.warning(
                        "Retrying %s in %.2fs (attempt %d/%d): %s",
                        operation,
                        delay,
                        attempts + 1,
                        self.max_attempts,
                        last_error,
                    )
                    try:
                        await self._sleep_backoff(delay, cancel)
                    except OperationCancelledError:
                        next_state = RetryState.CANCELLED
                    else:
                        next_state = RetryState.CANCELLED if cancel.cancelled else RetryState.ATTEMPTING

                case RetryState.SUCCEEDED:
                    return result

                case RetryState.CANCELLED:
                    raise OperationCancelledError(f"{operation} cancelled: {cancel.reason}")

            self._transition(operation, state, next_state)
            state = next_state

    def _transition(self, operation: str, old: RetryState, new: RetryState) -> None:
        _LOG.debug("%s: %s -> %s", operation, old, new)
        if self._on_transition is not None:
            self._on_transition(operation, old, new)

    @staticmethod
    def _fail(operation: str, attempts: int, error: Exception) -> NoReturn:
        if is_retryable(error):
            raise RetryExhaustedError(operation, attempts, error) from error
        raise error

    @staticmethod
    async def _sleep_backoff(delay: float, cancel: CancelToken) -> None:
        await cancel.sleep(delay)
