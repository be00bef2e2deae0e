"""Shared retry/backoff wrapper for every outbound inference call."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from chartqa.inference.exceptions import InferenceCancelledError, InferenceError
from chartqa.logging.logger import Log

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and exponential backoff (``base * 2**attempt``)."""

    max_attempts: int = 3
    backoff_base_seconds: float = 2.0
    max_elapsed_seconds: float | None = None

    def delay_for(self, attempt: int) -> float:
        return self.backoff_base_seconds * (2**attempt)


class RetryingInvoker:
    """Runs a call until it succeeds, the budget is spent, or the caller cancels.

    The call is expected to include response parsing/validation, so a
    malformed answer counts as a failed attempt just like a transport error.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        retry_on: tuple[type[Exception], ...] = (InferenceError,),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy
        self._retry_on = retry_on
        self._clock = clock

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def invoke(
        self,
        operation: str,
        call: Callable[[], T],
        *,
        cancel: threading.Event | None = None,
    ) -> T:
        """Invoke ``call`` under the retry policy.

        Raises:
            InferenceCancelledError: if ``cancel`` is set before or between attempts.
            The last retryable error once all attempts are exhausted.
        """
        max_attempts = max(1, self._policy.max_attempts)
        started = self._clock()
        last_error: Exception | None = None

        for attempt in range(max_attempts):
            if cancel is not None and cancel.is_set():
                raise InferenceCancelledError(f"{operation} cancelled")
            try:
                return call()
            except InferenceCancelledError:
                raise
            except self._retry_on as exc:
                last_error = exc
                Log.warning(
                    f"{operation} attempt {attempt + 1}/{max_attempts} failed: {exc}"
                )

            if attempt + 1 >= max_attempts:
                break
            delay = self._policy.delay_for(attempt)
            if self._budget_exceeded(started, delay):
                Log.warning(f"{operation} retry budget exhausted, giving up")
                break
            if self._sleep(delay, cancel):
                raise InferenceCancelledError(f"{operation} cancelled during backoff")

        if last_error is None:
            raise InferenceError(f"{operation} made no attempts")
        raise last_error

    def _budget_exceeded(self, started: float, next_delay: float) -> bool:
        limit = self._policy.max_elapsed_seconds
        if limit is None:
            return False
        return (self._clock() - started) + next_delay > limit

    @staticmethod
    def _sleep(delay: float, cancel: threading.Event | None) -> bool:
        """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
        if delay <= 0:
            return cancel is not None and cancel.is_set()
        if cancel is None:
            time.sleep(delay)
            return False
        return cancel.wait(delay)
