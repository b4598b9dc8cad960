"""
Retry helpers with exponential backoff and jitter.

Implements two of the AWS Architecture Blog strategies:
- full jitter  : sleep U(0, cap)
- equal jitter : sleep cap/2 + U(0, cap/2)

Example
-------
from sol_sdk.utils.retry import retry_call

result = retry_call(flaky, retries=5, base=0.2, max_delay=2.0, jitter="full")

Notes
-----
- By default, retries on Exception; customize via `exceptions` and/or `retry_if`.
- `on_retry` callback receives (attempt_index, exception, sleep_seconds).
- `total_timeout` puts a ceiling on overall time spent retrying.
- Only use this for idempotent reads. Transaction submission is never retried.
"""

from __future__ import annotations

import random
import time
from typing import (Any, Callable, Literal, Optional, Sequence, Tuple, Type,
                    TypeVar, Union)

__all__ = [
    "RetryError",
    "backoff_delay",
    "retry_call",
]

T = TypeVar("T")

JitterMode = Literal["full", "equal"]


class RetryError(RuntimeError):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, last_exception: BaseException, attempts: int) -> None:
        super().__init__(f"exhausted after {attempts} attempts: {last_exception!r}")
        self.last_exception = last_exception
        self.attempts = attempts


def backoff_delay(
    attempt: int,
    *,
    base: float,
    max_delay: float,
    jitter: JitterMode = "full",
) -> float:
    """
    Compute a backoff delay (in seconds) for the given attempt (1-based).

    - base: initial backoff (seconds), e.g. 0.1
    - max_delay: maximum per-attempt delay (cap)
    - jitter: strategy name (full|equal)
    """
    if attempt < 1:
        attempt = 1
    cap = min(base * (2 ** (attempt - 1)), max_delay)

    if jitter == "full":
        delay = random.uniform(0.0, cap)
    elif jitter == "equal":
        delay = (cap * 0.5) + random.uniform(0.0, cap * 0.5)
    else:
        raise ValueError(f"unknown jitter mode: {jitter}")
    return max(0.0, float(delay))


def _should_retry(
    exc: BaseException,
    exceptions: Tuple[Type[BaseException], ...],
    retry_if: Optional[Callable[[BaseException], bool]],
) -> bool:
    if not isinstance(exc, exceptions):
        return False
    if retry_if is not None:
        return bool(retry_if(exc))
    return True


def retry_call(
    fn: Callable[..., T],
    *args: Any,
    retries: int = 5,
    base: float = 0.2,
    max_delay: float = 3.0,
    jitter: JitterMode = "full",
    exceptions: Union[Type[BaseException], Sequence[Type[BaseException]]] = Exception,
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    total_timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Call `fn` with retries.

    Exceptions that are not retryable propagate unchanged. Once `retries`
    is exhausted (or `total_timeout` elapses) a `RetryError` wrapping the
    last exception is raised.
    """
    if isinstance(exceptions, type):
        exc_types: Tuple[Type[BaseException], ...] = (exceptions,)
    else:
        exc_types = tuple(exceptions)

    deadline = time.monotonic() + total_timeout if total_timeout is not None else None

    attempt = 0
    while True:
        attempt += 1
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            if not _should_retry(exc, exc_types, retry_if):
                raise
            if attempt > retries:
                raise RetryError(exc, attempts=attempt) from exc

            sleep_s = backoff_delay(attempt, base=base, max_delay=max_delay, jitter=jitter)
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise RetryError(exc, attempts=attempt) from exc
                sleep_s = min(sleep_s, remaining)

            if on_retry is not None:
                on_retry(attempt, exc, sleep_s)
            sleep(sleep_s)
