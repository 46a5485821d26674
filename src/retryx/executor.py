"""Retry execution for async operations.

Runs a zero-argument async operation until it succeeds or the policy gives up.
Attempts are strictly sequential: attempt N+1 never starts before attempt N
has resolved and the inter-attempt wait has elapsed.

Example:
    >>> from retryx import retry
    >>>
    >>> async def fetch() -> bytes:
    ...     return await client.get("/status")
    >>>
    >>> body = await retry(fetch, max_attempts=5, delay=0.5, backoff=True, timeout=2.0)

    >>> # Or as a decorator
    >>> @with_retry(max_attempts=3, retry_on=retry_if_exception_type(ConnectionError))
    ... async def fetch_user(user_id: int) -> dict:
    ...     ...
"""

from __future__ import annotations

import asyncio
import functools
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar

from .errors import RetryExhaustedError, RetryTimeoutError
from .policy import DEFAULT_POLICY, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger("retryx.executor")


class AttemptState(StrEnum):
    """States of a retry sequence."""
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED_NONRETRYABLE = "failed_nonretryable"
    FAILED_EXHAUSTED = "failed_exhausted"


def _discard_outcome(task: asyncio.Future[Any]) -> None:
    """Retrieve and drop the outcome of a timed-out attempt."""
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        logger.debug("Timed-out attempt failed: %r", exc)
    else:
        logger.debug("Timed-out attempt completed; result discarded")


async def _run_attempt(operation: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    """Run one attempt, racing it against the per-attempt timeout if set."""
    if policy.timeout is None:
        return await operation()

    task = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=policy.timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    if policy.cancel_on_timeout:
        # Wait for the cancelled attempt to unwind before the next one may start.
        task.cancel()
        await asyncio.wait({task})
        _discard_outcome(task)
    else:
        # Abandoned, not cancelled: the operation keeps running in the background.
        task.add_done_callback(_discard_outcome)
    logger.debug("Attempt exceeded timeout of %.3fs", policy.timeout)
    raise RetryTimeoutError(policy.timeout)


def _notify(policy: RetryPolicy, exc: Exception, attempt: int) -> None:
    """Invoke the on_retry observer, honoring suppress_hook_errors."""
    if policy.on_retry is None:
        return
    try:
        policy.on_retry(exc, attempt)
    except Exception as hook_exc:
        if not policy.suppress_hook_errors:
            raise hook_exc from exc
        logger.exception("on_retry hook failed on attempt %d; continuing", attempt)


async def execute(operation: Callable[[], Awaitable[T]], policy: RetryPolicy | None = None) -> T:
    """Execute async operation under a retry policy.

    Args:
        operation: Zero-argument callable returning an awaitable
        policy: Retry policy (default: RetryPolicy())

    Returns:
        Value produced by the first successful attempt

    Raises:
        Exception: The failure of the final attempt, unchanged, when it is
            not retryable or the attempt budget is spent
        RetryTimeoutError: When the final attempt exceeded the timeout
        RetryExhaustedError: When the policy allows no attempts at all
    """
    if policy is None:
        policy = DEFAULT_POLICY
    strategy = policy.backoff_strategy
    attempt = 0

    while attempt < policy.max_attempts:
        logger.debug(
            "Starting attempt %d/%d", attempt + 1, policy.max_attempts,
            extra={"retry_state": AttemptState.ATTEMPTING},
        )
        try:
            result = await _run_attempt(operation, policy)
        except Exception as e:
            attempt += 1
            if attempt >= policy.max_attempts:
                logger.info(
                    "Giving up after %d/%d attempts: %r", attempt, policy.max_attempts, e,
                    extra={"retry_state": AttemptState.FAILED_EXHAUSTED},
                )
                raise
            if not policy.retry_on(e):
                logger.info(
                    "Attempt %d/%d failed with non-retryable error: %r", attempt, policy.max_attempts, e,
                    extra={"retry_state": AttemptState.FAILED_NONRETRYABLE},
                )
                raise

            wait = strategy.delay(attempt - 1)
            _notify(policy, e, attempt)
            logger.warning(
                "Attempt %d/%d failed: %r. Retrying in %.3fs", attempt, policy.max_attempts, e, wait,
                extra={"retry_state": AttemptState.WAITING},
            )
            if wait > 0:
                await asyncio.sleep(wait)
            continue

        logger.debug(
            "Attempt %d/%d succeeded", attempt + 1, policy.max_attempts,
            extra={"retry_state": AttemptState.SUCCEEDED},
        )
        return result

    raise RetryExhaustedError(attempt)


async def retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    **options: Any,
) -> T:
    """Retry an async operation, with keyword options overriding the policy.

    Accepts any RetryPolicy field as a keyword (max_attempts, delay, backoff,
    timeout, retry_on, on_retry, cancel_on_timeout, suppress_hook_errors).

    Example:
        >>> await retry(fetch, max_attempts=3, delay=0.1, backoff=True)
    """
    return await execute(operation, (DEFAULT_POLICY if policy is None else policy).with_options(**options))


def with_retry(
    policy: RetryPolicy | None = None,
    **options: Any,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator retrying each call of an async function.

    Every call of the decorated function is an independent retry sequence.
    The policy is validated once, at decoration time.

    Example:
        >>> @with_retry(max_attempts=5, delay=1.0)
        ... async def send(message: str) -> None:
        ...     ...
    """
    resolved = (DEFAULT_POLICY if policy is None else policy).with_options(**options)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await execute(functools.partial(func, *args, **kwargs), resolved)
        return wrapper
    return decorator
