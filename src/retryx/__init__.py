"""retryx - retry, backoff and per-attempt timeouts for async operations.

Wraps a zero-argument async operation and re-invokes it according to a
policy until it succeeds or the policy gives up.

Quick Start:
    >>> from retryx import retry
    >>>
    >>> async def fetch() -> str:
    ...     ...
    >>>
    >>> result = await retry(fetch, max_attempts=3, delay=0.5, backoff=True)

Reusable Policies:
    >>> from retryx import RetryPolicy, execute, retry_if_exception_type
    >>>
    >>> policy = RetryPolicy(
    ...     max_attempts=5,
    ...     delay=0.2,
    ...     timeout=10.0,
    ...     retry_on=retry_if_exception_type(ConnectionError, TimeoutError),
    ...     on_retry=lambda exc, attempt: print(f"attempt {attempt} failed: {exc}"),
    ... )
    >>> result = await execute(fetch, policy)

Decorator:
    >>> from retryx import with_retry
    >>>
    >>> @with_retry(max_attempts=3)
    ... async def send(message: str) -> None:
    ...     ...
"""

from .backoff import Backoff, ConstantBackoff, DoublingBackoff
from .errors import (
    EXHAUSTED_MESSAGE,
    TIMEOUT_MESSAGE,
    InvalidPolicyError,
    RetryError,
    RetryExhaustedError,
    RetryTimeoutError,
)
from .executor import AttemptState, execute, retry, with_retry
from .policy import (
    DEFAULT_POLICY,
    RetryHook,
    RetryPolicy,
    RetryPredicate,
    retry_always,
    retry_if_exception_type,
    retry_unless_exception_type,
)
from .settings import LoggingSettings, RetrySettings, RetryxSettings, clear_settings_cache, get_settings

__version__ = "0.1.0"

__all__ = [
    # Execution
    "execute", "retry", "with_retry", "AttemptState",
    # Policy
    "RetryPolicy", "DEFAULT_POLICY", "RetryPredicate", "RetryHook",
    "retry_always", "retry_if_exception_type", "retry_unless_exception_type",
    # Backoff
    "Backoff", "ConstantBackoff", "DoublingBackoff",
    # Errors
    "RetryError", "RetryTimeoutError", "RetryExhaustedError", "InvalidPolicyError",
    "TIMEOUT_MESSAGE", "EXHAUSTED_MESSAGE",
    # Settings
    "RetryxSettings", "RetrySettings", "LoggingSettings", "get_settings", "clear_settings_cache",
]
