"""Retry policy configuration.

A RetryPolicy is an immutable record describing how a single retry sequence
behaves. Policies are validated on construction and safe to share between any
number of concurrent sequences.

Example:
    >>> from retryx import RetryPolicy, retry_if_exception_type
    >>> policy = RetryPolicy(
    ...     max_attempts=5,
    ...     delay=0.2,
    ...     backoff=True,
    ...     timeout=10.0,
    ...     retry_on=retry_if_exception_type(ConnectionError),
    ... )
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
    ValidationError,
)

from .backoff import Backoff, ConstantBackoff, DoublingBackoff
from .errors import InvalidPolicyError
from .settings import RetrySettings, get_settings

RetryPredicate = Callable[[Exception], bool]
RetryHook = Callable[[Exception, int], object]


def retry_always(exc: Exception) -> bool:
    """Default predicate: every failure is retryable."""
    return True


def retry_if_exception_type(*types: type[Exception]) -> RetryPredicate:
    """Build a predicate that retries only instances of the given types."""
    if not types:
        raise ValueError("At least one exception type is required")
    
    def predicate(exc: Exception) -> bool:
        return isinstance(exc, types)
    
    return predicate


def retry_unless_exception_type(*types: type[Exception]) -> RetryPredicate:
    """Build a predicate that retries everything except the given types."""
    if not types:
        raise ValueError("At least one exception type is required")
    
    def predicate(exc: Exception) -> bool:
        return not isinstance(exc, types)
    
    return predicate


class RetryPolicy(BaseModel):
    """Immutable retry policy.
    
    Attributes:
        max_attempts: Total attempts including the first (not extra retries)
        delay: Wait before the first retry in seconds (0 = retry immediately)
        backoff: Double the wait after each failed attempt
        timeout: Per-attempt bound in seconds; None for unbounded attempts
        retry_on: Predicate deciding whether a failure is retryable
        on_retry: Observer called with (failure, attempt) before each wait
        cancel_on_timeout: Cancel a timed-out attempt instead of abandoning it
        suppress_hook_errors: Log and ignore on_retry failures instead of
            aborting the sequence
    
    Raises:
        InvalidPolicyError: On construction with invalid values
    """
    
    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )
    
    max_attempts: PositiveInt = 3
    delay: NonNegativeFloat = 0.0
    backoff: bool = False
    timeout: PositiveFloat | None = None
    retry_on: RetryPredicate = Field(default=retry_always, exclude=True, repr=False)
    on_retry: RetryHook | None = Field(default=None, exclude=True, repr=False)
    cancel_on_timeout: bool = True
    suppress_hook_errors: bool = False
    
    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidPolicyError.from_validation_error(e) from e
    
    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any) -> RetryPolicy:
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            raise InvalidPolicyError.from_validation_error(e) from e
    
    @classmethod
    def model_validate_json(cls, json_data: str | bytes, **kwargs: Any) -> RetryPolicy:
        try:
            return super().model_validate_json(json_data, **kwargs)
        except ValidationError as e:
            raise InvalidPolicyError.from_validation_error(e) from e
    
    @property
    def backoff_strategy(self) -> Backoff:
        """Delay strategy derived from delay and backoff."""
        return DoublingBackoff(self.delay) if self.backoff else ConstantBackoff(self.delay)
    
    def with_options(self, **changes: Any) -> RetryPolicy:
        """Return a validated copy with the given fields replaced."""
        if not changes:
            return self
        current = {name: getattr(self, name) for name in type(self).model_fields}
        return RetryPolicy(**{**current, **changes})
    
    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **changes: Any) -> RetryPolicy:
        """Build a policy from environment-backed RetrySettings.
        
        Args:
            settings: Explicit settings; defaults to get_settings().retry
            **changes: Field overrides applied on top of the settings
        """
        s = settings or get_settings().retry
        return cls(**{
            "max_attempts": s.max_attempts,
            "delay": s.delay,
            "backoff": s.backoff,
            "timeout": s.timeout,
            "cancel_on_timeout": s.cancel_on_timeout,
            **changes,
        })


DEFAULT_POLICY = RetryPolicy()
