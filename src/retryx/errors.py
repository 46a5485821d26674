"""Exception taxonomy for retry execution.

Operation failures are never wrapped: the caller receives the exact exception
raised by the final attempt. The classes here cover only the failures retryx
synthesizes itself:
- RetryTimeoutError: an attempt outlived the per-attempt timeout
- RetryExhaustedError: the attempt loop ended without a result or failure
- InvalidPolicyError: a policy was built from invalid values
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

TIMEOUT_MESSAGE = "Retry attempt timed out"
EXHAUSTED_MESSAGE = "Retry failed after maximum attempts"


class RetryError(Exception):
    """Base class for failures synthesized by retryx."""


class RetryTimeoutError(RetryError, TimeoutError):
    """Attempt did not settle within the per-attempt timeout.
    
    Subclasses TimeoutError so generic timeout handlers still catch it.
    
    Attributes:
        timeout: The bound that elapsed, in seconds
    """
    
    def __init__(self, timeout: float, message: str = TIMEOUT_MESSAGE) -> None:
        super().__init__(message)
        self.timeout = timeout


class RetryExhaustedError(RetryError):
    """Attempt loop fell through without an explicit resolution.
    
    Only reachable with a degenerate policy (max_attempts < 1) built
    without validation.
    """
    
    def __init__(self, attempts: int, message: str = EXHAUSTED_MESSAGE) -> None:
        super().__init__(message)
        self.attempts = attempts


class InvalidPolicyError(RetryError, ValueError):
    """Policy values failed validation."""
    
    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> InvalidPolicyError:
        """Flatten a pydantic ValidationError into a single readable message."""
        parts = [
            f"{'.'.join(str(p) for p in err['loc']) or 'policy'}: {err['msg']}"
            for err in exc.errors()
        ]
        return cls(f"Invalid retry policy: {'; '.join(parts)}")
