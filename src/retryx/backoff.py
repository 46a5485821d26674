"""Delay strategies between retry attempts.

- ConstantBackoff: the same wait before every retry
- DoublingBackoff: the wait doubles after each failed attempt

Randomized jitter is deliberately absent: waits are deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.
    
    Implementations compute the wait before the next retry attempt.
    Retry numbers are 0-indexed (first retry = 0).
    """
    
    def delay(self, retry: int) -> float:
        """Calculate delay in seconds before the given retry.
        
        Args:
            retry: 0-indexed retry number
            
        Returns:
            Delay in seconds, 0 for no wait
        """
        ...


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Fixed delay between retries.
    
    Attributes:
        delay_seconds: Fixed delay in seconds (default: 0.0)
    """
    
    delay_seconds: float = 0.0
    
    def delay(self, retry: int) -> float:
        return self.delay_seconds


@dataclass(frozen=True, slots=True)
class DoublingBackoff:
    """Exponential backoff with a factor of two.
    
    Delay = base * 2 ^ retry
    
    Attributes:
        base: Delay before the first retry in seconds
    """
    
    base: float = 0.0
    
    def delay(self, retry: int) -> float:
        return self.base * (2 ** retry)
