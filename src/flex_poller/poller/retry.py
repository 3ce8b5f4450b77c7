"""Failure backoff for the poll loop."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff starting at the idle delay, capped at max_backoff.

    The n-th consecutive failure waits base * 2**(n-1) seconds. When
    max_consecutive_failures is positive, exceeding it is fatal.
    """

    base: float = 10.0
    max_backoff: float = 300.0
    max_consecutive_failures: int = 0  # 0 = unlimited

    def delay_for(self, failures: int) -> float:
        if failures <= 0:
            return self.base
        # Bound the exponent so huge failure counts don't overflow
        exponent = min(failures - 1, 32)
        return min(self.base * (2 ** exponent), max(self.max_backoff, self.base))

    def exhausted(self, failures: int) -> bool:
        return 0 < self.max_consecutive_failures < failures
