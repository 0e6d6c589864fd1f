# -*- coding: utf-8 -*-
"""
Logical Clock

Externally driven, monotonic integer clock (a block height or host-ledger
tick). Every deadline comparison in the verification engine reads this
clock; wall-clock time never participates in claim state.

Example:
    >>> from impactledger.verification.clock import LogicalClock
    >>> clock = LogicalClock()
    >>> clock.advance(10)
    10

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class LogicalClock:
    """Monotonic tick counter supplied by the execution environment.

    Attributes:
        _now: Current tick.
        _lock: Guards reads and writes of ``_now``.
    """

    def __init__(self, start: int = 0) -> None:
        """Initialize LogicalClock.

        Args:
            start: Initial tick. Must be non-negative.

        Raises:
            ValueError: If start is negative.
        """
        if start < 0:
            raise ValueError(f"Clock start must be non-negative, got {start}")
        self._now = start
        self._lock = threading.Lock()
        logger.info("LogicalClock initialized at %d", start)

    def now(self) -> int:
        """Return the current tick."""
        with self._lock:
            return self._now

    def advance(self, ticks: int = 1) -> int:
        """Move the clock forward.

        Args:
            ticks: Number of ticks to add. Must be non-negative.

        Returns:
            The new current tick.

        Raises:
            ValueError: If ticks is negative.
        """
        if ticks < 0:
            raise ValueError(f"Clock cannot move backwards ({ticks} ticks)")
        with self._lock:
            self._now += ticks
            logger.debug("LogicalClock advanced by %d to %d", ticks, self._now)
            return self._now

    def set(self, value: int) -> int:
        """Move the clock to an absolute tick not lower than the current one.

        Raises:
            ValueError: If value is lower than the current tick.
        """
        with self._lock:
            if value < self._now:
                raise ValueError(
                    f"Clock cannot move backwards from {self._now} to {value}"
                )
            self._now = value
            return self._now


__all__ = ["LogicalClock"]
