"""Time accounting service."""

from punchclock.services.timekeeping.accountant import (
    ClockResult,
    NotClockedInError,
    TimeAccountant,
    TimeAccountingError,
    elapsed_minutes,
)

__all__ = [
    "ClockResult",
    "NotClockedInError",
    "TimeAccountant",
    "TimeAccountingError",
    "elapsed_minutes",
]
