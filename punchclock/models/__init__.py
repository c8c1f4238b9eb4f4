"""
Data Models Package

This package contains all Pydantic models used in Punchclock.
All data flowing through the system must conform to these schemas.
"""

from punchclock.models.records import (
    CLOCK_OUT_DESCRIPTION,
    CLOCKED_OUT_TAG,
    FIELD_DELIMITER,
    PUNCH_TICK,
    ClockedIn,
    ClockedOut,
    ClockState,
    Project,
    TimeCard,
    User,
    clock_state_from_tag,
    entered,
)
from punchclock.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "CLOCK_OUT_DESCRIPTION",
    "CLOCKED_OUT_TAG",
    "FIELD_DELIMITER",
    "PUNCH_TICK",
    "ClockedIn",
    "ClockedOut",
    "ClockState",
    "Project",
    "TimeCard",
    "User",
    "clock_state_from_tag",
    "entered",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
