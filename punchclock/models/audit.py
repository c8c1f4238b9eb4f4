"""
Audit Models for Punchclock

Every mutation of the backing stores is described by an AuditEvent.
This provides:
1. Traceability of clock transitions
2. Debugging information when a store write fails
3. A way to explain a project's total after the fact

DESIGN DECISION: Audit events go to the structured log only.
The three stores remain the only persisted state.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Users
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"

    # Projects
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"

    # Clock transitions
    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"
    PROJECT_SWITCHED = "project_switched"
    CREDIT_SKIPPED = "credit_skipped"

    # Storage
    STORE_WRITE_FAILED = "store_write_failed"
    STORE_RESTORED = "store_restored"
    STORE_PARSE_FAILED = "store_parse_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time, like the punches)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'project', 'time_card', 'store')"
    )
    entity_id: Optional[int] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a menu selection?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.clocked_in(user_id, project_id, time_card_id)
        event = AuditEventBuilder.project_deleted(project_id, name)
    """

    @staticmethod
    def user_created(user_id: int, full_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            description=f"User created: {full_name}",
            is_user_action=True,
        )

    @staticmethod
    def user_updated(user_id: int, changed_field: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            description=f"User {changed_field} changed",
            details={"field": changed_field},
            is_user_action=True,
        )

    @staticmethod
    def project_created(project_id: int, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_CREATED,
            entity_type="project",
            entity_id=project_id,
            description=f"Project created: {name}",
            is_user_action=True,
        )

    @staticmethod
    def project_updated(project_id: int, changed_field: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_UPDATED,
            entity_type="project",
            entity_id=project_id,
            description=f"Project {changed_field} changed",
            details={"field": changed_field},
            is_user_action=True,
        )

    @staticmethod
    def project_deleted(project_id: int, name: str, orphaned_time_cards: int) -> AuditEvent:
        severity = AuditSeverity.WARNING if orphaned_time_cards else AuditSeverity.INFO
        return AuditEvent(
            event_type=AuditEventType.PROJECT_DELETED,
            severity=severity,
            entity_type="project",
            entity_id=project_id,
            description=f"Project deleted: {name}",
            details={"orphaned_time_cards": orphaned_time_cards},
            is_user_action=True,
        )

    @staticmethod
    def clocked_in(user_id: int, project_id: int, time_card_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLOCKED_IN,
            entity_type="user",
            entity_id=user_id,
            description=f"Clocked in to project {project_id}",
            details={"project_id": project_id, "time_card_id": time_card_id},
            is_user_action=True,
        )

    @staticmethod
    def clocked_out(
        user_id: int,
        project_id: int,
        time_card_id: int,
        minutes: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLOCKED_OUT,
            entity_type="user",
            entity_id=user_id,
            description=f"Clocked out of project {project_id} after {minutes} minutes",
            details={
                "project_id": project_id,
                "time_card_id": time_card_id,
                "minutes": minutes,
            },
            is_user_action=True,
        )

    @staticmethod
    def project_switched(user_id: int, from_project_id: int, to_project_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_SWITCHED,
            entity_type="user",
            entity_id=user_id,
            description=f"Switched from project {from_project_id} to {to_project_id}",
            details={"from_project_id": from_project_id, "to_project_id": to_project_id},
            is_user_action=True,
        )

    @staticmethod
    def credit_skipped(user_id: int, project_id: int, minutes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="project",
            entity_id=project_id,
            description=f"Project {project_id} no longer exists; {minutes} minutes not credited",
            details={"user_id": user_id, "minutes": minutes},
        )

    @staticmethod
    def store_write_failed(store: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description=f"Write to {store} failed",
            details={"store": store},
            error_message=error_message,
        )

    @staticmethod
    def store_restored(store: str, succeeded: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RESTORED,
            severity=AuditSeverity.WARNING if succeeded else AuditSeverity.CRITICAL,
            entity_type="store",
            description=f"Restore of {store} {'succeeded' if succeeded else 'failed'}",
            details={"store": store, "succeeded": succeeded},
        )

    @staticmethod
    def store_parse_failed(store: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_PARSE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description=f"Could not read {store}",
            details={"store": store},
            error_message=error_message,
        )
