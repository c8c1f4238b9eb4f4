"""
Audit Logger

DESIGN DECISION: Every mutation of a backing store is logged.
This provides:
1. Traceability of clock transitions and project edits
2. Debugging capability when a write fails
3. A record of deletions that leave time cards orphaned

The audit logger:
- Writes through structlog, never to the backing stores
- Gracefully handles failures (doesn't break a menu transition if logging fails)
"""

import logging
import sys
from typing import Optional

import structlog

from punchclock.config import LoggingSettings
from punchclock.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure stdlib logging and structlog.

    Log lines go to the configured file, or stderr so they never mix
    with the menus on stdout.
    """
    settings = settings or LoggingSettings()

    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(settings.file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("punchclock.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event at its severity.

        Returns False if the log write itself failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except (OSError, ValueError) as e:
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False
        return True

    def log_user_created(self, user_id: int, full_name: str) -> None:
        self.log(AuditEventBuilder.user_created(user_id, full_name))

    def log_user_updated(self, user_id: int, changed_field: str) -> None:
        self.log(AuditEventBuilder.user_updated(user_id, changed_field))

    def log_project_created(self, project_id: int, name: str) -> None:
        self.log(AuditEventBuilder.project_created(project_id, name))

    def log_project_updated(self, project_id: int, changed_field: str) -> None:
        self.log(AuditEventBuilder.project_updated(project_id, changed_field))

    def log_project_deleted(self, project_id: int, name: str, orphaned_time_cards: int) -> None:
        self.log(AuditEventBuilder.project_deleted(project_id, name, orphaned_time_cards))

    def log_clocked_in(self, user_id: int, project_id: int, time_card_id: int) -> None:
        self.log(AuditEventBuilder.clocked_in(user_id, project_id, time_card_id))

    def log_clocked_out(
        self,
        user_id: int,
        project_id: int,
        time_card_id: int,
        minutes: int,
    ) -> None:
        self.log(AuditEventBuilder.clocked_out(user_id, project_id, time_card_id, minutes))

    def log_project_switched(self, user_id: int, from_project_id: int, to_project_id: int) -> None:
        self.log(AuditEventBuilder.project_switched(user_id, from_project_id, to_project_id))

    def log_credit_skipped(self, user_id: int, project_id: int, minutes: int) -> None:
        self.log(AuditEventBuilder.credit_skipped(user_id, project_id, minutes))

    def log_store_write_failed(self, store: str, error_message: str) -> None:
        self.log(AuditEventBuilder.store_write_failed(store, error_message))

    def log_store_restored(self, store: str, succeeded: bool) -> None:
        self.log(AuditEventBuilder.store_restored(store, succeeded))

    def log_store_parse_failed(self, store: str, error_message: str) -> None:
        self.log(AuditEventBuilder.store_parse_failed(store, error_message))
