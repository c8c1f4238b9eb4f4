"""Audit logging package."""

from punchclock.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
