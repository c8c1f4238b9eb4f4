"""
Component wiring for Punchclock

This module ties the pieces together:
1. Record stores (one per entity kind)
2. Time accountant (clock transitions over those stores)
3. Navigation state machine (menus over both)

DESIGN DECISION: Front ends only ever receive the state machine.
The record stores are the only components that touch the files, and the
state machine is the only component that calls them on a user's behalf.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from punchclock.audit import AuditLogger
from punchclock.config import StorageSettings, get_settings
from punchclock.navigation import NavigationStateMachine
from punchclock.services.storage import (
    ProjectStore,
    TimeCardStore,
    UserStore,
    create_stores,
)
from punchclock.services.timekeeping import TimeAccountant


@dataclass
class AppComponents:
    """Everything a front end needs, built from one configuration."""

    users: UserStore
    projects: ProjectStore
    time_cards: TimeCardStore
    accountant: TimeAccountant
    machine: NavigationStateMachine
    audit_logger: AuditLogger


def create_app_components(
    storage_settings: Optional[StorageSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage_settings: Store locations. Defaults to the cached settings.
        clock: Source of "now" for every punch. Defaults to datetime.now.
        audit_logger: Defaults to a structlog-backed AuditLogger.
    """
    storage_settings = storage_settings or get_settings().storage
    audit_logger = audit_logger or AuditLogger()

    users, projects, time_cards = create_stores(storage_settings)

    accountant = TimeAccountant(
        users=users,
        projects=projects,
        time_cards=time_cards,
        audit_logger=audit_logger,
        clock=clock,
    )

    machine = NavigationStateMachine(
        users=users,
        projects=projects,
        time_cards=time_cards,
        accountant=accountant,
        audit_logger=audit_logger,
    )

    return AppComponents(
        users=users,
        projects=projects,
        time_cards=time_cards,
        accountant=accountant,
        machine=machine,
        audit_logger=audit_logger,
    )
