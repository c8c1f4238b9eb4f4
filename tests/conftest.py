"""
Shared fixtures for Punchclock tests.

Every test gets its own data directory and a clock it can move by hand,
so no test depends on wall time or on files outside tmp_path.
"""

from datetime import datetime, timedelta

import pytest

from punchclock.audit import AuditLogger
from punchclock.config import StorageSettings
from punchclock.orchestrator import create_app_components
from punchclock.services.storage import create_stores


T0 = datetime(2024, 3, 1, 9, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class RecordingAuditLogger(AuditLogger):
    """AuditLogger that keeps events in memory instead of logging them."""

    def __init__(self):
        super().__init__(logger=None)
        self.events = []

    def log(self, event) -> bool:
        self.events.append(event)
        return True

    def types(self) -> list:
        return [event.event_type for event in self.events]


@pytest.fixture
def storage_settings(tmp_path):
    return StorageSettings(data_dir=tmp_path / "csv")


@pytest.fixture
def stores(storage_settings):
    return create_stores(storage_settings)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def components(storage_settings, clock, audit_logger):
    return create_app_components(
        storage_settings=storage_settings,
        clock=clock,
        audit_logger=audit_logger,
    )
