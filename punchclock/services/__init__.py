"""Services package."""

from punchclock.services.storage import (
    DelimitedRecordStore,
    ParseError,
    ProjectStore,
    RecordStore,
    StorageError,
    TimeCardStore,
    UserStore,
    create_stores,
)
from punchclock.services.timekeeping import (
    ClockResult,
    NotClockedInError,
    TimeAccountant,
    TimeAccountingError,
    elapsed_minutes,
)
from punchclock.services.reports import (
    ProjectReportLine,
    TimeReport,
    build_time_report,
    derive_project_minutes,
    user_time_cards,
)

__all__ = [
    # Storage services
    "DelimitedRecordStore",
    "ParseError",
    "ProjectStore",
    "RecordStore",
    "StorageError",
    "TimeCardStore",
    "UserStore",
    "create_stores",
    # Time accounting
    "ClockResult",
    "NotClockedInError",
    "TimeAccountant",
    "TimeAccountingError",
    "elapsed_minutes",
    # Reports
    "ProjectReportLine",
    "TimeReport",
    "build_time_report",
    "derive_project_minutes",
    "user_time_cards",
]
