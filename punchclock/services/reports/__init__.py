"""Reports rebuilt from the time card log."""

from punchclock.services.reports.time_report import (
    ProjectReportLine,
    TimeReport,
    build_time_report,
    derive_project_minutes,
    user_time_cards,
)

__all__ = [
    "ProjectReportLine",
    "TimeReport",
    "build_time_report",
    "derive_project_minutes",
    "user_time_cards",
]
