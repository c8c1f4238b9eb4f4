"""
Punch Log Reports

Project totals are kept redundantly on each Project for cheap reads.
This module rebuilds them from the time card log so the two can be
compared.

Replay rules, per user in log (id) order:
- a card that is not a clock-out opens a session on its project
- the user's next card closes that session; if it is a clock-out, the
  session's minutes are credited to the session's project
- a session still open at the end of the log is not credited
"""

from collections import defaultdict
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from punchclock.models.records import PUNCH_TICK, Project, TimeCard
from punchclock.services.timekeeping import elapsed_minutes


class ProjectReportLine(BaseModel):
    """Recorded versus log-derived time for one project."""

    project_id: int
    name: str
    recorded_minutes: int = Field(ge=0)
    derived_minutes: int = Field(ge=0)

    @property
    def reconciled(self) -> bool:
        return self.recorded_minutes == self.derived_minutes

    @property
    def difference(self) -> int:
        return self.recorded_minutes - self.derived_minutes


class TimeReport(BaseModel):
    """All project lines plus time booked against deleted projects."""

    lines: list[ProjectReportLine] = Field(default_factory=list)
    orphaned_minutes: int = 0
    orphaned_time_cards: int = 0
    open_sessions: int = 0

    @property
    def reconciled(self) -> bool:
        return all(line.reconciled for line in self.lines)


def _replay(time_cards: Iterable[TimeCard]) -> tuple[dict[int, int], int]:
    """Return (minutes per project id, sessions still open)."""
    minutes: dict[int, int] = defaultdict(int)
    open_session: dict[int, Optional[TimeCard]] = {}

    for card in sorted(time_cards, key=lambda c: c.id):
        opened = open_session.get(card.user_id)
        if opened is not None and card.is_clock_out:
            minutes[opened.project_id] += elapsed_minutes(
                opened.time_punch - PUNCH_TICK, card.time_punch
            )
        open_session[card.user_id] = None if card.is_clock_out else card

    still_open = sum(1 for card in open_session.values() if card is not None)
    return dict(minutes), still_open


def derive_project_minutes(time_cards: Iterable[TimeCard]) -> dict[int, int]:
    """Minutes per project id rebuilt from the punch log."""
    minutes, _ = _replay(time_cards)
    return minutes


def build_time_report(
    projects: Iterable[Project],
    time_cards: Iterable[TimeCard],
) -> TimeReport:
    """Compare each project's recorded total with the punch log."""
    time_cards = list(time_cards)
    derived, still_open = _replay(time_cards)

    lines = []
    known_ids = set()
    for project in projects:
        known_ids.add(project.id)
        lines.append(ProjectReportLine(
            project_id=project.id,
            name=project.name,
            recorded_minutes=project.total_time,
            derived_minutes=derived.get(project.id, 0),
        ))

    return TimeReport(
        lines=lines,
        orphaned_minutes=sum(
            value for project_id, value in derived.items() if project_id not in known_ids
        ),
        orphaned_time_cards=sum(
            1 for card in time_cards if card.project_id not in known_ids
        ),
        open_sessions=still_open,
    )


def user_time_cards(
    time_cards: Iterable[TimeCard],
    user_id: int,
    limit: int = 10,
) -> list[TimeCard]:
    """The user's most recent punches, newest first."""
    cards = [card for card in time_cards if card.user_id == user_id]
    cards.sort(key=lambda c: c.id, reverse=True)
    return cards[:limit]
