"""
Time Accounting

Turns clock transitions into time cards and project totals.

GUARANTEES:
- A clock-out always closes the session opened by the immediately
  preceding clock-in of the same user
- A project's total only grows, and only on a clock-out (explicit, or
  synthesized when switching projects)
- The caller's User is never mutated; the updated user is returned

Elapsed time is measured from the user's last_time_punch, never from the
time card log. If the two diverge (hand-edited files) the user field wins.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional

from pydantic import BaseModel

from punchclock.audit import AuditLogger
from punchclock.models.records import (
    CLOCK_OUT_DESCRIPTION,
    PUNCH_TICK,
    ClockedIn,
    ClockedOut,
    Project,
    TimeCard,
    User,
    entered,
)
from punchclock.services.storage import RecordStore, StorageError


class TimeAccountingError(Exception):
    """A clock transition cannot be performed."""
    pass


class NotClockedInError(TimeAccountingError):
    """Clock-out requested for a user who is clocked out."""

    def __init__(self, user: User):
        self.user_id = user.id
        super().__init__(f"{user.full_name} is not clocked in")


class ClockResult(BaseModel):
    """Outcome of a clock transition."""

    user: User
    time_card: TimeCard
    # Clock-out synthesized when switching projects
    closed_time_card: Optional[TimeCard] = None
    credited_project_id: Optional[int] = None
    credited_minutes: int = 0


def elapsed_minutes(start: datetime, end: Optional[datetime] = None) -> int:
    """Whole minutes from start to end (default: now), never negative."""
    end = end or datetime.now()
    if end <= start:
        return 0
    return (end - start) // timedelta(minutes=1)


def _next_id(records) -> int:
    return max((record.id for record in records), default=0) + 1


class TimeAccountant:
    """
    Performs clock-in and clock-out against the three stores.

    Writes within one transition go time cards -> project -> user. If a
    write fails, the stores already rewritten are restored from the
    snapshot taken just before they were written, and the error is
    re-raised.
    """

    def __init__(
        self,
        users: RecordStore[User],
        projects: RecordStore[Project],
        time_cards: RecordStore[TimeCard],
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._users = users
        self._projects = projects
        self._time_cards = time_cards
        self._audit_logger = audit_logger
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return self._clock()

    def session_minutes(self, user: User, until: Optional[datetime] = None) -> int:
        """
        Minutes to credit if the user's running session closed at `until`.

        Clock-in punches carry a one-tick offset; it is taken back off so
        the credit covers the time between the two operations.
        """
        if user.last_time_punch is None:
            return 0
        until = until or self.now()
        return elapsed_minutes(user.last_time_punch - PUNCH_TICK, until)

    def minutes_since_last_punch(self, user: User) -> Optional[int]:
        """Minutes since the user's last punch, None if never punched."""
        if user.last_time_punch is None:
            return None
        return elapsed_minutes(user.last_time_punch, self.now())

    def clock_in(self, user: User, project: Project, description: str) -> ClockResult:
        """
        Clock the user into a project.

        If the user is already clocked in somewhere, that session is
        closed first with a synthesized clock-out card, and its minutes
        are credited to the old project.

        Raises:
            pydantic.ValidationError: If the description cannot be stored
            TimeAccountingError: If the user is not in the user store
            StorageError: If a store cannot be read or written
        """
        self._require_stored(user)
        now = self.now()
        punch = now + PUNCH_TICK

        cards = self._time_cards.load_all()
        next_id = _next_id(cards)

        closed = None
        if user.is_clocked_in:
            closed = TimeCard(
                id=next_id,
                user_id=user.id,
                project_id=user.clocked_project_id,
                time_punch=now,
                description=CLOCK_OUT_DESCRIPTION,
            )
            next_id += 1

        opened = TimeCard.model_validate(
            {
                "id": next_id,
                "user_id": user.id,
                "project_id": project.id,
                "time_punch": punch,
                "description": description,
            },
            context=entered("description"),
        )

        credited = 0
        with self._transaction() as write:
            write(self._time_cards, cards + ([closed] if closed else []) + [opened])
            if closed:
                credited = self._credit(user, now, write)
            updated = user.model_copy(update={
                "clock_state": ClockedIn(project_id=project.id),
                "last_time_punch": punch,
            })
            self._write_user(updated, write)

        if self._audit_logger:
            if closed:
                self._audit_logger.log_clocked_out(
                    user.id, closed.project_id, closed.id, credited
                )
                self._audit_logger.log_project_switched(
                    user.id, closed.project_id, project.id
                )
            self._audit_logger.log_clocked_in(user.id, project.id, opened.id)

        return ClockResult(
            user=updated,
            time_card=opened,
            closed_time_card=closed,
            credited_project_id=closed.project_id if closed else None,
            credited_minutes=credited,
        )

    def clock_out(self, user: User) -> ClockResult:
        """
        Close the user's running session.

        Raises:
            NotClockedInError: If the user is clocked out
            TimeAccountingError: If the user is not in the user store
            StorageError: If a store cannot be read or written
        """
        if not user.is_clocked_in:
            raise NotClockedInError(user)
        self._require_stored(user)
        now = self.now()

        cards = self._time_cards.load_all()
        closed = TimeCard(
            id=_next_id(cards),
            user_id=user.id,
            project_id=user.clocked_project_id,
            time_punch=now,
            description=CLOCK_OUT_DESCRIPTION,
        )

        with self._transaction() as write:
            write(self._time_cards, cards + [closed])
            credited = self._credit(user, now, write)
            updated = user.model_copy(update={
                "clock_state": ClockedOut(),
                "last_time_punch": now,
            })
            self._write_user(updated, write)

        if self._audit_logger:
            self._audit_logger.log_clocked_out(
                user.id, closed.project_id, closed.id, credited
            )

        return ClockResult(
            user=updated,
            time_card=closed,
            credited_project_id=closed.project_id,
            credited_minutes=credited,
        )

    def _credit(self, user: User, now: datetime, write) -> int:
        """Add the closing session's minutes to its project. Returns minutes credited."""
        project_id = user.clocked_project_id
        minutes = self.session_minutes(user, now)

        projects = self._projects.load_all()
        for index, project in enumerate(projects):
            if project.id == project_id:
                projects[index] = project.model_copy(
                    update={"total_time": project.total_time + minutes}
                )
                write(self._projects, projects)
                return minutes

        # Project deleted while the user was clocked into it
        if self._audit_logger:
            self._audit_logger.log_credit_skipped(user.id, project_id, minutes)
        return 0

    def _require_stored(self, user: User) -> None:
        if not any(stored.id == user.id for stored in self._users.load_all()):
            raise TimeAccountingError(f"User {user.id} is not in the user store")

    def _write_user(self, user: User, write) -> None:
        users = [
            user if stored.id == user.id else stored
            for stored in self._users.load_all()
        ]
        write(self._users, users)

    @contextmanager
    def _transaction(self) -> Iterator[Callable[[RecordStore, list], None]]:
        """Yield a write function whose writes are undone if a later one fails."""
        written: list[tuple[RecordStore, list]] = []

        def write(store: RecordStore, records: list) -> None:
            snapshot = store.load_all()
            try:
                store.save_all(records)
            except StorageError as e:
                if self._audit_logger:
                    self._audit_logger.log_store_write_failed(store.name, str(e))
                raise
            written.append((store, snapshot))

        try:
            yield write
        except StorageError:
            for store, snapshot in reversed(written):
                try:
                    store.save_all(snapshot)
                    restored = True
                except StorageError:
                    restored = False
                if self._audit_logger:
                    self._audit_logger.log_store_restored(store.name, restored)
            raise
