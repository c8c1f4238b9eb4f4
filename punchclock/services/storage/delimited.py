"""
Delimited File Storage Implementation

DESIGN DECISION: Each entity kind lives in its own pipe-delimited text
file with a single header line, because:
1. Users can read and hand-edit their time cards in any editor
2. No database setup required
3. The format is shared with the earlier console tool

TRADEOFFS:
- Every mutation rewrites the whole file (fine for one person's punches)
- No locking: one writer at a time is assumed
- No queries (we filter in Python)

Writes go to a temporary file in the same directory which then replaces
the store, so a crash mid-write leaves either the old or the new file.
"""

import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from punchclock.config import StorageSettings
from punchclock.models.records import (
    FIELD_DELIMITER,
    Project,
    TimeCard,
    User,
    clock_state_from_tag,
)
from punchclock.services.storage.interface import (
    ParseError,
    RecordStore,
    StorageError,
    T,
)


logger = structlog.get_logger(__name__)

NULL_TEXT = "null"

# Column mappings, in stored order
USER_COLUMNS = ["Id", "FirstName", "LastName", "ClockedInStatus", "LastTimePunch"]
PROJECT_COLUMNS = ["Id", "Name", "Description", "TotalTime"]
TIME_CARD_COLUMNS = ["Id", "UserId", "ProjectId", "TimePunch", "Description"]

# Write failures that another attempt cannot fix
PERMANENT_WRITE_ERRORS = (
    FileExistsError,
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    PermissionError,
)

_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?$"
)


def format_timestamp(value: datetime) -> str:
    """
    Render a local date-time the way the store has always held it.

    Seconds are omitted when they and the fraction are zero; the
    fraction is written as milliseconds when that is exact, otherwise
    as microseconds.
    """
    text = value.strftime("%Y-%m-%dT%H:%M")
    if value.second or value.microsecond:
        text += value.strftime(":%S")
    if value.microsecond:
        if value.microsecond % 1000 == 0:
            text += f".{value.microsecond // 1000:03d}"
        else:
            text += f".{value.microsecond:06d}"
    return text


def parse_timestamp(text: str) -> datetime:
    """
    Parse a stored local date-time.

    Accepts 1 to 9 fraction digits; digits beyond microseconds are dropped.

    Raises:
        ValueError: If the text is not an ISO-8601 local date-time
    """
    match = _TIMESTAMP_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(
        int(year), int(month), int(day),
        int(hour), int(minute), int(second or 0),
        microsecond,
    )


def _parse_int(text: str, column: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"{column} is not an integer: {text!r}")


class DelimitedRecordStore(RecordStore[T]):
    """
    One entity kind stored as header + one delimited line per record.

    Subclasses provide the header and the row codec.
    """

    columns: list[str] = []

    def __init__(self, path: Path, atomic_writes: bool = True):
        self._path = Path(path)
        self._atomic_writes = atomic_writes

    @property
    def path(self) -> Path:
        return self._path

    @property
    def header(self) -> str:
        return FIELD_DELIMITER.join(self.columns)

    def _record_to_row(self, record: T) -> list[str]:
        raise NotImplementedError

    def _row_to_record(self, row: list[str]) -> T:
        raise NotImplementedError

    def load_all(self) -> list[T]:
        """Parse the store, skipping the header and blank lines."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("store_missing", store=self.name, path=str(self._path))
            return []
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        records = []
        lines = text.splitlines()
        for line_number, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue

            row = line.split(FIELD_DELIMITER)
            if len(row) != len(self.columns):
                raise ParseError(
                    self._path,
                    line_number,
                    f"expected {len(self.columns)} fields, found {len(row)}",
                )

            try:
                records.append(self._row_to_record([field.strip() for field in row]))
            except ValueError as e:
                raise ParseError(self._path, line_number, str(e))

        return records

    def save_all(self, records: Sequence[T]) -> None:
        """Rewrite the store with a header and one line per record."""
        lines = [self.header]
        lines.extend(
            FIELD_DELIMITER.join(self._record_to_row(record)) for record in records
        )
        try:
            self._write_text("\n".join(lines))
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")
        logger.debug("store_written", store=self.name, records=len(records))

    @retry(
        retry=(
            retry_if_exception_type(OSError)
            & retry_if_not_exception_type(PERMANENT_WRITE_ERRORS)
        ),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_text(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        if not self._atomic_writes:
            self._path.write_text(text, encoding="utf-8")
            return

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


class UserStore(DelimitedRecordStore[User]):
    """Users: Id|FirstName|LastName|ClockedInStatus|LastTimePunch"""

    name = "users"
    columns = USER_COLUMNS

    def _record_to_row(self, record: User) -> list[str]:
        return [
            str(record.id),
            record.first_name,
            record.last_name,
            record.clock_state.to_tag(),
            format_timestamp(record.last_time_punch) if record.last_time_punch else NULL_TEXT,
        ]

    def _row_to_record(self, row: list[str]) -> User:
        last_time_punch: Optional[datetime] = None
        if row[4] != NULL_TEXT:
            last_time_punch = parse_timestamp(row[4])

        return User(
            id=_parse_int(row[0], "Id"),
            first_name=row[1],
            last_name=row[2],
            clock_state=clock_state_from_tag(row[3]),
            last_time_punch=last_time_punch,
        )


class ProjectStore(DelimitedRecordStore[Project]):
    """Projects: Id|Name|Description|TotalTime"""

    name = "projects"
    columns = PROJECT_COLUMNS

    def _record_to_row(self, record: Project) -> list[str]:
        return [
            str(record.id),
            record.name,
            record.description,
            str(record.total_time),
        ]

    def _row_to_record(self, row: list[str]) -> Project:
        return Project(
            id=_parse_int(row[0], "Id"),
            name=row[1],
            description=row[2],
            total_time=_parse_int(row[3], "TotalTime"),
        )


class TimeCardStore(DelimitedRecordStore[TimeCard]):
    """TimeCards: Id|UserId|ProjectId|TimePunch|Description"""

    name = "time_cards"
    columns = TIME_CARD_COLUMNS

    def _record_to_row(self, record: TimeCard) -> list[str]:
        return [
            str(record.id),
            str(record.user_id),
            str(record.project_id),
            format_timestamp(record.time_punch),
            record.description,
        ]

    def _row_to_record(self, row: list[str]) -> TimeCard:
        return TimeCard(
            id=_parse_int(row[0], "Id"),
            user_id=_parse_int(row[1], "UserId"),
            project_id=_parse_int(row[2], "ProjectId"),
            time_punch=parse_timestamp(row[3]),
            description=row[4],
        )

    def for_user(self, user_id: int) -> list[TimeCard]:
        """Every punch of one user, in log order."""
        return [card for card in self.load_all() if card.user_id == user_id]


def create_stores(
    settings: StorageSettings,
) -> tuple[UserStore, ProjectStore, TimeCardStore]:
    """Build the three stores from configuration."""
    return (
        UserStore(settings.users_path, atomic_writes=settings.atomic_writes),
        ProjectStore(settings.projects_path, atomic_writes=settings.atomic_writes),
        TimeCardStore(settings.time_cards_path, atomic_writes=settings.atomic_writes),
    )
