"""Tests for the delimited record stores."""

import os
import pytest
from datetime import datetime

from punchclock.models.records import ClockedIn, Project, TimeCard, User
from punchclock.services.storage import (
    ParseError,
    ProjectStore,
    StorageError,
    TimeCardStore,
    UserStore,
    format_timestamp,
    parse_timestamp,
)


USERS_FILE = (
    "Id|FirstName|LastName|ClockedInStatus|LastTimePunch\n"
    "1|Ada|Lovelace|out|null\n"
    "2|Alan|Turing|3|2024-03-01T09:00:01"
)

PROJECTS_FILE = (
    "Id|Name|Description|TotalTime\n"
    "1|Website|Landing page|95\n"
    "3|Backend||0\n"
    "4|Docs|User guide and API reference|1440"
)

TIME_CARDS_FILE = (
    "Id|UserId|ProjectId|TimePunch|Description\n"
    "1|2|3|2024-03-01T09:00:01|Writing tests\n"
    "2|2|3|2024-03-01T10:05|CLOCKING OUT"
)


class TestTimestamps:
    """Tests for the stored date-time text."""

    @pytest.mark.parametrize("value,text", [
        (datetime(2024, 3, 1, 9, 0), "2024-03-01T09:00"),
        (datetime(2024, 3, 1, 9, 0, 1), "2024-03-01T09:00:01"),
        (datetime(2024, 3, 1, 9, 0, 0, 250000), "2024-03-01T09:00:00.250"),
        (datetime(2024, 3, 1, 9, 0, 5, 123456), "2024-03-01T09:00:05.123456"),
    ])
    def test_format_timestamp(self, value, text):
        assert format_timestamp(value) == text

    def test_parse_without_seconds(self):
        assert parse_timestamp("2024-03-01T10:05") == datetime(2024, 3, 1, 10, 5)

    def test_parse_truncates_nanoseconds(self):
        """Digits beyond microseconds are dropped."""
        assert parse_timestamp("2024-03-01T10:05:07.123456789") == datetime(
            2024, 3, 1, 10, 5, 7, 123456
        )

    def test_parse_short_fraction(self):
        assert parse_timestamp("2024-03-01T10:05:07.5").microsecond == 500000

    @pytest.mark.parametrize("text", ["", "null", "2024-03-01", "2024-03-01 10:05", "10:05"])
    def test_parse_rejects_other_formats(self, text):
        with pytest.raises(ValueError):
            parse_timestamp(text)


class TestLoading:
    """Tests for reading stores."""

    def test_missing_file_is_empty(self, tmp_path):
        store = UserStore(tmp_path / "users.csv")
        assert store.load_all() == []
        assert store.next_id() == 1

    def test_load_users(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text(USERS_FILE)

        users = UserStore(path).load_all()

        assert [u.id for u in users] == [1, 2]
        assert users[0].is_clocked_in is False
        assert users[0].last_time_punch is None
        assert users[1].clock_state == ClockedIn(project_id=3)
        assert users[1].last_time_punch == datetime(2024, 3, 1, 9, 0, 1)

    def test_header_only_file(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text("Id|Name|Description|TotalTime")
        assert ProjectStore(path).load_all() == []

    def test_blank_lines_and_padding_are_ignored(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text("Id|Name|Description|TotalTime\n\n 1 | Website | Landing page | 30 \n\n")

        projects = ProjectStore(path).load_all()

        assert projects == [Project(id=1, name="Website", description="Landing page", total_time=30)]

    def test_wrong_field_count_names_the_line(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text("Id|Name|Description|TotalTime\n1|Website|30")

        with pytest.raises(ParseError) as exc_info:
            ProjectStore(path).load_all()

        assert exc_info.value.line_number == 2
        assert "expected 4 fields" in str(exc_info.value)

    def test_bad_timestamp_is_parse_error(self, tmp_path):
        path = tmp_path / "timeCard.csv"
        path.write_text("Id|UserId|ProjectId|TimePunch|Description\n1|1|1|yesterday|work")

        with pytest.raises(ParseError):
            TimeCardStore(path).load_all()

    def test_bad_integer_is_parse_error(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text("Id|Name|Description|TotalTime\n1|Website||lots")

        with pytest.raises(ParseError) as exc_info:
            ProjectStore(path).load_all()
        assert "TotalTime" in exc_info.value.reason

    def test_bad_clock_tag_is_parse_error(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text("Id|FirstName|LastName|ClockedInStatus|LastTimePunch\n1|Ada||maybe|null")

        with pytest.raises(ParseError):
            UserStore(path).load_all()

    def test_parse_error_is_storage_error(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text("Id|Name|Description|TotalTime\nbroken")

        with pytest.raises(StorageError):
            ProjectStore(path).load_all()

    def test_empty_names_load(self, tmp_path):
        """Rows written without a name are still readable."""
        users = tmp_path / "users.csv"
        users.write_text("Id|FirstName|LastName|ClockedInStatus|LastTimePunch\n1||Smith|out|null")
        projects = tmp_path / "projects.csv"
        projects.write_text("Id|Name|Description|TotalTime\n1||desc|0")

        assert UserStore(users).load_all()[0].last_name == "Smith"
        assert ProjectStore(projects).load_all()[0].name == ""

    def test_long_description_loads(self, tmp_path):
        path = tmp_path / "timeCard.csv"
        description = "x" * 1001
        path.write_text(
            "Id|UserId|ProjectId|TimePunch|Description\n"
            f"1|1|1|2024-03-01T09:00:01|{description}"
        )

        assert TimeCardStore(path).load_all()[0].description == description

    def test_unreadable_store(self, tmp_path):
        """A directory in place of the file cannot be read."""
        path = tmp_path / "users.csv"
        path.mkdir()

        with pytest.raises(StorageError):
            UserStore(path).load_all()


class TestWriting:
    """Tests for rewriting stores."""

    def test_canonical_file_round_trips(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text(USERS_FILE)
        store = UserStore(path)

        store.save_all(store.load_all())

        assert path.read_text() == USERS_FILE

    def test_time_card_file_round_trips(self, tmp_path):
        path = tmp_path / "timeCard.csv"
        path.write_text(TIME_CARDS_FILE)
        store = TimeCardStore(path)

        store.save_all(store.load_all())

        assert path.read_text() == TIME_CARDS_FILE

    def test_project_file_round_trips(self, tmp_path):
        path = tmp_path / "projects.csv"
        path.write_text(PROJECTS_FILE)
        store = ProjectStore(path)

        store.save_all(store.load_all())

        assert path.read_text() == PROJECTS_FILE

    def test_empty_store_writes_header_only(self, tmp_path):
        path = tmp_path / "projects.csv"
        ProjectStore(path).save_all([])
        assert path.read_text() == "Id|Name|Description|TotalTime"

    def test_creates_data_directory(self, tmp_path):
        path = tmp_path / "nested" / "csv" / "projects.csv"
        ProjectStore(path).append(Project(id=1, name="Website"))
        assert path.read_text() == "Id|Name|Description|TotalTime\n1|Website||0"

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        store = ProjectStore(tmp_path / "projects.csv")
        store.append(Project(id=1, name="Website"))
        store.append(Project(id=2, name="Backend"))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["projects.csv"]

    def test_direct_write(self, tmp_path):
        store = ProjectStore(tmp_path / "projects.csv", atomic_writes=False)
        store.append(Project(id=1, name="Website"))
        assert store.load_all()[0].name == "Website"

    def test_unwritable_store(self, tmp_path):
        """A file where the data directory should be makes writes fail."""
        blocker = tmp_path / "csv"
        blocker.write_text("not a directory")
        store = ProjectStore(blocker / "projects.csv")

        with pytest.raises(StorageError):
            store.save_all([Project(id=1, name="Website")])

    def test_transient_write_error_is_retried(self, tmp_path, monkeypatch):
        calls = []
        real_replace = os.replace

        def flaky_replace(src, dst):
            calls.append(dst)
            if len(calls) == 1:
                raise OSError("resource temporarily unavailable")
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", flaky_replace)
        store = ProjectStore(tmp_path / "projects.csv")

        store.save_all([Project(id=1, name="Website")])

        assert len(calls) == 2
        assert store.get_by_id(1).name == "Website"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["projects.csv"]

    def test_permission_error_is_not_retried(self, tmp_path, monkeypatch):
        calls = []

        def denied_replace(src, dst):
            calls.append(dst)
            raise PermissionError("read-only store")

        monkeypatch.setattr(os, "replace", denied_replace)
        store = ProjectStore(tmp_path / "projects.csv")

        with pytest.raises(StorageError):
            store.save_all([Project(id=1, name="Website")])
        assert len(calls) == 1


class TestRecordStoreOperations:
    """Tests for the id-based helpers shared by every store."""

    def test_next_id_is_max_plus_one(self, tmp_path):
        """Gaps left by deletions are never reused."""
        store = ProjectStore(tmp_path / "projects.csv")
        store.save_all([Project(id=1, name="A"), Project(id=5, name="B")])
        assert store.next_id() == 6

    def test_get_by_id(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text(USERS_FILE)
        store = UserStore(path)

        assert store.get_by_id(2).first_name == "Alan"
        assert store.get_by_id(9) is None

    def test_append_keeps_order(self, tmp_path):
        store = ProjectStore(tmp_path / "projects.csv")
        store.append(Project(id=1, name="A"))
        store.append(Project(id=2, name="B"))
        assert [p.name for p in store.load_all()] == ["A", "B"]

    def test_upsert_replaces_in_place(self, tmp_path):
        store = ProjectStore(tmp_path / "projects.csv")
        store.save_all([Project(id=1, name="A"), Project(id=2, name="B"), Project(id=3, name="C")])

        assert store.upsert_by_id(Project(id=2, name="B2", total_time=10)) is True

        assert [(p.id, p.name) for p in store.load_all()] == [(1, "A"), (2, "B2"), (3, "C")]

    def test_upsert_unknown_id_writes_nothing(self, tmp_path):
        path = tmp_path / "projects.csv"
        store = ProjectStore(path)

        assert store.upsert_by_id(Project(id=4, name="Ghost")) is False
        assert not path.exists()

    def test_delete_by_id(self, tmp_path):
        store = ProjectStore(tmp_path / "projects.csv")
        store.save_all([Project(id=1, name="A"), Project(id=2, name="B")])

        assert store.delete_by_id(1) is True
        assert store.delete_by_id(1) is False
        assert [p.id for p in store.load_all()] == [2]

    def test_time_cards_for_user(self, tmp_path):
        store = TimeCardStore(tmp_path / "timeCard.csv")
        punch = datetime(2024, 3, 1, 9, 0)
        store.save_all([
            TimeCard(id=1, user_id=1, project_id=1, time_punch=punch),
            TimeCard(id=2, user_id=2, project_id=1, time_punch=punch),
            TimeCard(id=3, user_id=1, project_id=1, time_punch=punch),
        ])
        assert [c.id for c in store.for_user(1)] == [1, 3]

    def test_user_row_layout(self, tmp_path):
        path = tmp_path / "users.csv"
        UserStore(path).append(User(
            id=1,
            first_name="Ada",
            last_name="Lovelace",
            clock_state=ClockedIn(project_id=2),
            last_time_punch=datetime(2024, 3, 1, 9, 0, 1),
        ))
        assert path.read_text().splitlines()[1] == "1|Ada|Lovelace|2|2024-03-01T09:00:01"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
