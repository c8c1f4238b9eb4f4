"""Tests for the console front end."""

import pytest
from datetime import timedelta

from punchclock.console import ConsoleSession, format_minutes, parse_choice, render
from punchclock.models.records import ClockedIn, Project, TimeCard, User
from punchclock.navigation import (
    NO_SELECTION,
    ClockInOut,
    MainMenu,
    ProjectDetails,
    TimeCardHistory,
    UserSelect,
)

from conftest import T0


class ScriptedConsole:
    """Reader/writer pair that replays fixed input and records output."""

    def __init__(self, *lines):
        self._lines = list(lines)
        self.output = []

    def read(self):
        if not self._lines:
            return None
        return self._lines.pop(0)

    def write(self, text):
        self.output.append(text)

    @property
    def text(self) -> str:
        return "\n".join(self.output)


def run_session(components, clock, *lines) -> ScriptedConsole:
    console = ScriptedConsole(*lines)
    ConsoleSession(components.machine, reader=console.read, writer=console.write, clock=clock).run()
    return console


class TestParseChoice:
    """Tests for menu number parsing."""

    @pytest.mark.parametrize("line,choice", [
        ("1", 1),
        (" 12 ", 12),
        ("0", 0),
        ("", None),
        ("one", None),
        ("1 2", None),
        ("1.5", None),
    ])
    def test_parse_choice(self, line, choice):
        assert parse_choice(line) == choice

    def test_format_minutes(self):
        assert format_minutes(125) == "2 hours 5 minutes"


class TestRender:
    """Tests for screen text."""

    def test_user_select_numbers_users_from_two(self):
        users = [User(id=1, first_name="Ada"), User(id=2, first_name="Alan", last_name="Turing")]
        text = render(UserSelect(users=users), T0)
        assert "1. Create new user" in text
        assert "2. Ada" in text
        assert "3. Alan Turing" in text
        assert "0. Exit" in text

    def test_main_menu_greets_user(self):
        text = render(MainMenu(user=User(id=1, first_name="Ada")), T0)
        assert text.startswith("Hello Ada!")
        assert "4. Settings" in text

    def test_never_clocked_in(self):
        text = render(ClockInOut(user=User(id=1, first_name="Ada")), T0)
        assert "CLOCKED OUT - Never!" in text
        assert "1. Clock in" in text

    def test_time_since_last_punch(self):
        user = User(
            id=1,
            first_name="Ada",
            clock_state=ClockedIn(project_id=1),
            last_time_punch=T0 + timedelta(seconds=1),
        )
        text = render(ClockInOut(user=user), T0 + timedelta(minutes=66))
        assert "CLOCKED IN - 1 hours and 5 minutes ago" in text
        assert "2. Switch projects" in text

    def test_project_total(self):
        project = Project(id=1, name="Website", total_time=95)
        text = render(ProjectDetails(user=User(id=1, first_name="Ada"), project=project), T0)
        assert "Total time spent on project: 1 hours 35 minutes" in text

    def test_history_names_deleted_projects(self):
        card = TimeCard(id=1, user_id=1, project_id=7, time_punch=T0, description="work")
        screen = TimeCardHistory(user=User(id=1, first_name="Ada"), time_cards=[card])
        assert "deleted project 7" in render(screen, T0)


class TestConsoleSession:
    """Tests for the display / read / transition loop."""

    def test_exit_immediately(self, components, clock):
        console = run_session(components, clock, "0")
        assert "0. Exit" in console.text

    def test_end_of_input_ends_session(self, components, clock):
        console = run_session(components, clock)
        assert len(console.output) == 1

    def test_bad_input_is_reported(self, components, clock):
        console = run_session(components, clock, "abc", "0")
        assert NO_SELECTION in console.text

    def test_create_user(self, components, clock):
        console = run_session(components, clock, "1", "Ada", "Lovelace", "1", "0")

        assert "First name:" in console.text
        assert "User Ada Lovelace created." in console.text
        assert "Hello Ada!" in console.text
        assert components.users.get_by_id(1).full_name == "Ada Lovelace"

    def test_end_of_input_during_text_entry(self, components, clock):
        run_session(components, clock, "1", "Ada")
        assert components.users.load_all() == []

    def test_clock_in_and_out(self, components, clock):
        components.users.append(User(id=1, first_name="Ada"))
        components.projects.append(Project(id=1, name="Website"))

        console = run_session(components, clock, "2", "1", "1", "1", "Landing page", "0")
        assert "Clocked in to Website." in console.text

        clock.advance(minutes=65)
        console = run_session(components, clock, "2", "1", "1", "0")

        assert "Clocked out. 65 minutes recorded." in console.text
        assert components.projects.get_by_id(1).total_time == 65


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
