"""
Console front end for Punchclock

A thin view over the navigation state machine: it turns screens into
text, reads one line per menu choice or text field, and hands the
input back to the machine. No store or clock logic lives here.
"""

import sys
from datetime import datetime
from typing import Callable, Optional

from punchclock.audit import configure_logging
from punchclock.config import get_settings
from punchclock.navigation import (
    ClockInOut,
    ClockInSelection,
    ConfirmDelete,
    CreateProject,
    CreateProjectEntry,
    CreateUser,
    CreateUserEntry,
    EditProjectField,
    EditUserField,
    MainMenu,
    ModifyProject,
    NavigationStateMachine,
    ProjectDetails,
    ProjectList,
    Screen,
    SessionDescriptionEntry,
    TextEntryScreen,
    TimeCardHistory,
    TimeReports,
    UserSelect,
    UserSettings,
)
from punchclock.orchestrator import create_app_components
from punchclock.services.storage import format_timestamp
from punchclock.services.timekeeping import elapsed_minutes


def parse_choice(line: str) -> Optional[int]:
    """Whole-line menu number; anything else is no selection."""
    try:
        return int(line.strip())
    except ValueError:
        return None


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60} hours {minutes % 60} minutes"


def _greeting(screen: Screen) -> list[str]:
    if screen.user is None:
        return []
    return [f"Hello {screen.user.first_name}!"]


def _numbered(items: list[str], start: int) -> list[str]:
    return [f"{index}. {item}" for index, item in enumerate(items, start=start)]


def _render_user_select(screen: UserSelect, now: datetime) -> list[str]:
    lines = []
    if screen.user is not None:
        lines += [f"Current user: {screen.user.first_name}", ""]
    lines += ["Please select a user below or create a new user:", "", "1. Create new user"]
    lines += _numbered([u.full_name for u in screen.users], start=2)
    lines.append("")
    lines.append("0. Cancel and return to previous menu" if screen.user else "0. Exit")
    return lines


def _render_create_user(screen: CreateUser, now: datetime) -> list[str]:
    return [
        f"Name entered: {screen.first_name} {screen.last_name}",
        "Please enter the number of the appropriate option below",
        "",
        "1. Save new user",
        "2. Discard and create new user",
        "",
        "0. Discard and return to user selection menu",
    ]


def _render_main_menu(screen: MainMenu, now: datetime) -> list[str]:
    return _greeting(screen) + [
        "Please enter the number for the menu item you would like to select:",
        "",
        "1. Clock in/out",
        "2. Get time reports",
        "3. Edit projects",
        "4. Settings",
        "5. Switch user",
        "",
        "0. Exit",
    ]


def _render_clock_in_out(screen: ClockInOut, now: datetime) -> list[str]:
    user = screen.user
    status = "CLOCKED IN" if user.is_clocked_in else "CLOCKED OUT"
    if user.last_time_punch is None:
        since = "Never!"
    else:
        minutes = elapsed_minutes(user.last_time_punch, now)
        since = f"{minutes // 60} hours and {minutes % 60} minutes ago"

    lines = _greeting(screen) + [f"{status} - {since}", "What would you like to do?"]
    if user.is_clocked_in:
        lines += ["1. Clock out", "2. Switch projects", "3. View time card"]
    else:
        lines += ["1. Clock in", "2. View time card"]
    return lines + ["", "0. Cancel and return to main menu"]


def _render_clock_in_selection(screen: ClockInSelection, now: datetime) -> list[str]:
    lines = _greeting(screen) + ["Please select a project to work on below:", ""]
    if not screen.projects:
        lines.append("(no projects yet - create one under Edit projects)")
    lines += _numbered([p.name for p in screen.projects], start=1)
    return lines + ["", "0. Cancel and return to previous menu"]


def _render_time_card_history(screen: TimeCardHistory, now: datetime) -> list[str]:
    lines = _greeting(screen) + ["Recent time punches:", ""]
    if not screen.time_cards:
        lines.append("(none)")
    for card in screen.time_cards:
        project = screen.project_names.get(card.project_id, f"deleted project {card.project_id}")
        lines.append(f"{format_timestamp(card.time_punch)}  {project}  {card.description}")
    return lines + [
        "",
        "To edit the time card, add, edit, or remove lines in the time card file.",
        "",
        "0. Return to previous menu",
    ]


def _render_time_reports(screen: TimeReports, now: datetime) -> list[str]:
    report = screen.report
    lines = _greeting(screen) + ["Time spent per project:", ""]
    if not report.lines:
        lines.append("(no projects yet)")
    for line in report.lines:
        text = f"{line.name}: {format_minutes(line.recorded_minutes)}"
        if not line.reconciled:
            text += f" (punch log shows {format_minutes(line.derived_minutes)})"
        lines.append(text)
    if report.orphaned_time_cards:
        lines.append(
            f"{report.orphaned_time_cards} punches belong to deleted projects "
            f"({format_minutes(report.orphaned_minutes)})"
        )
    if report.open_sessions:
        lines.append(f"{report.open_sessions} session(s) still running")
    return lines + ["", "0. Return to main menu"]


def _render_project_list(screen: ProjectList, now: datetime) -> list[str]:
    lines = _greeting(screen) + [
        "Please select a project below or create a new one",
        "",
        "1. Create new project",
    ]
    lines += _numbered([p.name for p in screen.projects], start=2)
    return lines + ["", "0. Return to previous menu"]


def _render_create_project(screen: CreateProject, now: datetime) -> list[str]:
    return _greeting(screen) + [
        "Project entered:",
        f"Name: {screen.name}",
        f"Description: {screen.description}",
        "",
        "Please enter the number of the appropriate option below",
        "",
        "1. Save new project",
        "2. Discard and create new project",
        "",
        "0. Discard and return to project selection menu",
    ]


def _render_project_details(screen: ProjectDetails, now: datetime) -> list[str]:
    project = screen.project
    return _greeting(screen) + [
        "Project selected:",
        project.name,
        project.description,
        f"Total time spent on project: {format_minutes(project.total_time)}",
        "",
        "Please enter the number of the appropriate option below",
        "",
        "1. Edit project details",
        "2. Delete project",
        "",
        "0. Return to project selection menu",
    ]


def _render_modify_project(screen: ModifyProject, now: datetime) -> list[str]:
    return _greeting(screen) + [
        f"Project name: {screen.project.name}",
        f"Description: {screen.project.description}",
        "",
        "Which part would you like to modify:",
        "",
        "1. Project name",
        "2. Project description",
        "",
        "0. Cancel and return to project details",
    ]


def _render_confirm_delete(screen: ConfirmDelete, now: datetime) -> list[str]:
    return _greeting(screen) + [
        f"Are you sure you would like to delete {screen.project.name}?",
        "",
        "1. Confirm",
        "",
        "0. Cancel and return to project details",
    ]


def _render_user_settings(screen: UserSettings, now: datetime) -> list[str]:
    return _greeting(screen) + [
        f"First name: {screen.user.first_name}",
        f"Last name: {screen.user.last_name}",
        "",
        "1. Change first name",
        "2. Change last name",
        "",
        "0. Return to main menu",
    ]


def _render_text_entry(screen: TextEntryScreen, now: datetime) -> list[str]:
    titles = {
        CreateUserEntry: "Enter new user data",
        CreateProjectEntry: "Enter new project data",
        SessionDescriptionEntry: "Clocking in",
        EditProjectField: "Edit project",
        EditUserField: "Edit user",
    }
    return _greeting(screen) + [titles.get(type(screen), "")]


_RENDERERS = {
    UserSelect: _render_user_select,
    CreateUser: _render_create_user,
    MainMenu: _render_main_menu,
    ClockInOut: _render_clock_in_out,
    ClockInSelection: _render_clock_in_selection,
    TimeCardHistory: _render_time_card_history,
    TimeReports: _render_time_reports,
    ProjectList: _render_project_list,
    CreateProject: _render_create_project,
    ProjectDetails: _render_project_details,
    ModifyProject: _render_modify_project,
    ConfirmDelete: _render_confirm_delete,
    UserSettings: _render_user_settings,
}


def render(screen: Screen, now: Optional[datetime] = None) -> str:
    """Text shown for a screen."""
    now = now or datetime.now()
    if isinstance(screen, TextEntryScreen):
        return "\n".join(_render_text_entry(screen, now))
    return "\n".join(_RENDERERS[type(screen)](screen, now))


def _read_stdin() -> Optional[str]:
    line = sys.stdin.readline()
    if not line:
        return None
    return line.rstrip("\r\n")


class ConsoleSession:
    """
    Display / read / transition loop.

    Args:
        machine: The navigation state machine to drive
        reader: Returns the next input line, None at end of input
        writer: Shows one block of text
        clock: Source of "now" for "time since last punch"
    """

    def __init__(
        self,
        machine: NavigationStateMachine,
        reader: Optional[Callable[[], Optional[str]]] = None,
        writer: Optional[Callable[[str], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._machine = machine
        self._read = reader or _read_stdin
        self._write = writer or print
        self._clock = clock or machine.accountant.now

    def run(self) -> None:
        """Run until the Exit state is reached or input ends."""
        transition = self._machine.start()
        while True:
            if transition.message:
                self._write(f"\n{transition.message}")
            screen = transition.screen
            if screen is None:
                return

            self._write("\n" + render(screen, self._clock()) + "\n")

            if isinstance(screen, TextEntryScreen):
                values = {}
                for prompt in screen.text_prompts():
                    self._write(f"{prompt.label}:")
                    line = self._read()
                    if line is None:
                        return
                    values[prompt.name] = line
                transition = self._machine.submit_text(screen, values)
            else:
                line = self._read()
                if line is None:
                    return
                transition = self._machine.handle_input(screen, parse_choice(line))


def main() -> None:
    """Console entry point."""
    settings = get_settings()
    configure_logging(settings.logging)
    components = create_app_components(settings.storage)
    ConsoleSession(components.machine).run()


if __name__ == "__main__":
    main()
