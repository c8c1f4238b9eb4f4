"""Menu state machine: screens and transitions."""

from punchclock.navigation.machine import (
    NO_SELECTION,
    NOT_IN_MENU,
    NavigationStateMachine,
    Transition,
)
from punchclock.navigation.screens import (
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
    ProjectDetails,
    ProjectList,
    Screen,
    SessionDescriptionEntry,
    TextEntryScreen,
    TextPrompt,
    TimeCardHistory,
    TimeReports,
    UserSelect,
    UserSettings,
)

__all__ = [
    # State machine
    "NO_SELECTION",
    "NOT_IN_MENU",
    "NavigationStateMachine",
    "Transition",
    # Screens
    "ClockInOut",
    "ClockInSelection",
    "ConfirmDelete",
    "CreateProject",
    "CreateProjectEntry",
    "CreateUser",
    "CreateUserEntry",
    "EditProjectField",
    "EditUserField",
    "MainMenu",
    "ModifyProject",
    "ProjectDetails",
    "ProjectList",
    "Screen",
    "SessionDescriptionEntry",
    "TextEntryScreen",
    "TextPrompt",
    "TimeCardHistory",
    "TimeReports",
    "UserSelect",
    "UserSettings",
]
