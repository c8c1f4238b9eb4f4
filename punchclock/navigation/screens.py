"""
Screens of the menu state machine.

Each screen is an immutable value carrying only the context its
transitions need: the bound user, a selected project, an unsaved draft,
or the list snapshot the menu numbers refer to.

Two kinds exist:
- menu screens take a numeric choice (NavigationStateMachine.handle_input)
- text entry screens collect free text (NavigationStateMachine.submit_text)
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from punchclock.models.records import Project, TimeCard, User
from punchclock.services.reports import TimeReport


class TextPrompt(BaseModel):
    """One free-text field a text entry screen asks for."""
    model_config = ConfigDict(frozen=True)

    name: str
    label: str


class Screen(BaseModel):
    """Base class of every screen."""
    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None


class TextEntryScreen(Screen):
    """A screen answered with free text instead of a menu number."""

    def text_prompts(self) -> list[TextPrompt]:
        raise NotImplementedError


# =============================================================================
# USERS
# =============================================================================

class UserSelect(Screen):
    """Root screen. Numbers 2.. refer to the snapshot in `users`."""

    users: list[User] = Field(default_factory=list)


class CreateUserEntry(TextEntryScreen):
    def text_prompts(self) -> list[TextPrompt]:
        return [
            TextPrompt(name="first_name", label="First name"),
            TextPrompt(name="last_name", label="Last name"),
        ]


class CreateUser(Screen):
    """Unsaved user draft awaiting save / re-enter / discard."""

    first_name: str = ""
    last_name: str = ""


class UserSettings(Screen):
    user: User


class EditUserField(TextEntryScreen):
    user: User
    field: Literal["first_name", "last_name"]

    def text_prompts(self) -> list[TextPrompt]:
        label = "First name" if self.field == "first_name" else "Last name"
        return [TextPrompt(name="value", label=f"New {label.lower()} (leave blank to cancel)")]


# =============================================================================
# MAIN MENU
# =============================================================================

class MainMenu(Screen):
    user: User


class TimeReports(Screen):
    user: User
    report: TimeReport


# =============================================================================
# CLOCKING
# =============================================================================

class ClockInOut(Screen):
    user: User


class ClockInSelection(Screen):
    """Numbers 1.. refer to the snapshot in `projects`."""

    user: User
    projects: list[Project] = Field(default_factory=list)


class SessionDescriptionEntry(TextEntryScreen):
    user: User
    project: Project

    def text_prompts(self) -> list[TextPrompt]:
        return [TextPrompt(name="description", label="Description of session")]


class TimeCardHistory(Screen):
    user: User
    time_cards: list[TimeCard] = Field(default_factory=list)
    project_names: dict[int, str] = Field(default_factory=dict)


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectList(Screen):
    """Numbers 2.. refer to the snapshot in `projects`."""

    user: User
    projects: list[Project] = Field(default_factory=list)


class CreateProjectEntry(TextEntryScreen):
    user: User

    def text_prompts(self) -> list[TextPrompt]:
        return [
            TextPrompt(name="name", label="Project name"),
            TextPrompt(name="description", label='Project description (must not include "|")'),
        ]


class CreateProject(Screen):
    """Unsaved project draft awaiting save / re-enter / discard."""

    user: User
    name: str = ""
    description: str = ""


class ProjectDetails(Screen):
    user: User
    project: Project


class ModifyProject(Screen):
    user: User
    project: Project


class EditProjectField(TextEntryScreen):
    user: User
    project: Project
    field: Literal["name", "description"]

    def text_prompts(self) -> list[TextPrompt]:
        label = "project name" if self.field == "name" else "description"
        return [TextPrompt(name="value", label=f"New {label} (leave blank to cancel)")]


class ConfirmDelete(Screen):
    user: User
    project: Project
