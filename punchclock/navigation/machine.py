"""
Navigation State Machine

Maps (screen, input) to the next screen. Screens are values; every menu
selection is an edge. The machine performs the side effect that belongs
to an edge (saving a draft, clocking in, deleting a project) and never
touches the console, so any front end can drive it.

Input errors and failed side effects never escape: they come back as a
message together with the screen to show next, usually the same one.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from punchclock.audit import AuditLogger
from punchclock.models.records import Project, TimeCard, User, entered
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
    TimeCardHistory,
    TimeReports,
    UserSelect,
    UserSettings,
)
from punchclock.services.reports import build_time_report, user_time_cards
from punchclock.services.storage import ParseError, RecordStore, StorageError
from punchclock.services.timekeeping import TimeAccountant, TimeAccountingError


NO_SELECTION = "No selection made, please enter an item number."
NOT_IN_MENU = "Selection not in menu, enter new item."

HISTORY_LENGTH = 10


@dataclass(frozen=True)
class Transition:
    """Next screen (None means exit) and an optional note for the user."""

    screen: Optional[Screen]
    message: Optional[str] = None

    @property
    def is_exit(self) -> bool:
        return self.screen is None


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "Invalid entry - " + "; ".join(problems)


class NavigationStateMachine:
    """
    Pure transition logic over the three stores.

    List screens snapshot their records when entered; menu numbers refer
    to that snapshot until the screen is left.
    """

    def __init__(
        self,
        users: RecordStore[User],
        projects: RecordStore[Project],
        time_cards: RecordStore[TimeCard],
        accountant: TimeAccountant,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = users
        self._projects = projects
        self._time_cards = time_cards
        self._accountant = accountant
        self._audit_logger = audit_logger

        self._menu_handlers: dict[type, Callable[[Screen, int], Optional[Transition]]] = {
            UserSelect: self._on_user_select,
            CreateUser: self._on_create_user,
            MainMenu: self._on_main_menu,
            ClockInOut: self._on_clock_in_out,
            ClockInSelection: self._on_clock_in_selection,
            TimeCardHistory: self._on_back_only(lambda s: ClockInOut(user=s.user)),
            TimeReports: self._on_back_only(lambda s: MainMenu(user=s.user)),
            ProjectList: self._on_project_list,
            CreateProject: self._on_create_project,
            ProjectDetails: self._on_project_details,
            ModifyProject: self._on_modify_project,
            ConfirmDelete: self._on_confirm_delete,
            UserSettings: self._on_user_settings,
        }
        self._text_handlers: dict[type, Callable[[Screen, dict[str, str]], Transition]] = {
            CreateUserEntry: self._on_user_entered,
            CreateProjectEntry: self._on_project_entered,
            SessionDescriptionEntry: self._on_session_description,
            EditProjectField: self._on_project_field,
            EditUserField: self._on_user_field,
        }

    @property
    def accountant(self) -> TimeAccountant:
        return self._accountant

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def start(self) -> Transition:
        """Initial screen: user selection with no user bound."""
        return self._guarded(None, lambda: Transition(self.user_select(None)))

    def handle_input(self, screen: Screen, choice: Optional[int]) -> Transition:
        """Apply a numeric menu choice (None when nothing usable was entered)."""
        handler = self._menu_handlers.get(type(screen))
        if handler is None:
            raise TypeError(f"{type(screen).__name__} does not take a menu choice")
        if choice is None:
            return Transition(screen, NO_SELECTION)

        transition = self._guarded(screen, lambda: handler(screen, choice))
        return transition or Transition(screen, NOT_IN_MENU)

    def submit_text(self, screen: TextEntryScreen, values: dict[str, str]) -> Transition:
        """Apply the answers of a text entry screen, keyed by prompt name."""
        handler = self._text_handlers.get(type(screen))
        if handler is None:
            raise TypeError(f"{type(screen).__name__} does not take text")
        missing = [p.name for p in screen.text_prompts() if p.name not in values]
        if missing:
            raise ValueError(f"Missing text for: {', '.join(missing)}")

        return self._guarded(screen, lambda: handler(screen, values))

    def _guarded(self, screen: Optional[Screen], step) -> Optional[Transition]:
        try:
            return step()
        except ParseError as e:
            if self._audit_logger:
                self._audit_logger.log_store_parse_failed(str(e.path), e.reason)
            return Transition(screen, f"Stored data could not be read: {e}")
        except StorageError as e:
            return Transition(screen, f"Changes could not be saved: {e}")
        except TimeAccountingError as e:
            return Transition(screen, str(e))
        except ValidationError as e:
            return Transition(screen, _describe_validation_error(e))

    # =========================================================================
    # SCREEN FACTORIES (snapshot lists on entry)
    # =========================================================================

    def user_select(self, user: Optional[User]) -> UserSelect:
        return UserSelect(user=user, users=self._users.load_all())

    def project_list(self, user: User) -> ProjectList:
        return ProjectList(user=user, projects=self._projects.load_all())

    def clock_in_selection(self, user: User) -> ClockInSelection:
        return ClockInSelection(user=user, projects=self._projects.load_all())

    def time_card_history(self, user: User) -> TimeCardHistory:
        cards = user_time_cards(self._time_cards.load_all(), user.id, limit=HISTORY_LENGTH)
        names = {project.id: project.name for project in self._projects.load_all()}
        return TimeCardHistory(user=user, time_cards=cards, project_names=names)

    def time_reports(self, user: User) -> TimeReports:
        report = build_time_report(self._projects.load_all(), self._time_cards.load_all())
        return TimeReports(user=user, report=report)

    # =========================================================================
    # MENU HANDLERS (return None for a number that is not on the menu)
    # =========================================================================

    def _on_back_only(self, back: Callable[[Screen], Screen]):
        def handler(screen: Screen, choice: int) -> Optional[Transition]:
            if choice == 0:
                return Transition(back(screen))
            return None
        return handler

    def _on_user_select(self, screen: UserSelect, choice: int) -> Optional[Transition]:
        if choice == 0:
            # Cancel back to the main menu, or exit when nobody is bound
            return Transition(MainMenu(user=screen.user) if screen.user else None)
        if choice == 1:
            return Transition(CreateUserEntry(user=screen.user))
        if 2 <= choice <= len(screen.users) + 1:
            return Transition(MainMenu(user=screen.users[choice - 2]))
        return None

    def _on_create_user(self, screen: CreateUser, choice: int) -> Optional[Transition]:
        if choice == 1:
            user = User.model_validate(
                {
                    "id": self._users.next_id(),
                    "first_name": screen.first_name,
                    "last_name": screen.last_name,
                },
                context=entered("first_name", "last_name"),
            )
            self._users.append(user)
            if self._audit_logger:
                self._audit_logger.log_user_created(user.id, user.full_name)
            return Transition(MainMenu(user=user), f"User {user.full_name} created.")
        if choice == 2:
            return Transition(CreateUserEntry(user=screen.user))
        if choice == 0:
            return Transition(self.user_select(screen.user))
        return None

    def _on_main_menu(self, screen: MainMenu, choice: int) -> Optional[Transition]:
        user = screen.user
        if choice == 1:
            return Transition(ClockInOut(user=user))
        if choice == 2:
            return Transition(self.time_reports(user))
        if choice == 3:
            return Transition(self.project_list(user))
        if choice == 4:
            return Transition(UserSettings(user=user))
        if choice == 5:
            return Transition(self.user_select(user))
        if choice == 0:
            return Transition(None)
        return None

    def _on_clock_in_out(self, screen: ClockInOut, choice: int) -> Optional[Transition]:
        user = screen.user
        if choice == 0:
            return Transition(MainMenu(user=user))

        if user.is_clocked_in:
            if choice == 1:
                result = self._accountant.clock_out(user)
                return Transition(
                    MainMenu(user=result.user),
                    f"Clocked out. {result.credited_minutes} minutes recorded.",
                )
            if choice == 2:
                return Transition(self.clock_in_selection(user))
            if choice == 3:
                return Transition(self.time_card_history(user))
        else:
            if choice == 1:
                return Transition(self.clock_in_selection(user))
            if choice == 2:
                return Transition(self.time_card_history(user))
        return None

    def _on_clock_in_selection(self, screen: ClockInSelection, choice: int) -> Optional[Transition]:
        if choice == 0:
            return Transition(ClockInOut(user=screen.user))
        if 1 <= choice <= len(screen.projects):
            return Transition(SessionDescriptionEntry(
                user=screen.user,
                project=screen.projects[choice - 1],
            ))
        return None

    def _on_project_list(self, screen: ProjectList, choice: int) -> Optional[Transition]:
        if choice == 0:
            return Transition(MainMenu(user=screen.user))
        if choice == 1:
            return Transition(CreateProjectEntry(user=screen.user))
        if 2 <= choice <= len(screen.projects) + 1:
            return Transition(ProjectDetails(
                user=screen.user,
                project=screen.projects[choice - 2],
            ))
        return None

    def _on_create_project(self, screen: CreateProject, choice: int) -> Optional[Transition]:
        if choice == 1:
            project = Project.model_validate(
                {
                    "id": self._projects.next_id(),
                    "name": screen.name,
                    "description": screen.description,
                },
                context=entered("name", "description"),
            )
            self._projects.append(project)
            if self._audit_logger:
                self._audit_logger.log_project_created(project.id, project.name)
            return Transition(self.project_list(screen.user), f"Project {project.name} created.")
        if choice == 2:
            return Transition(CreateProjectEntry(user=screen.user))
        if choice == 0:
            return Transition(self.project_list(screen.user))
        return None

    def _on_project_details(self, screen: ProjectDetails, choice: int) -> Optional[Transition]:
        if choice == 1:
            return Transition(ModifyProject(user=screen.user, project=screen.project))
        if choice == 2:
            return Transition(ConfirmDelete(user=screen.user, project=screen.project))
        if choice == 0:
            return Transition(self.project_list(screen.user))
        return None

    def _on_modify_project(self, screen: ModifyProject, choice: int) -> Optional[Transition]:
        if choice == 1:
            return Transition(EditProjectField(user=screen.user, project=screen.project, field="name"))
        if choice == 2:
            return Transition(EditProjectField(
                user=screen.user, project=screen.project, field="description"
            ))
        if choice == 0:
            return Transition(ProjectDetails(user=screen.user, project=screen.project))
        return None

    def _on_confirm_delete(self, screen: ConfirmDelete, choice: int) -> Optional[Transition]:
        project = screen.project
        if choice == 1:
            self._projects.delete_by_id(project.id)
            # Time cards that reference the project are left as they are
            orphaned = sum(
                1 for card in self._time_cards.load_all() if card.project_id == project.id
            )
            if self._audit_logger:
                self._audit_logger.log_project_deleted(project.id, project.name, orphaned)
            return Transition(self.project_list(screen.user), f"Project {project.name} deleted.")
        if choice == 0:
            return Transition(ProjectDetails(user=screen.user, project=project))
        return None

    def _on_user_settings(self, screen: UserSettings, choice: int) -> Optional[Transition]:
        if choice == 1:
            return Transition(EditUserField(user=screen.user, field="first_name"))
        if choice == 2:
            return Transition(EditUserField(user=screen.user, field="last_name"))
        if choice == 0:
            return Transition(MainMenu(user=screen.user))
        return None

    # =========================================================================
    # TEXT HANDLERS
    # =========================================================================

    def _on_user_entered(self, screen: CreateUserEntry, values: dict[str, str]) -> Transition:
        return Transition(CreateUser(
            user=screen.user,
            first_name=values["first_name"],
            last_name=values["last_name"],
        ))

    def _on_project_entered(self, screen: CreateProjectEntry, values: dict[str, str]) -> Transition:
        return Transition(CreateProject(
            user=screen.user,
            name=values["name"],
            description=values["description"],
        ))

    def _on_session_description(
        self,
        screen: SessionDescriptionEntry,
        values: dict[str, str],
    ) -> Transition:
        result = self._accountant.clock_in(screen.user, screen.project, values["description"])
        message = f"Clocked in to {screen.project.name}."
        if result.closed_time_card is not None:
            message = (
                f"Clocked out of the previous project ({result.credited_minutes} minutes). "
                + message
            )
        return Transition(MainMenu(user=result.user), message)

    def _on_project_field(self, screen: EditProjectField, values: dict[str, str]) -> Transition:
        value = values["value"]
        if not value.strip():
            return Transition(ProjectDetails(user=screen.user, project=screen.project), "Edit cancelled.")

        stored = self._projects.get_by_id(screen.project.id)
        if stored is None:
            return Transition(self.project_list(screen.user), "That project no longer exists.")

        # Only the edited field changes; total_time stays as stored
        updated = Project.model_validate(
            {**stored.model_dump(), screen.field: value},
            context=entered(screen.field),
        )
        self._projects.upsert_by_id(updated)
        if self._audit_logger:
            self._audit_logger.log_project_updated(updated.id, screen.field)
        return Transition(ProjectDetails(user=screen.user, project=updated))

    def _on_user_field(self, screen: EditUserField, values: dict[str, str]) -> Transition:
        value = values["value"]
        if not value.strip():
            return Transition(UserSettings(user=screen.user), "Edit cancelled.")

        stored = self._users.get_by_id(screen.user.id) or screen.user
        updated = User.model_validate(
            {**stored.model_dump(), screen.field: value},
            context=entered(screen.field),
        )
        self._users.upsert_by_id(updated)
        if self._audit_logger:
            self._audit_logger.log_user_updated(updated.id, screen.field)
        return Transition(UserSettings(user=updated))
