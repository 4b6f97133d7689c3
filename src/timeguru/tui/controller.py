# SPDX-License-Identifier: MIT

import logging
from typing import Callable, Optional

import pendulum

from timeguru.errors import ConfigurationError, TimeGuruError
from timeguru.model.entry import Entry
from timeguru.model.filter import EntryFilter, is_filter_active
from timeguru.model.grouped_entry import GroupedEntry
from timeguru.model.project import Project
from timeguru.query.filter import apply_filter
from timeguru.query.sort import next_sort_mode, sort_entries, sort_groups
from timeguru.repository.store import LocalStore
from timeguru.service.grouping import GroupMode, group_entries
from timeguru.service.sync import SyncService
from timeguru.template.filter import get_filter_template
from timeguru.time import now_utc
from timeguru.tui import keys
from timeguru.tui.state import DisplayToggles, Overlay, ViewMode

logger = logging.getLogger(__name__)

PAGE_SIZE = 10


class _PartialFailure(TimeGuruError):
    """Some members of a group could not be updated."""

    pass


def _wrap(index: int, delta: int, count: int) -> int:
    if count == 0:
        return 0
    return (index + delta) % count


def _clamp(index: int, count: int) -> int:
    if count == 0:
        return 0
    return max(0, min(index, count - 1))


def _navigate(key: str, index: int, count: int) -> Optional[int]:
    """New index for a navigation key, or None when the key does not navigate."""
    match key:
        case "j" | keys.DOWN:
            return _wrap(index, 1, count)
        case "k" | keys.UP:
            return _wrap(index, -1, count)
        case keys.PAGE_DOWN:
            return _clamp(index + PAGE_SIZE, count)
        case keys.PAGE_UP:
            return _clamp(index - PAGE_SIZE, count)
        case keys.HOME:
            return 0
        case keys.END:
            return _clamp(count - 1, count)
    return None


class Controller:
    """
    Key-driven state machine behind the interactive screen.

    The controller never draws anything: ``handle_key`` mutates its state and
    the renderer reads it back. Remote work goes through the blocking
    ``SyncService``; any application error lands in the error popup and the
    browsing state underneath is left as it was.
    """

    def __init__(
        self,
        store: LocalStore,
        account_id: int,
        start: pendulum.DateTime,
        end: pendulum.DateTime,
        service: Optional[SyncService] = None,
        round_minutes: Optional[int] = None,
        now: Callable[[], pendulum.DateTime] = now_utc,
        tz: str = "local",
    ) -> None:
        self.store = store
        self.account_id = account_id
        self.start = start
        self.end = end
        self.service = service
        self.round_minutes = round_minutes
        self.now = now
        self.tz = tz

        self.toggles = DisplayToggles()
        self.overlay = Overlay.NONE
        self.entry_filter: EntryFilter = get_filter_template()
        self.running = True

        self.all_entries: list[Entry] = []
        self.projects: list[Project] = []
        self.entries: list[Entry] = []
        self.groups: list[GroupedEntry] = []
        self.selected = 0

        self.project_query: Optional[str] = None
        self.project_selected = 0
        self.edit_buffer = ""
        self.error_message: Optional[str] = None
        self.status_message: Optional[str] = None

        self.reload()

    # Derived state

    @property
    def offline(self) -> bool:
        return self.service is None

    @property
    def row_count(self) -> int:
        return len(self.groups) if self.toggles.grouped else len(self.entries)

    def selected_entry(self) -> Optional[Entry]:
        if self.toggles.grouped or not self.entries:
            return None
        return self.entries[self.selected]

    def selected_group(self) -> Optional[GroupedEntry]:
        if not self.toggles.grouped or not self.groups:
            return None
        return self.groups[self.selected]

    def selected_entries(self) -> list[Entry]:
        """Entries behind the selected row: one in flat view, all members of a group."""
        group = self.selected_group()
        if group is not None:
            return group["entries"]
        entry = self.selected_entry()
        return [entry] if entry is not None else []

    def filtered_projects(self) -> list[Project]:
        if not self.project_query:
            return self.projects
        query = self.project_query.casefold()
        return [
            project for project in self.projects if query in project["name"].casefold()
        ]

    def running_entry(self) -> Optional[Entry]:
        for entry in self.all_entries:
            if entry["duration"] is None:
                return entry
        return None

    # Loading

    def reload(self) -> None:
        """Re-read the displayed range from the store and recompute the rows."""
        self.all_entries = self.store.query_entries(self.account_id, self.start, self.end)
        self.projects = self.store.get_projects(self.account_id)
        self.recompute()

    def recompute(self) -> None:
        now = self.now()
        entries = apply_filter(self.all_entries, self.entry_filter, self.projects)
        self.entries = sort_entries(entries, self.toggles.sort_mode, now)
        # Groups are built from query order so members never move on a sort toggle
        match self.toggles.view_mode:
            case ViewMode.GROUPED:
                groups = group_entries(entries, GroupMode.FLAT, now, self.tz)
            case ViewMode.GROUPED_BY_DAY:
                groups = group_entries(entries, GroupMode.DAY, now, self.tz)
            case _:
                groups = []
        self.groups = sort_groups(groups, self.toggles.sort_mode)
        self.selected = _clamp(self.selected, self.row_count)

    # Key handling

    def handle_key(self, key: str) -> None:
        match self.overlay:
            case Overlay.ERROR_POPUP:
                self.__handle_error_popup_key(key)
            case Overlay.PROJECT_SELECTOR:
                self.__handle_project_selector_key(key)
            case Overlay.TEXT_EDIT:
                self.__handle_text_edit_key(key)
            case Overlay.FILTER_PANEL:
                self.__handle_filter_panel_key(key)
            case _:
                self.__handle_browse_key(key)

    def __handle_browse_key(self, key: str) -> None:
        index = _navigate(key, self.selected, self.row_count)
        if index is not None:
            self.selected = index
            return

        match key:
            case "q" | keys.ESCAPE | keys.CTRL_C:
                self.running = False
            case "g":
                self.toggles.view_mode = (
                    ViewMode.GROUPED
                    if self.toggles.view_mode == ViewMode.FLAT
                    else ViewMode.FLAT
                )
                self.recompute()
            case "d":
                self.toggles.view_mode = (
                    ViewMode.GROUPED
                    if self.toggles.view_mode == ViewMode.GROUPED_BY_DAY
                    else ViewMode.GROUPED_BY_DAY
                )
                self.recompute()
            case "s":
                self.toggles.sort_mode = next_sort_mode(self.toggles.sort_mode)
                self.recompute()
            case "r":
                self.toggles.rounding = not self.toggles.rounding
            case "f":
                self.overlay = Overlay.FILTER_PANEL
            case "p":
                self.__open_project_selector()
            case "e":
                self.__open_text_edit()
            case "t":
                self.__toggle_tracking()
            case "R":
                self.__refresh()

    def __handle_error_popup_key(self, key: str) -> None:
        if key in (keys.ENTER, keys.ESCAPE):
            self.error_message = None
            self.overlay = Overlay.NONE

    def __handle_filter_panel_key(self, key: str) -> None:
        match key:
            case keys.ESCAPE | keys.ENTER | "f":
                self.overlay = Overlay.NONE
            case "b":
                self.entry_filter["billable"] = (
                    None if self.entry_filter["billable"] else True
                )
                self.recompute()
            case "c":
                self.entry_filter = get_filter_template()
                self.recompute()

    def __open_project_selector(self) -> None:
        if not self.selected_entries():
            self.status_message = "Nothing selected"
            return
        if not self.projects:
            self.status_message = "No projects cached, refresh with R"
            return
        self.project_query = None
        self.project_selected = 0
        self.overlay = Overlay.PROJECT_SELECTOR

    def __handle_project_selector_key(self, key: str) -> None:
        if key == keys.ESCAPE:
            self.project_query = None
            self.overlay = Overlay.NONE
            return
        if key == keys.ENTER:
            self.__assign_selected_project()
            return

        # While searching, printable keys refine the query instead of navigating
        if self.project_query is not None:
            if keys.is_printable(key):
                self.project_query += key
                self.project_selected = 0
                return
            if key == keys.BACKSPACE:
                self.project_query = self.project_query[:-1] or None
                self.project_selected = 0
                return
        elif key == "/":
            self.project_query = ""
            self.project_selected = 0
            return
        elif key == "p":
            self.overlay = Overlay.NONE
            return

        index = _navigate(key, self.project_selected, len(self.filtered_projects()))
        if index is not None:
            self.project_selected = index

    def __assign_selected_project(self) -> None:
        projects = self.filtered_projects()
        if not projects:
            return
        project = projects[_clamp(self.project_selected, len(projects))]
        entry_ids = [entry["remote_id"] for entry in self.selected_entries()]
        self.project_query = None
        self.overlay = Overlay.NONE

        def assign() -> None:
            service = self.__require_service()
            if len(entry_ids) == 1:
                service.assign_project(entry_ids[0], project["remote_id"])
                self.status_message = f"Assigned {project['name']}"
                return
            result = service.assign_project_to_entries(entry_ids, project["remote_id"])
            self.status_message = (
                f"Assigned {project['name']} to "
                f"{len(result['succeeded'])} of {len(entry_ids)} entries"
            )
            if result["failed"]:
                failed = ", ".join(str(entry_id) for entry_id in result["failed"])
                raise _PartialFailure(
                    f"Could not assign {project['name']} to entries {failed}"
                )

        self.__run_mutation(assign)

    def __open_text_edit(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            self.status_message = (
                "Switch to the flat view to rename an entry"
                if self.toggles.grouped
                else "Nothing selected"
            )
            return
        self.edit_buffer = entry["description"] or ""
        self.overlay = Overlay.TEXT_EDIT

    def __handle_text_edit_key(self, key: str) -> None:
        if key == keys.ESCAPE:
            self.edit_buffer = ""
            self.overlay = Overlay.NONE
        elif key == keys.ENTER:
            entry = self.selected_entry()
            description = self.edit_buffer.strip() or None
            self.edit_buffer = ""
            self.overlay = Overlay.NONE
            if entry is None:
                return

            def rename() -> None:
                self.__require_service().rename_entry(entry["remote_id"], description)
                self.status_message = "Description updated"

            self.__run_mutation(rename)
        elif key == keys.BACKSPACE:
            self.edit_buffer = self.edit_buffer[:-1]
        elif keys.is_printable(key):
            self.edit_buffer += key

    def __toggle_tracking(self) -> None:
        running = self.running_entry()

        def toggle() -> None:
            service = self.__require_service()
            if running is not None:
                stopped = service.stop_tracking()
                self.status_message = (
                    "Stopped tracking" if stopped else "Nothing was running"
                )
                return
            selected = self.selected_entries()
            description = selected[0]["description"] if selected else None
            service.start_tracking(description)
            self.status_message = f"Started {description or 'tracking'}"

        self.__run_mutation(toggle)

    def __refresh(self) -> None:
        def refresh() -> None:
            result = self.__require_service().pull(self.start, self.end)
            self.status_message = (
                f"Pulled {result['entries']} entries and {result['projects']} projects"
            )

        self.__run_mutation(refresh)

    def __require_service(self) -> SyncService:
        if self.service is None:
            raise ConfigurationError("Offline: configure an API token to make changes")
        return self.service

    def __run_mutation(self, operation: Callable[[], None]) -> None:
        try:
            operation()
        except _PartialFailure as e:
            self.reload()
            self.show_error(str(e))
        except TimeGuruError as e:
            logger.error("operation failed: %s", e)
            self.show_error(str(e))
        else:
            self.reload()

    def show_error(self, message: str) -> None:
        self.error_message = message
        self.overlay = Overlay.ERROR_POPUP

    @property
    def filter_active(self) -> bool:
        return is_filter_active(self.entry_filter)

