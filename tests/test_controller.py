"""Tests for the key-driven state machine behind the interactive screen."""

import pytest

from factories import ACCOUNT, at, make_entry, make_project
from timeguru.errors import AuthError
from timeguru.query.sort import SortMode
from timeguru.tui import keys
from timeguru.tui.controller import Controller
from timeguru.tui.state import Overlay, ViewMode


class FakeService:
    """Applies mutations straight to the store, optionally failing some."""

    def __init__(self, store):
        self.store = store
        self.calls = []
        self.failing_entries = set()
        self.error = None

    def _check(self):
        if self.error is not None:
            raise self.error

    def pull(self, start, end):
        self.calls.append(("pull",))
        self._check()
        return {"entries": 0, "projects": 0, "synced_at": at(10)}

    def assign_project(self, entry_id, project_id):
        self.calls.append(("assign_project", entry_id, project_id))
        self._check()
        self.store.update_entry_project(ACCOUNT, entry_id, project_id)
        return self.store.get_entry(ACCOUNT, entry_id)

    def assign_project_to_entries(self, entry_ids, project_id):
        self.calls.append(("assign_project_to_entries", list(entry_ids), project_id))
        result = {"succeeded": [], "failed": []}
        for entry_id in entry_ids:
            if entry_id in self.failing_entries:
                result["failed"].append(entry_id)
            else:
                self.store.update_entry_project(ACCOUNT, entry_id, project_id)
                result["succeeded"].append(entry_id)
        return result

    def rename_entry(self, entry_id, description):
        self.calls.append(("rename_entry", entry_id, description))
        self._check()
        self.store.update_entry_description(ACCOUNT, entry_id, description)
        return self.store.get_entry(ACCOUNT, entry_id)

    def start_tracking(self, description=None):
        self.calls.append(("start_tracking", description))
        self._check()
        entry = make_entry(99, start=at(9), duration=None, description=description)
        self.store.upsert_entries(ACCOUNT, [entry])
        return entry

    def stop_tracking(self):
        self.calls.append(("stop_tracking",))
        running = self.store.get_running_entry(ACCOUNT)
        if running is None:
            return None
        stopped = make_entry(
            running["remote_id"], start=running["start"], duration=300,
            description=running["description"],
        )
        self.store.upsert_entries(ACCOUNT, [stopped])
        return stopped


@pytest.fixture
def seeded(store):
    store.upsert_projects(
        ACCOUNT, [make_project(10, "Alpha"), make_project(11, "Beta")]
    )
    store.upsert_entries(
        ACCOUNT,
        [
            make_entry(1, description="Standup", project_id=10, start=at(0), duration=600,
                       billable=True),
            make_entry(2, description="Review", start=at(1), duration=1800),
            make_entry(3, description="Standup", project_id=10, start=at(days=1),
                       duration=600),
        ],
    )
    return store


@pytest.fixture
def service(seeded):
    return FakeService(seeded)


@pytest.fixture
def controller(seeded, service):
    return Controller(
        seeded, ACCOUNT, at(-1), at(days=2), service=service, round_minutes=15,
        now=lambda: at(10), tz="UTC",
    )


def press(controller, *key_names):
    for key in key_names:
        controller.handle_key(key)


def entry_ids(controller):
    return [entry["remote_id"] for entry in controller.entries]


def test_initial_view_is_flat_and_longest_first(controller):
    assert controller.toggles.view_mode == ViewMode.FLAT
    assert entry_ids(controller) == [2, 1, 3]
    assert controller.selected_entry()["remote_id"] == 2


def test_navigation_wraps_around(controller):
    press(controller, "k")
    assert controller.selected == 2

    press(controller, "j")
    assert controller.selected == 0

    press(controller, keys.END)
    assert controller.selected == 2
    press(controller, keys.PAGE_UP)
    assert controller.selected == 0


def test_grouping_toggles(controller):
    press(controller, "g")
    assert controller.toggles.view_mode == ViewMode.GROUPED
    assert [g["description"] for g in controller.groups] == ["Review", "Standup"]
    assert controller.row_count == 2

    press(controller, "d")
    assert controller.toggles.view_mode == ViewMode.GROUPED_BY_DAY
    assert controller.row_count == 3

    press(controller, "d")
    assert controller.toggles.view_mode == ViewMode.GROUPED

    press(controller, "g")
    assert controller.toggles.view_mode == ViewMode.FLAT


def test_selection_is_clamped_when_rows_shrink(controller):
    press(controller, keys.END)
    press(controller, "g")

    assert controller.selected == 1


def test_sort_cycles(controller):
    press(controller, "s")
    assert controller.toggles.sort_mode == SortMode.DATE_ASC
    assert entry_ids(controller) == [1, 2, 3]

    press(controller, "s")
    assert entry_ids(controller) == [3, 2, 1]

    press(controller, "s")
    assert controller.toggles.sort_mode == SortMode.DEFAULT


def test_rounding_toggle(controller):
    press(controller, "r")

    assert controller.toggles.rounding is False


def test_assign_project_through_search(controller, service):
    press(controller, "p")
    assert controller.overlay == Overlay.PROJECT_SELECTOR

    press(controller, "/", "b", "e")
    assert [p["name"] for p in controller.filtered_projects()] == ["Beta"]

    press(controller, keys.ENTER)

    assert controller.overlay == Overlay.NONE
    assert service.calls == [("assign_project", 2, 11)]
    assert controller.store.get_entry(ACCOUNT, 2)["project_id"] == 11
    assert controller.project_query is None


def test_search_backspace_and_escape(controller, service):
    press(controller, "p", "/", "x", keys.BACKSPACE)
    assert controller.project_query is None

    press(controller, keys.ESCAPE)
    assert controller.overlay == Overlay.NONE
    assert service.calls == []


def test_group_assignment_partial_failure_shows_error(controller, service):
    service.failing_entries.add(3)

    press(controller, "g", "j", "p", keys.ENTER)

    assert service.calls == [("assign_project_to_entries", [1, 3], 10)]
    assert controller.overlay == Overlay.ERROR_POPUP
    assert "3" in controller.error_message
    assert controller.store.get_entry(ACCOUNT, 1)["project_id"] == 10

    press(controller, keys.ENTER)
    assert controller.overlay == Overlay.NONE
    assert controller.error_message is None


def test_rename_in_flat_view(controller, service):
    press(controller, "e")
    assert controller.overlay == Overlay.TEXT_EDIT
    assert controller.edit_buffer == "Review"

    press(controller, keys.BACKSPACE, "s", "!", keys.ENTER)

    assert service.calls == [("rename_entry", 2, "Revies!")]
    assert controller.overlay == Overlay.NONE
    assert controller.store.get_entry(ACCOUNT, 2)["description"] == "Revies!"


def test_rename_cancelled(controller, service):
    press(controller, "e", "x", keys.ESCAPE)

    assert service.calls == []
    assert controller.overlay == Overlay.NONE


def test_rename_needs_flat_view(controller):
    press(controller, "g", "e")

    assert controller.overlay == Overlay.NONE
    assert "flat view" in controller.status_message


def test_start_and_stop_tracking(controller, service):
    press(controller, "t")

    assert service.calls == [("start_tracking", "Review")]
    assert controller.running_entry()["remote_id"] == 99

    press(controller, "t")

    assert service.calls[-1] == ("stop_tracking",)
    assert controller.running_entry() is None


def test_failed_refresh_keeps_browsing_state(controller, service):
    press(controller, "g", "j")
    service.error = AuthError("Authentication failed. Please check your API token.", 401)

    press(controller, "R")

    assert controller.overlay == Overlay.ERROR_POPUP
    assert "Authentication failed" in controller.error_message
    assert controller.toggles.view_mode == ViewMode.GROUPED
    assert controller.selected == 1


def test_keys_are_ignored_under_error_popup(controller):
    controller.show_error("boom")

    press(controller, "g", "q")

    assert controller.toggles.view_mode == ViewMode.FLAT
    assert controller.running


def test_filter_panel(controller):
    press(controller, "f")
    assert controller.overlay == Overlay.FILTER_PANEL

    press(controller, "b")
    assert entry_ids(controller) == [1]
    assert controller.filter_active

    press(controller, "c")
    assert len(controller.entries) == 3
    assert not controller.filter_active

    press(controller, keys.ESCAPE)
    assert controller.overlay == Overlay.NONE


def test_offline_mutation_shows_error(seeded):
    controller = Controller(
        seeded, ACCOUNT, at(-1), at(days=2), now=lambda: at(10), tz="UTC"
    )

    press(controller, "t")

    assert controller.offline
    assert controller.overlay == Overlay.ERROR_POPUP
    assert "Offline" in controller.error_message


def test_project_selector_needs_projects(store):
    store.upsert_entries(ACCOUNT, [make_entry(1)])
    controller = Controller(store, ACCOUNT, at(-1), at(5), now=lambda: at(10), tz="UTC")

    press(controller, "p")

    assert controller.overlay == Overlay.NONE
    assert controller.status_message is not None


@pytest.mark.parametrize("key", ["q", keys.ESCAPE, keys.CTRL_C])
def test_quit(controller, key):
    press(controller, key)

    assert not controller.running


def test_sort_toggle_keeps_member_order_in_groups(store):
    controller = Controller(store, ACCOUNT, at(-1), at(5), now=lambda: at(10), tz="UTC")
    controller.all_entries = [
        make_entry(1, description="Standup", start=at(1), duration=600),
        make_entry(2, description="Standup", start=at(0), duration=1800),
    ]

    press(controller, "g")
    assert [e["remote_id"] for e in controller.groups[0]["entries"]] == [1, 2]

    for _ in range(3):
        press(controller, "s")
        assert [e["remote_id"] for e in controller.groups[0]["entries"]] == [1, 2]
