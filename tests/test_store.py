"""Tests for the SQLite local store."""

import pytest

from factories import ACCOUNT, at, make_entry, make_project
from timeguru.errors import LocalStoreError, NotFound
from timeguru.model.sync_metadata import ResourceKind, WipeScope
from timeguru.repository.store import LocalStore
from timeguru.template.filter import get_filter_template

OTHER_ACCOUNT = 2002


def ids(entries):
    return sorted(entry["remote_id"] for entry in entries)


def test_upsert_is_idempotent(store):
    entries = [make_entry(1), make_entry(2, start=at(1))]
    store.upsert_entries(ACCOUNT, entries)
    store.upsert_entries(ACCOUNT, entries)

    result = store.query_entries(ACCOUNT, at(days=-1), at(days=1))

    assert ids(result) == [1, 2]


def test_upsert_replaces_fields_and_tags(store):
    store.upsert_entries(ACCOUNT, [make_entry(1, description="Old", tags=["a", "b"])])
    store.upsert_entries(
        ACCOUNT, [make_entry(1, description="New", tags=["c", "c", "a"])]
    )

    entry = store.get_entry(ACCOUNT, 1)

    assert entry["description"] == "New"
    assert entry["tags"] == ["c", "a"]


def test_round_trip_keeps_values(store):
    original = make_entry(
        5, start=at(2), duration=2700, project_id=9, tags=["x"], billable=True
    )
    store.upsert_entries(ACCOUNT, [original])

    entry = store.get_entry(ACCOUNT, 5)

    assert entry["start"] == original["start"]
    assert entry["stop"] == original["stop"]
    assert entry["duration"] == 2700
    assert entry["project_id"] == 9
    assert entry["billable"] is True
    assert entry["account_id"] == ACCOUNT


def test_entries_are_scoped_per_account(store):
    store.upsert_entries(ACCOUNT, [make_entry(1)])
    store.upsert_entries(OTHER_ACCOUNT, [make_entry(1, account_id=OTHER_ACCOUNT)])
    store.upsert_entries(OTHER_ACCOUNT, [make_entry(2, account_id=OTHER_ACCOUNT)])

    assert ids(store.query_entries(ACCOUNT, at(days=-1), at(days=1))) == [1]
    assert ids(store.query_entries(OTHER_ACCOUNT, at(days=-1), at(days=1))) == [1, 2]


def test_query_uses_half_open_overlap(store):
    store.upsert_entries(
        ACCOUNT,
        [
            # ends exactly where the range starts
            make_entry(1, start=at(-1), duration=3600),
            # starts before the range and ends inside it
            make_entry(2, start=at(-1), duration=5400),
            # starts exactly at the range end
            make_entry(3, start=at(4), duration=600),
            # inside
            make_entry(4, start=at(1), duration=600),
        ],
    )

    result = store.query_entries(ACCOUNT, at(0), at(4))

    assert ids(result) == [2, 4]


def test_running_entry_overlaps_when_started_before_end(store):
    store.upsert_entries(ACCOUNT, [make_entry(1, start=at(-3), duration=None)])

    assert ids(store.query_entries(ACCOUNT, at(0), at(4))) == [1]
    assert store.query_entries(ACCOUNT, at(-6), at(-3)) == []


def test_query_filters(store):
    store.upsert_projects(
        ACCOUNT,
        [make_project(10, "Alpha", client_id=5), make_project(11, "Beta", client_id=6)],
    )
    store.upsert_entries(
        ACCOUNT,
        [
            make_entry(1, project_id=10, tags=["Meeting"], billable=True),
            make_entry(2, start=at(1), project_id=11, tags=["deep"]),
            make_entry(3, start=at(2), project_id=None, billable=True),
        ],
    )

    entry_filter = get_filter_template()
    entry_filter["tag"] = "meeting"
    assert ids(store.query_entries(ACCOUNT, at(-1), at(5), entry_filter)) == [1]

    entry_filter = get_filter_template()
    entry_filter["client_id"] = 6
    assert ids(store.query_entries(ACCOUNT, at(-1), at(5), entry_filter)) == [2]

    entry_filter = get_filter_template()
    entry_filter["billable"] = True
    assert ids(store.query_entries(ACCOUNT, at(-1), at(5), entry_filter)) == [1, 3]

    entry_filter = get_filter_template()
    entry_filter["project_id"] = 11
    assert ids(store.query_entries(ACCOUNT, at(-1), at(5), entry_filter)) == [2]


def test_update_entry_project_and_description(store):
    store.upsert_entries(ACCOUNT, [make_entry(1)])

    store.update_entry_project(ACCOUNT, 1, 42)
    store.update_entry_description(ACCOUNT, 1, "Renamed")

    entry = store.get_entry(ACCOUNT, 1)
    assert entry["project_id"] == 42
    assert entry["description"] == "Renamed"


def test_updates_of_missing_entries_raise_not_found(store):
    store.upsert_entries(OTHER_ACCOUNT, [make_entry(1, account_id=OTHER_ACCOUNT)])

    with pytest.raises(NotFound):
        store.update_entry_project(ACCOUNT, 1, 42)
    with pytest.raises(NotFound):
        store.update_entry_description(ACCOUNT, 99, "x")
    with pytest.raises(NotFound):
        store.get_entry(ACCOUNT, 1)


def test_new_running_entry_closes_previous_one(store):
    store.upsert_entries(ACCOUNT, [make_entry(1, start=at(0), duration=None)])
    store.upsert_entries(ACCOUNT, [make_entry(2, start=at(2), duration=None)])

    previous = store.get_entry(ACCOUNT, 1)
    running = store.get_running_entry(ACCOUNT)

    assert previous["duration"] == 7200
    assert previous["stop"] == at(2)
    assert running is not None
    assert running["remote_id"] == 2


def test_batch_with_two_running_entries_is_rejected(store):
    with pytest.raises(LocalStoreError):
        store.upsert_entries(
            ACCOUNT,
            [make_entry(1, duration=None), make_entry(2, start=at(1), duration=None)],
        )
    assert store.query_entries(ACCOUNT, at(-1), at(5)) == []


def test_no_running_entry(store):
    store.upsert_entries(ACCOUNT, [make_entry(1)])

    assert store.get_running_entry(ACCOUNT) is None


def test_record_and_read_sync_metadata(store):
    assert store.last_sync(ACCOUNT, ResourceKind.ENTRIES) is None

    store.record_sync(ACCOUNT, ResourceKind.ENTRIES, at(0), 3)
    store.record_sync(ACCOUNT, ResourceKind.ENTRIES, at(1), 5)

    assert store.last_sync(ACCOUNT, ResourceKind.ENTRIES) == at(1)
    assert store.last_sync(ACCOUNT, ResourceKind.PROJECTS) is None
    metadata = store.get_sync_metadata(ACCOUNT)
    assert len(metadata) == 1
    assert metadata[0]["item_count"] == 5


def test_merge_entries_records_sync(store):
    count = store.merge_entries(ACCOUNT, [make_entry(1), make_entry(2)], at(3))

    assert count == 2
    assert store.last_sync(ACCOUNT, ResourceKind.ENTRIES) == at(3)


def test_failed_merge_leaves_rows_and_sync_time_untouched(store):
    store.merge_entries(ACCOUNT, [make_entry(1, description="Kept")], at(0))

    broken = make_entry(3, workspace_id=None)
    with pytest.raises(LocalStoreError):
        store.merge_entries(
            ACCOUNT, [make_entry(1, description="Changed"), broken], at(5)
        )

    assert store.get_entry(ACCOUNT, 1)["description"] == "Kept"
    assert ids(store.query_entries(ACCOUNT, at(-1), at(5))) == [1]
    assert store.last_sync(ACCOUNT, ResourceKind.ENTRIES) == at(0)


def test_projects_are_ordered_by_name(store):
    store.merge_projects(
        ACCOUNT, [make_project(2, "Zeta"), make_project(1, "Alpha")], at(0)
    )

    assert [project["name"] for project in store.get_projects(ACCOUNT)] == [
        "Alpha",
        "Zeta",
    ]
    assert store.last_sync(ACCOUNT, ResourceKind.PROJECTS) == at(0)


def test_wipe_entries_keeps_projects(store):
    store.merge_entries(ACCOUNT, [make_entry(1, tags=["a"])], at(0))
    store.merge_projects(ACCOUNT, [make_project(1, "Alpha")], at(0))

    store.wipe(WipeScope.ENTRIES)

    assert store.query_entries(ACCOUNT, at(-1), at(5)) == []
    assert store.last_sync(ACCOUNT, ResourceKind.ENTRIES) is None
    assert len(store.get_projects(ACCOUNT)) == 1
    assert store.last_sync(ACCOUNT, ResourceKind.PROJECTS) == at(0)


def test_wipe_all(store):
    store.merge_entries(ACCOUNT, [make_entry(1)], at(0))
    store.merge_projects(ACCOUNT, [make_project(1, "Alpha")], at(0))

    store.wipe(WipeScope.ALL)

    assert store.query_entries(ACCOUNT, at(-1), at(5)) == []
    assert store.get_projects(ACCOUNT) == []
    assert store.get_sync_metadata(ACCOUNT) == []


def test_store_persists_to_file(tmp_path):
    path = tmp_path / "nested" / "timeguru.db"
    with LocalStore(path) as first:
        first.upsert_entries(ACCOUNT, [make_entry(1)])

    with LocalStore(path) as second:
        assert ids(second.query_entries(ACCOUNT, at(-1), at(5))) == [1]
