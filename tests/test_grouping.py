"""Tests for grouping entries by description, project and day."""

import pendulum

from factories import at, make_entry
from timeguru.service.grouping import (
    GroupMode,
    billable_state,
    display_duration,
    group_by_description,
    group_by_description_and_day,
    group_entries,
)


def test_groups_by_description_and_project_in_first_seen_order():
    entries = [
        make_entry(1, description="Standup", project_id=1, duration=600),
        make_entry(2, description="Review", project_id=1, duration=900),
        make_entry(3, description="Standup", project_id=2, duration=300),
        make_entry(4, description="Standup", project_id=1, duration=600),
    ]

    groups = group_by_description(entries, now=at(10))

    assert [(g["description"], g["project_id"]) for g in groups] == [
        ("Standup", 1),
        ("Review", 1),
        ("Standup", 2),
    ]
    assert [e["remote_id"] for e in groups[0]["entries"]] == [1, 4]
    assert groups[0]["total_duration"] == 1200
    assert groups[0]["date"] is None


def test_groups_partition_the_input():
    entries = [
        make_entry(i, description=f"task {i % 3}", project_id=i % 2, duration=60 * i)
        for i in range(1, 10)
    ]

    groups = group_entries(entries, GroupMode.FLAT, now=at(10))
    members = [e["remote_id"] for g in groups for e in g["entries"]]

    assert sorted(members) == list(range(1, 10))
    assert sum(g["total_duration"] for g in groups) == sum(60 * i for i in range(1, 10))


def test_descriptions_match_exactly():
    entries = [
        make_entry(1, description="Standup"),
        make_entry(2, description="standup"),
        make_entry(3, description=None),
        make_entry(4, description=None),
    ]

    groups = group_by_description(entries, now=at(10))

    assert len(groups) == 3
    assert groups[2]["description"] is None
    assert len(groups[2]["entries"]) == 2


def test_day_grouping_splits_on_local_date():
    entries = [
        make_entry(1, description="Standup", start=at(0), duration=600),
        make_entry(2, description="Standup", start=at(days=1), duration=600),
        make_entry(3, description="Standup", start=at(5), duration=600),
    ]

    groups = group_by_description_and_day(entries, now=at(days=2), tz="UTC")

    assert [g["date"] for g in groups] == [
        pendulum.date(2024, 3, 4),
        pendulum.date(2024, 3, 5),
    ]
    assert [e["remote_id"] for e in groups[0]["entries"]] == [1, 3]
    assert groups[0]["total_duration"] == 1200


def test_day_group_rounding_example():
    entries = [
        make_entry(1, description="Standup", start=at(0), duration=600),
        make_entry(2, description="Standup", start=at(3), duration=600),
    ]

    group = group_by_description_and_day(entries, now=at(10), tz="UTC")[0]

    assert display_duration(group, 15) == 1800
    assert display_duration(group, 15, rounding_enabled=False) == 1200
    assert display_duration(group, None) == 1200


def test_running_member_counts_elapsed_time():
    entries = [
        make_entry(1, description="Build", start=at(0), duration=600),
        make_entry(2, description="Build", start=at(1), duration=None),
    ]

    group = group_by_description(entries, now=at(1.5))[0]

    assert group["total_duration"] == 600 + 1800


def test_billable_state():
    mixed = group_by_description(
        [make_entry(1, billable=True), make_entry(2, billable=False)], now=at(10)
    )[0]
    yes = group_by_description([make_entry(1, billable=True)], now=at(10))[0]
    no = group_by_description([make_entry(1, billable=False)], now=at(10))[0]

    assert billable_state(mixed) == "Mixed"
    assert billable_state(yes) == "Yes"
    assert billable_state(no) == "No"
