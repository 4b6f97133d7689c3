"""Tests for entry and group ordering."""

from factories import at, make_entry
from timeguru.query.sort import (
    SortMode,
    next_sort_mode,
    sort_entries,
    sort_groups,
)
from timeguru.service.grouping import group_by_description


def remote_ids(entries):
    return [entry["remote_id"] for entry in entries]


def test_default_sort_is_longest_first_and_stable():
    entries = [
        make_entry(1, duration=600),
        make_entry(2, duration=1800),
        make_entry(3, duration=600),
        make_entry(4, duration=1800),
    ]

    assert remote_ids(sort_entries(entries, SortMode.DEFAULT, at(10))) == [2, 4, 1, 3]


def test_date_sorts_are_stable():
    entries = [
        make_entry(1, start=at(2)),
        make_entry(2, start=at(0)),
        make_entry(3, start=at(2)),
        make_entry(4, start=at(1)),
    ]

    assert remote_ids(sort_entries(entries, SortMode.DATE_ASC)) == [2, 4, 1, 3]
    assert remote_ids(sort_entries(entries, SortMode.DATE_DESC)) == [1, 3, 4, 2]


def test_sorting_does_not_touch_the_input():
    entries = [make_entry(1, start=at(2)), make_entry(2, start=at(0))]

    sort_entries(entries, SortMode.DATE_ASC)

    assert remote_ids(entries) == [1, 2]


def test_group_sort_keeps_member_order():
    entries = [
        make_entry(1, description="B", start=at(3), duration=600),
        make_entry(2, description="A", start=at(2), duration=600),
        make_entry(3, description="B", start=at(1), duration=3600),
    ]
    groups = group_by_description(entries, now=at(10))

    by_date = sort_groups(groups, SortMode.DATE_ASC)
    by_duration = sort_groups(groups, SortMode.DEFAULT)

    assert [g["description"] for g in by_date] == ["B", "A"]
    assert remote_ids(by_date[0]["entries"]) == [1, 3]
    assert [g["description"] for g in by_duration] == ["B", "A"]
    assert [g["description"] for g in sort_groups(groups, SortMode.DATE_DESC)] == ["A", "B"]


def test_sort_modes_cycle():
    assert next_sort_mode(SortMode.DEFAULT) == SortMode.DATE_ASC
    assert next_sort_mode(SortMode.DATE_ASC) == SortMode.DATE_DESC
    assert next_sort_mode(SortMode.DATE_DESC) == SortMode.DEFAULT
