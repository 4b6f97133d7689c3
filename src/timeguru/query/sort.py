# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import Optional

import pendulum

from timeguru.model.entry import Entry
from timeguru.model.grouped_entry import GroupedEntry
from timeguru.service.duration import effective_duration
from timeguru.service.grouping import group_start
from timeguru.time import now_utc


class SortMode(StrEnum):
    DEFAULT = "default"  # longest first
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"


def next_sort_mode(sort_mode: SortMode) -> SortMode:
    modes = list(SortMode)
    return modes[(modes.index(sort_mode) + 1) % len(modes)]


# sorted() is stable, including with reverse=True, so ties keep input order


def sort_by_date(entries: list[Entry], descending: bool = False) -> list[Entry]:
    return sorted(entries, key=lambda entry: entry["start"], reverse=descending)


def sort_by_duration(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> list[Entry]:
    if now is None:
        now = now_utc()
    return sorted(
        entries, key=lambda entry: effective_duration(entry, now), reverse=True
    )


def sort_entries(
    entries: list[Entry],
    sort_mode: SortMode,
    now: Optional[pendulum.DateTime] = None,
) -> list[Entry]:
    match sort_mode:
        case SortMode.DATE_ASC:
            return sort_by_date(entries)
        case SortMode.DATE_DESC:
            return sort_by_date(entries, descending=True)
    return sort_by_duration(entries, now)


def sort_groups(groups: list[GroupedEntry], sort_mode: SortMode) -> list[GroupedEntry]:
    """Reorder groups only; members inside each group keep their order."""
    match sort_mode:
        case SortMode.DATE_ASC:
            return sorted(groups, key=group_start)
        case SortMode.DATE_DESC:
            return sorted(groups, key=group_start, reverse=True)
    return sorted(groups, key=lambda group: group["total_duration"], reverse=True)
