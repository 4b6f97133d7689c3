# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import Optional

import pendulum

from timeguru.model.entry import Entry
from timeguru.model.grouped_entry import GroupedEntry
from timeguru.service.duration import effective_duration, rounded_duration
from timeguru.time import local_date, now_utc


class GroupMode(StrEnum):
    FLAT = "flat"
    DAY = "day"


GroupKey = tuple[Optional[str], Optional[int], Optional[pendulum.Date]]


def group_entries(
    entries: list[Entry],
    mode: GroupMode,
    now: Optional[pendulum.DateTime] = None,
    tz: str = "local",
) -> list[GroupedEntry]:
    """
    Partition entries by (description, project) and, in day mode, by the
    calendar day of their start in ``tz``.

    Groups come out in the order their key was first seen and members keep
    the order they were supplied in. Descriptions are compared exactly.
    """
    if now is None:
        now = now_utc()

    groups: dict[GroupKey, list[Entry]] = {}
    for entry in entries:
        date = local_date(entry["start"], tz) if mode == GroupMode.DAY else None
        key = (entry["description"], entry["project_id"], date)
        groups.setdefault(key, []).append(entry)

    return [
        {
            "description": description,
            "project_id": project_id,
            "date": date,
            "entries": members,
            "total_duration": sum(effective_duration(member, now) for member in members),
        }
        for (description, project_id, date), members in groups.items()
    ]


def group_by_description(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> list[GroupedEntry]:
    return group_entries(entries, GroupMode.FLAT, now)


def group_by_description_and_day(
    entries: list[Entry],
    now: Optional[pendulum.DateTime] = None,
    tz: str = "local",
) -> list[GroupedEntry]:
    return group_entries(entries, GroupMode.DAY, now, tz)


def display_duration(
    group: GroupedEntry, round_minutes: Optional[int], rounding_enabled: bool = True
) -> int:
    if not rounding_enabled:
        return group["total_duration"]
    return rounded_duration(group["total_duration"], round_minutes)


def billable_state(group: GroupedEntry) -> str:
    if all(entry["billable"] for entry in group["entries"]):
        return "Yes"
    if not any(entry["billable"] for entry in group["entries"]):
        return "No"
    return "Mixed"


def group_start(group: GroupedEntry) -> pendulum.DateTime:
    """Earliest start among the members, used to order groups by date."""
    return min(entry["start"] for entry in group["entries"])
