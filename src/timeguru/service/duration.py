# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum

from timeguru.model.entry import Entry
from timeguru.time import now_utc


class BillableSummary(TypedDict):
    billable: int
    non_billable: int
    total: int


def effective_duration(entry: Entry, now: Optional[pendulum.DateTime] = None) -> int:
    """Duration in seconds; a running entry counts the time elapsed up to ``now``."""
    if entry["duration"] is not None:
        return entry["duration"]
    if now is None:
        now = now_utc()
    return max(0, int((now - entry["start"]).total_seconds()))


def rounded_duration(duration_seconds: int, round_to_minutes: Optional[int]) -> int:
    """Round up to the next multiple of ``round_to_minutes`` minutes.

    None or 0 minutes disables rounding. Exact multiples are unchanged.
    """
    if not round_to_minutes or round_to_minutes <= 0:
        return duration_seconds
    interval = round_to_minutes * 60
    return -(-duration_seconds // interval) * interval


def total_duration(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> int:
    return sum(effective_duration(entry, now) for entry in entries)


def billable_duration(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> int:
    return sum(effective_duration(entry, now) for entry in entries if entry["billable"])


def non_billable_duration(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> int:
    return sum(
        effective_duration(entry, now) for entry in entries if not entry["billable"]
    )


def billable_summary(
    entries: list[Entry], now: Optional[pendulum.DateTime] = None
) -> BillableSummary:
    if now is None:
        now = now_utc()
    billable = billable_duration(entries, now)
    non_billable = non_billable_duration(entries, now)
    return {
        "billable": billable,
        "non_billable": non_billable,
        "total": billable + non_billable,
    }


def hours(duration_seconds: int) -> float:
    return duration_seconds / 3600.0


def format_duration(duration_seconds: int) -> str:
    hours_part = duration_seconds // 3600
    minutes_part = (duration_seconds % 3600) // 60
    if hours_part > 0:
        return f"{hours_part}h {minutes_part}m"
    return f"{minutes_part}m"
