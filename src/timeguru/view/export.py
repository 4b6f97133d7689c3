# SPDX-License-Identifier: MIT

import csv
from typing import Optional, TextIO

import pendulum

from timeguru.model.entry import Entry
from timeguru.model.project import Project
from timeguru.service.duration import effective_duration, hours, rounded_duration
from timeguru.service.grouping import GroupMode, billable_state, group_entries
from timeguru.time import date_to_str, now_utc

NO_DESCRIPTION = "(No description)"
METADATA_COLUMNS = 6


def project_names(projects: list[Project]) -> dict[int, str]:
    return {project["remote_id"]: project["name"] for project in projects}


def _metadata_row(text: str) -> list[str]:
    return [text] + [""] * (METADATA_COLUMNS - 1)


def export_entries_csv(
    stream: TextIO,
    entries: list[Entry],
    projects: list[Project],
    start: pendulum.DateTime,
    end: pendulum.DateTime,
    group_mode: Optional[GroupMode] = None,
    round_minutes: Optional[int] = None,
    include_metadata: bool = False,
    user_email: Optional[str] = None,
    now: Optional[pendulum.DateTime] = None,
    tz: str = "local",
) -> int:
    """
    Write entries as CSV to ``stream`` and return the number of data rows.

    With ``group_mode`` set, one row is written per group and durations are
    rounded up to ``round_minutes``; individual entries are never rounded.
    """
    if now is None:
        now = now_utc()
    names = project_names(projects)
    writer = csv.writer(stream)

    if include_metadata:
        writer.writerow(_metadata_row("# TimeGuru Export"))
        writer.writerow(
            _metadata_row(
                f"# Date Range: {date_to_str(start.in_tz(tz).date())} "
                f"to {date_to_str(end.in_tz(tz).date())}"
            )
        )
        writer.writerow(_metadata_row(f"# Total Entries: {len(entries)}"))
        if user_email:
            writer.writerow(_metadata_row(f"# User: {user_email}"))
        writer.writerow(_metadata_row(""))

    if group_mode is None:
        writer.writerow(
            ["Date", "Time", "Description", "Project", "Duration (hours)", "Billable"]
        )
        for entry in entries:
            local_start = entry["start"].in_tz(tz)
            writer.writerow(
                [
                    local_start.format("YYYY-MM-DD"),
                    local_start.format("HH:mm"),
                    entry["description"] or NO_DESCRIPTION,
                    names.get(entry["project_id"], "") if entry["project_id"] else "",
                    f"{hours(effective_duration(entry, now)):.2f}",
                    "Yes" if entry["billable"] else "No",
                ]
            )
        return len(entries)

    by_day = group_mode == GroupMode.DAY
    header = ["Description", "Project", "Duration (hours)", "Entry Count", "Billable"]
    writer.writerow(["Date"] + header if by_day else header)

    groups = group_entries(entries, group_mode, now, tz)
    for group in groups:
        row = [
            group["description"] or NO_DESCRIPTION,
            names.get(group["project_id"], "") if group["project_id"] else "",
            f"{hours(rounded_duration(group['total_duration'], round_minutes)):.2f}",
            str(len(group["entries"])),
            billable_state(group),
        ]
        if by_day:
            row.insert(0, date_to_str(group["date"]) if group["date"] else "")
        writer.writerow(row)
    return len(groups)
