# SPDX-License-Identifier: MIT

from typing import Optional

import pendulum
from rich import box
from rich.console import Console
from rich.table import Table

from timeguru.model.entry import Entry
from timeguru.model.grouped_entry import GroupedEntry
from timeguru.model.project import Project
from timeguru.service.duration import (
    BillableSummary,
    effective_duration,
    format_duration,
    rounded_duration,
)
from timeguru.service.grouping import billable_state
from timeguru.time import (
    date_to_str,
    datetime_to_display_local_datetime_str,
    now_utc,
)
from timeguru.view.header import header

NO_DESCRIPTION = "(no description)"


def format_tags(tags: Optional[list[str]]) -> str:
    """Format a list of tags as a comma-separated string without brackets or quotes."""
    if tags is None or len(tags) == 0:
        return ""
    return ", ".join(tags)


def project_cell(project_id: Optional[int], projects: dict[int, Project]) -> str:
    if project_id is None:
        return ""
    project = projects.get(project_id)
    if project is None:
        return ""
    if project["color"]:
        return f"[{project['color']}]{project['name']}[/{project['color']}]"
    return project["name"]


def entries_view(
    account: Optional[str],
    entries: list[Entry],
    projects: list[Project],
    now: Optional[pendulum.DateTime] = None,
    no_wrap: bool = False,
) -> None:
    """Display one row per time entry."""
    if now is None:
        now = now_utc()
    header(account, "time entries")
    project_map = {project["remote_id"]: project for project in projects}

    entries_table = Table(box=box.SIMPLE)
    for column in ["start", "description", "project", "duration", "tags", "billable"]:
        if no_wrap and column == "description":
            entries_table.add_column(column, no_wrap=True, overflow="ellipsis")
        else:
            entries_table.add_column(column)

    for entry in entries:
        duration = format_duration(effective_duration(entry, now))
        if entry["duration"] is None:
            duration = f"[green]{duration} (running)[/green]"
        entries_table.add_row(
            datetime_to_display_local_datetime_str(entry["start"]),
            entry["description"] or NO_DESCRIPTION,
            project_cell(entry["project_id"], project_map),
            duration,
            format_tags(entry["tags"]),
            "yes" if entry["billable"] else "",
        )

    console = Console()
    console.print(entries_table)


def grouped_entries_view(
    account: Optional[str],
    groups: list[GroupedEntry],
    projects: list[Project],
    round_minutes: Optional[int] = None,
    no_wrap: bool = False,
) -> None:
    """Display one row per group, durations rounded up to ``round_minutes``."""
    by_day = any(group["date"] is not None for group in groups)
    header(account, "grouped by description and day" if by_day else "grouped by description")
    project_map = {project["remote_id"]: project for project in projects}

    columns = ["description", "project", "entries", "duration", "billable"]
    if by_day:
        columns.insert(0, "date")

    groups_table = Table(box=box.SIMPLE)
    for column in columns:
        if no_wrap and column == "description":
            groups_table.add_column(column, no_wrap=True, overflow="ellipsis")
        else:
            groups_table.add_column(column)

    for group in groups:
        row = [
            group["description"] or NO_DESCRIPTION,
            project_cell(group["project_id"], project_map),
            str(len(group["entries"])),
            format_duration(rounded_duration(group["total_duration"], round_minutes)),
            billable_state(group),
        ]
        if by_day:
            row.insert(0, date_to_str(group["date"]) if group["date"] else "")
        groups_table.add_row(*row)

    console = Console()
    console.print(groups_table)


def billable_summary_view(summary: BillableSummary) -> None:
    summary_table = Table(box=box.SIMPLE, show_header=False)
    summary_table.add_column("kind")
    summary_table.add_column("duration", justify="right")
    summary_table.add_row("billable", format_duration(summary["billable"]))
    summary_table.add_row("non-billable", format_duration(summary["non_billable"]))
    total = format_duration(summary["total"])
    summary_table.add_row("[bold]total[/bold]", f"[bold]{total}[/bold]")

    console = Console()
    console.print(summary_table)


def single_entry_view(entry: Entry, projects: list[Project]) -> None:
    """Display the properties of a single entry, used after start and stop."""
    project_map = {project["remote_id"]: project for project in projects}

    entry_table = Table(box=box.SIMPLE)
    entry_table.add_column("property")
    entry_table.add_column("value")

    entry_table.add_row("id", str(entry["remote_id"]))
    entry_table.add_row("description", entry["description"] or NO_DESCRIPTION)
    entry_table.add_row("project", project_cell(entry["project_id"], project_map))
    entry_table.add_row("start", datetime_to_display_local_datetime_str(entry["start"]))
    entry_table.add_row(
        "stop",
        datetime_to_display_local_datetime_str(entry["stop"]) if entry["stop"] else "",
    )
    entry_table.add_row("duration", format_duration(effective_duration(entry)))
    entry_table.add_row("tags", format_tags(entry["tags"]))

    console = Console()
    console.print(entry_table)
