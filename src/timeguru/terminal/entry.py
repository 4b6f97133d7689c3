# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console

from timeguru.model.filter import EntryFilter
from timeguru.query.sort import SortMode, sort_entries, sort_groups
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.repository.store import LocalStore
from timeguru.service.duration import billable_summary
from timeguru.service.grouping import GroupMode, group_entries
from timeguru.template.filter import get_filter_template
from timeguru.terminal.parse import parse_date_range
from timeguru.terminal.session import (
    cached_account_id,
    handle_errors,
    open_store,
    open_sync_service,
    resolve_account,
)
from timeguru.time import now_utc
from timeguru.view.entries import (
    billable_summary_view,
    entries_view,
    grouped_entries_view,
)
from timeguru.view.export import export_entries_csv


def _group_mode(group: bool, group_by_day: bool) -> Optional[GroupMode]:
    if group_by_day:
        return GroupMode.DAY
    if group:
        return GroupMode.FLAT
    return None


def _pull(
    store: LocalStore, start: pendulum.DateTime, end: pendulum.DateTime
) -> int:
    config = CONFIGURATION_REPO.get_config()
    console = Console()
    service = open_sync_service(store, config["current_user_id"] or 0)
    try:
        account_id = resolve_account(service, console)
        service.pull(start, end)
    finally:
        service.close()
    return account_id


def list_entries(
    start: Annotated[
        Optional[str], typer.Option("--start", help="First day to show")
    ] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last day to show")] = None,
    project: Annotated[
        Optional[int], typer.Option("--project", "-p", help="Only this project id")
    ] = None,
    tag: Annotated[
        Optional[str], typer.Option("--tag", help="Only entries with this tag")
    ] = None,
    client: Annotated[
        Optional[int], typer.Option("--client", help="Only projects of this client id")
    ] = None,
    billable: Annotated[
        Optional[bool],
        typer.Option("--billable/--non-billable", help="Only (non-)billable entries"),
    ] = None,
    group: Annotated[
        bool, typer.Option("--group", "-g", help="Group by description and project")
    ] = False,
    group_by_day: Annotated[
        bool, typer.Option("--group-by-day", "-d", help="Group per day as well")
    ] = False,
    offline: Annotated[
        bool, typer.Option("--offline", "-o", help="Read the local cache only")
    ] = False,
) -> None:
    """List time entries, pulling the range from Toggl Track first unless offline."""
    config = CONFIGURATION_REPO.get_config()
    start_date, end_date = parse_date_range(start, end, config["default_date_range_days"])

    entry_filter: EntryFilter = get_filter_template()
    entry_filter["project_id"] = project
    entry_filter["tag"] = tag
    entry_filter["client_id"] = client
    entry_filter["billable"] = billable

    with handle_errors(), open_store() as store:
        if offline:
            account_id = cached_account_id()
        else:
            account_id = _pull(store, start_date, end_date)
        entries = store.query_entries(account_id, start_date, end_date, entry_filter)
        projects = store.get_projects(account_id)

    now = now_utc()
    account = CONFIGURATION_REPO.get_config()["current_user_email"]
    group_mode = _group_mode(group, group_by_day)
    if group_mode is None:
        entries_view(account, sort_entries(entries, SortMode.DATE_ASC, now), projects, now)
    else:
        groups = sort_groups(group_entries(entries, group_mode, now), SortMode.DATE_ASC)
        grouped_entries_view(account, groups, projects, config["round_duration_minutes"])
    billable_summary_view(billable_summary(entries, now))


def export(
    output: Annotated[Path, typer.Option("--output", "-o", help="CSV file to write")],
    start: Annotated[
        Optional[str], typer.Option("--start", help="First day to export")
    ] = None,
    end: Annotated[
        Optional[str], typer.Option("--end", help="Last day to export")
    ] = None,
    include_metadata: Annotated[
        bool,
        typer.Option("--include-metadata", "-m", help="Prepend a commented summary"),
    ] = False,
    group: Annotated[
        bool, typer.Option("--group", "-g", help="One row per description and project")
    ] = False,
    group_by_day: Annotated[
        bool, typer.Option("--group-by-day", "-d", help="One row per group and day")
    ] = False,
) -> None:
    """Export cached time entries to CSV."""
    config = CONFIGURATION_REPO.get_config()
    start_date, end_date = parse_date_range(start, end, config["default_date_range_days"])
    console = Console()

    with handle_errors(), open_store() as store:
        account_id = cached_account_id()
        entries = store.query_entries(account_id, start_date, end_date)
        projects = store.get_projects(account_id)

    if not entries:
        console.print("No time entries found for the specified date range.")
        return

    now = now_utc()
    try:
        with output.open("w", newline="", encoding="utf-8") as stream:
            rows = export_entries_csv(
                stream,
                sort_entries(entries, SortMode.DATE_ASC, now),
                projects,
                start_date,
                end_date,
                group_mode=_group_mode(group, group_by_day),
                round_minutes=config["round_duration_minutes"],
                include_metadata=include_metadata,
                user_email=config["current_user_email"],
                now=now,
            )
    except OSError as e:
        console.print(f"[red]Failed to write {output}: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Exported {rows} rows to: {output}[/green]")
