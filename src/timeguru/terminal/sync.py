# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console

from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.terminal.parse import parse_date_range
from timeguru.terminal.session import (
    handle_errors,
    open_store,
    open_sync_service,
    resolve_account,
)
from timeguru.time import datetime_to_local_date_str


def sync(
    start: Annotated[
        Optional[str],
        typer.Option("--start", help="First day to pull (default: sync range before end)"),
    ] = None,
    end: Annotated[
        Optional[str],
        typer.Option("--end", help="Last day to pull (default: now)"),
    ] = None,
) -> None:
    """Pull time entries and projects from Toggl Track into the local cache."""
    config = CONFIGURATION_REPO.get_config()
    start_date, end_date = parse_date_range(start, end, config["sync_range_days"])
    console = Console()

    with handle_errors(), open_store() as store:
        service = open_sync_service(store, config["current_user_id"] or 0)
        try:
            resolve_account(service, console)
            console.print(
                f"Syncing time entries from {datetime_to_local_date_str(start_date)} "
                f"to {datetime_to_local_date_str(end_date)}..."
            )
            result = service.pull(start_date, end_date)
        finally:
            service.close()

    console.print(f"[green]Successfully synced {result['entries']} time entries[/green]")
    console.print(f"[green]Successfully synced {result['projects']} projects[/green]")
