# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console

from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.terminal.custom_typer import AliasedTyperGroup
from timeguru.terminal.session import (
    handle_errors,
    open_store,
    open_sync_service,
    resolve_account,
)
from timeguru.view.entries import single_entry_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)


@app.command("start, s")
def start(
    message: Annotated[
        Optional[str],
        typer.Option("--message", "-m", help="Description of the new entry"),
    ] = None,
) -> None:
    """Start a running time entry, stopping whichever one was running."""
    config = CONFIGURATION_REPO.get_config()
    console = Console()

    with handle_errors(), open_store() as store:
        service = open_sync_service(store, config["current_user_id"] or 0)
        try:
            account_id = resolve_account(service, console)
            entry = service.start_tracking(message)
        finally:
            service.close()
        projects = store.get_projects(account_id)

    console.print("[green]✓ Time tracking started successfully![/green]")
    single_entry_view(entry, projects)


@app.command("stop, x")
def stop() -> None:
    """Stop the running time entry."""
    config = CONFIGURATION_REPO.get_config()
    console = Console()

    with handle_errors(), open_store() as store:
        service = open_sync_service(store, config["current_user_id"] or 0)
        try:
            account_id = resolve_account(service, console)
            entry = service.stop_tracking()
        finally:
            service.close()
        projects = store.get_projects(account_id)

    if entry is None:
        console.print("No time entry is currently running.")
        return
    console.print("[green]✓ Time tracking stopped successfully![/green]")
    single_entry_view(entry, projects)
