# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from timeguru import configuration
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.terminal.custom_typer import AliasedTyperGroup

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)


def _mask_token(token: Optional[str]) -> str:
    if not token:
        return "✗ Not set"
    if len(token) <= 8:
        return "✓ Set"
    return f"✓ Set ({token[:4]}…{token[-4:]})"


def _configuration_table(title: Optional[str] = None) -> Table:
    config = CONFIGURATION_REPO.get_config()

    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("api_token", _mask_token(config["api_token"]))
    table.add_row("default_date_range_days", str(config["default_date_range_days"]))
    table.add_row("sync_range_days", str(config["sync_range_days"]))
    table.add_row(
        "round_duration_minutes",
        str(config["round_duration_minutes"])
        if config["round_duration_minutes"]
        else "✗ Disabled",
    )
    table.add_row("current_user_email", config["current_user_email"] or "")
    table.add_row(
        "current_user_id",
        str(config["current_user_id"]) if config["current_user_id"] else "",
    )
    table.add_row(
        "default_workspace_id",
        str(config["default_workspace_id"]) if config["default_workspace_id"] else "",
    )
    table.add_row("data_path", str(configuration.DATA_PATH))
    table.add_row("config_file", str(configuration.APP_CONFIG_PATH))
    table.add_row("log_file", str(configuration.LOG_FILE_PATH))
    return table


@app.command("show, view, v")
def show() -> None:
    """Display current configuration settings."""
    console = Console()
    console.print(_configuration_table())


@app.command("set, s")
def set(
    token: Annotated[
        Optional[str],
        typer.Option("--token", help="Toggl Track API token"),
    ] = None,
    remove_token: Annotated[
        bool, typer.Option("--remove-token", help="Forget the stored API token")
    ] = False,
    date_range: Annotated[
        Optional[int],
        typer.Option(
            "--date-range",
            min=1,
            help="Number of days shown by list, tui and export without --start",
        ),
    ] = None,
    sync_range: Annotated[
        Optional[int],
        typer.Option("--sync-range", min=1, help="Number of days pulled by sync"),
    ] = None,
    round_minutes: Annotated[
        Optional[int],
        typer.Option(
            "--round-minutes",
            min=0,
            help="Round grouped durations up to this many minutes (0 disables)",
        ),
    ] = None,
    data_path: Annotated[
        Optional[str],
        typer.Option("--data-path", help="Directory holding the local database"),
    ] = None,
    remove_data_path: Annotated[
        bool,
        typer.Option(
            "--remove-data-path", help="Store the database in the default location"
        ),
    ] = False,
) -> None:
    """
    Update configuration settings.
    """
    CONFIGURATION_REPO.update_config(
        api_token=token,
        remove_api_token=remove_token,
        default_date_range_days=date_range,
        sync_range_days=sync_range,
        round_duration_minutes=round_minutes if round_minutes else None,
        remove_round_duration=round_minutes == 0,
        data_path=data_path,
        remove_data_path=remove_data_path,
    )
    CONFIGURATION_REPO.flush()

    console = Console()
    console.print("[green]Configuration updated successfully![/green]\n")
    console.print(_configuration_table(title="Updated Configuration"))
