# SPDX-License-Identifier: MIT

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from timeguru import configuration
from timeguru.model.sync_metadata import WipeScope
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.terminal.session import handle_errors, open_store

logger = logging.getLogger(__name__)


def _remove_file(path: Path, label: str, deleted: list[str], errors: list[str]) -> None:
    if not path.exists():
        Console().print(f"{label} not found at {path}")
        return
    try:
        path.unlink()
        deleted.append(f"{label}: {path}")
        # Drop the directory too when nothing else lives in it
        if not any(path.parent.iterdir()):
            path.parent.rmdir()
    except OSError as e:
        errors.append(f"Failed to delete {label.lower()}: {e}")


def clean(
    entries: Annotated[
        bool,
        typer.Option("--entries", "-e", help="Wipe cached time entries only"),
    ] = False,
    data: Annotated[
        bool, typer.Option("--data", "-d", help="Delete the local database")
    ] = False,
    config: Annotated[
        bool, typer.Option("--config", "-c", help="Delete the configuration file")
    ] = False,
    all: Annotated[
        bool, typer.Option("--all", "-a", help="Delete database and configuration")
    ] = False,
    confirm: Annotated[
        bool, typer.Option("--confirm", "-y", help="Do not ask for confirmation")
    ] = False,
) -> None:
    """Remove cached data and/or the configuration."""
    console = Console()
    delete_data = all or data
    delete_config = all or config

    if not (entries or delete_data or delete_config):
        console.print("Please specify what to delete:")
        console.print("  --entries  Wipe cached time entries, keep projects")
        console.print("  --data     Delete the database")
        console.print("  --config   Delete the configuration")
        console.print("  --all      Delete both database and configuration")
        return

    console.print("\nThe following will be deleted:")
    if entries and not delete_data:
        console.print(f"  Cached entries in: {configuration.DATA_DATABASE_PATH}")
    if delete_data:
        console.print(f"  Database: {configuration.DATA_DATABASE_PATH}")
    if delete_config:
        console.print(f"  Config:   {configuration.APP_CONFIG_PATH}")

    if not confirm and not typer.confirm("Are you sure you want to continue?"):
        console.print("Aborted.")
        return

    deleted: list[str] = []
    errors: list[str] = []

    if entries and not delete_data and configuration.DATA_DATABASE_PATH.exists():
        with handle_errors(), open_store() as store:
            store.wipe(WipeScope.ENTRIES)
        deleted.append("Cached time entries")

    if delete_data:
        _remove_file(configuration.DATA_DATABASE_PATH, "Database", deleted, errors)

    if delete_config:
        _remove_file(configuration.APP_CONFIG_PATH, "Config", deleted, errors)
        # Nothing should be written back at exit
        CONFIGURATION_REPO.reset()

    if deleted:
        console.print("\nSuccessfully deleted:")
        for item in deleted:
            console.print(f"  ✓ {item}")
        logger.info("cleaned %s", ", ".join(deleted))

    if errors:
        console.print("\nErrors:")
        for error in errors:
            console.print(f"  [red]✗ {error}[/red]")
        raise typer.Exit(1)

    console.print("\nCleanup complete!")
