# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer

from timeguru import state as app_state
from timeguru.log import configure_logging
from timeguru.terminal import configuration, track
from timeguru.terminal.clean import clean
from timeguru.terminal.custom_typer import OrderedAliasedTyperGroup
from timeguru.terminal.entry import export, list_entries
from timeguru.terminal.sync import sync
from timeguru.terminal.tui import tui

app = typer.Typer(
    cls=OrderedAliasedTyperGroup,
    help="TimeGuru - Browse and organise Toggl Track time entries in the terminal",
    no_args_is_help=True,
)
app.add_typer(configuration.app, name="config, c", help="Show or change settings")
app.add_typer(track.app, name="track, t", help="Start or stop time tracking")
app.command(name="sync, s")(sync)
app.command(name="list, ls")(list_entries)
app.command(name="tui, ui")(tui)
app.command(name="export, x")(export)
app.command(name="clean")(clean)


@app.callback()
def main_callback(
    api_token: Annotated[
        Optional[str],
        typer.Option(
            "--api-token",
            "-a",
            help="Toggl Track API token (overrides the environment and config)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to the log file"),
    ] = False,
) -> None:
    """
    TimeGuru - Browse and organise Toggl Track time entries in the terminal

    Global options that apply to all commands.
    """
    app_state.set_api_token(api_token)
    app_state.set_verbose(verbose)
    configure_logging(verbose=verbose)


def run() -> None:
    app()
