# SPDX-License-Identifier: MIT

import logging
from typing import Callable, Optional

import click
from rich.console import Console
from rich.live import Live

from timeguru.tui.controller import Controller
from timeguru.tui.keys import decode_key
from timeguru.tui.render import render

logger = logging.getLogger(__name__)


def run(
    controller: Controller,
    console: Optional[Console] = None,
    read_key: Callable[[], str] = click.getchar,
) -> None:
    """Render, read one key, dispatch, repeat until the controller quits."""
    console = console or Console()
    with Live(
        render(controller, console.size.height),
        console=console,
        screen=True,
        auto_refresh=False,
    ) as live:
        while controller.running:
            live.update(render(controller, console.size.height), refresh=True)
            try:
                raw = read_key()
            except (KeyboardInterrupt, EOFError):
                break
            # Status messages last until the next key press
            controller.status_message = None
            controller.handle_key(decode_key(raw))
    logger.debug("interactive session closed")
