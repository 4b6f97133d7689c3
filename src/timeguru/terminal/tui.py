# SPDX-License-Identifier: MIT

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console

from timeguru import state as app_state
from timeguru.errors import RateLimited, TransientNetwork
from timeguru.log import configure_logging
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.service.sync import SyncService
from timeguru.terminal.parse import parse_date_range
from timeguru.terminal.session import (
    cached_account_id,
    handle_errors,
    open_store,
    open_sync_service,
    resolve_account,
    resolve_api_token,
)
from timeguru.tui.app import run
from timeguru.tui.controller import Controller

logger = logging.getLogger(__name__)


def tui(
    start: Annotated[
        Optional[str], typer.Option("--start", help="First day to browse")
    ] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last day to browse")] = None,
) -> None:
    """Browse, group and edit cached time entries interactively."""
    config = CONFIGURATION_REPO.get_config()
    start_date, end_date = parse_date_range(start, end, config["default_date_range_days"])
    console = Console()

    with handle_errors(), open_store() as store:
        service: Optional[SyncService] = None
        if resolve_api_token():
            service = open_sync_service(store, config["current_user_id"] or 0)
        try:
            account_id: Optional[int] = None
            status_message: Optional[str] = None
            if service is not None:
                try:
                    account_id = resolve_account(service, console)
                except (TransientNetwork, RateLimited) as e:
                    # Browse the cache; later mutations go through the service again
                    logger.warning("could not reach the remote service: %s", e)
                    status_message = "Remote service unreachable, showing cached entries"
            if account_id is None:
                account_id = cached_account_id()
            controller = Controller(
                store,
                account_id,
                start_date,
                end_date,
                service=service,
                round_minutes=config["round_duration_minutes"],
            )
            controller.status_message = status_message
            # Anything written to the terminal would tear the screen
            configure_logging(verbose=app_state.get_verbose(), console=False)
            run(controller, console)
        finally:
            if service is not None:
                service.close()
