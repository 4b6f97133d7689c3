# SPDX-License-Identifier: MIT

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.text import Text

from timeguru import configuration
from timeguru import state as app_state
from timeguru.errors import AuthError, ConfigurationError, TimeGuruError
from timeguru.remote.client import TogglClient
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.repository.store import LocalStore
from timeguru.service.bridge import AsyncBridge
from timeguru.service.sync import SyncCoordinator, SyncService

logger = logging.getLogger(__name__)

error_console = Console(stderr=True)


def resolve_api_token() -> Optional[str]:
    """The ``--api-token`` option wins over the environment, then the config file."""
    token = app_state.get_api_token()
    if token:
        return token
    token = os.environ.get(configuration.API_TOKEN_ENV)
    if token:
        return token
    return CONFIGURATION_REPO.get_config()["api_token"]


def require_api_token() -> str:
    token = resolve_api_token()
    if not token:
        raise ConfigurationError(
            "No API token provided. Set it with: timeguru config set --token YOUR_TOKEN"
        )
    return token


def open_store() -> LocalStore:
    return LocalStore(configuration.DATA_DATABASE_PATH)


def open_sync_service(store: LocalStore, account_id: int) -> SyncService:
    config = CONFIGURATION_REPO.get_config()
    coordinator = SyncCoordinator(
        TogglClient(require_api_token()),
        store,
        account_id,
        default_workspace_id=config["default_workspace_id"],
    )
    return SyncService(coordinator, AsyncBridge())


def resolve_account(service: SyncService, console: Console) -> int:
    """
    Ask the remote service which account the token belongs to and remember it.

    Cached data stays scoped to the account it was pulled for, so switching
    tokens only hides the previous account's entries.
    """
    account = service.current_user()
    config = CONFIGURATION_REPO.get_config()
    previous = config["current_user_id"]
    if previous is None:
        console.print(f"Configured for user: [plum1]{account['email']}[/plum1]")
    elif previous != account["id"]:
        console.print(
            f"[yellow]Switching to new user account: {account['email']}[/yellow]"
        )
        console.print("Previous data will not be visible.")
        console.print("Use 'timeguru clean --entries' to remove old data if needed.")
        logger.info("account switched from %s to %s", previous, account["id"])

    CONFIGURATION_REPO.update_config(
        current_user_id=account["id"],
        current_user_email=account["email"],
        default_workspace_id=account["default_workspace_id"],
    )
    service.coordinator.account_id = account["id"]
    service.coordinator.default_workspace_id = account["default_workspace_id"]
    return account["id"]


def cached_account_id() -> int:
    account_id = CONFIGURATION_REPO.get_config()["current_user_id"]
    if account_id is None:
        raise ConfigurationError(
            "No account is known yet. Run 'timeguru sync' once while online."
        )
    return account_id


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn application errors into a red message and exit code 1."""
    try:
        yield
    except TimeGuruError as e:
        logger.warning("command failed with %s: %s", type(e).__name__, e)
        error_console.print(Text(f"Error: {e}", style="red"))
        if isinstance(e, AuthError):
            error_console.print(
                "Update your token with: timeguru config set --token YOUR_TOKEN"
            )
        raise typer.Exit(1)
