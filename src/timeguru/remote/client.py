# SPDX-License-Identifier: MIT

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, cast

import httpx
import pendulum

from timeguru.errors import (
    AuthError,
    NotFound,
    RateLimited,
    RemoteError,
    TransientNetwork,
)
from timeguru.model.account import Account
from timeguru.model.entry import Entry
from timeguru.model.project import Project
from timeguru.time import datetime_from_str, datetime_from_str_optional, now_utc

logger = logging.getLogger(__name__)

BASE_URL = "https://api.track.toggl.com/api/v9"
CREATED_WITH = "timeguru"


def entry_from_json(data: dict[str, Any]) -> Entry:
    duration = data.get("duration")
    stop = datetime_from_str_optional(data.get("stop"))
    # The API reports a running entry with a negative duration
    if duration is None or duration < 0 or stop is None:
        duration = None
    return {
        "remote_id": data["id"],
        "account_id": data.get("user_id") or data.get("uid") or 0,
        "workspace_id": data.get("workspace_id") or data.get("wid"),
        "description": data.get("description") or None,
        "start": datetime_from_str(data["start"]).in_tz("UTC"),
        "stop": stop.in_tz("UTC") if stop is not None else None,
        "duration": duration,
        "project_id": data.get("project_id") or data.get("pid"),
        "tags": list(dict.fromkeys(data.get("tags") or [])),
        "billable": bool(data.get("billable", False)),
        "at": datetime_from_str_optional(data.get("at")),
    }


def project_from_json(data: dict[str, Any], account_id: int) -> Project:
    return {
        "remote_id": data["id"],
        "account_id": account_id,
        "workspace_id": data.get("workspace_id") or data.get("wid"),
        "client_id": data.get("client_id") or data.get("cid"),
        "name": data.get("name") or "",
        "color": data.get("color"),
        "active": bool(data.get("active", True)),
        "billable": data.get("billable"),
    }


@contextmanager
def _malformed_payload(action: str) -> Iterator[None]:
    """Report a response body with missing or mistyped fields as a ``RemoteError``."""
    try:
        yield
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RemoteError(f"Unexpected response while trying to {action}: {e!r}") from e


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def raise_for_status(response: httpx.Response, action: str) -> None:
    status = response.status_code
    if status < 400:
        return
    detail = response.text.strip()
    message = f"Failed to {action}. Status: {status}"
    if detail:
        message += f", Error: {detail}"

    if status in (401, 403):
        raise AuthError(
            "Authentication failed. Please check your API token.", status_code=status
        )
    if status == 404:
        raise NotFound(message, status_code=status)
    if status == 429:
        raise RateLimited(message, status_code=status, retry_after=_retry_after(response))
    if status >= 500:
        raise TransientNetwork(message, status_code=status)
    raise RemoteError(message, status_code=status)


class TogglClient:
    """Async client for the Toggl Track v9 API.

    A fresh ``httpx.AsyncClient`` is opened per request so the client can be
    driven from whichever event loop runs the coroutine.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._auth = httpx.BasicAuth(api_token, "api_token")

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            async with httpx.AsyncClient(
                auth=self._auth,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            ) as client:
                response = await client.request(method, url, params=params, json=json)
        except httpx.TransportError as e:
            raise TransientNetwork(f"Failed to {action}: {e}") from e

        raise_for_status(response, action)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(f"Failed to parse response while trying to {action}") from e

    async def current_user(self) -> Account:
        action = "fetch the current user"
        data = await self._request("GET", "/me", action)
        with _malformed_payload(action):
            return {
                "id": data["id"],
                "email": data.get("email"),
                "default_workspace_id": data.get("default_workspace_id"),
            }

    async def fetch_entries(
        self, start: pendulum.DateTime, end: pendulum.DateTime
    ) -> list[Entry]:
        data = await self._request(
            "GET",
            "/me/time_entries",
            "fetch time entries",
            params={
                "start_date": start.in_tz("UTC").isoformat(),
                "end_date": end.in_tz("UTC").isoformat(),
            },
        )
        with _malformed_payload("fetch time entries"):
            return [entry_from_json(item) for item in data or []]

    async def fetch_workspace_ids(self) -> list[int]:
        data = await self._request("GET", "/workspaces", "fetch workspaces")
        with _malformed_payload("fetch workspaces"):
            return [workspace["id"] for workspace in data or []]

    async def fetch_projects(self, account_id: int = 0) -> list[Project]:
        projects: list[Project] = []
        for workspace_id in await self.fetch_workspace_ids():
            data = await self._request(
                "GET",
                f"/workspaces/{workspace_id}/projects",
                "fetch projects",
            )
            with _malformed_payload("fetch projects"):
                projects.extend(project_from_json(item, account_id) for item in data or [])
        return projects

    async def update_entry_project(
        self, workspace_id: int, entry_id: int, project_id: Optional[int]
    ) -> None:
        await self._request(
            "PUT",
            f"/workspaces/{workspace_id}/time_entries/{entry_id}",
            "update the time entry project",
            json={"project_id": project_id},
        )

    async def update_entry_description(
        self, workspace_id: int, entry_id: int, description: Optional[str]
    ) -> None:
        await self._request(
            "PUT",
            f"/workspaces/{workspace_id}/time_entries/{entry_id}",
            "update the time entry description",
            json={"description": description or ""},
        )

    async def start_entry(
        self, workspace_id: int, description: Optional[str] = None
    ) -> Entry:
        body: dict[str, Any] = {
            "created_with": CREATED_WITH,
            "workspace_id": workspace_id,
            "start": now_utc().isoformat(),
            "duration": -1,
        }
        if description:
            body["description"] = description
        data = await self._request(
            "POST",
            f"/workspaces/{workspace_id}/time_entries",
            "start time tracking",
            json=body,
        )
        with _malformed_payload("start time tracking"):
            return entry_from_json(cast(dict[str, Any], data))

    async def stop_entry(self, workspace_id: int, entry_id: int) -> Entry:
        data = await self._request(
            "PATCH",
            f"/workspaces/{workspace_id}/time_entries/{entry_id}/stop",
            "stop time tracking",
        )
        with _malformed_payload("stop time tracking"):
            return entry_from_json(cast(dict[str, Any], data))

    async def current_entry(self) -> Optional[Entry]:
        data = await self._request(
            "GET", "/me/time_entries/current", "fetch the current time entry"
        )
        if not data:
            return None
        with _malformed_payload("fetch the current time entry"):
            return entry_from_json(data)
