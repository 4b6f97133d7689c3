# SPDX-License-Identifier: MIT

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypedDict, TypeVar

import pendulum

from timeguru.errors import AuthError, ConfigurationError, RemoteError
from timeguru.model.account import Account
from timeguru.model.entry import Entry
from timeguru.remote.client import TogglClient
from timeguru.repository.store import LocalStore
from timeguru.service.bridge import AsyncBridge
from timeguru.service.retry import RetryPolicy, Sleep, with_retry
from timeguru.time import now_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PullResult(TypedDict):
    entries: int
    projects: int
    synced_at: pendulum.DateTime


class AssignmentResult(TypedDict):
    succeeded: list[int]
    failed: list[int]


class SyncCoordinator:
    """
    Moves data between the remote service and the local store.

    Every mutation is sent to the remote service first and written to the
    store only once the remote side has accepted it, so a failed call leaves
    the cache as it was.
    """

    def __init__(
        self,
        client: TogglClient,
        store: LocalStore,
        account_id: int,
        retry_policy: Optional[RetryPolicy] = None,
        default_workspace_id: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.store = store
        self.account_id = account_id
        self.retry_policy = retry_policy or RetryPolicy()
        self.default_workspace_id = default_workspace_id
        self._sleep = sleep

    async def _retry(
        self, operation: Callable[[], Awaitable[T]], description: str
    ) -> T:
        return await with_retry(operation, self.retry_policy, description, self._sleep)

    async def current_user(self) -> Account:
        return await self._retry(self.client.current_user, "fetch current user")

    async def pull(self, start: pendulum.DateTime, end: pendulum.DateTime) -> PullResult:
        logger.info("pulling entries from %s to %s", start, end)
        entries = await self._retry(
            lambda: self.client.fetch_entries(start, end), "fetch entries"
        )
        projects = await self._retry(
            lambda: self.client.fetch_projects(self.account_id), "fetch projects"
        )

        synced_at = now_utc()
        # At most one entry may run; only the latest started one is kept
        running = sorted(
            (entry for entry in entries if entry["duration"] is None),
            key=lambda entry: entry["start"],
        )
        if len(running) > 1:
            stale = {entry["remote_id"] for entry in running[:-1]}
            logger.warning("dropping stale running entries %s", sorted(stale))
            entries = [entry for entry in entries if entry["remote_id"] not in stale]

        entry_count = self.store.merge_entries(self.account_id, entries, synced_at)
        project_count = self.store.merge_projects(self.account_id, projects, synced_at)
        logger.info("pulled %d entries and %d projects", entry_count, project_count)
        return {"entries": entry_count, "projects": project_count, "synced_at": synced_at}

    async def assign_project(self, entry_id: int, project_id: Optional[int]) -> Entry:
        entry = self.store.get_entry(self.account_id, entry_id)
        await self._retry(
            lambda: self.client.update_entry_project(
                entry["workspace_id"], entry_id, project_id
            ),
            "assign project",
        )
        self.store.update_entry_project(self.account_id, entry_id, project_id)
        logger.info("assigned project %s to entry %s", project_id, entry_id)
        return self.store.get_entry(self.account_id, entry_id)

    async def assign_project_to_entries(
        self, entry_ids: list[int], project_id: Optional[int]
    ) -> AssignmentResult:
        """
        Assign the project to each entry in turn, one remote call at a time.

        Entries that fail are reported rather than aborting the batch, except
        for rejected credentials, which stop it immediately.
        """
        result: AssignmentResult = {"succeeded": [], "failed": []}
        for entry_id in entry_ids:
            try:
                await self.assign_project(entry_id, project_id)
            except AuthError:
                raise
            except RemoteError as e:
                logger.error("failed to assign project to entry %s: %s", entry_id, e)
                result["failed"].append(entry_id)
            else:
                result["succeeded"].append(entry_id)
        return result

    async def rename_entry(self, entry_id: int, description: Optional[str]) -> Entry:
        entry = self.store.get_entry(self.account_id, entry_id)
        await self._retry(
            lambda: self.client.update_entry_description(
                entry["workspace_id"], entry_id, description
            ),
            "rename entry",
        )
        self.store.update_entry_description(self.account_id, entry_id, description)
        return self.store.get_entry(self.account_id, entry_id)

    async def _workspace_id(self) -> int:
        if self.default_workspace_id is None:
            account = await self.current_user()
            self.default_workspace_id = account["default_workspace_id"]
        if self.default_workspace_id is None:
            raise ConfigurationError("No default workspace is known for this account")
        return self.default_workspace_id

    async def start_tracking(self, description: Optional[str] = None) -> Entry:
        workspace_id = await self._workspace_id()
        # Not retried: a lost response would otherwise start a second entry
        entry = await self.client.start_entry(workspace_id, description)
        self.store.upsert_entries(self.account_id, [entry])
        logger.info("started entry %s", entry["remote_id"])
        return entry

    async def stop_tracking(self) -> Optional[Entry]:
        current = await self.current_entry()
        if current is None:
            return None
        entry = await self._retry(
            lambda: self.client.stop_entry(current["workspace_id"], current["remote_id"]),
            "stop entry",
        )
        self.store.upsert_entries(self.account_id, [entry])
        logger.info("stopped entry %s", entry["remote_id"])
        return entry

    async def current_entry(self) -> Optional[Entry]:
        entry = await self._retry(self.client.current_entry, "fetch current entry")
        if entry is not None:
            self.store.upsert_entries(self.account_id, [entry])
        return entry


class SyncService:
    """Blocking front for a ``SyncCoordinator`` running on an ``AsyncBridge``."""

    def __init__(self, coordinator: SyncCoordinator, bridge: AsyncBridge) -> None:
        self.coordinator = coordinator
        self.bridge = bridge

    @property
    def store(self) -> LocalStore:
        return self.coordinator.store

    @property
    def account_id(self) -> int:
        return self.coordinator.account_id

    def current_user(self) -> Account:
        return self.bridge.call(self.coordinator.current_user())

    def pull(self, start: pendulum.DateTime, end: pendulum.DateTime) -> PullResult:
        return self.bridge.call(self.coordinator.pull(start, end))

    def assign_project(self, entry_id: int, project_id: Optional[int]) -> Entry:
        return self.bridge.call(self.coordinator.assign_project(entry_id, project_id))

    def assign_project_to_entries(
        self, entry_ids: list[int], project_id: Optional[int]
    ) -> AssignmentResult:
        return self.bridge.call(
            self.coordinator.assign_project_to_entries(entry_ids, project_id)
        )

    def rename_entry(self, entry_id: int, description: Optional[str]) -> Entry:
        return self.bridge.call(self.coordinator.rename_entry(entry_id, description))

    def start_tracking(self, description: Optional[str] = None) -> Entry:
        return self.bridge.call(self.coordinator.start_tracking(description))

    def stop_tracking(self) -> Optional[Entry]:
        return self.bridge.call(self.coordinator.stop_tracking())

    def current_entry(self) -> Optional[Entry]:
        return self.bridge.call(self.coordinator.current_entry())

    def close(self) -> None:
        self.bridge.close()
