# SPDX-License-Identifier: MIT

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import pendulum

from timeguru.errors import LocalStoreError, NotFound
from timeguru.model.entry import Entry
from timeguru.model.filter import EntryFilter
from timeguru.model.project import Project
from timeguru.model.sync_metadata import ResourceKind, SyncMetadata, WipeScope
from timeguru.repository.schema import init_schema
from timeguru.time import (
    datetime_from_timestamp,
    datetime_from_timestamp_optional,
    datetime_to_timestamp,
    datetime_to_timestamp_optional,
    now_utc,
)

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "remote_id, account_id, workspace_id, project_id, billable, start, stop, "
    "duration, description, at"
)


class LocalStore:
    """SQLite cache of entries, projects and sync bookkeeping.

    A single connection is shared by the interface thread and the network
    thread, so every public operation runs under one lock and inside one
    transaction. Nothing is held across an await: callers on the event loop
    invoke these methods synchronously between awaits.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = str(path)
        self._lock = threading.Lock()
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            init_schema(self._connection)
        except (sqlite3.Error, OSError) as e:
            raise LocalStoreError(f"Failed to open database at {self.path}: {e}") from e
        logger.debug("opened local store at %s", self.path)

    def __enter__(self) -> "LocalStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._connection.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._connection:
                    yield self._connection
            except sqlite3.Error as e:
                logger.error("local store operation failed: %s", e)
                raise LocalStoreError(str(e)) from e

    # Entries

    def upsert_entries(self, account: int, entries: list[Entry]) -> int:
        with self._transaction() as connection:
            return self.__upsert_entries(connection, account, entries)

    def merge_entries(
        self, account: int, entries: list[Entry], synced_at: pendulum.DateTime
    ) -> int:
        """Upsert pulled entries and record the sync in a single transaction."""
        with self._transaction() as connection:
            count = self.__upsert_entries(connection, account, entries)
            self.__record_sync(
                connection, account, ResourceKind.ENTRIES, synced_at, count
            )
            return count

    def __upsert_entries(
        self, connection: sqlite3.Connection, account: int, entries: list[Entry]
    ) -> int:
        running = [entry for entry in entries if entry["duration"] is None]
        if len(running) > 1:
            raise LocalStoreError(
                f"{len(running)} running entries for account {account}, expected at most one"
            )

        synced_at = datetime_to_timestamp(now_utc())
        for entry in entries:
            connection.execute(
                f"""
                INSERT INTO entries ({_ENTRY_COLUMNS}, synced_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (remote_id, account_id) DO UPDATE SET
                    workspace_id = excluded.workspace_id,
                    project_id = excluded.project_id,
                    billable = excluded.billable,
                    start = excluded.start,
                    stop = excluded.stop,
                    duration = excluded.duration,
                    description = excluded.description,
                    at = excluded.at,
                    synced_at = excluded.synced_at
                """,
                (
                    entry["remote_id"],
                    account,
                    entry["workspace_id"],
                    entry["project_id"],
                    int(entry["billable"]),
                    datetime_to_timestamp(entry["start"]),
                    datetime_to_timestamp_optional(entry["stop"]),
                    entry["duration"],
                    entry["description"],
                    datetime_to_timestamp_optional(entry["at"]),
                    synced_at,
                ),
            )
            connection.execute(
                "DELETE FROM entry_tags WHERE remote_id = ? AND account_id = ?",
                (entry["remote_id"], account),
            )
            # Deduplicate tags, keeping first occurrence order
            for position, tag in enumerate(dict.fromkeys(entry["tags"] or [])):
                connection.execute(
                    "INSERT INTO entry_tags (remote_id, account_id, position, tag) "
                    "VALUES (?, ?, ?, ?)",
                    (entry["remote_id"], account, position, tag),
                )

        for entry in running:
            # Starting an entry stops whichever one was running before it
            new_start = datetime_to_timestamp(entry["start"])
            connection.execute(
                """
                UPDATE entries
                SET stop = MAX(start, ?), duration = MAX(0, ? - start)
                WHERE account_id = ? AND duration IS NULL AND remote_id != ?
                """,
                (new_start, new_start, account, entry["remote_id"]),
            )

        return len(entries)

    def query_entries(
        self,
        account: int,
        start: pendulum.DateTime,
        end: pendulum.DateTime,
        entry_filter: Optional[EntryFilter] = None,
    ) -> list[Entry]:
        """Entries of ``account`` overlapping the half-open range [start, end)."""
        start_ts = datetime_to_timestamp(start)
        end_ts = datetime_to_timestamp(end)

        conditions = [
            "account_id = ?",
            "start < ?",
            "(stop IS NULL OR stop > ? OR start >= ?)",
        ]
        params: list[Any] = [account, end_ts, start_ts, start_ts]

        if entry_filter is not None:
            if entry_filter["project_id"] is not None:
                conditions.append("project_id = ?")
                params.append(entry_filter["project_id"])
            if entry_filter["billable"] is not None:
                conditions.append("billable = ?")
                params.append(int(entry_filter["billable"]))
            if entry_filter["client_id"] is not None:
                conditions.append(
                    "project_id IN (SELECT remote_id FROM projects "
                    "WHERE account_id = ? AND client_id = ?)"
                )
                params.extend([account, entry_filter["client_id"]])
            if entry_filter["tag"] is not None:
                conditions.append(
                    "EXISTS (SELECT 1 FROM entry_tags t "
                    "WHERE t.remote_id = entries.remote_id "
                    "AND t.account_id = entries.account_id "
                    "AND t.tag = ? COLLATE NOCASE)"
                )
                params.append(entry_filter["tag"])
            if entry_filter["start"] is not None:
                conditions.append("start >= ?")
                params.append(datetime_to_timestamp(entry_filter["start"]))
            if entry_filter["end"] is not None:
                conditions.append("start < ?")
                params.append(datetime_to_timestamp(entry_filter["end"]))

        with self._transaction() as connection:
            rows = connection.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE {' AND '.join(conditions)}",
                params,
            ).fetchall()
            tags = self.__load_tags(connection, account)

        return [self.__entry_from_row(row, tags) for row in rows]

    def get_entry(self, account: int, entry_id: int) -> Entry:
        with self._transaction() as connection:
            row = connection.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries "
                "WHERE account_id = ? AND remote_id = ?",
                (account, entry_id),
            ).fetchone()
            if row is None:
                raise NotFound(f"Entry {entry_id} is not cached for account {account}")
            tags = self.__load_tags(connection, account, entry_id)
        return self.__entry_from_row(row, tags)

    def get_running_entry(self, account: int) -> Optional[Entry]:
        with self._transaction() as connection:
            row = connection.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries "
                "WHERE account_id = ? AND duration IS NULL "
                "ORDER BY start DESC LIMIT 1",
                (account,),
            ).fetchone()
            if row is None:
                return None
            tags = self.__load_tags(connection, account, row["remote_id"])
        return self.__entry_from_row(row, tags)

    def update_entry_project(
        self, account: int, entry_id: int, project_id: Optional[int]
    ) -> None:
        with self._transaction() as connection:
            cursor = connection.execute(
                "UPDATE entries SET project_id = ? WHERE account_id = ? AND remote_id = ?",
                (project_id, account, entry_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Entry {entry_id} is not cached for account {account}")

    def update_entry_description(
        self, account: int, entry_id: int, description: Optional[str]
    ) -> None:
        with self._transaction() as connection:
            cursor = connection.execute(
                "UPDATE entries SET description = ? WHERE account_id = ? AND remote_id = ?",
                (description, account, entry_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Entry {entry_id} is not cached for account {account}")

    def __load_tags(
        self,
        connection: sqlite3.Connection,
        account: int,
        entry_id: Optional[int] = None,
    ) -> dict[int, list[str]]:
        if entry_id is None:
            rows = connection.execute(
                "SELECT remote_id, tag FROM entry_tags WHERE account_id = ? "
                "ORDER BY remote_id, position",
                (account,),
            ).fetchall()
        else:
            rows = connection.execute(
                "SELECT remote_id, tag FROM entry_tags "
                "WHERE account_id = ? AND remote_id = ? ORDER BY position",
                (account, entry_id),
            ).fetchall()
        tags: dict[int, list[str]] = {}
        for row in rows:
            tags.setdefault(row["remote_id"], []).append(row["tag"])
        return tags

    def __entry_from_row(self, row: sqlite3.Row, tags: dict[int, list[str]]) -> Entry:
        return {
            "remote_id": row["remote_id"],
            "account_id": row["account_id"],
            "workspace_id": row["workspace_id"],
            "description": row["description"],
            "start": datetime_from_timestamp(row["start"]),
            "stop": datetime_from_timestamp_optional(row["stop"]),
            "duration": row["duration"],
            "project_id": row["project_id"],
            "tags": tags.get(row["remote_id"], []),
            "billable": bool(row["billable"]),
            "at": datetime_from_timestamp_optional(row["at"]),
        }

    # Projects

    def upsert_projects(self, account: int, projects: list[Project]) -> int:
        with self._transaction() as connection:
            return self.__upsert_projects(connection, account, projects)

    def merge_projects(
        self, account: int, projects: list[Project], synced_at: pendulum.DateTime
    ) -> int:
        with self._transaction() as connection:
            count = self.__upsert_projects(connection, account, projects)
            self.__record_sync(
                connection, account, ResourceKind.PROJECTS, synced_at, count
            )
            return count

    def __upsert_projects(
        self, connection: sqlite3.Connection, account: int, projects: list[Project]
    ) -> int:
        synced_at = datetime_to_timestamp(now_utc())
        for project in projects:
            connection.execute(
                """
                INSERT INTO projects (remote_id, account_id, workspace_id, client_id,
                    name, color, active, billable, synced_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (remote_id, account_id) DO UPDATE SET
                    workspace_id = excluded.workspace_id,
                    client_id = excluded.client_id,
                    name = excluded.name,
                    color = excluded.color,
                    active = excluded.active,
                    billable = excluded.billable,
                    synced_at = excluded.synced_at
                """,
                (
                    project["remote_id"],
                    account,
                    project["workspace_id"],
                    project["client_id"],
                    project["name"],
                    project["color"],
                    int(project["active"]),
                    None if project["billable"] is None else int(project["billable"]),
                    synced_at,
                ),
            )
        return len(projects)

    def get_projects(self, account: int) -> list[Project]:
        with self._transaction() as connection:
            rows = connection.execute(
                "SELECT remote_id, account_id, workspace_id, client_id, name, color, "
                "active, billable FROM projects WHERE account_id = ? ORDER BY name",
                (account,),
            ).fetchall()
        return [
            {
                "remote_id": row["remote_id"],
                "account_id": row["account_id"],
                "workspace_id": row["workspace_id"],
                "client_id": row["client_id"],
                "name": row["name"],
                "color": row["color"],
                "active": bool(row["active"]),
                "billable": None if row["billable"] is None else bool(row["billable"]),
            }
            for row in rows
        ]

    # Sync bookkeeping

    def record_sync(
        self,
        account: int,
        resource_kind: ResourceKind,
        timestamp: pendulum.DateTime,
        item_count: int = 0,
    ) -> None:
        with self._transaction() as connection:
            self.__record_sync(connection, account, resource_kind, timestamp, item_count)

    def __record_sync(
        self,
        connection: sqlite3.Connection,
        account: int,
        resource_kind: ResourceKind,
        timestamp: pendulum.DateTime,
        item_count: int,
    ) -> None:
        connection.execute(
            """
            INSERT INTO sync_metadata (account_id, resource_kind, last_sync, item_count)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (account_id, resource_kind) DO UPDATE SET
                last_sync = excluded.last_sync,
                item_count = excluded.item_count
            """,
            (account, str(resource_kind), datetime_to_timestamp(timestamp), item_count),
        )

    def last_sync(
        self, account: int, resource_kind: ResourceKind
    ) -> Optional[pendulum.DateTime]:
        with self._transaction() as connection:
            row = connection.execute(
                "SELECT last_sync FROM sync_metadata "
                "WHERE account_id = ? AND resource_kind = ?",
                (account, str(resource_kind)),
            ).fetchone()
        if row is None:
            return None
        return datetime_from_timestamp(row["last_sync"])

    def get_sync_metadata(self, account: int) -> list[SyncMetadata]:
        with self._transaction() as connection:
            rows = connection.execute(
                "SELECT account_id, resource_kind, last_sync, item_count "
                "FROM sync_metadata WHERE account_id = ? ORDER BY resource_kind",
                (account,),
            ).fetchall()
        return [
            {
                "account_id": row["account_id"],
                "resource_kind": ResourceKind(row["resource_kind"]),
                "last_sync": datetime_from_timestamp(row["last_sync"]),
                "item_count": row["item_count"],
            }
            for row in rows
        ]

    def wipe(self, scope: WipeScope) -> None:
        with self._transaction() as connection:
            connection.execute("DELETE FROM entries")
            connection.execute("DELETE FROM entry_tags")
            if scope == WipeScope.ALL:
                connection.execute("DELETE FROM projects")
                connection.execute("DELETE FROM sync_metadata")
            else:
                connection.execute(
                    "DELETE FROM sync_metadata WHERE resource_kind = ?",
                    (str(ResourceKind.ENTRIES),),
                )
        logger.info("wiped local store (%s)", scope)
