# SPDX-License-Identifier: MIT

import sqlite3

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS entries (
        remote_id INTEGER NOT NULL,
        account_id INTEGER NOT NULL,
        workspace_id INTEGER NOT NULL,
        project_id INTEGER,
        billable INTEGER NOT NULL,
        start INTEGER NOT NULL,
        stop INTEGER,
        duration INTEGER,
        description TEXT,
        at INTEGER,
        synced_at INTEGER NOT NULL,
        PRIMARY KEY (remote_id, account_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_entries_account_start ON entries(account_id, start)",
    "CREATE INDEX IF NOT EXISTS idx_entries_project_id ON entries(project_id)",
    """
    CREATE TABLE IF NOT EXISTS entry_tags (
        remote_id INTEGER NOT NULL,
        account_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        tag TEXT NOT NULL,
        PRIMARY KEY (remote_id, account_id, position)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        remote_id INTEGER NOT NULL,
        account_id INTEGER NOT NULL,
        workspace_id INTEGER NOT NULL,
        client_id INTEGER,
        name TEXT NOT NULL,
        color TEXT,
        active INTEGER NOT NULL,
        billable INTEGER,
        synced_at INTEGER NOT NULL,
        PRIMARY KEY (remote_id, account_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sync_metadata (
        account_id INTEGER NOT NULL,
        resource_kind TEXT NOT NULL,
        last_sync INTEGER NOT NULL,
        item_count INTEGER NOT NULL,
        PRIMARY KEY (account_id, resource_kind)
    )
    """,
]


def init_schema(connection: sqlite3.Connection) -> None:
    with connection:
        for statement in SCHEMA_STATEMENTS:
            connection.execute(statement)
