# SPDX-License-Identifier: MIT

from timeguru.model.entry import Entry
from timeguru.time import now_utc


def get_entry_template() -> Entry:
    now = now_utc()
    return {
        "remote_id": 0,
        "account_id": 0,
        "workspace_id": 0,
        "description": None,
        "start": now,
        "stop": now,
        "duration": 0,
        "project_id": None,
        "tags": [],
        "billable": False,
        "at": now,
    }
