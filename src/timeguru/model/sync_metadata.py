# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import TypedDict

import pendulum


class ResourceKind(StrEnum):
    ENTRIES = "entries"
    PROJECTS = "projects"


class WipeScope(StrEnum):
    ENTRIES = "entries"
    ALL = "all"


class SyncMetadata(TypedDict):
    account_id: int
    resource_kind: ResourceKind
    last_sync: pendulum.DateTime
    item_count: int
