# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum


class EntryFilter(TypedDict):
    project_id: Optional[int]
    tag: Optional[str]
    client_id: Optional[int]
    billable: Optional[bool]
    start: Optional[pendulum.DateTime]
    end: Optional[pendulum.DateTime]


def is_filter_active(entry_filter: EntryFilter) -> bool:
    return any(value is not None for value in entry_filter.values())
