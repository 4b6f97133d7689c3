# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum

from timeguru.model.entry import Entry


class GroupedEntry(TypedDict):
    description: Optional[str]
    project_id: Optional[int]
    date: Optional[pendulum.Date]  # only set when grouping by day
    entries: list[Entry]
    total_duration: int
