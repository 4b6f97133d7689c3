# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum


class Entry(TypedDict):
    remote_id: int
    account_id: int
    workspace_id: int
    description: Optional[str]
    start: pendulum.DateTime
    stop: Optional[pendulum.DateTime]
    duration: Optional[int]  # seconds, None while running
    project_id: Optional[int]
    tags: list[str]
    billable: bool
    at: Optional[pendulum.DateTime]  # last modified on the remote side
