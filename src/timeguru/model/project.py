# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict


class Project(TypedDict):
    remote_id: int
    account_id: int
    workspace_id: int
    client_id: Optional[int]
    name: str
    color: Optional[str]  # hex, e.g. "#06aaf5"
    active: bool
    billable: Optional[bool]
