# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict


class Account(TypedDict):
    id: int
    email: Optional[str]
    default_workspace_id: Optional[int]
