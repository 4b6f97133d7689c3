# SPDX-License-Identifier: MIT

from typing import Optional

from rich import print
from rich.padding import Padding


def header(account: Optional[str], sub_header: Optional[str] = None) -> None:
    """Print the application header.

    Args:
        account: Email of the account the data belongs to, if known
        sub_header: Optional sub-header text to display
    """
    print(Padding("[dark_orange]timeguru[/dark_orange]", (1, 0, 0, 1)))
    if sub_header is not None:
        print(Padding(f"[sandy_brown]{sub_header}[/sandy_brown]", (0, 1)))
    if account is not None:
        print(Padding(f"[plum1]{account}[/plum1]", (0, 1)))
