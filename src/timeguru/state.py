# SPDX-License-Identifier: MIT

from contextvars import ContextVar
from typing import Optional

_api_token: ContextVar[Optional[str]] = ContextVar("api_token", default=None)
_verbose: ContextVar[bool] = ContextVar("verbose", default=False)


def set_api_token(value: Optional[str]) -> None:
    _api_token.set(value)


def get_api_token() -> Optional[str]:
    return _api_token.get()


def set_verbose(value: bool) -> None:
    _verbose.set(value)


def get_verbose() -> bool:
    return _verbose.get()
