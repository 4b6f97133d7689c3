# SPDX-License-Identifier: MIT

from typing import Optional


class TimeGuruError(Exception):
    """Base class for every error the application surfaces to the user."""

    pass


class ConfigurationError(TimeGuruError):
    """Raised when required configuration (token, account) is missing."""

    pass


class RemoteError(TimeGuruError):
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(RemoteError):
    """Credentials were rejected. Fatal until the token is reconfigured."""

    pass


class NotFound(RemoteError):
    pass


class RateLimited(RemoteError):
    retryable = True

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after


class TransientNetwork(RemoteError):
    retryable = True


class LocalStoreError(TimeGuruError):
    """I/O or constraint failure in the local cache."""

    pass


class BridgeError(TimeGuruError):
    pass


class MutationInFlight(BridgeError):
    """A second blocking call was issued while the first is still running."""

    pass
