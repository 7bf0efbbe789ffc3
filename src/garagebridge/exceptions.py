"""Custom exception hierarchy for garagebridge."""

from __future__ import annotations


class GarageError(Exception):
    """Base exception for all garagebridge errors."""


class GarageConfigError(GarageError):
    """Invalid or missing configuration."""


class GarageTransportError(GarageError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class GarageApiError(GarageError):
    """API returned a non-zero ``ReturnCode`` (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class GarageAuthenticationError(GarageApiError):
    """Login failed or credentials were rejected."""


class GarageSessionExpiredError(GarageAuthenticationError):
    """Security token rejected by the server.

    Raised when a post-login API call fails with a return code that
    marks the token as expired (e.g. ``-3333``).  The client catches
    this internally to trigger automatic re-authentication.
    """


class GarageDeviceNotFoundError(GarageError):
    """The configured device ID is not registered on the account."""

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        super().__init__(f"couldn't find device ID {device_id!r}")


class UnknownStateError(GarageError):
    """A remote door state token matched none of the profile's tokens.

    Callers treat this as a soft warning: the previous local state is kept.
    """

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"unrecognized door state token {token!r}")
