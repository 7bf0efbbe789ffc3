"""Shared helpers for API endpoint modules.

Centralizes return code checking and the authenticated request call.
Internal to garagebridge and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from garagebridge._constants import SESSION_EXPIRED_CODES
from garagebridge._transport import Transport
from garagebridge.exceptions import GarageApiError, GarageSessionExpiredError
from garagebridge.session import Session


def _raise_for_code(*, endpoint: str, code: str, message: str) -> None:
    if code in SESSION_EXPIRED_CODES:
        raise GarageSessionExpiredError(
            f"{endpoint} failed: code={code} message={message}",
            code=code,
            endpoint=endpoint,
        )
    raise GarageApiError(
        f"{endpoint} failed: code={code} message={message}",
        code=code,
        endpoint=endpoint,
    )


def check_return_code(endpoint: str, response: Mapping[str, Any]) -> None:
    """Raise the matching :class:`GarageApiError` unless ``ReturnCode`` is ``"0"``."""
    code = str(response.get("ReturnCode", ""))
    if code != "0":
        _raise_for_code(endpoint=endpoint, code=code, message=str(response.get("ErrorMessage", "")))


async def request_with_token(
    method: str,
    endpoint: str,
    *,
    session: Session,
    transport: Transport,
    params: Mapping[str, str] | None = None,
    body: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Send an authenticated request and return the checked response."""
    response = await transport.request_json(
        method,
        endpoint,
        security_token=session.security_token,
        params=params,
        body=body,
    )
    check_return_code(endpoint, response)
    return response
