"""Login endpoint: ``/api/v4/User/Validate``."""

from __future__ import annotations

import logging
from typing import Any

from garagebridge._constants import LOGIN_ENDPOINT
from garagebridge._redact import redact_for_log
from garagebridge.config import BridgeConfig
from garagebridge.exceptions import GarageAuthenticationError

_logger = logging.getLogger(__name__)


def build_login_request(config: BridgeConfig) -> dict[str, Any]:
    """Build the login request body."""
    return {"username": config.username, "password": config.password}


def parse_login_response(response: dict[str, Any]) -> str:
    """Extract the security token from a login response.

    Raises
    ------
    GarageAuthenticationError
        If login failed or the response carries no token.
    """
    code = str(response.get("ReturnCode", ""))
    if code != "0":
        raise GarageAuthenticationError(
            f"Login failed: code={code} message={response.get('ErrorMessage', '')}",
            code=code,
            endpoint=LOGIN_ENDPOINT,
        )

    _logger.debug("Login response parsed=%s", redact_for_log(response))
    token = response.get("SecurityToken")
    if not isinstance(token, str) or not token.strip():
        raise GarageAuthenticationError(
            "Login response missing SecurityToken",
            code=code,
            endpoint=LOGIN_ENDPOINT,
        )
    return token.strip()
