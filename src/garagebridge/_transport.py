"""HTTP transport for the cloud API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from garagebridge._constants import CULTURE, USER_AGENT
from garagebridge._redact import redact_for_log
from garagebridge.config import BridgeConfig
from garagebridge.exceptions import GarageTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`JsonTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        security_token: str | None = None,
        params: Mapping[str, str] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...


class JsonTransport:
    """HTTP transport that adds the API headers and decodes JSON replies."""

    def __init__(self, config: BridgeConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, security_token: str | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
            "MyQApplicationId": self._config.application_id,
            "Culture": CULTURE,
        }
        if security_token:
            headers["SecurityToken"] = security_token
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        security_token: str | None = None,
        params: Mapping[str, str] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON object."""
        url = f"{self._config.base_url}{endpoint}"
        data = json.dumps(body, separators=(",", ":")) if body is not None else None

        _logger.debug("%s %s params=%s body=%s", method, url, params, redact_for_log(body))

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers(security_token),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if resp.status < 200 or resp.status >= 300:
                    raise GarageTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except GarageTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GarageTransportError(
                f"Request to {endpoint} failed: {exc or type(exc).__name__}",
                endpoint=endpoint,
            ) from exc

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GarageTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(result, dict):
            raise GarageTransportError(
                f"Unexpected JSON shape from {endpoint}: {type(result).__name__}",
                endpoint=endpoint,
            )

        _logger.debug("%s %s -> %s", method, endpoint, redact_for_log(result))
        return result
