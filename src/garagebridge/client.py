"""High-level async client for the garage door cloud API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from garagebridge._api import devices as _devices_api
from garagebridge._api import door as _door_api
from garagebridge._api.login import build_login_request, parse_login_response
from garagebridge._constants import LOGIN_ENDPOINT
from garagebridge._transport import JsonTransport, Transport
from garagebridge.config import BridgeConfig
from garagebridge.exceptions import GarageError, GarageSessionExpiredError
from garagebridge.models.command import RemoteCommand
from garagebridge.models.device import Device
from garagebridge.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class GarageClient:
    """Async client for the garage door cloud API.

    Implements :class:`garagebridge.gateway.StateGateway`.

    Usage::

        async with GarageClient(config) as client:
            await client.login()
            devices = await client.list_devices()
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._session: Session | None = None
        self._login_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GarageClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = JsonTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session if this client created it."""
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self) -> None:
        """Authenticate and obtain a security token."""
        async with self._login_lock:
            await self._login_locked()

    async def _login_locked(self) -> Session:
        transport = self._require_transport()
        response = await transport.request_json(
            "POST",
            LOGIN_ENDPOINT,
            body=build_login_request(self._config),
        )
        token = parse_login_response(response)
        ttl = self._config.session_ttl if self._config.session_ttl > 0 else None
        self._session = Session(security_token=token, ttl=ttl)
        _logger.debug("Logged in; session ttl=%s", ttl)
        return self._session

    def _active_session(self) -> Session | None:
        if self._session is not None and not self._session.is_expired:
            return self._session
        return None

    async def ensure_session(self) -> Session:
        """Return an active session, re-authenticating if expired.

        Concurrent callers share one login: whoever waited on the lock
        picks up the session the first caller obtained.
        """
        session = self._active_session()
        if session is not None:
            return session
        async with self._login_lock:
            session = self._active_session()
            if session is not None:
                return session
            return await self._login_locked()

    def invalidate_session(self, stale: Session | None = None) -> None:
        """Force session invalidation (next call will re-authenticate).

        With *stale*, only that session is dropped; a newer one obtained
        by a concurrent caller is kept.
        """
        if stale is None or self._session is stale:
            self._session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise GarageError("Client not initialized. Use 'async with GarageClient(...) as client:'")
        return self._transport

    async def _call_with_reauth(self, fn: Callable[[Session, Transport], Awaitable[T]]) -> T:
        """Run an API call, retrying once on session expiry."""
        session = await self.ensure_session()
        transport = self._require_transport()
        try:
            return await fn(session, transport)
        except GarageSessionExpiredError:
            _logger.debug("Security token expired; logging in again")
            self.invalidate_session(session)
            session = await self.ensure_session()
            return await fn(session, transport)

    # ------------------------------------------------------------------
    # Gateway operations
    # ------------------------------------------------------------------

    async def list_devices(self) -> list[Device]:
        """Fetch all devices registered on the account."""
        return await self._call_with_reauth(_devices_api.fetch_devices)

    async def fetch_state(self, device_id: str) -> str:
        """Fetch the raw door state token of *device_id*."""

        async def _call(session: Session, transport: Transport) -> str:
            return await _door_api.fetch_door_state(session, transport, device_id)

        return await self._call_with_reauth(_call)

    async def send_command(self, device_id: str, command: RemoteCommand) -> None:
        """Send a door command to *device_id*."""

        async def _call(session: Session, transport: Transport) -> None:
            await _door_api.send_door_command(session, transport, device_id, command)

        await self._call_with_reauth(_call)
