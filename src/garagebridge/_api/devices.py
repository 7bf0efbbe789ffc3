"""Device listing endpoint: ``/api/v4/UserDeviceDetails/Get``."""

from __future__ import annotations

from garagebridge._api._common import request_with_token
from garagebridge._constants import DEVICES_ENDPOINT
from garagebridge._transport import Transport
from garagebridge.models.device import Device
from garagebridge.session import Session


async def fetch_devices(session: Session, transport: Transport) -> list[Device]:
    """Fetch all devices registered on the account."""
    response = await request_with_token("GET", DEVICES_ENDPOINT, session=session, transport=transport)
    items = response.get("Devices")
    if not isinstance(items, list):
        return []
    return [Device.model_validate(item) for item in items if isinstance(item, dict)]
