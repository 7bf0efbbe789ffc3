"""Door state endpoints.

Endpoints:
  - /api/v4/DeviceAttribute/getDeviceAttribute (read ``doorstate``)
  - /api/v4/DeviceAttribute/PutDeviceAttribute (write ``desireddoorstate``)
  - /api/v4/Devices/{device_id}/Doors/{door_id}/Command (action tokens)
"""

from __future__ import annotations

import logging

from garagebridge._api._common import request_with_token
from garagebridge._constants import (
    DESIRED_DOOR_STATE_ATTRIBUTE,
    DOOR_COMMAND_ENDPOINT,
    DOOR_STATE_ATTRIBUTE,
    GET_ATTRIBUTE_ENDPOINT,
    PUT_ATTRIBUTE_ENDPOINT,
)
from garagebridge._transport import Transport
from garagebridge.exceptions import GarageApiError
from garagebridge.models.command import CommandStyle, RemoteCommand
from garagebridge.session import Session

_logger = logging.getLogger(__name__)


async def fetch_door_state(session: Session, transport: Transport, device_id: str) -> str:
    """Return the raw ``doorstate`` token reported for *device_id*."""
    response = await request_with_token(
        "GET",
        GET_ATTRIBUTE_ENDPOINT,
        session=session,
        transport=transport,
        params={"MyQDeviceId": device_id, "AttributeName": DOOR_STATE_ATTRIBUTE},
    )
    value = response.get("AttributeValue")
    if value is None or str(value).strip() == "":
        raise GarageApiError(
            f"{GET_ATTRIBUTE_ENDPOINT} returned no AttributeValue",
            code="missing_value",
            endpoint=GET_ATTRIBUTE_ENDPOINT,
        )
    return str(value).strip()


async def send_door_command(
    session: Session,
    transport: Transport,
    device_id: str,
    command: RemoteCommand,
) -> None:
    """Send *command* to the door of *device_id*."""
    if command.style is CommandStyle.ACTION:
        endpoint = DOOR_COMMAND_ENDPOINT.format(device_id=device_id, door_id=command.door_id)
        _logger.debug("Sending action %s to device=%s door=%s", command.value, device_id, command.door_id)
        await request_with_token(
            "POST",
            endpoint,
            session=session,
            transport=transport,
            body={"command": command.value},
        )
        return

    _logger.debug("Setting %s=%s on device=%s", DESIRED_DOOR_STATE_ATTRIBUTE, command.value, device_id)
    await request_with_token(
        "PUT",
        PUT_ATTRIBUTE_ENDPOINT,
        session=session,
        transport=transport,
        body={
            "MyQDeviceId": device_id,
            "AttributeName": DESIRED_DOOR_STATE_ATTRIBUTE,
            "AttributeValue": command.value,
        },
    )
