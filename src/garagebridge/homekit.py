"""HomeKit presentation layer.

Publishes the bridged door as a HAP ``GarageDoorOpener`` accessory.
Snapshot writes are pushed into the ``CurrentDoorState`` and
``TargetDoorState`` characteristics; a controller writing
``TargetDoorState`` hands the request to the dispatcher.
"""

from __future__ import annotations

import logging
from typing import Any

from pyhap.accessory import Accessory
from pyhap.const import CATEGORY_GARAGE_DOOR_OPENER

from garagebridge.bridge import GarageBridge
from garagebridge.models.door import DoorState, DoorStatus, TargetState

_logger = logging.getLogger(__name__)

# HAP characteristic values.
HAP_CURRENT_DOOR_STATE: dict[DoorState, int] = {
    DoorState.OPEN: 0,
    DoorState.CLOSED: 1,
    DoorState.OPENING: 2,
    DoorState.CLOSING: 3,
    DoorState.STOPPED: 4,
}
HAP_TARGET_DOOR_STATE: dict[TargetState, int] = {
    TargetState.OPEN: 0,
    TargetState.CLOSED: 1,
}
_TARGET_FROM_HAP: dict[int, TargetState] = {value: key for key, value in HAP_TARGET_DOOR_STATE.items()}


def format_pincode(pin: str) -> bytes:
    """Format an 8-digit setup code as HAP expects (``XXX-XX-XXX``)."""
    digits = pin.replace("-", "")
    return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}".encode("ascii")


class GarageDoorAccessory(Accessory):
    """A garage door opener backed by a :class:`GarageBridge`."""

    category = CATEGORY_GARAGE_DOOR_OPENER

    def __init__(self, driver: Any, display_name: str, *, bridge: GarageBridge, brand: str = "") -> None:
        super().__init__(driver, display_name)
        self._bridge = bridge

        device = bridge.device
        self.set_info_service(
            manufacturer=brand or None,
            model=device.description or device.device_type_name or None,
            serial_number=device.serial_number or device.device_id,
        )

        status = bridge.read()
        service = self.add_preload_service("GarageDoorOpener")
        self.char_current_state = service.configure_char(
            "CurrentDoorState",
            value=HAP_CURRENT_DOOR_STATE[status.current],
        )
        self.char_target_state = service.configure_char(
            "TargetDoorState",
            value=HAP_TARGET_DOOR_STATE[status.target],
            setter_callback=self._on_target_state_write,
        )
        self.char_obstruction = service.configure_char("ObstructionDetected", value=False)

        self._unsubscribe = bridge.snapshot.subscribe(self._on_snapshot)

    def _on_target_state_write(self, value: int) -> None:
        """Controller wrote ``TargetDoorState``; must not block."""
        target = _TARGET_FROM_HAP.get(int(value))
        if target is None:
            _logger.warning("Ignoring invalid target door state %r", value)
            return
        self._bridge.request_target_state(target)

    def _on_snapshot(self, status: DoorStatus) -> None:
        current = HAP_CURRENT_DOOR_STATE[status.current]
        if self.char_current_state.value != current:
            self.char_current_state.set_value(current)
        target = HAP_TARGET_DOOR_STATE[status.target]
        if self.char_target_state.value != target:
            self.char_target_state.set_value(target)

    async def run(self) -> None:
        await self._bridge.start()

    async def stop(self) -> None:
        self._unsubscribe()
        await self._bridge.stop()
        await super().stop()
