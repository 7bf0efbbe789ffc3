"""Wiring between the cloud gateway, the door state core and its consumers."""

from __future__ import annotations

import logging

from garagebridge.client import GarageClient
from garagebridge.config import BridgeConfig
from garagebridge.dispatcher import CommandDispatcher
from garagebridge.exceptions import GarageDeviceNotFoundError, GarageError
from garagebridge.gateway import StateGateway
from garagebridge.models.device import Device
from garagebridge.models.door import DoorStatus, TargetState
from garagebridge.reconciler import ReconciliationLoop
from garagebridge.state.mapping import DoorProfile, get_profile
from garagebridge.state.snapshot import DoorSnapshot

_logger = logging.getLogger(__name__)


class GarageBridge:
    """Owns the snapshot, the reconciliation loop and the command dispatcher.

    Usage::

        bridge = GarageBridge(config)
        device = await bridge.connect()   # fatal errors raise here
        await bridge.start()
        ...
        await bridge.stop()
    """

    def __init__(self, config: BridgeConfig, *, gateway: StateGateway | None = None) -> None:
        self._config = config
        self._profile: DoorProfile = get_profile(
            config.profile,
            door_id=config.door_id,
            infer_target=config.infer_target,
        )
        self._owned_client: GarageClient | None = None
        if gateway is None:
            self._owned_client = GarageClient(config)
            gateway = self._owned_client
        self._gateway = gateway
        self._snapshot = DoorSnapshot()
        self._device: Device | None = None
        self._dispatcher = CommandDispatcher(
            gateway,
            config.device_id,
            self._snapshot,
            self._profile,
            policy=config.confirmation,
            queue_size=config.command_queue_size,
        )
        self._reconciler = ReconciliationLoop(
            gateway,
            config.device_id,
            self._snapshot,
            self._profile,
            update_interval=config.update_interval,
            fast_poll_interval=config.fast_poll_interval,
            shutdown_timeout=config.shutdown_timeout,
            has_pending=lambda: self._dispatcher.pending is not None,
        )

    @property
    def snapshot(self) -> DoorSnapshot:
        return self._snapshot

    @property
    def profile(self) -> DoorProfile:
        return self._profile

    @property
    def device(self) -> Device:
        if self._device is None:
            raise GarageError("Bridge not connected. Call 'await bridge.connect()' first")
        return self._device

    @property
    def reconciler(self) -> ReconciliationLoop:
        return self._reconciler

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    async def connect(self) -> Device:
        """Log in, resolve the configured device and read its initial state.

        Any error raised here is fatal: the core never starts without an
        authenticated gateway and a resolved device.
        """
        self._config.validate_credentials()
        if self._owned_client is not None:
            await self._owned_client.__aenter__()

        _logger.info("Connecting to cloud service")
        await self._gateway.login()
        _logger.info("Connected")

        devices = await self._gateway.list_devices()
        device = next((d for d in devices if d.device_id == self._config.device_id), None)
        if device is None:
            raise GarageDeviceNotFoundError(self._config.device_id)
        self._device = device
        _logger.info("Bridging device %s (%s)", device.device_id, device.description or device.device_type_name)

        await self._reconciler.run_tick()
        return device

    async def start(self) -> None:
        """Start the update loop and the command consumer."""
        self._reconciler.start(initial_tick=self._device is None)
        self._dispatcher.start()

    async def stop(self) -> None:
        """Stop background tasks and release the owned client."""
        await self._reconciler.stop()
        await self._dispatcher.stop()
        await self.close()

    async def close(self) -> None:
        if self._owned_client is not None:
            await self._owned_client.close()

    def read(self) -> DoorStatus:
        return self._snapshot.read()

    def request_target_state(self, target: TargetState) -> bool:
        """Hand a target state change to the dispatcher without blocking."""
        return self._dispatcher.request_target_state(target)
