"""garagebridge - Bridge a cloud garage door opener to HomeKit."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("garagebridge")
except PackageNotFoundError:
    __version__ = "0+local"
from garagebridge.bridge import GarageBridge
from garagebridge.client import GarageClient
from garagebridge.config import BridgeConfig, ConfirmationPolicy
from garagebridge.dispatcher import CommandDispatcher
from garagebridge.exceptions import (
    GarageApiError,
    GarageAuthenticationError,
    GarageConfigError,
    GarageDeviceNotFoundError,
    GarageError,
    GarageSessionExpiredError,
    GarageTransportError,
    UnknownStateError,
)
from garagebridge.gateway import StateGateway
from garagebridge.models import (
    CommandStyle,
    ConfirmationResult,
    Device,
    DoorState,
    DoorStatus,
    PendingCommand,
    RemoteCommand,
    TargetState,
)
from garagebridge.reconciler import ReconciliationLoop
from garagebridge.state.mapping import DoorProfile, get_profile, map_local_to_remote_command, map_remote_to_local
from garagebridge.state.snapshot import DoorSnapshot

__all__ = [
    "__version__",
    "BridgeConfig",
    "CommandDispatcher",
    "CommandStyle",
    "ConfirmationPolicy",
    "ConfirmationResult",
    "Device",
    "DoorProfile",
    "DoorSnapshot",
    "DoorState",
    "DoorStatus",
    "GarageApiError",
    "GarageAuthenticationError",
    "GarageBridge",
    "GarageClient",
    "GarageConfigError",
    "GarageDeviceNotFoundError",
    "GarageError",
    "GarageSessionExpiredError",
    "GarageTransportError",
    "PendingCommand",
    "ReconciliationLoop",
    "RemoteCommand",
    "StateGateway",
    "TargetState",
    "UnknownStateError",
    "get_profile",
    "map_local_to_remote_command",
    "map_remote_to_local",
]
