"""Public data models."""

from garagebridge.models.command import CommandStyle, RemoteCommand
from garagebridge.models.device import Device
from garagebridge.models.door import ConfirmationResult, DoorState, DoorStatus, PendingCommand, TargetState

__all__ = [
    "CommandStyle",
    "ConfirmationResult",
    "Device",
    "DoorState",
    "DoorStatus",
    "PendingCommand",
    "RemoteCommand",
    "TargetState",
]
