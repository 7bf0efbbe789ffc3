"""Remote State Gateway interface.

The reconciliation loop and command dispatcher only depend on this
protocol; :class:`garagebridge.client.GarageClient` is the production
implementation.  Implementations must tolerate concurrent calls.
"""

from __future__ import annotations

from typing import Protocol

from garagebridge.models.command import RemoteCommand
from garagebridge.models.device import Device


class StateGateway(Protocol):
    """Reads and writes a single door's remote state."""

    async def login(self) -> None:
        ...

    async def list_devices(self) -> list[Device]:
        ...

    async def fetch_state(self, device_id: str) -> str:
        """Return the raw remote state token; raises ``GarageError`` on failure."""
        ...

    async def send_command(self, device_id: str, command: RemoteCommand) -> None:
        """Issue *command*; raises ``GarageError`` on failure."""
        ...
