"""Remote command shapes."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, model_validator


class CommandStyle(enum.StrEnum):
    """How a deployment's API expects door commands."""

    STATE_NAME = "state_name"
    """Write the desired state as a named device attribute."""
    ACTION = "action"
    """Post an action token addressed to a separate door identifier."""


class RemoteCommand(BaseModel):
    """A door command in the shape the gateway expects."""

    model_config = ConfigDict(frozen=True)

    style: CommandStyle
    value: str
    door_id: str | None = None

    @model_validator(mode="after")
    def _require_door_for_actions(self) -> RemoteCommand:
        if self.style is CommandStyle.ACTION and not self.door_id:
            raise ValueError("action commands require a door_id")
        return self
