"""Local door state model."""

from __future__ import annotations

import enum
import time

from pydantic import BaseModel, ConfigDict, Field


class DoorState(enum.StrEnum):
    """Observable door state exposed to the presentation layer."""

    OPEN = "open"
    CLOSED = "closed"
    OPENING = "opening"
    CLOSING = "closing"
    STOPPED = "stopped"

    @property
    def is_transitional(self) -> bool:
        """Whether the door is known to be moving."""
        return self in (DoorState.OPENING, DoorState.CLOSING)


class TargetState(enum.StrEnum):
    """Commanded door intent.  Never transitional."""

    OPEN = "open"
    CLOSED = "closed"

    @property
    def door_state(self) -> DoorState:
        """Terminal :class:`DoorState` this target settles into."""
        return DoorState.OPEN if self is TargetState.OPEN else DoorState.CLOSED


class DoorStatus(BaseModel):
    """Immutable view of the door snapshot at one point in time."""

    model_config = ConfigDict(frozen=True)

    current: DoorState
    target: TargetState


class PendingCommand(BaseModel):
    """A dispatched command awaiting confirmation."""

    model_config = ConfigDict(frozen=True)

    desired_state: DoorState
    issued_at: float = Field(default_factory=time.monotonic)
    """Monotonic timestamp of the successful send."""


class ConfirmationResult(BaseModel):
    """Outcome of a confirmation sequence."""

    model_config = ConfigDict(frozen=True)

    desired_state: DoorState
    confirmed: bool
    elapsed: float
    """Seconds from command issue to the end of the sequence."""
    last_state: DoorState | None = None
