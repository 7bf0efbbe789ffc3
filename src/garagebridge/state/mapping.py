"""Mapping between remote door state tokens and the local door model.

Deployments disagree on the tokens they report and on how a door is
commanded.  A :class:`DoorProfile` captures one deployment's tables and
is fixed at configuration time.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from types import MappingProxyType

from garagebridge.exceptions import GarageConfigError, UnknownStateError
from garagebridge.models.command import CommandStyle, RemoteCommand
from garagebridge.models.door import DoorState, TargetState

_WORD_TOKENS: dict[str, DoorState] = {
    "open": DoorState.OPEN,
    "closed": DoorState.CLOSED,
    "opening": DoorState.OPENING,
    "closing": DoorState.CLOSING,
    "stopped": DoorState.STOPPED,
}


@dataclasses.dataclass(frozen=True)
class DoorProfile:
    """Deployment-specific door state tokens and command shape."""

    name: str
    state_tokens: Mapping[str, DoorState]
    command_style: CommandStyle
    open_command: str
    close_command: str
    door_id: str | None = None
    infer_target: bool = True

    def __post_init__(self) -> None:
        normalized = {token.strip().lower(): state for token, state in self.state_tokens.items()}
        object.__setattr__(self, "state_tokens", MappingProxyType(normalized))

    @property
    def observes_transitions(self) -> bool:
        """Whether the deployment ever reports ``opening``/``closing``."""
        return any(state.is_transitional for state in self.state_tokens.values())


PROFILES: dict[str, DoorProfile] = {
    "myq": DoorProfile(
        name="myq",
        state_tokens={
            "1": DoorState.OPEN,
            "2": DoorState.CLOSED,
            "3": DoorState.STOPPED,
            "4": DoorState.OPENING,
            "5": DoorState.CLOSING,
            **_WORD_TOKENS,
        },
        command_style=CommandStyle.STATE_NAME,
        open_command="1",
        close_command="0",
    ),
    "names": DoorProfile(
        name="names",
        state_tokens=_WORD_TOKENS,
        command_style=CommandStyle.STATE_NAME,
        open_command="open",
        close_command="closed",
    ),
    "basic": DoorProfile(
        name="basic",
        state_tokens={
            "open": DoorState.OPEN,
            "closed": DoorState.CLOSED,
            "stopped": DoorState.STOPPED,
        },
        command_style=CommandStyle.ACTION,
        open_command="OPEN_DOOR",
        close_command="CLOSE_DOOR",
        door_id="1",
    ),
}


def get_profile(
    name: str,
    *,
    door_id: str | None = None,
    infer_target: bool | None = None,
) -> DoorProfile:
    """Look up a built-in profile, applying per-installation overrides."""
    try:
        profile = PROFILES[name.strip().lower()]
    except KeyError:
        raise GarageConfigError(f"unknown door profile {name!r} (choose from {', '.join(sorted(PROFILES))})") from None

    changes: dict[str, object] = {}
    if door_id is not None:
        changes["door_id"] = door_id
    if infer_target is not None:
        changes["infer_target"] = infer_target
    if changes:
        profile = dataclasses.replace(profile, **changes)  # type: ignore[arg-type]
    if profile.command_style is CommandStyle.ACTION and not profile.door_id:
        raise GarageConfigError(f"profile {profile.name!r} sends action commands and needs a door_id")
    return profile


def map_remote_to_local(token: str, profile: DoorProfile) -> DoorState:
    """Map a remote state token to a :class:`DoorState`.

    Raises :class:`UnknownStateError` when the token matches none of the
    profile's tokens.
    """
    state = profile.state_tokens.get(str(token).strip().lower())
    if state is None:
        raise UnknownStateError(str(token))
    return state


def map_local_to_remote_command(target: TargetState, profile: DoorProfile) -> RemoteCommand:
    """Translate a target state into the gateway's command shape."""
    value = profile.open_command if target is TargetState.OPEN else profile.close_command
    door_id = profile.door_id if profile.command_style is CommandStyle.ACTION else None
    return RemoteCommand(style=profile.command_style, value=value, door_id=door_id)


def infer_target(current: DoorState) -> TargetState | None:
    """Target state implied by an observed door state.

    ``stopped`` implies nothing: the door halted short of either end.
    """
    if current in (DoorState.OPEN, DoorState.OPENING):
        return TargetState.OPEN
    if current in (DoorState.CLOSED, DoorState.CLOSING):
        return TargetState.CLOSED
    return None
