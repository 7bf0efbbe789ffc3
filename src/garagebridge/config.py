"""Bridge configuration for garagebridge."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from garagebridge._constants import (
    APPLICATION_ID,
    BASE_URL,
    CONFIRMATION_DEADLINE,
    CONFIRMATION_INTERVAL,
    DEFAULT_UPDATE_INTERVAL,
    FAST_POLL_INTERVAL,
)
from garagebridge.exceptions import GarageConfigError

_logger = logging.getLogger(__name__)

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_duration(value: Any) -> float:
    """Convert a duration to seconds.

    Accepts duration strings such as ``"5m"``, ``"1m30s"`` or ``"250ms"``,
    and bare numbers, which are read as nanoseconds (the unit
    numeric durations have in existing bridge config files).

    Raises :class:`GarageConfigError` for anything else.
    """
    if isinstance(value, bool):
        raise GarageConfigError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value) * 1e-9
    if not isinstance(value, str):
        raise GarageConfigError(f"invalid duration: {value!r}")

    text = value.strip()
    sign = 1.0
    if text[:1] in {"+", "-"}:
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise GarageConfigError(f"invalid duration: {value!r}")

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            raise GarageConfigError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise GarageConfigError(f"invalid duration: {value!r}")
    return sign * total


def _default_storage_path() -> str:
    return str(Path(os.environ.get("HOME", "~")).expanduser() / ".homecontrol" / "myq")


@dataclasses.dataclass(frozen=True)
class ConfirmationPolicy:
    """How a command's outcome is confirmed after the API accepts it.

    Parameters
    ----------
    interval : float
        Seconds between confirmation polls.
    deadline : float
        Seconds after which the confirmation sequence gives up.  The
        door may still be moving; the reconciliation loop keeps tracking
        it.
    delay_first : bool
        Sleep *interval* before the first check.  The remote API often
        reports the old state right after accepting a command, so this
        is the default.  ``False`` checks immediately and sleeps after.
    """

    interval: float = CONFIRMATION_INTERVAL
    deadline: float = CONFIRMATION_DEADLINE
    delay_first: bool = True

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise GarageConfigError("confirmation interval must be positive")
        if self.deadline <= 0:
            raise GarageConfigError("confirmation deadline must be positive")

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> ConfirmationPolicy:
        kwargs: dict[str, Any] = {}
        if "interval" in values:
            kwargs["interval"] = parse_duration(values["interval"])
        if "deadline" in values:
            kwargs["deadline"] = parse_duration(values["deadline"])
        if "delay_first" in values:
            kwargs["delay_first"] = bool(values["delay_first"])
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    username : str
        Cloud account username (email address).
    password : str
        Cloud account password.
    device_id : str
        ID of the garage door opener to bridge.
    brand : str
        Opener brand, reported as the accessory manufacturer.
    accessory_name : str
        Name the HomeKit accessory is published under.
    homekit_pin : str
        8-digit HomeKit setup code.
    homekit_port : int
        TCP port of the HomeKit accessory server.
    storage_path : str
        Directory holding the HomeKit pairing state.
    update_interval : float
        Seconds between regular state polls.
    fast_poll_interval : float
        Seconds until the follow-up poll while the door is moving.
    profile : str
        Name of the door profile (see :mod:`garagebridge.state.mapping`).
    door_id : str or None
        Door identifier for action-token deployments.
    infer_target : bool or None
        Override the profile's target inference setting.
    confirmation : ConfirmationPolicy
        Post-command confirmation settings.
    command_queue_size : int
        Maximum number of pending target state requests.  Requests
        beyond this are dropped.
    base_url : str
        API base URL.
    application_id : str
        Application ID header sent with every request.
    session_ttl : float
        Security token time-to-live in seconds.  ``0`` disables expiry.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    shutdown_timeout : float
        Seconds a stopping loop waits for an in-flight tick before
        cancelling it.
    debug : bool
        Enable debug logging.
    """

    username: str
    password: str
    device_id: str = ""
    brand: str = "liftmaster"
    accessory_name: str = "Garage Door"
    homekit_pin: str = "00102003"
    homekit_port: int = 51826
    storage_path: str = dataclasses.field(default_factory=_default_storage_path)
    update_interval: float = DEFAULT_UPDATE_INTERVAL
    fast_poll_interval: float = FAST_POLL_INTERVAL
    profile: str = "myq"
    door_id: str | None = None
    infer_target: bool | None = None
    confirmation: ConfirmationPolicy = dataclasses.field(default_factory=ConfirmationPolicy)
    command_queue_size: int = 4
    base_url: str = BASE_URL
    application_id: str = APPLICATION_ID
    session_ttl: float = 12 * 3600
    request_timeout: float = 30.0
    shutdown_timeout: float = 10.0
    debug: bool = False

    def __post_init__(self) -> None:
        if self.update_interval <= 0:
            raise GarageConfigError("update_interval must be positive")
        if self.fast_poll_interval <= 0:
            raise GarageConfigError("fast_poll_interval must be positive")
        for name in ("homekit_port", "command_queue_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise GarageConfigError(f"{name} must be an integer, got {value!r}")
        if not 0 < self.homekit_port < 65536:
            raise GarageConfigError(f"homekit_port out of range: {self.homekit_port}")
        if self.command_queue_size < 1:
            raise GarageConfigError("command_queue_size must be at least 1")
        if not isinstance(self.homekit_pin, str):
            raise GarageConfigError(f"homekit_pin must be a string like \"001-02-003\", got {self.homekit_pin!r}")
        pin = self.homekit_pin.replace("-", "")
        if len(pin) != 8 or not pin.isdigit():
            raise GarageConfigError(f"homekit_pin must be 8 digits, got {self.homekit_pin!r}")

    def validate_credentials(self) -> None:
        """Raise :class:`GarageConfigError` unless credentials and device are set."""
        missing = [name for name in ("username", "password", "device_id") if not getattr(self, name)]
        if missing:
            raise GarageConfigError(f"missing required config: {', '.join(missing)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads ``GARAGE_USERNAME``, ``GARAGE_PASSWORD``, ``GARAGE_DEVICE_ID``
        and optional ``GARAGE_*`` variables.  Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "GARAGE_USERNAME": "username",
            "GARAGE_PASSWORD": "password",
            "GARAGE_DEVICE_ID": "device_id",
            "GARAGE_BRAND": "brand",
            "GARAGE_ACCESSORY_NAME": "accessory_name",
            "GARAGE_HOMEKIT_PIN": "homekit_pin",
            "GARAGE_STORAGE_PATH": "storage_path",
            "GARAGE_PROFILE": "profile",
            "GARAGE_DOOR_ID": "door_id",
            "GARAGE_BASE_URL": "base_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        interval_env = env.get("GARAGE_UPDATE_INTERVAL")
        if interval_env is not None and "update_interval" not in overrides:
            config_kwargs["update_interval"] = parse_duration(interval_env)

        port_env = env.get("GARAGE_HOMEKIT_PORT")
        if port_env is not None and "homekit_port" not in overrides:
            try:
                config_kwargs["homekit_port"] = int(port_env)
            except ValueError as exc:
                raise GarageConfigError(f"GARAGE_HOMEKIT_PORT must be an integer, got {port_env!r}") from exc

        if "debug" not in overrides:
            config_kwargs["debug"] = _env_bool(env.get("GARAGE_DEBUG"), False)

        config_kwargs.setdefault("username", "")
        config_kwargs.setdefault("password", "")
        config_kwargs.update(overrides)

        return cls(**config_kwargs)

    @classmethod
    def from_file(cls, path: str | os.PathLike[str], **overrides: Any) -> BridgeConfig:
        """Load configuration from a JSON file.

        Durations (``update_interval``, ``fast_poll_interval``,
        ``request_timeout``, ``shutdown_timeout``, ``session_ttl`` and the
        ``confirmation`` block) accept strings like ``"5m"`` or numbers
        in nanoseconds.  Environment variables fill in fields the file
        leaves out; *overrides* win over both.

        Raises
        ------
        GarageConfigError
            If the file cannot be read or holds invalid values.
        """
        try:
            with open(path, encoding="utf-8") as fp:
                data = json.load(fp)
        except OSError as exc:
            raise GarageConfigError(f"cannot read config file {os.fspath(path)!r}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise GarageConfigError(f"invalid JSON in config file {os.fspath(path)!r}: {exc}") from exc
        if not isinstance(data, dict):
            raise GarageConfigError("config file must contain a JSON object")

        known = {f.name for f in dataclasses.fields(cls)}
        file_kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                _logger.warning("Ignoring unknown config key %r", key)
                continue
            if key in {"update_interval", "fast_poll_interval", "request_timeout", "shutdown_timeout", "session_ttl"}:
                try:
                    file_kwargs[key] = parse_duration(value)
                except GarageConfigError as exc:
                    raise GarageConfigError(f"{key}: {exc}") from exc
            elif key == "confirmation":
                if not isinstance(value, dict):
                    raise GarageConfigError("confirmation must be a JSON object")
                file_kwargs[key] = ConfirmationPolicy.from_mapping(value)
            else:
                file_kwargs[key] = value

        file_kwargs.update(overrides)
        return cls.from_env(**file_kwargs)
