from __future__ import annotations

import json
from pathlib import Path

import pytest

from garagebridge.config import BridgeConfig, ConfirmationPolicy, parse_duration
from garagebridge.exceptions import GarageConfigError


@pytest.mark.parametrize(
    ("value", "seconds"),
    [
        ("5m", 300.0),
        ("1m30s", 90.0),
        ("250ms", 0.25),
        ("1h", 3600.0),
        ("1.5s", 1.5),
        ("0", 0.0),
        (300_000_000_000, 300.0),
    ],
)
def test_parse_duration(value: object, seconds: float) -> None:
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "5", "5 minutes", "m5", True, None, [1]])
def test_parse_duration_rejects_garbage(value: object) -> None:
    with pytest.raises(GarageConfigError):
        parse_duration(value)


def test_defaults_match_bridge_conventions() -> None:
    config = BridgeConfig(username="u", password="p", device_id="1")

    assert config.brand == "liftmaster"
    assert config.accessory_name == "Garage Door"
    assert config.homekit_pin == "00102003"
    assert config.update_interval == 300.0
    assert config.fast_poll_interval == 5.0
    assert config.confirmation == ConfirmationPolicy(interval=5.0, deadline=60.0, delay_first=True)
    assert config.storage_path.endswith(".homecontrol/myq")


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(GarageConfigError):
        BridgeConfig(username="u", password="p", homekit_pin="1234")
    with pytest.raises(GarageConfigError):
        BridgeConfig(username="u", password="p", update_interval=0)
    with pytest.raises(GarageConfigError):
        ConfirmationPolicy(deadline=0)


def test_validate_credentials_lists_missing_fields() -> None:
    config = BridgeConfig(username="u", password="")

    with pytest.raises(GarageConfigError, match="password, device_id"):
        config.validate_credentials()


def test_from_file_reads_bridge_field_names(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GARAGE_USERNAME", raising=False)
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "username": "me@example.com",
                "password": "secret",
                "device_id": "987",
                "brand": "chamberlain",
                "homekit_pin": "11122333",
                "update_interval": "2m",
                "confirmation": {"deadline": "90s", "delay_first": False},
                "something_else": 1,
            }
        ),
        encoding="utf-8",
    )

    config = BridgeConfig.from_file(path)

    assert config.username == "me@example.com"
    assert config.device_id == "987"
    assert config.brand == "chamberlain"
    assert config.update_interval == 120.0
    assert config.confirmation.deadline == 90.0
    assert config.confirmation.interval == 5.0
    assert config.confirmation.delay_first is False


def test_from_file_accepts_nanosecond_numbers(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"username": "u", "password": "p", "update_interval": 60_000_000_000}))

    assert BridgeConfig.from_file(path).update_interval == 60.0


def test_env_fills_gaps_and_file_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GARAGE_PASSWORD", "from-env")
    monkeypatch.setenv("GARAGE_USERNAME", "env-user")
    monkeypatch.setenv("GARAGE_DEBUG", "yes")
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"username": "file-user"}))

    config = BridgeConfig.from_file(path)

    assert config.username == "file-user"
    assert config.password == "from-env"
    assert config.debug is True


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GARAGE_USERNAME", "env-user")
    monkeypatch.setenv("GARAGE_UPDATE_INTERVAL", "30s")

    config = BridgeConfig.from_env(username="explicit", password="p")

    assert config.username == "explicit"
    assert config.update_interval == 30.0


def test_from_file_errors(tmp_path: Path) -> None:
    with pytest.raises(GarageConfigError):
        BridgeConfig.from_file(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(GarageConfigError):
        BridgeConfig.from_file(bad)

    wrong = tmp_path / "list.json"
    wrong.write_text("[]")
    with pytest.raises(GarageConfigError):
        BridgeConfig.from_file(wrong)


def test_wrongly_typed_values_raise_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"username": "u", "password": "p", "homekit_pin": 102003}))
    with pytest.raises(GarageConfigError, match="homekit_pin"):
        BridgeConfig.from_file(path)

    path.write_text(json.dumps({"username": "u", "password": "p", "homekit_port": "51826"}))
    with pytest.raises(GarageConfigError, match="homekit_port"):
        BridgeConfig.from_file(path)

    monkeypatch.setenv("GARAGE_HOMEKIT_PORT", "not-a-port")
    with pytest.raises(GarageConfigError, match="GARAGE_HOMEKIT_PORT"):
        BridgeConfig.from_env(username="u", password="p")


def test_homekit_port_must_be_in_range() -> None:
    with pytest.raises(GarageConfigError):
        BridgeConfig(username="u", password="p", homekit_port=70000)
