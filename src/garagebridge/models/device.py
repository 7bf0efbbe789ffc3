"""Device model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from garagebridge.models._base import GarageBaseModel


class Device(GarageBaseModel):
    """A device registered on the user's account.

    Fields are mapped from the ``/api/v4/UserDeviceDetails/Get``
    response.  Descriptive values live in an ``Attributes`` list of
    ``{"AttributeDisplayName": ..., "Value": ...}`` pairs which is
    flattened into :attr:`attributes`.
    """

    device_id: str = Field(default="", validation_alias=AliasChoices("MyQDeviceId", "DeviceId", "device_id"))
    serial_number: str = ""
    device_type_name: str = Field(
        default="",
        validation_alias=AliasChoices("MyQDeviceTypeName", "DeviceTypeName", "device_type_name"),
    )
    attributes: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _flatten_attributes(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        attrs = values.get("Attributes")
        if not isinstance(attrs, list):
            return values
        flattened: dict[str, str] = {}
        for item in attrs:
            if not isinstance(item, dict):
                continue
            name = item.get("AttributeDisplayName")
            if name:
                flattened[str(name)] = str(item.get("Value", ""))
        remaining = {key: value for key, value in values.items() if key != "Attributes"}
        return {**remaining, "attributes": flattened, "raw": dict(values)}

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @property
    def description(self) -> str:
        """User-visible device description (``desc`` attribute)."""
        return self.attributes.get("desc", "")

    @property
    def door_state(self) -> str | None:
        """Raw door state token carried in the device listing, if any."""
        return self.attributes.get("doorstate")
