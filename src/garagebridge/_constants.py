"""Internal constants shared across the library."""

BASE_URL = "https://myqexternal.myqdevice.com"
USER_AGENT = "Chamberlain/3773 (iPhone; iOS 11.0.3; Scale/2.00)"
CULTURE = "en"

#: Application ID shipped with the vendor mobile apps; every brand
#: (LiftMaster, Chamberlain, Craftsman, Merlin) accepts the same value.
APPLICATION_ID = "Vj8pQggXLhLy0WHahglCD4N1nAkkXQtGYpq2HrHD7H1nvmbT55KqtN6RSF4ILB/i"

SESSION_EXPIRED_CODES: frozenset[str] = frozenset({"-3333"})

LOGIN_ENDPOINT = "/api/v4/User/Validate"
DEVICES_ENDPOINT = "/api/v4/UserDeviceDetails/Get"
GET_ATTRIBUTE_ENDPOINT = "/api/v4/DeviceAttribute/getDeviceAttribute"
PUT_ATTRIBUTE_ENDPOINT = "/api/v4/DeviceAttribute/PutDeviceAttribute"
DOOR_COMMAND_ENDPOINT = "/api/v4/Devices/{device_id}/Doors/{door_id}/Command"

DOOR_STATE_ATTRIBUTE = "doorstate"
DESIRED_DOOR_STATE_ATTRIBUTE = "desireddoorstate"

# ------------------------------------------------------------------
# Polling cadence
# ------------------------------------------------------------------

DEFAULT_UPDATE_INTERVAL: float = 5 * 60.0
FAST_POLL_INTERVAL: float = 5.0
CONFIRMATION_INTERVAL: float = 5.0
CONFIRMATION_DEADLINE: float = 60.0
