"""Constants for pymelcloudhvac library."""

from __future__ import annotations

from enum import IntEnum, IntFlag


# API Configuration
DEFAULT_BASE_URL = "https://app.melcloud.com/Mitsubishi.Wifi.Client"
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_LANGUAGE = 0  # English
DEFAULT_APP_VERSION = "1.34.13.0"
CONTEXT_KEY_HEADER = "X-MitsContextKey"

# Endpoints
LOGIN_ENDPOINT = "/Login/ClientLogin2"
LIST_DEVICES_ENDPOINT = "/User/ListDevices"
GET_DEVICE_ENDPOINT = "/Device/Get"
SET_ATA_ENDPOINT = "/Device/SetAta"
SET_ATW_ENDPOINT = "/Device/SetAtw"
ENERGY_REPORT_ENDPOINT = "/EnergyCost/Report"

# Retry policy (3 attempts in total, waiting 1s then 2s)
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE_DELAY = 1.0
DEFAULT_BACKOFF_EXPONENTIAL_BASE = 2.0

# Pause between a command and re-reading the device state
DEFAULT_SETTLE_DELAY = 1.0  # seconds

# Fault reporting
NO_ERROR_CODE = 8000
UNKNOWN_LABEL = "unknown"

# Energy report dates are sent verbatim and must be zero padded
DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"


class DeviceType(IntEnum):
    """Capability class reported in the DeviceType field."""

    AIR_TO_AIR = 0
    AIR_TO_WATER = 1


DEVICE_TYPE_LABELS = {
    DeviceType.AIR_TO_AIR: "air-conditioner",
    DeviceType.AIR_TO_WATER: "heat-pump",
}


class AirConditionerFlag(IntFlag):
    """EffectiveFlags bits for /Device/SetAta."""

    POWER = 1
    OPERATION_MODE = 2
    SET_TEMPERATURE = 4
    SET_FAN_SPEED = 8
    VANE_VERTICAL = 16
    VANE_HORIZONTAL = 256


class HeatPumpFlag(IntFlag):
    """EffectiveFlags bits for /Device/SetAtw."""

    POWER = 1
    FORCED_HOT_WATER_MODE = 2
    OPERATION_MODE_ZONE1 = 4
    OPERATION_MODE_ZONE2 = 8
    SET_TANK_WATER_TEMPERATURE = 16
    SET_TEMPERATURE_ZONE1 = 32
    SET_TEMPERATURE_ZONE2 = 64
    SET_HEAT_FLOW_TEMPERATURE_ZONE1 = 128
    SET_HEAT_FLOW_TEMPERATURE_ZONE2 = 256
    SET_COOL_FLOW_TEMPERATURE_ZONE1 = 512
    SET_COOL_FLOW_TEMPERATURE_ZONE2 = 1024


# Decoding tables (raw code -> label)
OPERATION_MODES = {1: "heat", 2: "dry", 3: "cold", 7: "fan", 8: "auto"}
FAN_SPEEDS = {0: "auto", 1: "1", 2: "2", 3: "3", 4: "4", 5: "5"}
# Horizontal swing is 12 and vertical swing is 7; both vanes share this table
VANE_POSITIONS = {0: "auto", 1: "1", 2: "2", 3: "3", 4: "4", 5: "5", 7: "swing", 12: "swing"}
ZONE_OPERATION_MODES = {
    0: "heat-thermostat",
    1: "heat-flow",
    2: "curve",
    3: "cool-thermostat",
    4: "cool-flow",
}

# Encoding tables (alias -> raw code)
OPERATION_MODE_ALIASES = {
    "heat": 1,
    "hot": 1,
    "h": 1,
    "dry": 2,
    "d": 2,
    "cold": 3,
    "cool": 3,
    "c": 3,
    "fan": 7,
    "air": 7,
    "f": 7,
    "auto": 8,
    "a": 8,
}
VANE_AUTO = 0
VANE_HORIZONTAL_SWING = 12
VANE_VERTICAL_SWING = 7
FAN_SPEED_AUTO = 0
