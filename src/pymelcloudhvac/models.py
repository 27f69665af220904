"""Data models for MELCloud API requests and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pymelcloudhvac.const import DEVICE_TYPE_LABELS, NO_ERROR_CODE, UNKNOWN_LABEL, DeviceType


__all__ = [
    "AirConditionerCommand",
    "AirConditionerState",
    "AirConditionerUpdate",
    "Device",
    "DeviceCapabilities",
    "DeviceConnectivity",
    "DeviceFault",
    "DeviceStatusSummary",
    "EnergyReport",
    "HeatPumpCommand",
    "HeatPumpState",
    "HeatPumpUpdate",
    "LoginResponse",
]


@dataclass
class LoginResponse:
    """Response from the ClientLogin2 endpoint.

    Attributes:
        context_key: Session token sent in the X-MitsContextKey header.
        client_id: Account identifier, when reported.
        name: Account holder name, when reported.
        expiry: Token expiry timestamp as sent by the service.
    """

    context_key: str
    client_id: int | None = None
    name: str | None = None
    expiry: str | None = None


@dataclass
class DeviceConnectivity:
    """Device connectivity status.

    Attributes:
        offline: Whether the service has lost contact with the unit.
        last_communication: Timestamp of the last report from the unit.
        next_communication: Timestamp of the next expected report.
        wifi_signal_strength: Signal strength in dBm.
    """

    offline: bool = False
    last_communication: str | None = None
    next_communication: str | None = None
    wifi_signal_strength: int | None = None


@dataclass
class DeviceFault:
    """Fault status of a device."""

    has_error: bool = False
    error_code: int = NO_ERROR_CODE
    error_message: str = ""


@dataclass
class DeviceCapabilities:
    """What the device can do and its temperature limits."""

    can_cool: bool = False
    can_heat: bool = False
    can_dry: bool = False
    has_zone2: bool = False
    min_temp_cool_dry: float | None = None
    max_temp_cool_dry: float | None = None
    min_temp_heat: float | None = None
    max_temp_heat: float | None = None
    min_temp_auto: float | None = None
    max_temp_auto: float | None = None


@dataclass
class AirConditionerState:
    """Live status of an air-to-air unit.

    Every enumerated value is kept twice: a readable label and the raw code.
    The raw code is what has to be sent back in a command.
    """

    set_temperature: float | None = None
    room_temperature: float | None = None
    outdoor_temperature: float | None = None
    operation_mode: str = UNKNOWN_LABEL
    operation_mode_raw: int | None = None
    fan_speed: str = UNKNOWN_LABEL
    fan_speed_raw: int | None = None
    vane_horizontal: str = UNKNOWN_LABEL
    vane_horizontal_raw: int | None = None
    vane_vertical: str = UNKNOWN_LABEL
    vane_vertical_raw: int | None = None
    actual_fan_speed: int | None = None
    number_of_fan_speeds: int | None = None


@dataclass
class HeatPumpState:
    """Live status of an air-to-water unit."""

    room_temperature_zone1: float | None = None
    room_temperature_zone2: float | None = None
    set_temperature_zone1: float | None = None
    set_temperature_zone2: float | None = None
    operation_mode_zone1: str = UNKNOWN_LABEL
    operation_mode_zone1_raw: int | None = None
    operation_mode_zone2: str = UNKNOWN_LABEL
    operation_mode_zone2_raw: int | None = None
    tank_water_temperature: float | None = None
    set_tank_water_temperature: float | None = None
    mixing_tank_water_temperature: float | None = None
    forced_hot_water_mode: bool = False
    flow_temperature: float | None = None
    flow_temperature_zone1: float | None = None
    flow_temperature_zone2: float | None = None
    flow_temperature_boiler: float | None = None
    return_temperature: float | None = None
    return_temperature_zone1: float | None = None
    return_temperature_zone2: float | None = None
    return_temperature_boiler: float | None = None
    set_heat_flow_temperature_zone1: float | None = None
    set_heat_flow_temperature_zone2: float | None = None
    set_cool_flow_temperature_zone1: float | None = None
    set_cool_flow_temperature_zone2: float | None = None
    condensing_temperature: float | None = None
    heat_pump_frequency: int | None = None
    operation_state: int | None = None
    outdoor_temperature: float | None = None


@dataclass
class Device:
    """Normalized device record.

    Attributes:
        id: Device identifier.
        building_id: Identifier of the building the device belongs to.
        name: Display name.
        device_type: Raw capability code (0 air conditioner, 1 heat pump).
        power: Whether the unit is switched on.
        index: Position in the flattened device list (only set by list_devices).
        air_conditioner: Air-to-air status, None for heat pumps.
        heat_pump: Air-to-water status, None for everything else.
        connectivity: Online status and communication timestamps.
        fault: Error flag, code and message.
        capabilities: Supported modes, zone 2 and temperature limits.
        raw_data: Original API record for fields not modeled here.
    """

    id: int
    building_id: int | None
    name: str | None
    device_type: int
    power: bool | None = None
    index: int | None = None
    air_conditioner: AirConditionerState | None = None
    heat_pump: HeatPumpState | None = None
    connectivity: DeviceConnectivity = field(default_factory=DeviceConnectivity)
    fault: DeviceFault = field(default_factory=DeviceFault)
    capabilities: DeviceCapabilities = field(default_factory=DeviceCapabilities)
    raw_data: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_heat_pump(self) -> bool:
        """Check if device is an air-to-water heat pump."""
        return self.device_type == DeviceType.AIR_TO_WATER

    @property
    def is_air_conditioner(self) -> bool:
        """Check if device is an air-to-air unit."""
        return self.device_type == DeviceType.AIR_TO_AIR

    @property
    def type_name(self) -> str:
        """Readable capability class."""
        return DEVICE_TYPE_LABELS.get(self.device_type, UNKNOWN_LABEL)

    @property
    def is_online(self) -> bool:
        """Check if device is online."""
        return not self.connectivity.offline

    @property
    def is_powered_on(self) -> bool:
        """Check if device is powered on."""
        return self.power or False

    @property
    def has_error(self) -> bool:
        """Check if device reports a fault."""
        return self.fault.has_error


@dataclass
class DeviceStatusSummary:
    """Compact status view of a device."""

    id: int
    name: str | None
    type: str
    online: bool
    has_error: bool
    error_code: int
    error_message: str
    power: bool | None
    last_communication: str | None
    wifi_signal_strength: int | None = None
    room_temperature: float | None = None
    outdoor_temperature: float | None = None
    target_temperature: float | None = None
    can_cool: bool = False
    can_heat: bool = False
    can_dry: bool = False
    has_zone2: bool = False
    tank_water_temperature: float | None = None
    operation_state: int | None = None


@dataclass
class AirConditionerUpdate:
    """Partial update for an air conditioner.

    Fields left as None are not touched. Values may be given as aliases
    ("cool", "swing", "auto") or as raw codes.
    """

    power: bool | None = None
    temperature: float | None = None
    fan_speed: int | str | None = None
    mode: int | str | None = None
    vane_horizontal: int | str | None = None
    vane_vertical: int | str | None = None


@dataclass
class HeatPumpUpdate:
    """Partial update for a heat pump. Fields left as None are not touched."""

    power: bool | None = None
    forced_hot_water_mode: bool | None = None
    operation_mode_zone1: int | str | None = None
    operation_mode_zone2: int | str | None = None
    tank_water_temperature: float | None = None
    temperature_zone1: float | None = None
    temperature_zone2: float | None = None
    heat_flow_temperature_zone1: float | None = None
    heat_flow_temperature_zone2: float | None = None
    cool_flow_temperature_zone1: float | None = None
    cool_flow_temperature_zone2: float | None = None


@dataclass
class AirConditionerCommand:
    """Full-record payload for /Device/SetAta."""

    device_id: int
    power: bool | None
    set_temperature: float | None
    set_fan_speed: int | None
    operation_mode: int | None
    vane_horizontal: int | None
    vane_vertical: int | None
    effective_flags: int = 0

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body expected by the service."""
        return {
            "DeviceID": self.device_id,
            "DeviceType": int(DeviceType.AIR_TO_AIR),
            "Power": self.power,
            "SetTemperature": self.set_temperature,
            "SetFanSpeed": self.set_fan_speed,
            "OperationMode": self.operation_mode,
            "VaneHorizontal": self.vane_horizontal,
            "VaneVertical": self.vane_vertical,
            "EffectiveFlags": int(self.effective_flags),
            "HasPendingCommand": True,
        }


@dataclass
class HeatPumpCommand:
    """Full-record payload for /Device/SetAtw."""

    device_id: int
    power: bool | None
    forced_hot_water_mode: bool
    operation_mode_zone1: int | None
    operation_mode_zone2: int | None
    set_tank_water_temperature: float | None
    set_temperature_zone1: float | None
    set_temperature_zone2: float | None
    set_heat_flow_temperature_zone1: float | None
    set_heat_flow_temperature_zone2: float | None
    set_cool_flow_temperature_zone1: float | None
    set_cool_flow_temperature_zone2: float | None
    effective_flags: int = 0

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body expected by the service."""
        return {
            "DeviceID": self.device_id,
            "DeviceType": int(DeviceType.AIR_TO_WATER),
            "Power": self.power,
            "ForcedHotWaterMode": self.forced_hot_water_mode,
            "OperationModeZone1": self.operation_mode_zone1,
            "OperationModeZone2": self.operation_mode_zone2,
            "SetTankWaterTemperature": self.set_tank_water_temperature,
            "SetTemperatureZone1": self.set_temperature_zone1,
            "SetTemperatureZone2": self.set_temperature_zone2,
            "SetHeatFlowTemperatureZone1": self.set_heat_flow_temperature_zone1,
            "SetHeatFlowTemperatureZone2": self.set_heat_flow_temperature_zone2,
            "SetCoolFlowTemperatureZone1": self.set_cool_flow_temperature_zone1,
            "SetCoolFlowTemperatureZone2": self.set_cool_flow_temperature_zone2,
            "EffectiveFlags": int(self.effective_flags),
            "HasPendingCommand": True,
        }


@dataclass
class EnergyReport:
    """Aggregated consumption for a device over an inclusive date range.

    Consumption is split both by air conditioner mode and by heat pump
    subsystem; the fields that do not apply to a device stay at zero.

    Attributes:
        device_id: Device the report belongs to.
        from_date: First day of the range (YYYY-MM-DD).
        to_date: Last day of the range (YYYY-MM-DD).
        total_minutes: Runtime in minutes.
        total_power_consumption: Sum of all consumption fields.
        total_power_production: Sum of all production fields.
        raw_data: Original API response for fields not modeled here.
    """

    device_id: int
    from_date: str
    to_date: str
    total_minutes: int = 0
    total_power_consumption: float = 0.0
    total_power_production: float = 0.0
    total_power_consumption_auto: float = 0.0
    total_power_consumption_heat: float = 0.0
    total_power_consumption_cool: float = 0.0
    total_power_consumption_dry: float = 0.0
    total_power_consumption_vent: float = 0.0
    total_power_consumption_heating: float = 0.0
    total_power_consumption_cooling: float = 0.0
    total_power_consumption_hot_water: float = 0.0
    total_power_production_heating: float = 0.0
    total_power_production_cooling: float = 0.0
    total_power_production_hot_water: float = 0.0
    raw_data: dict[str, Any] = field(default_factory=dict, repr=False)
