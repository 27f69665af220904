"""Parsing utilities for MELCloud API responses.

This module turns the verbose records sent by the service into the
normalized models used by MelCloudClient. Every enumerated value keeps its
raw code next to its label because commands must send the raw code back.
"""

from __future__ import annotations

from typing import Any

from pymelcloudhvac.const import (
    FAN_SPEEDS,
    NO_ERROR_CODE,
    OPERATION_MODES,
    UNKNOWN_LABEL,
    VANE_POSITIONS,
    ZONE_OPERATION_MODES,
    DeviceType,
)
from pymelcloudhvac.models import (
    AirConditionerState,
    Device,
    DeviceCapabilities,
    DeviceConnectivity,
    DeviceFault,
    DeviceStatusSummary,
    EnergyReport,
    HeatPumpState,
)


__all__ = [
    "iter_structure_devices",
    "parse_air_conditioner_state",
    "parse_device",
    "parse_device_list",
    "parse_device_status_summary",
    "parse_energy_report",
    "parse_heat_pump_state",
]


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    """Return the value of the first key that is present and not None.

    Zero is a valid code (auto fan, auto vane), so presence is what counts,
    not truthiness.
    """
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _label(table: dict[int, str], raw: Any) -> str:
    if raw is None:
        return UNKNOWN_LABEL
    return table.get(raw, UNKNOWN_LABEL)


def parse_air_conditioner_state(data: dict[str, Any]) -> AirConditionerState:
    """Parse the live status of an air-to-air unit.

    The detail endpoint reports vanes as VaneHorizontal/VaneVertical while the
    device list uses VaneHorizontalDirection/VaneVerticalDirection; both are
    accepted. Fan speed comes from SetFanSpeed, falling back to FanSpeed.

    Args:
        data: Raw device record.

    Returns:
        AirConditionerState instance.
    """
    mode_raw = data.get("OperationMode")
    fan_raw = _first_present(data, "SetFanSpeed", "FanSpeed")
    vane_horizontal_raw = _first_present(data, "VaneHorizontal", "VaneHorizontalDirection")
    vane_vertical_raw = _first_present(data, "VaneVertical", "VaneVerticalDirection")

    return AirConditionerState(
        set_temperature=data.get("SetTemperature"),
        room_temperature=data.get("RoomTemperature"),
        outdoor_temperature=data.get("OutdoorTemperature"),
        operation_mode=_label(OPERATION_MODES, mode_raw),
        operation_mode_raw=mode_raw,
        fan_speed=_label(FAN_SPEEDS, fan_raw),
        fan_speed_raw=fan_raw,
        vane_horizontal=_label(VANE_POSITIONS, vane_horizontal_raw),
        vane_horizontal_raw=vane_horizontal_raw,
        vane_vertical=_label(VANE_POSITIONS, vane_vertical_raw),
        vane_vertical_raw=vane_vertical_raw,
        actual_fan_speed=data.get("ActualFanSpeed"),
        number_of_fan_speeds=data.get("NumberOfFanSpeeds"),
    )


def parse_heat_pump_state(data: dict[str, Any]) -> HeatPumpState:
    """Parse the live status of an air-to-water unit.

    Args:
        data: Raw device record.

    Returns:
        HeatPumpState instance.
    """
    zone1_raw = data.get("OperationModeZone1")
    zone2_raw = data.get("OperationModeZone2")

    return HeatPumpState(
        room_temperature_zone1=data.get("RoomTemperatureZone1"),
        room_temperature_zone2=data.get("RoomTemperatureZone2"),
        set_temperature_zone1=data.get("SetTemperatureZone1"),
        set_temperature_zone2=data.get("SetTemperatureZone2"),
        operation_mode_zone1=_label(ZONE_OPERATION_MODES, zone1_raw),
        operation_mode_zone1_raw=zone1_raw,
        operation_mode_zone2=_label(ZONE_OPERATION_MODES, zone2_raw),
        operation_mode_zone2_raw=zone2_raw,
        tank_water_temperature=data.get("TankWaterTemperature"),
        set_tank_water_temperature=data.get("SetTankWaterTemperature"),
        mixing_tank_water_temperature=data.get("MixingTankWaterTemperature"),
        forced_hot_water_mode=bool(data.get("ForcedHotWaterMode", False)),
        flow_temperature=data.get("FlowTemperature"),
        flow_temperature_zone1=data.get("FlowTemperatureZone1"),
        flow_temperature_zone2=data.get("FlowTemperatureZone2"),
        flow_temperature_boiler=data.get("FlowTemperatureBoiler"),
        return_temperature=data.get("ReturnTemperature"),
        return_temperature_zone1=data.get("ReturnTemperatureZone1"),
        return_temperature_zone2=data.get("ReturnTemperatureZone2"),
        return_temperature_boiler=data.get("ReturnTemperatureBoiler"),
        set_heat_flow_temperature_zone1=data.get("SetHeatFlowTemperatureZone1"),
        set_heat_flow_temperature_zone2=data.get("SetHeatFlowTemperatureZone2"),
        set_cool_flow_temperature_zone1=data.get("SetCoolFlowTemperatureZone1"),
        set_cool_flow_temperature_zone2=data.get("SetCoolFlowTemperatureZone2"),
        condensing_temperature=data.get("CondensingTemperature"),
        heat_pump_frequency=data.get("HeatPumpFrequency"),
        operation_state=data.get("OperationMode"),
        outdoor_temperature=data.get("OutdoorTemperature"),
    )


def parse_device(
    data: dict[str, Any],
    *,
    device_id: int | None = None,
    building_id: int | None = None,
    name: str | None = None,
    index: int | None = None,
) -> Device:
    """Parse a raw device record into a Device.

    Missing optional fields fall back to their documented defaults: no fault
    means error code 8000, a missing Offline flag means online.

    Args:
        data: Raw device record (from /Device/Get, or the nested "Device"
            record of a /User/ListDevices entry).
        device_id: Device ID; read from DeviceID when not given.
        building_id: Building ID; read from BuildingID when not given.
        name: Display name; read from DeviceName when not given.
        index: Position in the flattened device list.

    Returns:
        Device instance.
    """
    device_type = data.get("DeviceType", DeviceType.AIR_TO_AIR)
    is_heat_pump = device_type == DeviceType.AIR_TO_WATER

    return Device(
        id=device_id if device_id is not None else data.get("DeviceID"),
        building_id=building_id if building_id is not None else data.get("BuildingID"),
        name=name if name is not None else data.get("DeviceName"),
        device_type=device_type,
        power=data.get("Power"),
        index=index,
        air_conditioner=None if is_heat_pump else parse_air_conditioner_state(data),
        heat_pump=parse_heat_pump_state(data) if is_heat_pump else None,
        connectivity=DeviceConnectivity(
            offline=bool(data.get("Offline", False)),
            last_communication=data.get("LastCommunication"),
            next_communication=data.get("NextCommunication"),
            wifi_signal_strength=data.get("WifiSignalStrength"),
        ),
        fault=DeviceFault(
            has_error=bool(data.get("HasError", False)),
            error_code=NO_ERROR_CODE if data.get("ErrorCode") is None else data["ErrorCode"],
            error_message=data.get("ErrorMessage") or "",
        ),
        capabilities=DeviceCapabilities(
            can_cool=bool(data.get("CanCool", False)),
            can_heat=bool(data.get("CanHeat", False)),
            can_dry=bool(data.get("CanDry", False)),
            has_zone2=bool(data.get("HasZone2", False)),
            min_temp_cool_dry=data.get("MinTempCoolDry"),
            max_temp_cool_dry=data.get("MaxTempCoolDry"),
            min_temp_heat=data.get("MinTempHeat"),
            max_temp_heat=data.get("MaxTempHeat"),
            min_temp_auto=data.get("MinTempAutomatic"),
            max_temp_auto=data.get("MaxTempAutomatic"),
        ),
        raw_data=data,
    )


def iter_structure_devices(node: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect device entries from a building structure node, depth first.

    Devices attached directly to a node come before those of its floors,
    and floors come before areas, each in document order.

    Args:
        node: A building "Structure", a floor or an area.

    Returns:
        Device entries in traversal order.
    """
    entries: list[dict[str, Any]] = list(node.get("Devices") or [])
    for child in node.get("Floors") or []:
        entries.extend(iter_structure_devices(child))
    for child in node.get("Areas") or []:
        entries.extend(iter_structure_devices(child))
    return entries


def parse_device_list(data: list[dict[str, Any]]) -> list[Device]:
    """Flatten the /User/ListDevices building tree into one ordered list.

    Args:
        data: List of building records as returned by the service.

    Returns:
        Devices stamped with a zero-based index and their building ID.
    """
    devices: list[Device] = []
    for building in data:
        building_id = building.get("ID")
        for entry in iter_structure_devices(building.get("Structure") or {}):
            devices.append(
                parse_device(
                    entry.get("Device") or {},
                    device_id=entry.get("DeviceID"),
                    building_id=building_id,
                    name=entry.get("DeviceName"),
                    index=len(devices),
                )
            )
    return devices


def parse_energy_report(device_id: int, from_date: str, to_date: str, data: dict[str, Any]) -> EnergyReport:
    """Parse an /EnergyCost/Report response.

    Heating and cooling figures are shared by both device classes: they are
    the "heat"/"cool" modes of an air conditioner and the heating/cooling
    subsystems of a heat pump. Totals count each source field once.

    Args:
        device_id: Device the report was requested for.
        from_date: First day of the range.
        to_date: Last day of the range.
        data: Raw report record.

    Returns:
        EnergyReport instance keeping the raw response in raw_data.
    """

    def number(key: str) -> float:
        return float(data.get(key) or 0)

    auto = number("TotalAutoConsumed")
    heating = number("TotalHeatingConsumed")
    cooling = number("TotalCoolingConsumed")
    dry = number("TotalDryConsumed")
    fan = number("TotalFanConsumed")
    hot_water = number("TotalHotWaterConsumed")
    other = number("TotalOtherConsumed")

    heating_produced = number("TotalHeatingProduced")
    cooling_produced = number("TotalCoolingProduced")
    hot_water_produced = number("TotalHotWaterProduced")

    return EnergyReport(
        device_id=device_id,
        from_date=from_date,
        to_date=to_date,
        total_minutes=int(data.get("TotalMinutes") or 0),
        total_power_consumption=auto + heating + cooling + dry + fan + hot_water + other,
        total_power_production=heating_produced + cooling_produced + hot_water_produced,
        total_power_consumption_auto=auto,
        total_power_consumption_heat=heating,
        total_power_consumption_cool=cooling,
        total_power_consumption_dry=dry,
        total_power_consumption_vent=fan,
        total_power_consumption_heating=heating,
        total_power_consumption_cooling=cooling,
        total_power_consumption_hot_water=hot_water,
        total_power_production_heating=heating_produced,
        total_power_production_cooling=cooling_produced,
        total_power_production_hot_water=hot_water_produced,
        raw_data=data,
    )


def parse_device_status_summary(device: Device) -> DeviceStatusSummary:
    """Build the compact status view of a device.

    Args:
        device: Normalized device.

    Returns:
        DeviceStatusSummary instance.
    """
    summary = DeviceStatusSummary(
        id=device.id,
        name=device.name,
        type=device.type_name,
        online=device.is_online,
        has_error=device.fault.has_error,
        error_code=device.fault.error_code,
        error_message=device.fault.error_message,
        power=device.power,
        last_communication=device.connectivity.last_communication,
        wifi_signal_strength=device.connectivity.wifi_signal_strength,
        can_cool=device.capabilities.can_cool,
        can_heat=device.capabilities.can_heat,
        can_dry=device.capabilities.can_dry,
        has_zone2=device.capabilities.has_zone2,
    )

    if device.air_conditioner is not None:
        summary.room_temperature = device.air_conditioner.room_temperature
        summary.outdoor_temperature = device.air_conditioner.outdoor_temperature
        summary.target_temperature = device.air_conditioner.set_temperature

    if device.heat_pump is not None:
        summary.room_temperature = device.heat_pump.room_temperature_zone1
        summary.outdoor_temperature = device.heat_pump.outdoor_temperature
        summary.target_temperature = device.heat_pump.set_temperature_zone1
        summary.tank_water_temperature = device.heat_pump.tank_water_temperature
        summary.operation_state = device.heat_pump.operation_state

    return summary
