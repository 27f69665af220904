"""Serialization of device commands.

This module turns a caller's partial update into the full-record payload the
MELCloud service expects. The service needs every mutable field in every
command, so the payload is seeded from the device's current state and the
EffectiveFlags bitmask tells the service which fields to apply.

Encoding happens in two steps:

1. ``resolve_*_update`` validates the supplied fields and resolves aliases to
   raw codes. It needs no network access and is run before anything is sent.
2. ``build_*_command`` seeds a command from the freshly fetched device and
   applies the resolved fields, OR-ing one flag per field into the bitmask.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping
from typing import Any, NamedTuple

from pymelcloudhvac.const import (
    FAN_SPEED_AUTO,
    OPERATION_MODE_ALIASES,
    VANE_AUTO,
    VANE_HORIZONTAL_SWING,
    VANE_VERTICAL_SWING,
    ZONE_OPERATION_MODES,
    AirConditionerFlag,
    HeatPumpFlag,
)
from pymelcloudhvac.exceptions import ValidationError
from pymelcloudhvac.models import (
    AirConditionerCommand,
    AirConditionerUpdate,
    Device,
    HeatPumpCommand,
    HeatPumpUpdate,
)


__all__ = [
    "ZONE2_FIELDS",
    "ResolvedField",
    "build_air_conditioner_command",
    "build_heat_pump_command",
    "coerce_update",
    "resolve_air_conditioner_update",
    "resolve_fan_speed",
    "resolve_heat_pump_update",
    "resolve_operation_mode",
    "resolve_vane",
    "resolve_zone_mode",
]

ZONE_MODE_ALIASES = {label: code for code, label in ZONE_OPERATION_MODES.items()}

# Heat pump fields that only exist on units with a second zone
ZONE2_FIELDS = frozenset(
    {
        "operation_mode_zone2",
        "temperature_zone2",
        "heat_flow_temperature_zone2",
        "cool_flow_temperature_zone2",
    }
)


class ResolvedField(NamedTuple):
    """A supplied update field resolved to its wire value.

    Attributes:
        attribute: Command attribute the value is written to.
        flag: EffectiveFlags bit for the field.
        value: Raw value to send.
    """

    attribute: str
    flag: int
    value: Any


def _parse_int(value: Any, parameter_name: str) -> int:
    if isinstance(value, bool):
        msg = f"Invalid {parameter_name}: {value!r}"
        raise ValidationError(msg, parameter_name, value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii():
        try:
            return int(value.strip(), 10)
        except ValueError:
            pass
    msg = f"Invalid {parameter_name}: {value!r}"
    raise ValidationError(msg, parameter_name, value)


def _parse_float(value: Any, parameter_name: str) -> float:
    if isinstance(value, bool):
        msg = f"Invalid {parameter_name}: {value!r}"
        raise ValidationError(msg, parameter_name, value)
    if isinstance(value, str) and not value.isascii():
        msg = f"Invalid {parameter_name}: {value!r}"
        raise ValidationError(msg, parameter_name, value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        msg = f"Invalid {parameter_name}: {value!r}"
        raise ValidationError(msg, parameter_name, value) from None
    # NaN and infinity have no JSON encoding
    if not math.isfinite(number):
        msg = f"Invalid {parameter_name}: {value!r}"
        raise ValidationError(msg, parameter_name, value)
    return number


def _parse_bool(value: Any, parameter_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "on", "1", "false", "off", "0"):
        return value.strip().lower() in ("true", "on", "1")
    msg = f"Invalid {parameter_name}: {value!r}"
    raise ValidationError(msg, parameter_name, value)


def resolve_operation_mode(value: int | str) -> int:
    """Resolve an operation mode alias or code to its raw code.

    Aliases are case-insensitive: heat/hot/h, dry/d, cold/cool/c, fan/air/f
    and auto/a. Integers and numeric strings pass through unchanged.

    Raises:
        ValidationError: If the value is neither a known alias nor a number.
    """
    if isinstance(value, str):
        code = OPERATION_MODE_ALIASES.get(value.strip().lower())
        if code is not None:
            return code
    return _parse_int(value, "mode")


def resolve_fan_speed(value: int | str) -> int:
    """Resolve a fan speed ("auto" or a number) to its raw code."""
    if isinstance(value, str) and value.strip().lower() == "auto":
        return FAN_SPEED_AUTO
    return _parse_int(value, "fan_speed")


def resolve_vane(value: int | str, swing_code: int, parameter_name: str = "vane") -> int:
    """Resolve a vane position to its raw code.

    Args:
        value: "auto", "swing" or a position number.
        swing_code: Raw swing code of this vane (12 horizontal, 7 vertical).
        parameter_name: Name used in error messages.

    Raises:
        ValidationError: If the value cannot be resolved.
    """
    if isinstance(value, str):
        alias = value.strip().lower()
        if alias == "auto":
            return VANE_AUTO
        if alias == "swing":
            return swing_code
    return _parse_int(value, parameter_name)


def resolve_zone_mode(value: int | str, parameter_name: str = "zone_mode") -> int:
    """Resolve a heat pump zone mode label (e.g. "heat-flow") or code."""
    if isinstance(value, str):
        code = ZONE_MODE_ALIASES.get(value.strip().lower())
        if code is not None:
            return code
    return _parse_int(value, parameter_name)


def coerce_update(params: Any, update_type: type[Any]) -> Any:
    """Accept either an update dataclass or a mapping with the same keys.

    Raises:
        ValidationError: If a mapping contains unknown keys.
    """
    if isinstance(params, update_type):
        return params
    if isinstance(params, Mapping):
        known = {f.name for f in dataclasses.fields(update_type)}
        unknown = sorted(set(params) - known)
        if unknown:
            msg = f"Unknown parameter(s): {', '.join(unknown)}"
            raise ValidationError(msg, unknown[0], params[unknown[0]])
        return update_type(**params)
    msg = f"Expected {update_type.__name__} or a mapping, got {type(params).__name__}"
    raise ValidationError(msg, None, params)


def _supplied(update: Any) -> dict[str, Any]:
    return {f.name: getattr(update, f.name) for f in dataclasses.fields(update) if getattr(update, f.name) is not None}


def resolve_air_conditioner_update(
    params: AirConditionerUpdate | Mapping[str, Any],
) -> dict[str, ResolvedField]:
    """Validate an air conditioner update and resolve it to wire values.

    Args:
        params: AirConditionerUpdate or mapping with the same keys.

    Returns:
        Resolved fields keyed by update field name, in declaration order.

    Raises:
        ValidationError: If a value cannot be resolved or nothing was supplied.
    """
    update = coerce_update(params, AirConditionerUpdate)
    resolved: dict[str, ResolvedField] = {}

    for name, value in _supplied(update).items():
        if name == "power":
            resolved[name] = ResolvedField("power", AirConditionerFlag.POWER, _parse_bool(value, name))
        elif name == "temperature":
            resolved[name] = ResolvedField(
                "set_temperature", AirConditionerFlag.SET_TEMPERATURE, _parse_float(value, name)
            )
        elif name == "fan_speed":
            resolved[name] = ResolvedField("set_fan_speed", AirConditionerFlag.SET_FAN_SPEED, resolve_fan_speed(value))
        elif name == "mode":
            resolved[name] = ResolvedField(
                "operation_mode", AirConditionerFlag.OPERATION_MODE, resolve_operation_mode(value)
            )
        elif name == "vane_horizontal":
            resolved[name] = ResolvedField(
                "vane_horizontal",
                AirConditionerFlag.VANE_HORIZONTAL,
                resolve_vane(value, VANE_HORIZONTAL_SWING, name),
            )
        elif name == "vane_vertical":
            resolved[name] = ResolvedField(
                "vane_vertical",
                AirConditionerFlag.VANE_VERTICAL,
                resolve_vane(value, VANE_VERTICAL_SWING, name),
            )

    if not resolved:
        msg = "No valid parameters provided to set"
        raise ValidationError(msg)

    return resolved


_HEAT_PUMP_FIELDS: dict[str, tuple[str, HeatPumpFlag]] = {
    "power": ("power", HeatPumpFlag.POWER),
    "forced_hot_water_mode": ("forced_hot_water_mode", HeatPumpFlag.FORCED_HOT_WATER_MODE),
    "operation_mode_zone1": ("operation_mode_zone1", HeatPumpFlag.OPERATION_MODE_ZONE1),
    "operation_mode_zone2": ("operation_mode_zone2", HeatPumpFlag.OPERATION_MODE_ZONE2),
    "tank_water_temperature": ("set_tank_water_temperature", HeatPumpFlag.SET_TANK_WATER_TEMPERATURE),
    "temperature_zone1": ("set_temperature_zone1", HeatPumpFlag.SET_TEMPERATURE_ZONE1),
    "temperature_zone2": ("set_temperature_zone2", HeatPumpFlag.SET_TEMPERATURE_ZONE2),
    "heat_flow_temperature_zone1": ("set_heat_flow_temperature_zone1", HeatPumpFlag.SET_HEAT_FLOW_TEMPERATURE_ZONE1),
    "heat_flow_temperature_zone2": ("set_heat_flow_temperature_zone2", HeatPumpFlag.SET_HEAT_FLOW_TEMPERATURE_ZONE2),
    "cool_flow_temperature_zone1": ("set_cool_flow_temperature_zone1", HeatPumpFlag.SET_COOL_FLOW_TEMPERATURE_ZONE1),
    "cool_flow_temperature_zone2": ("set_cool_flow_temperature_zone2", HeatPumpFlag.SET_COOL_FLOW_TEMPERATURE_ZONE2),
}


def resolve_heat_pump_update(params: HeatPumpUpdate | Mapping[str, Any]) -> dict[str, ResolvedField]:
    """Validate a heat pump update and resolve it to wire values.

    Args:
        params: HeatPumpUpdate or mapping with the same keys.

    Returns:
        Resolved fields keyed by update field name, in declaration order.

    Raises:
        ValidationError: If a value cannot be resolved or nothing was supplied.
    """
    update = coerce_update(params, HeatPumpUpdate)
    resolved: dict[str, ResolvedField] = {}

    for name, value in _supplied(update).items():
        attribute, flag = _HEAT_PUMP_FIELDS[name]
        if name in ("power", "forced_hot_water_mode"):
            wire_value: Any = _parse_bool(value, name)
        elif name.startswith("operation_mode_zone"):
            wire_value = resolve_zone_mode(value, name)
        else:
            wire_value = _parse_float(value, name)
        resolved[name] = ResolvedField(attribute, flag, wire_value)

    if not resolved:
        msg = "No valid parameters provided to set"
        raise ValidationError(msg)

    return resolved


def build_air_conditioner_command(device: Device, resolved: Mapping[str, ResolvedField]) -> AirConditionerCommand:
    """Seed an air conditioner command from the device and apply resolved fields.

    Args:
        device: Current state of the target device, fetched fresh.
        resolved: Output of resolve_air_conditioner_update().

    Returns:
        AirConditionerCommand whose effective_flags has one bit per field.
    """
    state = device.air_conditioner
    if state is None:
        msg = f"Device {device.id} has no air conditioner state"
        raise ValidationError(msg, "device_id", device.id)

    command = AirConditionerCommand(
        device_id=device.id,
        power=device.power,
        set_temperature=state.set_temperature,
        set_fan_speed=state.fan_speed_raw,
        operation_mode=state.operation_mode_raw,
        vane_horizontal=state.vane_horizontal_raw,
        vane_vertical=state.vane_vertical_raw,
    )
    return _apply(command, resolved)


def build_heat_pump_command(device: Device, resolved: Mapping[str, ResolvedField]) -> HeatPumpCommand:
    """Seed a heat pump command from the device and apply resolved fields.

    Args:
        device: Current state of the target device, fetched fresh.
        resolved: Output of resolve_heat_pump_update().

    Returns:
        HeatPumpCommand whose effective_flags has one bit per field.
    """
    state = device.heat_pump
    if state is None:
        msg = f"Device {device.id} has no heat pump state"
        raise ValidationError(msg, "device_id", device.id)

    command = HeatPumpCommand(
        device_id=device.id,
        power=device.power,
        forced_hot_water_mode=state.forced_hot_water_mode,
        operation_mode_zone1=state.operation_mode_zone1_raw,
        operation_mode_zone2=state.operation_mode_zone2_raw,
        set_tank_water_temperature=state.set_tank_water_temperature,
        set_temperature_zone1=state.set_temperature_zone1,
        set_temperature_zone2=state.set_temperature_zone2,
        set_heat_flow_temperature_zone1=state.set_heat_flow_temperature_zone1,
        set_heat_flow_temperature_zone2=state.set_heat_flow_temperature_zone2,
        set_cool_flow_temperature_zone1=state.set_cool_flow_temperature_zone1,
        set_cool_flow_temperature_zone2=state.set_cool_flow_temperature_zone2,
    )
    return _apply(command, resolved)


def _apply(command: Any, resolved: Mapping[str, ResolvedField]) -> Any:
    flags = 0
    for field in resolved.values():
        setattr(command, field.attribute, field.value)
        flags |= field.flag
    command.effective_flags = int(flags)
    return command
