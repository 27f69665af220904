"""High-level client for MELCloud devices.

This module provides the operations applications call: device discovery,
state reads, commands and energy reports. It coordinates the low-level API
layer with the parsers and serializers.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date
from typing import TYPE_CHECKING, Any

from pymelcloudhvac.api import MelCloudAPI
from pymelcloudhvac.auth import AuthenticationHandler
from pymelcloudhvac.const import (
    DATE_PATTERN,
    DEFAULT_APP_VERSION,
    DEFAULT_BASE_URL,
    DEFAULT_LANGUAGE,
    DEFAULT_SETTLE_DELAY,
    DEVICE_TYPE_LABELS,
    DeviceType,
)
from pymelcloudhvac.exceptions import DeviceNotFoundError, DeviceTypeMismatchError, ValidationError
from pymelcloudhvac.models import AirConditionerUpdate, Device, DeviceStatusSummary, EnergyReport, HeatPumpUpdate
from pymelcloudhvac.parsers import (
    parse_device,
    parse_device_list,
    parse_device_status_summary,
    parse_energy_report,
)
from pymelcloudhvac.serializers import (
    ZONE2_FIELDS,
    build_air_conditioner_command,
    build_heat_pump_command,
    resolve_air_conditioner_update,
    resolve_heat_pump_update,
)


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from aiohttp import ClientSession

    from pymelcloudhvac.resilience import ExponentialBackoff

_LOGGER = logging.getLogger(__name__)

_DATE_RE = re.compile(DATE_PATTERN)
_DEVICE_TYPE_NAMES = {label: code for code, label in DEVICE_TYPE_LABELS.items()}


class MelCloudClient:
    """Client for air conditioners and heat pumps connected to MELCloud.

    Every call goes to the service: nothing is cached between calls. The
    session token is obtained on first use and renewed transparently when
    the service rejects it. Transient failures (no response, 401, 429, 5xx)
    are retried with exponential backoff.

    Example:
        Basic usage with automatic session management:

        ```python
        from pymelcloudhvac import MelCloudClient

        async with MelCloudClient(email="user@example.com", password="password") as client:
            devices = await client.list_devices()

            for device in devices:
                print(device.name, device.type_name, device.power)

            await client.set_device(devices[0].id, {"mode": "cool", "temperature": 22})
        ```

        Session injection and a custom retry policy:

        ```python
        from aiohttp import ClientSession
        from pymelcloudhvac import ExponentialBackoff, MelCloudClient

        async with ClientSession() as session:
            client = MelCloudClient(
                email="user@example.com",
                password="password",
                session=session,
                backoff=ExponentialBackoff(max_retries=5),
            )

            async with client:
                report = await client.get_energy_report(12345, "2024-01-01", "2024-01-31")
        ```

    Attributes:
        api: Low-level MelCloudAPI instance for HTTP communication.
    """

    def __init__(
        self,
        email: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        language: int = DEFAULT_LANGUAGE,
        app_version: str = DEFAULT_APP_VERSION,
        session: ClientSession | None = None,
        auth_handler: AuthenticationHandler | None = None,
        backoff: ExponentialBackoff | None = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        """Initialize the MELCloud client.

        Args:
            email: Account email address.
            password: Account password.
            base_url: Base URL for the API. Defaults to MELCloud production API.
            language: Language code sent at login.
            app_version: App version string sent at login.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            auth_handler: Optional pre-configured AuthenticationHandler. If not
                provided, one will be created with the given credentials.
            backoff: Optional ExponentialBackoff for the retry wrapper.
            settle_delay: Seconds to wait after a command before re-reading
                the device.
        """
        if auth_handler is not None:
            self._auth_handler = auth_handler
        else:
            self._auth_handler = AuthenticationHandler(
                email=email,
                password=password,
                base_url=base_url,
                language=language,
                app_version=app_version,
                session=session,
            )

        self._api = MelCloudAPI(
            auth_handler=self._auth_handler,
            session=session,
            base_url=base_url,
            backoff=backoff,
        )
        self._settle_delay = settle_delay

    @property
    def api(self) -> MelCloudAPI:
        """Get the underlying API client.

        Returns:
            MelCloudAPI instance.
        """
        return self._api

    async def __aenter__(self) -> MelCloudClient:
        """Enter the context manager, creating a session if needed."""
        await self._api.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if it was created here."""
        await self._api.__aexit__(exc_type, exc_val, exc_tb)

    async def login(self) -> str:
        """Log in now instead of on first use.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If the service rejects the credentials.
        """
        return await self._api.login()

    # -------------------------------------------------------------------------
    # Discovery and state
    # -------------------------------------------------------------------------

    async def list_devices(self) -> list[Device]:
        """Get all devices of the account.

        The building/floor/area tree is flattened into one list; each device
        carries its position (index) and its building ID.

        Returns:
            List of Device instances.
        """
        data = await self._api.list_devices()
        devices = parse_device_list(data)
        _LOGGER.debug("Found %d device(s)", len(devices))
        return devices

    async def _resolve_building_id(self, device_id: int, building_id: int | None) -> int:
        if building_id is not None:
            return building_id

        for device in await self.list_devices():
            if device.id == device_id and device.building_id is not None:
                return device.building_id

        msg = f"Device with ID {device_id} not found"
        raise DeviceNotFoundError(msg, device_id)

    async def get_device(self, device_id: int, building_id: int | None = None) -> Device:
        """Get the current state of one device.

        Args:
            device_id: Device identifier.
            building_id: Building identifier; looked up with list_devices()
                when not given.

        Returns:
            Device instance.

        Raises:
            DeviceNotFoundError: If the device is not part of the account.
        """
        building_id = await self._resolve_building_id(device_id, building_id)
        data = await self._api.get_device(device_id, building_id)
        return parse_device(data, device_id=device_id, building_id=building_id)

    async def get_device_status(self, device_id: int, building_id: int | None = None) -> DeviceStatusSummary:
        """Get a compact status summary of one device."""
        return parse_device_status_summary(await self.get_device(device_id, building_id))

    async def get_devices_by_type(self, device_type: int | str) -> list[Device]:
        """Get devices of one capability class.

        Args:
            device_type: Raw type code, or "air-conditioner" / "heat-pump".

        Raises:
            ValidationError: If the type name is unknown.
        """
        if isinstance(device_type, str):
            code = _DEVICE_TYPE_NAMES.get(device_type.strip().lower())
            if code is None:
                msg = f"Unknown device type: {device_type!r}"
                raise ValidationError(msg, "device_type", device_type)
            device_type = code

        return [device for device in await self.list_devices() if device.device_type == device_type]

    async def get_air_conditioners(self) -> list[Device]:
        """Get all air-to-air devices."""
        return await self.get_devices_by_type(DeviceType.AIR_TO_AIR)

    async def get_heat_pumps(self) -> list[Device]:
        """Get all air-to-water devices."""
        return await self.get_devices_by_type(DeviceType.AIR_TO_WATER)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def set_device(
        self,
        device_id: int,
        params: AirConditionerUpdate | Mapping[str, Any],
        building_id: int | None = None,
    ) -> Device:
        """Change settings of an air conditioner.

        Only the supplied fields change; the rest of the command is filled
        from the device's current state.

        Args:
            device_id: Device identifier.
            params: AirConditionerUpdate, or a mapping with keys power,
                temperature, fan_speed, mode, vane_horizontal, vane_vertical.
            building_id: Building identifier (looked up when not given).

        Returns:
            Device state read back after the settle delay.

        Raises:
            ValidationError: If params are invalid or empty (nothing is sent).
            DeviceTypeMismatchError: If the device is a heat pump.
            DeviceNotFoundError: If the device is not part of the account.
        """
        resolved = resolve_air_conditioner_update(params)

        device = await self.get_device(device_id, building_id)
        if device.is_heat_pump:
            msg = f"Device {device_id} is a heat pump; use set_heat_pump_device()"
            raise DeviceTypeMismatchError(msg, "device_id", device_id)

        command = build_air_conditioner_command(device, resolved)
        _LOGGER.debug("Sending SetAta to device %s with flags %d", device_id, command.effective_flags)
        await self._api.set_ata(command.to_payload())

        return await self._read_back(device_id, device.building_id)

    async def set_heat_pump_device(
        self,
        device_id: int,
        params: HeatPumpUpdate | Mapping[str, Any],
        building_id: int | None = None,
    ) -> Device:
        """Change settings of a heat pump.

        Args:
            device_id: Device identifier.
            params: HeatPumpUpdate or a mapping with the same keys.
            building_id: Building identifier (looked up when not given).

        Returns:
            Device state read back after the settle delay.

        Raises:
            ValidationError: If params are invalid, empty, or address zone 2
                on a device without one.
            DeviceTypeMismatchError: If the device is not a heat pump.
            DeviceNotFoundError: If the device is not part of the account.
        """
        resolved = resolve_heat_pump_update(params)

        device = await self.get_device(device_id, building_id)
        if not device.is_heat_pump:
            msg = f"Device {device_id} is not a heat pump (type {device.device_type})"
            raise DeviceTypeMismatchError(msg, "device_id", device_id)

        zone2 = sorted(ZONE2_FIELDS.intersection(resolved))
        if zone2 and not await self._has_zone2(device):
            msg = f"Device {device_id} has no zone 2"
            raise ValidationError(msg, zone2[0], resolved[zone2[0]].value)

        command = build_heat_pump_command(device, resolved)
        _LOGGER.debug("Sending SetAtw to device %s with flags %d", device_id, command.effective_flags)
        await self._api.set_atw(command.to_payload())

        return await self._read_back(device_id, device.building_id)

    async def _has_zone2(self, device: Device) -> bool:
        # /Device/Get may leave HasZone2 out; the device list always carries it
        if device.raw_data.get("HasZone2") is not None:
            return device.capabilities.has_zone2

        for listed in await self.list_devices():
            if listed.id == device.id:
                return listed.capabilities.has_zone2
        return False

    async def _read_back(self, device_id: int, building_id: int | None) -> Device:
        # The service needs a moment before the new state is reported
        await asyncio.sleep(self._settle_delay)
        return await self.get_device(device_id, building_id)

    async def turn_on(self, device_id: int, building_id: int | None = None) -> Device:
        """Switch an air conditioner on."""
        return await self.set_device(device_id, AirConditionerUpdate(power=True), building_id)

    async def turn_off(self, device_id: int, building_id: int | None = None) -> Device:
        """Switch an air conditioner off."""
        return await self.set_device(device_id, AirConditionerUpdate(power=False), building_id)

    async def set_temperature(self, device_id: int, temperature: float, building_id: int | None = None) -> Device:
        """Set the target temperature of an air conditioner."""
        return await self.set_device(device_id, AirConditionerUpdate(temperature=temperature), building_id)

    async def set_hot_water_mode(self, device_id: int, enabled: bool, building_id: int | None = None) -> Device:
        """Switch forced hot water mode of a heat pump on or off."""
        return await self.set_heat_pump_device(
            device_id, HeatPumpUpdate(forced_hot_water_mode=enabled), building_id
        )

    async def set_tank_water_temperature(
        self, device_id: int, temperature: float, building_id: int | None = None
    ) -> Device:
        """Set the hot water tank target temperature of a heat pump."""
        return await self.set_heat_pump_device(
            device_id, HeatPumpUpdate(tank_water_temperature=temperature), building_id
        )

    async def set_zone_temperature(
        self, device_id: int, zone: int, temperature: float, building_id: int | None = None
    ) -> Device:
        """Set the room target temperature of heat pump zone 1 or 2.

        Raises:
            ValidationError: If zone is not 1 or 2.
        """
        if isinstance(zone, bool) or not isinstance(zone, int) or zone not in (1, 2):
            msg = "Zone must be 1 or 2"
            raise ValidationError(msg, "zone", zone)

        if zone == 1:
            update = HeatPumpUpdate(temperature_zone1=temperature)
        else:
            update = HeatPumpUpdate(temperature_zone2=temperature)

        return await self.set_heat_pump_device(device_id, update, building_id)

    # -------------------------------------------------------------------------
    # Energy
    # -------------------------------------------------------------------------

    async def get_energy_report(
        self,
        device_id: int,
        from_date: str | date,
        to_date: str | date,
        building_id: int | None = None,
    ) -> EnergyReport:
        """Get consumption figures for an inclusive date range.

        Args:
            device_id: Device identifier.
            from_date: First day, as "YYYY-MM-DD" or a date.
            to_date: Last day, as "YYYY-MM-DD" or a date.
            building_id: Building identifier (looked up when not given).

        Returns:
            EnergyReport with the raw response in raw_data.

        Raises:
            ValidationError: If a date is not zero-padded YYYY-MM-DD.
            DeviceNotFoundError: If the device is not part of the account.
        """
        from_text = _format_date(from_date, "from_date")
        to_text = _format_date(to_date, "to_date")

        # The report endpoint is keyed by device only, but the lookup proves
        # the device belongs to the account
        await self._resolve_building_id(device_id, building_id)

        data = await self._api.energy_report(device_id, from_text, to_text)
        return parse_energy_report(device_id, from_text, to_text, data)


def _format_date(value: str | date, parameter_name: str) -> str:
    if isinstance(value, date):
        return value.isoformat()[:10]
    if isinstance(value, str) and _DATE_RE.fullmatch(value):
        return value
    msg = f"Invalid {parameter_name}: {value!r}, expected YYYY-MM-DD"
    raise ValidationError(msg, parameter_name, value)
