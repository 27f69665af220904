"""Integration tests for MelCloudClient with real API."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest
from aiohttp import ClientSession

from pymelcloudhvac import DeviceNotFoundError, MelCloudClient


if TYPE_CHECKING:
    from pymelcloudhvac import Device


pytestmark = [pytest.mark.integration]


class TestClientSessionManagement:
    """Integration tests for client session management."""

    async def test_client_with_injected_session(self, integration_config: dict[str, str]) -> None:
        """Test client works with injected session and leaves it open."""
        async with ClientSession() as session:
            client = MelCloudClient(
                email=integration_config["email"],
                password=integration_config["password"],
                base_url=integration_config["base_url"],
                session=session,
            )

            async with client:
                devices = await client.list_devices()
                assert isinstance(devices, list)

            assert not session.closed, "Injected session should not be closed by client"


class TestDeviceDiscovery:
    """Integration tests for device discovery and state reads."""

    async def test_list_devices(self, client: MelCloudClient) -> None:
        """Test devices are listed with position and building."""
        devices = await client.list_devices()

        for position, device in enumerate(devices):
            assert device.index == position
            assert device.building_id is not None
            assert device.type_name in ("air-conditioner", "heat-pump", "unknown")

    async def test_get_device(self, client: MelCloudClient, first_device: Device) -> None:
        """Test the detail record matches the listed device."""
        device = await client.get_device(first_device.id, first_device.building_id)

        assert device.id == first_device.id
        assert device.device_type == first_device.device_type
        if device.is_air_conditioner:
            assert device.air_conditioner is not None
        if device.is_heat_pump:
            assert device.heat_pump is not None

    async def test_get_device_status(self, client: MelCloudClient, first_device: Device) -> None:
        """Test the status summary."""
        status = await client.get_device_status(first_device.id)

        assert status.id == first_device.id
        assert isinstance(status.online, bool)

    async def test_unknown_device(self, client: MelCloudClient) -> None:
        """Test an unknown device raises DeviceNotFoundError."""
        with pytest.raises(DeviceNotFoundError):
            await client.get_device(-1)

    async def test_devices_by_type(self, client: MelCloudClient) -> None:
        """Test the type filters partition the supported devices."""
        devices = await client.list_devices()
        air_conditioners = await client.get_air_conditioners()
        heat_pumps = await client.get_heat_pumps()

        supported = [device for device in devices if device.type_name != "unknown"]
        assert len(air_conditioners) + len(heat_pumps) == len(supported)


class TestEnergyReport:
    """Integration tests for energy reports."""

    async def test_last_week(self, client: MelCloudClient, first_device: Device) -> None:
        """Test a report for the last seven days."""
        today = date.today()

        report = await client.get_energy_report(
            first_device.id, today - timedelta(days=7), today, first_device.building_id
        )

        assert report.device_id == first_device.id
        assert report.total_power_consumption >= 0
        assert isinstance(report.raw_data, dict)
