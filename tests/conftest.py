"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import copy
from http import HTTPStatus
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientSession, web

from pymelcloudhvac import ExponentialBackoff, MelCloudClient


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable


# Sample API records
AC_LIVING_ROOM: dict[str, Any] = {
    "DeviceID": 1001,
    "DeviceType": 0,
    "Power": True,
    "SetTemperature": 22.0,
    "RoomTemperature": 21.5,
    "OutdoorTemperature": 12.0,
    "SetFanSpeed": 3,
    "ActualFanSpeed": 3,
    "NumberOfFanSpeeds": 5,
    "OperationMode": 3,
    "VaneHorizontal": 12,
    "VaneVertical": 7,
    "Offline": False,
    "LastCommunication": "2024-05-01T10:00:00.000",
    "NextCommunication": "2024-05-01T10:01:00.000",
    "WifiSignalStrength": -55,
    "HasError": False,
    "ErrorCode": 8000,
    "ErrorMessage": None,
    "CanCool": True,
    "CanHeat": True,
    "CanDry": True,
    "MinTempCoolDry": 16.0,
    "MaxTempCoolDry": 31.0,
    "MinTempHeat": 10.0,
    "MaxTempHeat": 31.0,
}

AC_BEDROOM: dict[str, Any] = {
    "DeviceID": 1002,
    "DeviceType": 0,
    "Power": False,
    "SetTemperature": 19.0,
    "RoomTemperature": 18.0,
    "SetFanSpeed": 0,
    "FanSpeed": 4,
    "OperationMode": 1,
    "VaneHorizontal": 0,
    "VaneVertical": 2,
}

HEAT_PUMP: dict[str, Any] = {
    "DeviceID": 2001,
    "DeviceType": 1,
    "Power": True,
    "HasZone2": False,
    "RoomTemperatureZone1": 19.5,
    "SetTemperatureZone1": 20.0,
    "OperationModeZone1": 0,
    "OperationModeZone2": 0,
    "TankWaterTemperature": 45.0,
    "SetTankWaterTemperature": 48.0,
    "ForcedHotWaterMode": False,
    "SetHeatFlowTemperatureZone1": 35.0,
    "SetCoolFlowTemperatureZone1": 20.0,
    "OutdoorTemperature": 4.0,
    "OperationMode": 2,
    "FlowTemperature": 38.0,
    "ReturnTemperature": 33.0,
}


def list_entry(record: dict[str, Any], name: str) -> dict[str, Any]:
    """Wrap a device record the way /User/ListDevices nests it."""
    device = {key: value for key, value in record.items() if key not in ("VaneHorizontal", "VaneVertical")}
    # The list endpoint names the vanes differently from the detail endpoint
    if "VaneHorizontal" in record:
        device["VaneHorizontalDirection"] = record["VaneHorizontal"]
    if "VaneVertical" in record:
        device["VaneVerticalDirection"] = record["VaneVertical"]
    return {"DeviceID": record["DeviceID"], "DeviceName": name, "Device": device}


SAMPLE_BUILDINGS: list[dict[str, Any]] = [
    {
        "ID": 10,
        "Name": "Home",
        "Structure": {
            "Floors": [
                {
                    "ID": 100,
                    "Areas": [
                        {"ID": 1000, "Devices": [list_entry(AC_LIVING_ROOM, "Living Room")]},
                        {"ID": 1001, "Devices": [list_entry(AC_BEDROOM, "Bedroom")]},
                    ],
                }
            ],
        },
    },
    {
        "ID": 20,
        "Name": "Cabin",
        "Structure": {
            "Floors": [
                {"ID": 200, "Areas": [{"ID": 2000, "Devices": [list_entry(HEAT_PUMP, "Heat Pump")]}]},
            ],
        },
    },
]

SAMPLE_ENERGY_REPORT: dict[str, Any] = {
    "TotalMinutes": 1440,
    "TotalHeatingConsumed": 12.5,
    "TotalCoolingConsumed": 3.0,
    "TotalAutoConsumed": 1.5,
    "TotalDryConsumed": 0.5,
    "TotalFanConsumed": 0.25,
    "TotalHotWaterConsumed": 0.0,
    "TotalHeatingProduced": 40.0,
    "TotalCoolingProduced": 9.0,
    "Currency": "EUR",
}

AC_FLAG_FIELDS = {
    1: "Power",
    2: "OperationMode",
    4: "SetTemperature",
    8: "SetFanSpeed",
    16: "VaneVertical",
    256: "VaneHorizontal",
}

HEAT_PUMP_FLAG_FIELDS = {
    1: "Power",
    2: "ForcedHotWaterMode",
    4: "OperationModeZone1",
    8: "OperationModeZone2",
    16: "SetTankWaterTemperature",
    32: "SetTemperatureZone1",
    64: "SetTemperatureZone2",
    128: "SetHeatFlowTemperatureZone1",
    256: "SetHeatFlowTemperatureZone2",
    512: "SetCoolFlowTemperatureZone1",
    1024: "SetCoolFlowTemperatureZone2",
}


class FakeMelCloud:
    """In-memory stand-in for the MELCloud service.

    Each login issues a new context key. Commands are applied to the stored
    records using only the fields named by EffectiveFlags, like the real
    service does.
    """

    def __init__(self) -> None:
        self.buildings = copy.deepcopy(SAMPLE_BUILDINGS)
        self.records = {
            record["DeviceID"]: copy.deepcopy(record) for record in (AC_LIVING_ROOM, AC_BEDROOM, HEAT_PUMP)
        }
        self.building_of = {1001: 10, 1002: 10, 2001: 20}
        self.valid_keys: set[str] = set()
        self.login_count = 0
        self.login_bodies: list[dict[str, Any]] = []
        self.login_response: dict[str, Any] | None = None
        self.calls: list[str] = []
        self.commands: list[dict[str, Any]] = []
        self.report_requests: list[dict[str, Any]] = []
        self._failures: dict[str, list[int]] = {}

    def fail(self, path: str, *statuses: int) -> None:
        """Answer the next requests to path with the given statuses."""
        self._failures.setdefault(path, []).extend(statuses)

    def expire_sessions(self) -> None:
        """Reject every context key issued so far."""
        self.valid_keys.clear()

    def count(self, path: str) -> int:
        return self.calls.count(path)

    def _pop_failure(self, path: str) -> web.Response | None:
        queued = self._failures.get(path)
        if queued:
            return web.Response(status=queued.pop(0), text="simulated failure")
        return None

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("X-MitsContextKey") in self.valid_keys

    async def login(self, request: web.Request) -> web.Response:
        self.calls.append(request.path)
        self.login_bodies.append(await request.json())
        if (failure := self._pop_failure(request.path)) is not None:
            return failure
        if self.login_response is not None:
            return web.json_response(self.login_response)
        self.login_count += 1
        key = f"context-key-{self.login_count}"
        self.valid_keys.add(key)
        return web.json_response({"ErrorId": None, "ErrorMessage": None, "LoginData": {"ContextKey": key}})

    async def list_devices(self, request: web.Request) -> web.Response:
        self.calls.append(request.path)
        if (failure := self._pop_failure(request.path)) is not None:
            return failure
        if not self._authorized(request):
            return web.Response(status=HTTPStatus.UNAUTHORIZED)
        return web.json_response(self.buildings)

    async def get_device(self, request: web.Request) -> web.Response:
        self.calls.append(request.path)
        if (failure := self._pop_failure(request.path)) is not None:
            return failure
        if not self._authorized(request):
            return web.Response(status=HTTPStatus.UNAUTHORIZED)
        device_id = int(request.query["id"])
        building_id = int(request.query["buildingID"])
        if self.building_of.get(device_id) != building_id:
            return web.Response(status=HTTPStatus.NOT_FOUND, text="no such device")
        return web.json_response(self.records[device_id])

    async def _set(self, request: web.Request, flag_fields: dict[int, str]) -> web.Response:
        self.calls.append(request.path)
        if (failure := self._pop_failure(request.path)) is not None:
            return failure
        if not self._authorized(request):
            return web.Response(status=HTTPStatus.UNAUTHORIZED)
        payload = await request.json()
        self.commands.append(payload)
        record = self.records[payload["DeviceID"]]
        for bit, field in flag_fields.items():
            if payload["EffectiveFlags"] & bit:
                record[field] = payload[field]
        return web.json_response(payload)

    async def set_ata(self, request: web.Request) -> web.Response:
        return await self._set(request, AC_FLAG_FIELDS)

    async def set_atw(self, request: web.Request) -> web.Response:
        return await self._set(request, HEAT_PUMP_FLAG_FIELDS)

    async def energy_report(self, request: web.Request) -> web.Response:
        self.calls.append(request.path)
        if (failure := self._pop_failure(request.path)) is not None:
            return failure
        if not self._authorized(request):
            return web.Response(status=HTTPStatus.UNAUTHORIZED)
        self.report_requests.append(await request.json())
        return web.json_response(SAMPLE_ENERGY_REPORT)

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/Login/ClientLogin2", self.login)
        app.router.add_get("/User/ListDevices", self.list_devices)
        app.router.add_get("/Device/Get", self.get_device)
        app.router.add_post("/Device/SetAta", self.set_ata)
        app.router.add_post("/Device/SetAtw", self.set_atw)
        app.router.add_post("/EnergyCost/Report", self.energy_report)
        return app


@pytest.fixture
def fake_service() -> FakeMelCloud:
    """Create a fresh fake MELCloud service."""
    return FakeMelCloud()


@pytest.fixture
async def melcloud(aiohttp_client: Any, fake_service: FakeMelCloud) -> AsyncGenerator[MelCloudClient]:
    """MelCloudClient talking to the fake service, with no waiting between attempts."""
    server = await aiohttp_client(fake_service.make_app())

    client = MelCloudClient(
        email="test@example.com",
        password="password123",
        base_url=str(server.make_url("")),
        session=server.session,
        backoff=ExponentialBackoff(base_delay=0.0),
        settle_delay=0.0,
    )

    async with client:
        yield client


@pytest.fixture
async def mock_session() -> AsyncGenerator[ClientSession]:
    """Create a mock aiohttp ClientSession.

    Yields:
        Mock ClientSession for testing.
    """
    session = AsyncMock(spec=ClientSession)
    session.closed = False

    async def mock_close() -> None:
        session.closed = True

    session.close = mock_close

    yield session

    if not session.closed:
        await session.close()


@pytest.fixture
def mock_response() -> Callable[..., MagicMock]:
    """Factory for mock aiohttp ClientResponse objects usable as async context managers."""

    def make(status: int = HTTPStatus.OK, json_data: Any = None) -> MagicMock:
        response = MagicMock()
        response.status = status
        response.headers = {}
        response.json = AsyncMock(return_value=json_data)
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    return make
