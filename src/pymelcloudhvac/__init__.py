"""Python client library for MELCloud air conditioners and heat pumps.

This package provides an async client for the MELCloud cloud service.

The library is organized into three layers:
1. **API Layer** (pymelcloudhvac.api): HTTP communication, session token and retries
2. **Codec** (pymelcloudhvac.parsers, pymelcloudhvac.serializers): remote records
   to normalized models and partial updates to command payloads
3. **Client Layer** (pymelcloudhvac.client): the operations applications call

Example:
    Basic usage:

    ```python
    from pymelcloudhvac import MelCloudClient

    async with MelCloudClient(email="user@example.com", password="password") as client:
        devices = await client.list_devices()

        for device in await client.get_air_conditioners():
            await client.set_device(device.id, {"mode": "heat", "temperature": 21})

        for device in await client.get_heat_pumps():
            await client.set_tank_water_temperature(device.id, 50)
    ```
"""

from __future__ import annotations

from pymelcloudhvac.api import MelCloudAPI
from pymelcloudhvac.auth import AuthenticationHandler
from pymelcloudhvac.client import MelCloudClient
from pymelcloudhvac.const import AirConditionerFlag, DeviceType, HeatPumpFlag
from pymelcloudhvac.exceptions import (
    AuthenticationError,
    DeviceNotFoundError,
    DeviceTypeMismatchError,
    MelCloudConnectionError,
    MelCloudError,
    MelCloudTimeoutError,
    RateLimitError,
    RemoteRejectionError,
    ServerError,
    SessionExpiredError,
    TransientNetworkError,
    ValidationError,
)
from pymelcloudhvac.models import (
    AirConditionerCommand,
    AirConditionerState,
    AirConditionerUpdate,
    Device,
    DeviceCapabilities,
    DeviceConnectivity,
    DeviceFault,
    DeviceStatusSummary,
    EnergyReport,
    HeatPumpCommand,
    HeatPumpState,
    HeatPumpUpdate,
    LoginResponse,
)
from pymelcloudhvac.parsers import parse_device, parse_device_list, parse_energy_report
from pymelcloudhvac.resilience import ExponentialBackoff, is_transient_error, retry_with_backoff


__version__ = "0.1.0"

__all__ = [
    "AirConditionerCommand",
    "AirConditionerFlag",
    "AirConditionerState",
    "AirConditionerUpdate",
    "AuthenticationError",
    "AuthenticationHandler",
    "Device",
    "DeviceCapabilities",
    "DeviceConnectivity",
    "DeviceFault",
    "DeviceNotFoundError",
    "DeviceStatusSummary",
    "DeviceType",
    "DeviceTypeMismatchError",
    "EnergyReport",
    "ExponentialBackoff",
    "HeatPumpCommand",
    "HeatPumpFlag",
    "HeatPumpState",
    "HeatPumpUpdate",
    "LoginResponse",
    "MelCloudAPI",
    "MelCloudClient",
    "MelCloudConnectionError",
    "MelCloudError",
    "MelCloudTimeoutError",
    "RateLimitError",
    "RemoteRejectionError",
    "ServerError",
    "SessionExpiredError",
    "TransientNetworkError",
    "ValidationError",
    "__version__",
    "is_transient_error",
    "parse_device",
    "parse_device_list",
    "parse_energy_report",
    "retry_with_backoff",
]
