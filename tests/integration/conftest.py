"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

from pymelcloudhvac import MelCloudClient
from pymelcloudhvac.const import DEFAULT_BASE_URL


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from pymelcloudhvac import Device


# Load .env file from project root
env_path = Path(__file__).parents[2] / ".env"
load_dotenv(env_path)


@pytest.fixture(scope="session")
def integration_config() -> dict[str, str]:
    """Load integration test configuration from environment.

    Returns:
        Dictionary with API credentials and configuration.
    """
    email = os.getenv("MELCLOUD_EMAIL")
    password = os.getenv("MELCLOUD_PASSWORD")
    base_url = os.getenv("MELCLOUD_BASE_URL", DEFAULT_BASE_URL)

    if not email or not password:
        pytest.skip("Set MELCLOUD_EMAIL and MELCLOUD_PASSWORD in .env to run integration tests")

    return {
        "email": email,
        "password": password,
        "base_url": base_url,
    }


@pytest.fixture
async def client(integration_config: dict[str, str]) -> AsyncGenerator[MelCloudClient]:
    """Create a client with its own session."""
    client = MelCloudClient(
        email=integration_config["email"],
        password=integration_config["password"],
        base_url=integration_config["base_url"],
    )

    async with client:
        yield client


@pytest.fixture
async def first_device(client: MelCloudClient) -> Device:
    """First device of the account, or skip when it has none."""
    devices = await client.list_devices()
    if not devices:
        pytest.skip("No devices found in account")
    return devices[0]


@pytest.fixture(autouse=True)
async def rate_limit_delay(request: pytest.FixtureRequest) -> AsyncGenerator[None]:
    """Add a pause after each integration test to stay clear of rate limiting."""
    yield
    if "integration" in request.keywords:
        await asyncio.sleep(2.0)
