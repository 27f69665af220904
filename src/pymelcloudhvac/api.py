"""Low-level API client for MELCloud endpoints.

This module provides direct HTTP communication with the MELCloud API.
Every request runs through the retry wrapper, which makes sure a session
token is held before each attempt.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from pymelcloudhvac.const import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    ENERGY_REPORT_ENDPOINT,
    GET_DEVICE_ENDPOINT,
    LIST_DEVICES_ENDPOINT,
    SET_ATA_ENDPOINT,
    SET_ATW_ENDPOINT,
)
from pymelcloudhvac.exceptions import (
    MelCloudConnectionError,
    MelCloudTimeoutError,
    RateLimitError,
    RemoteRejectionError,
    ServerError,
    SessionExpiredError,
)
from pymelcloudhvac.resilience import retry_with_backoff


if TYPE_CHECKING:
    from types import TracebackType

    from pymelcloudhvac.auth import AuthenticationHandler
    from pymelcloudhvac.resilience import ExponentialBackoff

_LOGGER = logging.getLogger(__name__)


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class MelCloudAPI:
    """Low-level API client for the MELCloud service.

    This class handles raw HTTP communication: URL construction, the session
    header, status classification and JSON decoding. Responses are returned
    as decoded JSON; failed responses are raised as typed exceptions so the
    retry wrapper can tell transient failures from final ones.

    Example:
        ```python
        from aiohttp import ClientSession
        from pymelcloudhvac.api import MelCloudAPI
        from pymelcloudhvac.auth import AuthenticationHandler

        async with ClientSession() as session:
            auth = AuthenticationHandler(
                email="user@example.com", password="pass", session=session
            )
            api = MelCloudAPI(auth_handler=auth, session=session)

            async with api:
                buildings = await api.list_devices()
                device = await api.get_device(12345, 678)
        ```

    Attributes:
        base_url: Base URL for the API.
    """

    def __init__(
        self,
        *,
        auth_handler: AuthenticationHandler,
        session: ClientSession | None = None,
        base_url: str = DEFAULT_BASE_URL,
        backoff: ExponentialBackoff | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            auth_handler: AuthenticationHandler holding the session token.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            base_url: Base URL for the API. Defaults to MELCloud production API.
            backoff: Optional ExponentialBackoff for the retry wrapper.
        """
        self._auth_handler = auth_handler
        self._session = session
        self._owns_session = session is None
        self.base_url = base_url.rstrip("/")
        self._backoff = backoff

    @property
    def auth_handler(self) -> AuthenticationHandler:
        """The session manager used by this client."""
        return self._auth_handler

    async def __aenter__(self) -> MelCloudAPI:
        """Enter the context manager.

        Creates session if needed and hands it to the auth handler. Logging
        in is deferred to the first request.

        Returns:
            Self for use in async with statements.
        """
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True

        self._auth_handler.set_session(self._session)
        await self._auth_handler.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if it was created here."""
        await self._auth_handler.__aexit__(exc_type, exc_val, exc_tb)

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def login(self) -> str:
        """Log in now, retrying transient failures like any other call.

        Returns:
            The new session token.

        Raises:
            AuthenticationError: If the service rejects the credentials.
            TransientNetworkError: When every attempt failed transiently.
        """
        return await retry_with_backoff(self._auth_handler.login, backoff=self._backoff)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Make an authenticated API request through the retry wrapper.

        A 401 answer drops the session token before the next attempt, so the
        retried attempt logs in again.

        Args:
            method: HTTP method (GET, POST).
            endpoint: API endpoint path (e.g., "/User/ListDevices").
            json_data: Optional JSON data for request body.
            params: Optional query parameters.

        Returns:
            Decoded JSON response, or None for an empty body.

        Raises:
            TransientNetworkError: When every attempt failed transiently.
            RemoteRejectionError: For any other HTTP error.
            AuthenticationError: If logging in is rejected.
        """

        async def attempt() -> Any:
            return await self._request_once(method, endpoint, json_data=json_data, params=params)

        def on_retry(exc: Exception) -> None:
            if isinstance(exc, SessionExpiredError):
                self._auth_handler.invalidate()

        return await retry_with_backoff(attempt, backoff=self._backoff, on_retry=on_retry)

    async def _request_once(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Log in if needed and perform a single HTTP exchange."""
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make request."
            raise RuntimeError(msg)

        await self._auth_handler.ensure_authenticated()

        url = f"{self.base_url}{endpoint}"
        headers = self._auth_handler.auth_headers()
        timeout = ClientTimeout(total=DEFAULT_TIMEOUT)

        try:
            async with self._session.request(
                method,
                url,
                json=json_data,
                params=params,
                headers=headers,
                timeout=timeout,
            ) as response:
                if response.status >= HTTPStatus.BAD_REQUEST:
                    body = await response.text()
                    self._raise_for_status(endpoint, response.status, body, response.headers.get("Retry-After"))

                text = await response.text()

        except TimeoutError as exc:
            _LOGGER.warning("Request to %s timed out", url)
            msg = f"Request to {endpoint} timed out"
            raise MelCloudTimeoutError(msg) from exc

        except ClientError as exc:
            _LOGGER.warning("Connection error for %s: %s", url, exc)
            msg = f"Failed to connect to API: {exc}"
            raise MelCloudConnectionError(msg) from exc

        if not text:
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON response from {endpoint}: {exc}"
            raise RemoteRejectionError(msg, HTTPStatus.OK, text) from exc

    @staticmethod
    def _raise_for_status(endpoint: str, status: int, body: str, retry_after: str | None) -> None:
        """Turn an HTTP error status into the matching exception."""
        if status == HTTPStatus.UNAUTHORIZED:
            msg = f"Session rejected by {endpoint} (HTTP {status})"
            raise SessionExpiredError(msg, status)

        if status == HTTPStatus.TOO_MANY_REQUESTS:
            msg = f"Rate limited by {endpoint} (HTTP {status})"
            raise RateLimitError(msg, status, _parse_retry_after(retry_after))

        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            msg = f"Server error from {endpoint} (HTTP {status}): {body}"
            raise ServerError(msg, status)

        msg = f"Request to {endpoint} rejected (HTTP {status}): {body}"
        raise RemoteRejectionError(msg, status, body)

    # -------------------------------------------------------------------------
    # Device Endpoints
    # -------------------------------------------------------------------------

    async def list_devices(self) -> list[dict[str, Any]]:
        """Get the building/floor/area/device tree of the account.

        Returns:
            List of building records, each with a "Structure" tree.
        """
        return await self.request("GET", LIST_DEVICES_ENDPOINT) or []

    async def get_device(self, device_id: int, building_id: int) -> dict[str, Any]:
        """Get the full state record of one device.

        Args:
            device_id: Device identifier.
            building_id: Identifier of the building the device belongs to.

        Returns:
            Raw device record.
        """
        return await self.request(
            "GET",
            GET_DEVICE_ENDPOINT,
            params={"id": str(device_id), "buildingID": str(building_id)},
        ) or {}

    async def set_ata(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Send an air conditioner command.

        Args:
            payload: Full record with EffectiveFlags naming the fields to apply.
        """
        return await self.request("POST", SET_ATA_ENDPOINT, json_data=payload)

    async def set_atw(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Send a heat pump command.

        Args:
            payload: Full record with EffectiveFlags naming the fields to apply.
        """
        return await self.request("POST", SET_ATW_ENDPOINT, json_data=payload)

    async def energy_report(self, device_id: int, from_date: str, to_date: str) -> dict[str, Any]:
        """Get consumption figures for an inclusive date range.

        Args:
            device_id: Device identifier.
            from_date: First day (YYYY-MM-DD).
            to_date: Last day (YYYY-MM-DD).

        Returns:
            Raw report record.
        """
        payload = {
            "DeviceID": device_id,
            "FromDate": from_date,
            "ToDate": to_date,
            "UseCurrency": False,
        }
        return await self.request("POST", ENERGY_REPORT_ENDPOINT, json_data=payload) or {}
