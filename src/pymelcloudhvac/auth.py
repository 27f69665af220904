"""Authentication handler for MELCloud API."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from pymelcloudhvac.const import (
    CONTEXT_KEY_HEADER,
    DEFAULT_APP_VERSION,
    DEFAULT_BASE_URL,
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEOUT,
    LOGIN_ENDPOINT,
)
from pymelcloudhvac.exceptions import (
    AuthenticationError,
    MelCloudConnectionError,
    MelCloudTimeoutError,
    RateLimitError,
    ServerError,
)
from pymelcloudhvac.models import LoginResponse


if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)


class AuthenticationHandler:
    """Hold the MELCloud session token and log in when it is missing.

    The token (the "context key") has a two state lifecycle: it is absent
    until the first login, and it goes back to absent when invalidate() is
    called after the service answers 401. The next call to
    ensure_authenticated() then logs in again.

    Login failures are raised as-is. Retrying is the job of the caller's
    retry wrapper, not of this handler.

    Example:
        async with ClientSession() as session:
            handler = AuthenticationHandler(
                email="user@example.com",
                password="password",
                session=session,
            )
            await handler.ensure_authenticated()
            headers = {"X-MitsContextKey": handler.context_key}

    Attributes:
        email: Account email address.
        password: Account password.
        language: Language code sent with the login request.
        app_version: Application version sent with the login request.
        base_url: Base URL for the API (without trailing slash).
        context_key: Session token (None if not authenticated).
        login_data: Parsed login response (None if not authenticated).
        last_authenticated_at: Timestamp of last successful login.
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
        on_session_updated: Callable[[AuthenticationHandler], None] | None = None,
    ) -> None:
        """Initialize the authentication handler.

        Args:
            email: Account email address.
            password: Account password.
            base_url: Base URL for the API. Defaults to the MELCloud production API.
            language: Language code for the login request.
            app_version: App version string for the login request.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            on_session_updated: Optional callback invoked after every successful
                login with the handler instance.
        """
        self.email = email
        self.password = password
        self.language = language
        self.app_version = app_version
        self.base_url = base_url.rstrip("/")
        self.context_key: str | None = None
        self.login_data: LoginResponse | None = None
        self.last_authenticated_at: datetime | None = None

        self._session = session
        self._owns_session = session is None
        self._auth_lock = asyncio.Lock()
        self._on_session_updated = on_session_updated

    def set_session(self, session: ClientSession) -> None:
        """Set the aiohttp session for this handler.

        The handler will not take ownership and will not close this session.

        Args:
            session: The aiohttp ClientSession to use for requests.
        """
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> AuthenticationHandler:
        """Enter the context manager, creating a session if none was provided."""
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if it was created here."""
        if self._owns_session and self._session is not None:
            await self._session.close()

    def is_authenticated(self) -> bool:
        """Check if a session token is held."""
        return bool(self.context_key)

    def _validate_session(self) -> None:
        """Validate that the session is initialized and open.

        Raises:
            RuntimeError: If session is not initialized or is closed.
        """
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make requests."
            raise RuntimeError(msg)

    def _login_payload(self) -> dict[str, Any]:
        return {
            "Email": self.email,
            "Password": self.password,
            "Language": self.language,
            "AppVersion": self.app_version,
            "Persist": False,
            "CaptchaResponse": None,
        }

    async def authenticate(self, *, force: bool = False) -> str:
        """Log in and store the session token.

        Args:
            force: If True, log in even when a token is already held.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If the service rejects the credentials or
                answers without a token.
            MelCloudTimeoutError: If the request times out.
            MelCloudConnectionError: If a connection error occurs.
        """
        self._validate_session()

        if not force and self.context_key:
            return self.context_key

        async with self._auth_lock:
            # Another task may have logged in while we waited for the lock
            if not force and self.context_key:
                return self.context_key
            return await self._login()

    async def _login(self) -> str:
        """Perform a single login request.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If authentication fails.
            MelCloudTimeoutError: If the request times out.
            MelCloudConnectionError: If a connection error occurs.
        """
        url = f"{self.base_url}{LOGIN_ENDPOINT}"
        timeout = ClientTimeout(total=DEFAULT_TIMEOUT)

        _LOGGER.debug("Logging in to %s", url)

        assert self._session is not None

        try:
            async with self._session.post(url, json=self._login_payload(), timeout=timeout) as response:
                if response.status == HTTPStatus.TOO_MANY_REQUESTS:
                    msg = "MELCloud login rate limited"
                    raise RateLimitError(msg, response.status)

                if response.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
                    msg = f"MELCloud login failed with server error {response.status}"
                    raise ServerError(msg, response.status)

                if response.status != HTTPStatus.OK:
                    msg = f"MELCloud login failed with status {response.status}"
                    raise AuthenticationError(msg)

                auth_data = await response.json(content_type=None)

        except TimeoutError as exc:
            msg = "Login request timed out"
            raise MelCloudTimeoutError(msg) from exc

        except ClientError as exc:
            msg = f"Failed to connect to API: {exc}"
            raise MelCloudConnectionError(msg) from exc

        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON response from API: {exc}"
            raise AuthenticationError(msg) from exc

        login = self._parse_login_response(auth_data)

        self.context_key = login.context_key
        self.login_data = login
        self.last_authenticated_at = datetime.now(UTC)

        _LOGGER.info("Login successful for %s", self.email)

        if self._on_session_updated is not None:
            self._on_session_updated(self)

        return login.context_key

    @staticmethod
    def _parse_login_response(auth_data: Any) -> LoginResponse:
        """Extract the session token from a ClientLogin2 response.

        The service answers 200 even for bad credentials; in that case
        LoginData is null and ErrorId/ErrorMessage describe the problem.

        Raises:
            AuthenticationError: If the response carries no token.
        """
        if not isinstance(auth_data, dict):
            msg = "MELCloud login failed: unexpected response body"
            raise AuthenticationError(msg)

        login_data = auth_data.get("LoginData") or {}
        context_key = login_data.get("ContextKey")
        if not context_key:
            error_message = auth_data.get("ErrorMessage") or "missing context key"
            error_id = auth_data.get("ErrorId")
            msg = f"MELCloud login failed: {error_message}"
            if error_id is not None:
                msg = f"{msg} (error {error_id})"
            raise AuthenticationError(msg)

        return LoginResponse(
            context_key=context_key,
            client_id=login_data.get("ClientId"),
            name=login_data.get("Name"),
            expiry=login_data.get("Expiry"),
        )

    async def ensure_authenticated(self) -> None:
        """Make sure a session token is held, logging in only if it is not.

        Raises:
            AuthenticationError: If login fails.
            MelCloudTimeoutError: If the request times out.
            MelCloudConnectionError: If a connection error occurs.
        """
        await self.authenticate(force=False)

    async def login(self) -> str:
        """Log in even if a token is already held.

        Returns:
            The new session token.
        """
        _LOGGER.debug("Forcing login")
        return await self.authenticate(force=True)

    def invalidate(self) -> None:
        """Drop the session token so the next request logs in again."""
        self.context_key = None
        self.login_data = None
        self.last_authenticated_at = None
        _LOGGER.debug("Session token invalidated")

    def auth_headers(self) -> dict[str, str]:
        """Headers for an authenticated request."""
        return {CONTEXT_KEY_HEADER: self.context_key or ""}
