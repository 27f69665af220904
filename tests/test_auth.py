"""Tests for pymelcloudhvac authentication handler."""

from __future__ import annotations

import asyncio
import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientError

from pymelcloudhvac.auth import AuthenticationHandler
from pymelcloudhvac.exceptions import (
    AuthenticationError,
    MelCloudConnectionError,
    MelCloudTimeoutError,
    RateLimitError,
    ServerError,
    TransientNetworkError,
)


if TYPE_CHECKING:
    from collections.abc import Callable

    from aiohttp import ClientSession


LOGIN_OK = {"ErrorId": None, "ErrorMessage": None, "LoginData": {"ContextKey": "abc123", "Name": "Test User"}}


def make_handler(session: ClientSession | None = None, **kwargs: Any) -> AuthenticationHandler:
    return AuthenticationHandler(email="test@example.com", password="password123", session=session, **kwargs)


class TestAuthenticationHandlerInit:
    """Test AuthenticationHandler initialization."""

    async def test_init_defaults(self) -> None:
        """Test initialization with email and password."""
        handler = make_handler()
        assert handler.email == "test@example.com"
        assert handler.password == "password123"
        assert handler.base_url == "https://app.melcloud.com/Mitsubishi.Wifi.Client"
        assert handler.language == 0
        assert handler.app_version == "1.34.13.0"
        assert handler.context_key is None
        assert handler.is_authenticated() is False

    async def test_init_with_custom_base_url(self) -> None:
        """Test trailing slash is removed from the base URL."""
        handler = AuthenticationHandler(email="a@b.c", password="x", base_url="https://custom.api.com/")
        assert handler.base_url == "https://custom.api.com"

    async def test_init_with_session(self, mock_session: ClientSession) -> None:
        """Test a provided session is not owned."""
        handler = make_handler(mock_session)
        assert handler._session is mock_session
        assert handler._owns_session is False

    async def test_context_manager_creates_and_closes_session(self) -> None:
        """Test the handler creates a session when none was provided."""
        handler = make_handler()
        async with handler:
            assert handler._session is not None
            session = handler._session
        assert session.closed


class TestLogin:
    """Test the login exchange."""

    async def test_login_success(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test a successful login stores the context key."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session)

        key = await handler.authenticate()

        assert key == "abc123"
        assert handler.context_key == "abc123"
        assert handler.is_authenticated()
        assert handler.login_data is not None
        assert handler.login_data.name == "Test User"
        assert handler.last_authenticated_at is not None
        assert handler.auth_headers() == {"X-MitsContextKey": "abc123"}

    async def test_login_payload(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test the login body carries credentials, language and app version."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session, language=4, app_version="1.0.0.0")

        await handler.authenticate()

        url = mock_session.post.call_args.args[0]
        body = mock_session.post.call_args.kwargs["json"]
        assert url.endswith("/Login/ClientLogin2")
        assert body["Email"] == "test@example.com"
        assert body["Password"] == "password123"
        assert body["Language"] == 4
        assert body["AppVersion"] == "1.0.0.0"
        assert body["Persist"] is False

    async def test_held_key_skips_login(
        self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]
    ) -> None:
        """Test ensure_authenticated does nothing while a key is held."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session)

        await handler.ensure_authenticated()
        await handler.ensure_authenticated()

        assert mock_session.post.call_count == 1

    async def test_forced_login(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test login() logs in again even with a key held."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session)

        await handler.ensure_authenticated()
        await handler.login()

        assert mock_session.post.call_count == 2

    async def test_concurrent_logins_share_one_request(
        self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]
    ) -> None:
        """Test concurrent callers wait for a single login."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session)

        keys = await asyncio.gather(*(handler.ensure_authenticated() for _ in range(5)))

        assert keys == [None] * 5
        assert mock_session.post.call_count == 1

    async def test_invalidate(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test invalidate() drops the key and the next call logs in again."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        handler = make_handler(mock_session)

        await handler.ensure_authenticated()
        handler.invalidate()

        assert handler.context_key is None
        assert handler.login_data is None
        assert handler.is_authenticated() is False

        await handler.ensure_authenticated()
        assert mock_session.post.call_count == 2

    async def test_on_session_updated_callback(
        self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]
    ) -> None:
        """Test the callback receives the handler after login."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, LOGIN_OK))
        callback = MagicMock()
        handler = make_handler(mock_session, on_session_updated=callback)

        await handler.authenticate()

        callback.assert_called_once_with(handler)


class TestLoginFailures:
    """Test how login failures are classified."""

    async def test_bad_credentials(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test a 200 answer without LoginData is an authentication error."""
        body = {"ErrorId": 1, "ErrorMessage": "Invalid credentials", "LoginData": None}
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, body))
        handler = make_handler(mock_session)

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await handler.authenticate()

        assert handler.context_key is None

    async def test_missing_context_key(
        self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]
    ) -> None:
        """Test LoginData without ContextKey is an authentication error."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, {"LoginData": {}}))
        handler = make_handler(mock_session)

        with pytest.raises(AuthenticationError, match="missing context key"):
            await handler.authenticate()

    async def test_non_object_body(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test a body that is not a JSON object is rejected."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.OK, ["unexpected"]))
        handler = make_handler(mock_session)

        with pytest.raises(AuthenticationError):
            await handler.authenticate()

    async def test_http_rejection(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test a 4xx answer is an authentication error, not a transient one."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.FORBIDDEN))
        handler = make_handler(mock_session)

        with pytest.raises(AuthenticationError) as exc_info:
            await handler.authenticate()

        assert not isinstance(exc_info.value, TransientNetworkError)

    async def test_server_error_is_transient(
        self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]
    ) -> None:
        """Test a 5xx answer raises ServerError."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.BAD_GATEWAY))
        handler = make_handler(mock_session)

        with pytest.raises(ServerError) as exc_info:
            await handler.authenticate()

        assert exc_info.value.status == HTTPStatus.BAD_GATEWAY

    async def test_rate_limited(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test a 429 answer raises RateLimitError."""
        mock_session.post = MagicMock(return_value=mock_response(HTTPStatus.TOO_MANY_REQUESTS))
        handler = make_handler(mock_session)

        with pytest.raises(RateLimitError):
            await handler.authenticate()

    async def test_invalid_json(self, mock_session: ClientSession, mock_response: Callable[..., MagicMock]) -> None:
        """Test an undecodable body is an authentication error."""
        response = mock_response(HTTPStatus.OK)
        response.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "", 0))
        mock_session.post = MagicMock(return_value=response)
        handler = make_handler(mock_session)

        with pytest.raises(AuthenticationError, match="Invalid JSON"):
            await handler.authenticate()

    async def test_timeout(self, mock_session: ClientSession) -> None:
        """Test a timeout raises MelCloudTimeoutError."""
        mock_session.post = MagicMock(side_effect=TimeoutError())
        handler = make_handler(mock_session)

        with pytest.raises(MelCloudTimeoutError):
            await handler.authenticate()

    async def test_connection_error(self, mock_session: ClientSession) -> None:
        """Test a client error raises MelCloudConnectionError."""
        mock_session.post = MagicMock(side_effect=ClientError("Connection refused"))
        handler = make_handler(mock_session)

        with pytest.raises(MelCloudConnectionError, match="Connection refused"):
            await handler.authenticate()


class TestSessionValidation:
    """Test session state checks."""

    async def test_no_session(self) -> None:
        """Test authenticate() requires a session."""
        handler = make_handler()

        with pytest.raises(RuntimeError, match="Session not initialized"):
            await handler.authenticate()

    async def test_closed_session(self, mock_session: ClientSession) -> None:
        """Test authenticate() refuses a closed session."""
        handler = make_handler(mock_session)
        await mock_session.close()

        with pytest.raises(RuntimeError, match="Session is closed"):
            await handler.authenticate()
