"""
Session management: login, logout and the authenticated identity.

A session goes through these states::

    UNAUTHENTICATED --login--> AUTHENTICATED --logout--> UNAUTHENTICATED
                                     |
                                     +--401/403 on a call--> EXPIRED --login--> AUTHENTICATED

Resource services send every request through :meth:`Session.request`, which
refuses to hit the network without a valid session.
"""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from .http_client import ApiError, AuthenticationError, KalcError, KalcHttp
from .models.account import AuthenticationData
from .utils import logger

LOGIN_PATH = "/api/account/login"
LOGOUT_PATH = "/api/account/logout"

SESSION_INVALID_STATUS_CODES = (401, 403)


class NotAuthenticatedError(KalcError):
    """Exception raised when a call needs a session and none is established."""
    pass


class SessionExpiredError(NotAuthenticatedError):
    """Exception raised when the server no longer accepts the session token."""
    pass


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


class Session:
    """
    One authenticated session against a Kalcium server.

    The token is guarded by an ``asyncio.Lock``. Login and logout hold it
    for the whole exchange, so requests issued meanwhile wait for the new
    state instead of using a stale token.
    """

    def __init__(self, http: KalcHttp):
        self.http = http
        self.state = SessionState.UNAUTHENTICATED
        self.authentication_data: Optional[AuthenticationData] = None
        self.user_name: Optional[str] = None
        self._token: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    async def login(self, username: str, password: str) -> AuthenticationData:
        """
        Log in and store the token and groups of the user.

        Args:
            username: User name
            password: Password

        Returns:
            Authentication data (groups, enabled modules and termbases)

        Raises:
            AuthenticationError: If the credentials are rejected
            ApiError: For any other failed response
        """
        async with self._lock:
            logger.debug(f"Logging in as {username}")
            try:
                response = await self.http.send(
                    "POST", LOGIN_PATH,
                    json_body={"userName": username, "password": password},
                )
            except ApiError as e:
                if e.status_code in SESSION_INVALID_STATUS_CODES:
                    raise AuthenticationError(e.status_code, e.message, e.error, e.reason_phrase) from e
                raise

            if not isinstance(response, dict) or not response.get("token"):
                raise AuthenticationError(200, "No token found in authentication response")

            self._token = response["token"]
            self.authentication_data = AuthenticationData.from_dict(response)
            self.user_name = username
            self.state = SessionState.AUTHENTICATED
            logger.info(f"[OK] Logged in as {username}")
            return self.authentication_data

    async def logout(self) -> None:
        """
        Invalidate the session on the server and forget the token.

        Calling it without an active session does nothing. The local
        token is dropped even if the server call fails.
        """
        async with self._lock:
            token = self._token
            self._clear(SessionState.UNAUTHENTICATED)
            if token is None:
                logger.debug("Logout skipped, no active session")
                return
            await self.http.send("POST", LOGOUT_PATH, token=token, expect="none")
            logger.info("[OK] Logged out")

    def _clear(self, state: SessionState) -> None:
        self._token = None
        self.state = state
        if state == SessionState.UNAUTHENTICATED:
            self.authentication_data = None
            self.user_name = None

    async def _current_token(self) -> str:
        async with self._lock:
            if self.state == SessionState.EXPIRED:
                raise SessionExpiredError("Session has expired, log in again")
            if self._token is None:
                raise NotAuthenticatedError("Not authenticated. Call login() first.")
            return self._token

    def _check_invalidated(self, error: ApiError, token: str) -> None:
        if error.status_code not in SESSION_INVALID_STATUS_CODES:
            return
        # a login racing this request already replaced the token
        if self._token == token:
            logger.warning(f"Session rejected by server ({error.status_code}), marking as expired")
            self._clear(SessionState.EXPIRED)

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Send an authenticated request through the transport."""
        token = await self._current_token()
        try:
            return await self.http.send(method, path, token=token, **kwargs)
        except ApiError as e:
            self._check_invalidated(e, token)
            raise

    @asynccontextmanager
    async def stream(self, method: str, path: str,
                     params: Optional[Dict[str, Any]] = None) -> AsyncIterator[httpx.Response]:
        """Authenticated counterpart of :meth:`KalcHttp.stream`."""
        token = await self._current_token()
        try:
            async with self.http.stream(method, path, token=token, params=params) as response:
                yield response
        except ApiError as e:
            self._check_invalidated(e, token)
            raise
