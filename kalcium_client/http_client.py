"""
HTTP transport for the Kalcium REST API.

Wraps an ``httpx.AsyncClient`` and does the following:

- attaches the session token header,
- checks that the server speaks a compatible API version,
- translates non-2xx responses into typed errors.

The server reports errors with a structured body::

    {"statusCode": 404, "message": "Entry not found", "shortMessage": "NotFound"}

The error message is taken from ``message``, then ``shortMessage``, then the
HTTP reason phrase.

There are no retries: every failure is raised to the caller.
"""

import json
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urljoin

import httpx
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .utils import logger

KALC_API_VERSION = "6.2"

TOKEN_HEADER = "X-Kalc-Token"
VERSION_HEADER = "X-Kalc-Version"
CLIENT_VERSION_HEADER = "X-Kalc-Client-Version"


class KalcError(Exception):
    """Base exception for failures callers are expected to handle."""
    pass


class ConnectivityError(KalcError):
    """Exception raised when the server cannot be reached (DNS, TCP, TLS, timeout)."""
    pass


class VersionMismatchError(KalcError):
    """Exception raised when the server API version is not supported by this client."""

    def __init__(self, server_version: str, client_version: str = KALC_API_VERSION):
        self.server_version = server_version
        self.client_version = client_version
        super().__init__(
            f"Server API version {server_version} is not compatible with client version {client_version}"
        )


class MalformedResponseError(Exception):
    """
    Exception raised when a successful response cannot be decoded.

    Deliberately not a :class:`KalcError`: it signals a broken server, not a
    condition callers handle.
    """
    pass


@dataclass(frozen=True)
class ErrorBody:
    """Structured error body sent by the server."""

    status_code: Optional[int] = None
    message: Optional[str] = None
    short_message: Optional[str] = None

    @classmethod
    def parse(cls, response: httpx.Response) -> "ErrorBody":
        """Parse the error body of ``response``; anything unexpected yields an empty body."""
        try:
            data = response.json()
        except (ValueError, UnicodeDecodeError):
            return cls()
        if not isinstance(data, dict):
            return cls()
        status_code = data.get("statusCode")
        return cls(
            status_code=status_code if isinstance(status_code, int) else None,
            message=_non_empty(data.get("message")),
            short_message=_non_empty(data.get("shortMessage")),
        )


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class ApiError(KalcError):
    """Exception raised for a non-success HTTP response."""

    def __init__(self, status_code: int, message: str,
                 error: Optional[ErrorBody] = None, reason_phrase: str = ""):
        self.status_code = status_code
        self.message = message
        self.error = error or ErrorBody()
        self.reason_phrase = reason_phrase
        super().__init__(f"[{status_code}] {message}")


class NotFoundError(ApiError):
    """Exception raised when the requested resource does not exist."""
    pass


class AuthenticationError(ApiError):
    """Exception raised when login credentials are rejected."""
    pass


def error_message(error: ErrorBody, reason_phrase: str, status_code: int) -> str:
    """Pick the most specific error text available, never empty."""
    return (
        error.message
        or error.short_message
        or _non_empty(reason_phrase)
        or f"HTTP {status_code}"
    )


def api_error_from_response(response: httpx.Response) -> ApiError:
    """Build the typed error for a non-success response."""
    error = ErrorBody.parse(response)
    reason_phrase = response.reason_phrase or ""
    message = error_message(error, reason_phrase, response.status_code)
    error_cls = NotFoundError if response.status_code == 404 else ApiError
    return error_cls(response.status_code, message, error, reason_phrase)


def _versions_compatible(server_version: str, client_version: str) -> bool:
    # major.minor must match, patch level may differ
    return server_version.split(".")[:2] == client_version.split(".")[:2]


class KalcHttp:
    """Low level HTTP access to a Kalcium server."""

    def __init__(self, backend_url: str, timeout: float = 30,
                 ssl_verify: Optional[bool] = None,
                 ignore_kalc_version: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the transport.

        Args:
            backend_url: Server URL, protocol optional (https is assumed)
            timeout: Request timeout in seconds
            ssl_verify: Verify TLS certificates, defaults to the SSL_VERIFY env var
            ignore_kalc_version: Skip the API version check (for testing only)
            transport: Optional httpx transport, used by tests
        """
        backend_url = backend_url.rstrip('/')
        if not backend_url.startswith(('http://', 'https://')):
            backend_url = f"https://{backend_url}"
        self.backend_url = backend_url
        self.timeout = timeout
        self.ignore_kalc_version = ignore_kalc_version
        self._transport = transport

        if ssl_verify is None:
            ssl_verify_env = os.getenv('SSL_VERIFY', 'true').lower()
            ssl_verify = ssl_verify_env in ['true', '1', 'yes', 'on']
        self.ssl_verify = ssl_verify

        if not self.ssl_verify:
            urllib3.disable_warnings(InsecureRequestWarning)
            logger.info("[WARN] SSL certificate verification disabled")

        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                verify=self.ssl_verify,
                transport=self._transport,
                headers={CLIENT_VERSION_HEADER: KALC_API_VERSION},
            )
            logger.debug(f"Created HTTP client with SSL verify={self.ssl_verify}")
        return self._client

    async def aclose(self):
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def url_for(self, path: str) -> str:
        return urljoin(self.backend_url + "/", path.lstrip("/"))

    @staticmethod
    def _headers(token: Optional[str]) -> Dict[str, str]:
        return {TOKEN_HEADER: token} if token else {}

    @staticmethod
    def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if params is None:
            return None
        return {key: value for key, value in params.items() if value is not None}

    def check_version(self, response: httpx.Response) -> None:
        """
        Raise VersionMismatchError if the server version is incompatible.

        A response without version header is accepted.
        """
        if self.ignore_kalc_version:
            return
        server_version = response.headers.get(VERSION_HEADER)
        if not server_version:
            return
        if not _versions_compatible(server_version, KALC_API_VERSION):
            raise VersionMismatchError(server_version)

    async def send(self, method: str, path: str, *, token: Optional[str] = None,
                   json_body: Any = None, params: Optional[Dict[str, Any]] = None,
                   files: Any = None, data: Optional[Dict[str, Any]] = None,
                   expect: str = "json") -> Any:
        """
        Send a request and decode the response.

        Args:
            method: HTTP method
            path: Path relative to the backend URL
            token: Session token to attach
            json_body: JSON body
            params: Query parameters, None values are dropped
            files: Multipart file parts (httpx ``files`` format)
            data: Multipart form fields
            expect: "json" for decoded JSON, "bytes" for the raw body, "none" to ignore it

        Returns:
            Decoded response body

        Raises:
            ApiError: Non-success HTTP status (NotFoundError for 404)
            ConnectivityError: Network failure
            VersionMismatchError: Incompatible server version
            MalformedResponseError: Undecodable success body
        """
        client = self._ensure_client()
        url = self.url_for(path)
        kwargs: Dict[str, Any] = {
            "headers": self._headers(token),
            "params": self._clean_params(params),
        }
        if json_body is not None:
            kwargs["json"] = json_body
        if files is not None:
            kwargs["files"] = files
        if data is not None:
            kwargs["data"] = data

        logger.debug(f"{method} {url}")
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise ConnectivityError(f"Request to {url} failed: {e}") from e

        self.check_version(response)
        if response.is_error:
            raise api_error_from_response(response)

        if expect == "bytes":
            return response.content
        if expect == "none" or not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Invalid JSON from {method} {url}: {e}") from e

    @asynccontextmanager
    async def stream(self, method: str, path: str, *, token: Optional[str] = None,
                     params: Optional[Dict[str, Any]] = None) -> AsyncIterator[httpx.Response]:
        """Open a streamed response; errors are translated like in :meth:`send`."""
        client = self._ensure_client()
        url = self.url_for(path)
        logger.debug(f"{method} {url} (streamed)")
        try:
            async with client.stream(method, url, headers=self._headers(token),
                                     params=self._clean_params(params)) as response:
                self.check_version(response)
                if response.is_error:
                    await response.aread()
                    raise api_error_from_response(response)
                yield response
        except httpx.TransportError as e:
            raise ConnectivityError(f"Request to {url} failed: {e}") from e
