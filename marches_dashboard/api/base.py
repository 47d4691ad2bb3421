"""
Base client for the dashboard REST API.

Wraps one aiohttp session: URL building, the auth cookie, JSON decoding and
the mapping of transport and HTTP failures onto the dashboard error taxonomy.
No call is retried; every call site decides how to surface its own errors.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from marches_dashboard.api.auth import AuthApi
from marches_dashboard.api.documents import DocumentsApi, PiecesApi
from marches_dashboard.api.geometries import GeometriesApi
from marches_dashboard.api.records import RecordsApi
from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import (
    AuthenticationRequiredError,
    NetworkUnreachableError,
    ServerRejectedError,
)

logger = logging.getLogger(__name__)


# Name of the session cookie set by /auth/login
TOKEN_COOKIE = "token"

MALFORMED_RESPONSE = "The server sent a malformed response"


def build_url(api_base: str, path: str) -> str:
    """
    Build an API URL from the base and a path.

    Args:
        api_base: Backend root, e.g. 'http://localhost:5001'
        path: Endpoint path, with or without a leading slash

    Returns:
        Complete URL string
    """
    return f"{api_base.rstrip('/')}/{path.lstrip('/')}"


class ApiClient:
    """
    Async HTTP client for the backend.

    Use as an async context manager; resource endpoints are exposed as
    attributes (records, documents, pieces, geometries, auth).
    """

    def __init__(
        self,
        settings: DashboardSettings = DEFAULT_SETTINGS,
        token: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Dashboard settings (API base, timeout)
            token: Session token restored from a previous login
        """
        self.settings = settings
        self.api_base = settings.api_base.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=settings.request_timeout)
        self._initial_token = token
        self._session: Optional[aiohttp.ClientSession] = None

        self.records = RecordsApi(self)
        self.documents = DocumentsApi(self)
        self.pieces = PiecesApi(self)
        self.geometries = GeometriesApi(self)
        self.auth = AuthApi(self)

    async def __aenter__(self) -> "ApiClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self._session is not None:
            return
        # unsafe=True keeps cookies set by IP hosts such as 127.0.0.1
        jar = aiohttp.CookieJar(unsafe=True)
        self._session = aiohttp.ClientSession(cookie_jar=jar, timeout=self.timeout)
        if self._initial_token:
            self.set_token(self._initial_token)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("ApiClient is not open; use 'async with ApiClient(...)'")
        return self._session

    @property
    def token(self) -> Optional[str]:
        """Current session token, if the backend set one."""
        cookie = self.session.cookie_jar.filter_cookies(URL(self.api_base)).get(TOKEN_COOKIE)
        return cookie.value if cookie else None

    def set_token(self, token: str) -> None:
        self.session.cookie_jar.update_cookies({TOKEN_COOKIE: token}, URL(self.api_base))

    def clear_token(self) -> None:
        self.session.cookie_jar.clear(lambda morsel: morsel.key == TOKEN_COOKIE)

    def url(self, path: str) -> str:
        return build_url(self.api_base, path)

    def get_headers(self) -> Dict[str, str]:
        """Get default HTTP headers."""
        return {"Accept": "application/json"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Any = None,
    ) -> Any:
        """
        Send one request and decode the JSON answer.

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            NetworkUnreachableError: the backend could not be reached
            AuthenticationRequiredError: HTTP 401
            ServerRejectedError: any other non-2xx status
        """
        url = path if path.startswith("http") else self.url(path)
        logger.debug(f"{method} {url} params={params}")

        try:
            async with self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=self.get_headers(),
            ) as resp:
                try:
                    body = await self._read_body(resp)
                except ValueError:
                    logger.warning(f"{method} {url} returned malformed JSON (HTTP {resp.status})")
                    if resp.status >= 400:
                        raise self._rejection(resp.status, None, url) from None
                    raise ServerRejectedError(resp.status, MALFORMED_RESPONSE, url) from None
                if resp.status >= 400:
                    raise self._rejection(resp.status, body, url)
                return body

        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {url} failed: {e!r}")
            raise NetworkUnreachableError(self.api_base, str(e)) from e

    async def get(self, path: str, **params) -> Any:
        clean = {k: v for k, v in params.items() if v is not None}
        return await self.request("GET", path, params=clean or None)

    async def post(self, path: str, json: Any = None, data: Any = None) -> Any:
        return await self.request("POST", path, json=json, data=data)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def download(self, url: str) -> bytes:
        """Fetch raw bytes (piece files)."""
        try:
            async with self.session.get(url) as resp:
                if resp.status >= 400:
                    raise self._rejection(resp.status, None, url)
                return await resp.read()
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise NetworkUnreachableError(self.api_base, str(e)) from e

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        text = await resp.text()
        if not text:
            return None
        if "json" in resp.headers.get("Content-Type", ""):
            return await resp.json(content_type=None)
        return text

    @staticmethod
    def _rejection(status: int, body: Any, url: str) -> ServerRejectedError:
        message = body.get("message") if isinstance(body, dict) else None
        if status == 401:
            return AuthenticationRequiredError(status, message, url)
        return ServerRejectedError(status, message, url)
