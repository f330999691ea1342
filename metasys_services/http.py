"""HTTP transport for Metasys REST endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from .errors import (
    MetasysConnectionError,
    MetasysHttpError,
    MetasysParsingError,
    MetasysTimeout,
)
from .models import AccessToken, ApiVersion

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class MetasysHttpClient:
    """HTTP client wrapper for the Metasys REST API.

    Requests are issued against ``https://{host}/api/{version}``. Once a token
    is installed with :meth:`set_access_token` every request carries it as a
    bearer ``Authorization`` header.
    """

    def __init__(
        self,
        host: str,
        *,
        session: aiohttp.ClientSession | None = None,
        version: ApiVersion = ApiVersion.V2,
        ignore_certificate_errors: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._host = host
        self._version = version
        self._session = session
        self._owns_session = session is None
        self._ssl = not ignore_certificate_errors
        self._timeout = timeout
        self._access_token: AccessToken | None = None

    @property
    def base_url(self) -> str:
        return f"https://{self._host}/api/{self._version.value}"

    @property
    def access_token(self) -> str | None:
        return self._access_token.token if self._access_token else None

    def set_access_token(self, token: AccessToken | None) -> None:
        """Install (or clear) the bearer token sent with every request."""
        self._access_token = token

    def url(self, *segments: object) -> str:
        """Build an absolute URL from path segments, escaping each one."""
        path = "/".join(quote(str(segment), safe="") for segment in segments)
        return f"{self.base_url}/{path}"

    def _auth_headers(self) -> dict[str, str]:
        if self._access_token is None:
            return {}
        header = self._access_token.authorization_header
        if header is None:
            return {}
        return {"Authorization": header}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def get(
        self, *segments: object, params: dict[str, Any] | None = None
    ) -> Any:
        """GET a path relative to the API base URL and decode the JSON body."""
        return await self._request("get", self.url(*segments), params=params)

    async def get_url(self, url: str) -> Any:
        """GET an absolute URL handed out by the server (e.g. ``typeUrl``)."""
        return await self._request("get", url)

    async def post(self, *segments: object, payload: Any) -> Any:
        return await self._request("post", self.url(*segments), payload=payload)

    async def patch(self, *segments: object, payload: Any) -> Any:
        return await self._request("patch", self.url(*segments), payload=payload)

    async def put(self, *segments: object, payload: Any) -> Any:
        return await self._request("put", self.url(*segments), payload=payload)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        session = await self._get_session()
        send = getattr(session, method)
        description = f"{method.upper()} {url}"
        _LOGGER.debug("Request %s params=%s", description, params)

        try:
            async with send(
                url,
                params=params,
                json=payload,
                headers=self._auth_headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                ssl=self._ssl,
            ) as resp:
                body = await resp.text()
                if not 200 <= resp.status < 300:
                    raise MetasysHttpError(
                        resp.status,
                        f"{description} failed with status {resp.status}",
                        body,
                    )
        except TimeoutError as err:
            raise MetasysTimeout(f"{description} timed out") from err
        except aiohttp.ClientError as err:
            raise MetasysConnectionError(f"{description} failed") from err

        return _decode_json(body, description)


def _decode_json(body: str, description: str) -> Any:
    """Decode a response body, treating an empty body as ``None``."""
    if not body or not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError as err:
        raise MetasysParsingError(
            f"{description} returned a body that is not valid JSON", body
        ) from err
