"""Access token lifecycle for a Metasys server session.

The session owns the bearer token: it logs in, refreshes, installs the token
on the HTTP transport and, when asked to, keeps the token alive with a timer
that fires shortly before expiry.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from datetime import UTC, datetime
from typing import Any

from .errors import (
    MetasysAuthError,
    MetasysClientError,
    MetasysHttpError,
    MetasysTokenError,
)
from .http import MetasysHttpClient
from .models import AccessToken

_LOGGER = logging.getLogger(__name__)

# Refresh this many seconds before the token expires
REFRESH_MARGIN = 60.0
# Longest delay the refresh timer accepts (signed 32-bit milliseconds)
MAX_REFRESH_DELAY = (2**31 - 1) / 1000

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_access_token(data: Any) -> AccessToken:
    """Extract the token and its expiry from a login or refresh response.

    Raises:
        MetasysTokenError: If ``accessToken`` or ``expires`` is missing, or the
            expiry is not an ISO 8601 timestamp.
    """
    if not isinstance(data, dict):
        raise MetasysTokenError("Token response is not an object", data)

    token = data.get("accessToken")
    expires = data.get("expires")
    if not isinstance(token, str) or not token:
        raise MetasysTokenError("Token response has no accessToken", data)
    if not isinstance(expires, str):
        raise MetasysTokenError("Token response has no expires", data)

    try:
        # Server timestamps may carry 7 fractional digits
        parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", expires))
    except ValueError as err:
        raise MetasysTokenError(f"Unparsable token expiry: {expires}", data) from err

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return AccessToken(token=token, expires=parsed.astimezone(UTC))


class MetasysSession:
    """Login, refresh and proactive renewal of the bearer token.

    Usage:
        session = MetasysSession(http)
        await session.login("user", "secret")
        token = session.current_token()
        await session.close()
    """

    def __init__(self, http: MetasysHttpClient) -> None:
        self._http = http
        self._access_token = AccessToken(token=None, expires=datetime.now(tz=UTC))
        self._auto_refresh = False
        self._refresh_handle: asyncio.TimerHandle | None = None
        self._refresh_task: asyncio.Task[None] | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def login(
        self, username: str, password: str, refresh: bool = True
    ) -> AccessToken:
        """Log in and store the returned token.

        Args:
            username: Metasys user name
            password: Metasys password
            refresh: Keep the token alive with a proactive refresh timer

        Raises:
            MetasysAuthError: If the server rejects the login
            MetasysTimeout: If the request times out
            MetasysParsingError: If the body is not JSON
            MetasysTokenError: If the body lacks token fields
        """
        try:
            data = await self._http.post(
                "login", payload={"username": username, "password": password}
            )
        except MetasysAuthError:
            raise
        except MetasysHttpError as err:
            raise MetasysAuthError(
                err.status, f"Login failed with status {err.status}", err.body
            ) from err

        token = self._store_token(data, refresh)
        _LOGGER.info("Logged in as %s, token expires %s", username, token.expires)
        return token

    async def refresh(self) -> AccessToken:
        """Exchange the installed token for a new one.

        Raises the same errors as :meth:`login`.
        """
        try:
            data = await self._http.get("refreshToken")
        except MetasysAuthError:
            raise
        except MetasysHttpError as err:
            raise MetasysAuthError(
                err.status, f"Token refresh failed with status {err.status}", err.body
            ) from err

        token = self._store_token(data, self._auto_refresh)
        _LOGGER.info("Token refreshed, expires %s", token.expires)
        return token

    def current_token(self) -> AccessToken:
        """Return the last stored token without touching the network."""
        return self._access_token

    @property
    def refresh_scheduled(self) -> bool:
        return self._refresh_handle is not None

    async def close(self) -> None:
        """Cancel the refresh timer and any refresh still in flight."""
        self._cancel_refresh_timer()
        task = self._refresh_task
        self._refresh_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # -------------------------------------------------------------------------
    # Internal: token storage and refresh scheduling
    # -------------------------------------------------------------------------

    def _store_token(self, data: Any, auto_refresh: bool) -> AccessToken:
        # Parse fully before replacing anything
        token = parse_access_token(data)
        self._access_token = token
        self._auto_refresh = auto_refresh
        self._http.set_access_token(token)
        if auto_refresh:
            self._schedule_refresh(token)
        else:
            self._cancel_refresh_timer()
        return token

    def _cancel_refresh_timer(self) -> None:
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    def _schedule_refresh(self, token: AccessToken) -> None:
        self._cancel_refresh_timer()

        remaining = (token.expires - datetime.now(tz=UTC)).total_seconds()
        delay = max(remaining - REFRESH_MARGIN, 0.0)
        if delay > MAX_REFRESH_DELAY:
            # Very long lived tokens are never refreshed
            _LOGGER.debug("Refresh delay %.0fs out of timer range, not scheduled", delay)
            return

        loop = asyncio.get_running_loop()
        self._refresh_handle = loop.call_later(delay, self._start_background_refresh)
        _LOGGER.debug("Token refresh scheduled in %.1fs", delay)

    def _start_background_refresh(self) -> None:
        self._refresh_handle = None
        self._refresh_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        try:
            await self.refresh()
        except MetasysClientError as err:
            _LOGGER.warning("Scheduled token refresh failed: %s", err)
        except Exception as err:
            _LOGGER.exception("Unexpected error during scheduled token refresh: %s", err)
