"""Pytest configuration and fixtures for metasys_services tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

HOST = "metasys.test"
BASE_URL = f"https://{HOST}/api/v2"


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    session = MagicMock(spec=aiohttp.ClientSession)
    session.closed = False
    return session


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    text_data: str | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data serialized into the text() body
        text_data: Raw body, used when json_data is None

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_data is not None:
        response.text.return_value = json.dumps(json_data)
    else:
        response.text.return_value = text_data or ""

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def _params_key(params: dict[str, Any] | None) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((key, str(value)) for key, value in (params or {}).items()))


class FakeServer:
    """Route mock session calls to canned responses by method, path and query."""

    def __init__(self, session: MagicMock) -> None:
        self._routes: dict[tuple[str, str, tuple[tuple[str, str], ...]], Any] = {}
        self.calls: list[dict[str, Any]] = []
        for method in ("get", "post", "patch", "put"):
            getattr(session, method).side_effect = self._make_handler(method)

    def add(
        self,
        method: str,
        path: str,
        response: Any,
        *,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Register a response (or an exception to raise) for a request."""
        self._routes[(method, path, _params_key(params))] = response

    def _make_handler(self, method: str):
        def handler(url: str, **kwargs: Any) -> Any:
            path = url[len(BASE_URL) + 1 :] if url.startswith(BASE_URL) else url
            params = kwargs.get("params")
            self.calls.append(
                {
                    "method": method,
                    "path": path,
                    "params": params,
                    "json": kwargs.get("json"),
                    "headers": kwargs.get("headers"),
                }
            )
            response = self._routes.get((method, path, _params_key(params)))
            if response is None:
                return create_mock_response(status=404, text_data="Not Found")
            if isinstance(response, BaseException):
                raise response
            return response

        return handler

    def paths(self, method: str | None = None) -> list[str]:
        return [
            call["path"]
            for call in self.calls
            if method is None or call["method"] == method
        ]


@pytest.fixture
def server(mock_session: MagicMock) -> FakeServer:
    return FakeServer(mock_session)


@pytest.fixture
async def client(mock_session: MagicMock, server: FakeServer):
    from metasys_services import MetasysClient

    metasys = MetasysClient(HOST, session=mock_session)
    yield metasys
    await metasys.close()
