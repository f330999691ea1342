"""Test MetasysHttpClient request building and error classification."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import aiohttp
import pytest

from metasys_services import AccessToken, MetasysHttpClient
from metasys_services.errors import (
    MetasysConnectionError,
    MetasysHttpError,
    MetasysParsingError,
    MetasysTimeout,
)

from .conftest import HOST, create_mock_response

TOKEN = AccessToken("abc123", datetime(2030, 1, 1, tzinfo=UTC))


class TestRequestBuilding:
    """Test URLs, headers and transport options."""

    def test_base_url(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)

        assert client.base_url == "https://metasys.test/api/v2"

    def test_url_escapes_segments(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)

        assert (
            client.url("objects", "a b/c", "commands")
            == "https://metasys.test/api/v2/objects/a%20b%2Fc/commands"
        )

    async def test_no_auth_header_before_token(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.return_value = create_mock_response(json_data={"ok": True})

        await client.get("objects")

        assert mock_session.get.call_args.kwargs["headers"] == {}

    async def test_bearer_header_after_token(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        client.set_access_token(TOKEN)
        mock_session.get.return_value = create_mock_response(json_data={"ok": True})

        await client.get("objects")

        assert mock_session.get.call_args.kwargs["headers"] == {
            "Authorization": "Bearer abc123"
        }

    async def test_query_params_passed_through(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.return_value = create_mock_response(json_data="x")

        await client.get("objectIdentifiers", params={"fqr": "site:NAE/AV 1"})

        call_args = mock_session.get.call_args
        assert call_args.args[0] == "https://metasys.test/api/v2/objectIdentifiers"
        assert call_args.kwargs["params"] == {"fqr": "site:NAE/AV 1"}

    async def test_json_payload_on_patch(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.patch.return_value = create_mock_response(status=204)

        result = await client.patch("objects", "id-1", payload={"item": {"a": 1}})

        assert result is None
        assert mock_session.patch.call_args.kwargs["json"] == {"item": {"a": 1}}

    async def test_certificate_verification_default(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.return_value = create_mock_response(json_data={})

        await client.get("objects")

        assert mock_session.get.call_args.kwargs["ssl"] is True

    async def test_certificate_verification_bypass(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(
            HOST, session=mock_session, ignore_certificate_errors=True
        )
        mock_session.get.return_value = create_mock_response(json_data={})

        await client.get("objects")

        assert mock_session.get.call_args.kwargs["ssl"] is False

    async def test_request_timeout(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session, timeout=12)
        mock_session.get.return_value = create_mock_response(json_data={})

        await client.get("objects")

        timeout = mock_session.get.call_args.kwargs["timeout"]
        assert timeout.total == 12

    async def test_get_url_uses_absolute_url(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        client.set_access_token(TOKEN)
        mock_session.get.return_value = create_mock_response(json_data={"id": 1})

        await client.get_url("https://metasys.test/api/v2/enumSets/508/members/185")

        call_args = mock_session.get.call_args
        assert call_args.args[0] == "https://metasys.test/api/v2/enumSets/508/members/185"
        assert call_args.kwargs["headers"] == {"Authorization": "Bearer abc123"}

    async def test_close_leaves_shared_session_open(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)

        await client.close()

        mock_session.close.assert_not_called()


class TestErrorClassification:
    """Test transport failures map onto the error taxonomy."""

    async def test_non_2xx_raises_http_error_with_body(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.return_value = create_mock_response(
            status=500, text_data="Internal Server Error"
        )

        with pytest.raises(MetasysHttpError) as exc_info:
            await client.get("objects")

        assert exc_info.value.status == 500
        assert exc_info.value.body == "Internal Server Error"

    async def test_timeout_raises_metasys_timeout(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.side_effect = TimeoutError("Request timed out")

        with pytest.raises(MetasysTimeout, match="timed out"):
            await client.get("objects")

    async def test_client_error_raises_connection_error(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.side_effect = aiohttp.ClientError("Connection refused")

        with pytest.raises(MetasysConnectionError):
            await client.get("objects")

    async def test_invalid_json_raises_parsing_error(
        self, mock_session: MagicMock
    ) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.get.return_value = create_mock_response(text_data="<html>")

        with pytest.raises(MetasysParsingError) as exc_info:
            await client.get("objects")

        assert exc_info.value.body == "<html>"

    async def test_empty_body_decodes_to_none(self, mock_session: MagicMock) -> None:
        client = MetasysHttpClient(HOST, session=mock_session)
        mock_session.put.return_value = create_mock_response(status=200)

        assert await client.put("objects", "id-1", "commands", "x", payload=[]) is None
