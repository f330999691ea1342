"""Test the blocking SyncMetasysClient facade."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from metasys_services import AccessToken, MetasysObject, SyncMetasysClient
from metasys_services.errors import MetasysAuthError, MetasysPropertyError

OBJECT_ID = UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def sync_client() -> Iterator[SyncMetasysClient]:
    client = SyncMetasysClient("metasys.test")
    yield client
    client.close()


def test_login_returns_token(sync_client: SyncMetasysClient) -> None:
    token = AccessToken("abc", datetime(2030, 1, 1, tzinfo=UTC))
    sync_client._client.login = AsyncMock(return_value=token)

    assert sync_client.login("admin", "secret") == token
    sync_client._client.login.assert_awaited_once_with("admin", "secret", True)


def test_errors_are_not_wrapped(sync_client: SyncMetasysClient) -> None:
    sync_client._client.login = AsyncMock(
        side_effect=MetasysAuthError(401, "Login failed with status 401")
    )

    with pytest.raises(MetasysAuthError) as exc_info:
        sync_client.login("admin", "wrong")

    assert exc_info.value.status == 401


def test_read_property_error_propagates(sync_client: SyncMetasysClient) -> None:
    sync_client._client.read_property = AsyncMock(
        side_effect=MetasysPropertyError("Response has no item.presentValue")
    )

    with pytest.raises(MetasysPropertyError):
        sync_client.read_property(OBJECT_ID, "presentValue")


def test_get_objects_passes_levels(sync_client: SyncMetasysClient) -> None:
    children = [MetasysObject(id=OBJECT_ID, name="AV 1")]
    sync_client._client.get_objects = AsyncMock(return_value=children)

    assert sync_client.get_objects(OBJECT_ID, levels=3) == children
    sync_client._client.get_objects.assert_awaited_once_with(OBJECT_ID, 3)


def test_runs_on_private_loop_thread(sync_client: SyncMetasysClient) -> None:
    seen: list[str] = []

    async def record(*args: object) -> None:
        seen.append(threading.current_thread().name)

    sync_client._client.send_command = record

    sync_client.send_command(OBJECT_ID, "releaseAll")

    assert seen == ["metasys-client"]


def test_initial_token_without_network(sync_client: SyncMetasysClient) -> None:
    assert sync_client.get_access_token().token is None


def test_localize_and_culture(sync_client: SyncMetasysClient) -> None:
    sync_client.culture = "pl-PL"

    assert sync_client.localize("dataTypeEnumSet.arrayDataType") == "Tablica"


def test_closed_client_rejects_calls() -> None:
    client = SyncMetasysClient("metasys.test")
    client.close()

    with pytest.raises(RuntimeError, match="closed"):
        client.get_network_devices()

    # Closing twice is harmless
    client.close()


def test_context_manager_closes() -> None:
    with SyncMetasysClient("metasys.test") as client:
        pass

    assert client._closed


def test_rejects_external_session() -> None:
    with pytest.raises(TypeError):
        SyncMetasysClient("metasys.test", session=object())


def test_bad_arguments_start_no_loop_thread() -> None:
    before = [t for t in threading.enumerate() if t.name == "metasys-client"]

    with pytest.raises(TypeError):
        SyncMetasysClient("metasys.test", retries=3)

    after = [t for t in threading.enumerate() if t.name == "metasys-client"]
    assert after == before
