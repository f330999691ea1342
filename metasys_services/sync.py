"""Blocking facade over :class:`MetasysClient`.

The asynchronous client runs on a private event loop in a daemon thread, so
the proactive token refresh keeps firing between blocking calls. Each method
blocks until its coroutine finishes and re-raises the original error.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar
from uuid import UUID

from .client import MetasysClient
from .models import (
    AccessToken,
    Command,
    MetasysObject,
    NetworkDeviceType,
    Variant,
    VariantMultiple,
)

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


class SyncMetasysClient:
    """Synchronous entry points for every :class:`MetasysClient` operation.

    Accepts the same arguments as :class:`MetasysClient`, except ``session``:
    an aiohttp session is bound to the loop that created it, so the facade
    always lets the client create its own.
    """

    def __init__(self, hostname: str, **kwargs: Any) -> None:
        if "session" in kwargs:
            raise TypeError("SyncMetasysClient manages its own aiohttp session")
        # Built before the loop thread starts so a bad argument leaks nothing
        self._client = MetasysClient(hostname, **kwargs)
        self._closed = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="metasys-client", daemon=True
        )
        self._thread.start()

    def __enter__(self) -> SyncMetasysClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        if self._closed:
            coro.close()
            raise RuntimeError("Client is closed")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def close(self) -> None:
        """Close the client and stop its event loop thread."""
        if self._closed:
            return
        try:
            self._run(self._client.close())
        finally:
            self._closed = True
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join()
            self._loop.close()
            _LOGGER.debug("Client event loop stopped")

    @property
    def culture(self) -> str:
        return self._client.culture

    @culture.setter
    def culture(self, value: str) -> None:
        self._client.culture = value

    def login(self, username: str, password: str, refresh: bool = True) -> AccessToken:
        return self._run(self._client.login(username, password, refresh))

    def refresh(self) -> AccessToken:
        return self._run(self._client.refresh())

    def get_access_token(self) -> AccessToken:
        return self._client.get_access_token()

    def localize(self, resource: str, culture: str | None = None) -> str:
        return self._client.localize(resource, culture)

    def get_object_identifier(self, item_reference: str) -> UUID | None:
        return self._run(self._client.get_object_identifier(item_reference))

    def read_property(self, object_id: UUID, attribute_name: str) -> Variant | None:
        return self._run(self._client.read_property(object_id, attribute_name))

    def read_property_multiple(
        self, ids: Iterable[UUID], attribute_names: Iterable[str]
    ) -> list[VariantMultiple]:
        return self._run(self._client.read_property_multiple(ids, attribute_names))

    def write_property(
        self,
        object_id: UUID,
        attribute_name: str,
        new_value: Any,
        priority: str | None = None,
    ) -> None:
        self._run(
            self._client.write_property(object_id, attribute_name, new_value, priority)
        )

    def write_property_multiple(
        self,
        ids: Iterable[UUID],
        attribute_values: Iterable[tuple[str, Any]],
        priority: str | None = None,
    ) -> None:
        self._run(self._client.write_property_multiple(ids, attribute_values, priority))

    def get_commands(self, object_id: UUID) -> list[Command]:
        return self._run(self._client.get_commands(object_id))

    def send_command(
        self, object_id: UUID, command: str, values: Iterable[Any] | None = None
    ) -> None:
        self._run(self._client.send_command(object_id, command, values))

    def get_network_devices(self, device_type: str | None = None) -> list[MetasysObject]:
        return self._run(self._client.get_network_devices(device_type))

    def get_network_device_types(self) -> list[NetworkDeviceType]:
        return self._run(self._client.get_network_device_types())

    def get_objects(
        self, object_id: UUID, levels: int = 1
    ) -> list[MetasysObject] | None:
        return self._run(self._client.get_objects(object_id, levels))
