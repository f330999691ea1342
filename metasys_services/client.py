"""Asynchronous client for the most commonly used Metasys API endpoints."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Any
from uuid import UUID

import aiohttp

from .errors import (
    MetasysClientError,
    MetasysGuidError,
    MetasysHttpError,
    MetasysPropertyError,
)
from .http import DEFAULT_TIMEOUT, MetasysHttpClient
from .localization import DEFAULT_LOCALE, Localizer
from .models import (
    AccessToken,
    ApiVersion,
    Command,
    MetasysObject,
    NetworkDeviceType,
    Variant,
    VariantMultiple,
    parse_object_id,
)
from .pagination import collect_items
from .session import MetasysSession

_LOGGER = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


def group_variants(
    ids: Sequence[UUID],
    attribute_names: Sequence[str],
    results: Iterable[Variant | None],
) -> list[VariantMultiple]:
    """Group per-attribute read results by object.

    An object is included when at least one of its reads produced a value, or
    when no attributes were requested at all. Objects whose reads all came back
    empty are left out.
    """
    variants = [result for result in results if result is not None]
    grouped: list[VariantMultiple] = []
    for object_id in ids:
        found = tuple(variant for variant in variants if variant.id == object_id)
        if found or not attribute_names:
            grouped.append(VariantMultiple(id=object_id, variants=found))
    return grouped


def _write_body(
    attribute_values: Iterable[tuple[str, Any]], priority: str | None
) -> dict[str, Any]:
    body = dict(attribute_values)
    if priority is not None:
        body["priority"] = priority
    return {"item": body}


class MetasysClient:
    """HTTP client for the most commonly used endpoints of the Metasys API.

    Usage:
        async with MetasysClient("metasys.example.com") as client:
            await client.login("user", "secret")
            object_id = await client.get_object_identifier("site:NAE-1/AV-1")
            variant = await client.read_property(object_id, "presentValue")
    """

    def __init__(
        self,
        hostname: str,
        *,
        ignore_certificate_errors: bool = False,
        version: ApiVersion = ApiVersion.V2,
        culture: str = DEFAULT_LOCALE,
        session: aiohttp.ClientSession | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        localizer: Localizer | None = None,
    ) -> None:
        """Initialize client.

        Args:
            hostname: Metasys server host name or address
            ignore_certificate_errors: Skip TLS certificate verification
            version: API version of the server
            culture: Locale used to render enumeration values
            session: Shared aiohttp session; one is created when omitted
            timeout: Per-request timeout (seconds)
            localizer: Resource lookup; the bundled table when omitted
        """
        self.culture = culture
        self._http = MetasysHttpClient(
            hostname,
            session=session,
            version=version,
            ignore_certificate_errors=ignore_certificate_errors,
            timeout=timeout,
        )
        self._session = MetasysSession(self._http)
        self._localizer = localizer or Localizer.default()

    async def __aenter__(self) -> MetasysClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop token refreshing and release the HTTP session."""
        await self._session.close()
        await self._http.close()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def login(
        self, username: str, password: str, refresh: bool = True
    ) -> AccessToken:
        return await self._session.login(username, password, refresh)

    async def refresh(self) -> AccessToken:
        return await self._session.refresh()

    def get_access_token(self) -> AccessToken:
        return self._session.current_token()

    def localize(self, resource: str, culture: str | None = None) -> str:
        """Translate a resource key for ``culture`` (client culture by default)."""
        return self._localizer.localize(resource, culture or self.culture)

    # -------------------------------------------------------------------------
    # Objects and properties
    # -------------------------------------------------------------------------

    async def get_object_identifier(self, item_reference: str) -> UUID | None:
        """Look up the identifier of an object by its item reference.

        Returns:
            The identifier, or None if no object has that reference.

        Raises:
            MetasysGuidError: If the server answers with something other than
                an identifier.
        """
        try:
            data = await self._http.get(
                "objectIdentifiers", params={"fqr": item_reference}
            )
        except MetasysHttpError as err:
            if err.status == HTTP_NOT_FOUND:
                return None
            raise

        if not isinstance(data, str):
            raise MetasysGuidError("Identifier response is not a string", data)
        object_id = parse_object_id(data)
        if object_id is None:
            raise MetasysGuidError(f"Bad identifier: {data}", data)
        return object_id

    async def read_property(self, object_id: UUID, attribute_name: str) -> Variant | None:
        """Read one attribute of an object.

        Returns:
            The value, or None if the object or attribute does not exist.

        Raises:
            MetasysPropertyError: If the response has no ``item.<attribute>``.
        """
        try:
            data = await self._http.get(
                "objects", object_id, "attributes", attribute_name
            )
        except MetasysHttpError as err:
            if err.status == HTTP_NOT_FOUND:
                return None
            raise

        item = data.get("item") if isinstance(data, dict) else None
        if not isinstance(item, dict) or attribute_name not in item:
            raise MetasysPropertyError(
                f"Response has no item.{attribute_name} for {object_id}", data
            )
        return Variant.from_json(
            object_id,
            attribute_name,
            item[attribute_name],
            culture=self.culture,
            localizer=self._localizer,
        )

    async def _read_property_or_none(
        self, object_id: UUID, attribute_name: str
    ) -> Variant | None:
        try:
            return await self.read_property(object_id, attribute_name)
        except MetasysClientError as err:
            _LOGGER.debug("Read of %s.%s failed: %s", object_id, attribute_name, err)
            return None

    async def read_property_multiple(
        self, ids: Iterable[UUID], attribute_names: Iterable[str]
    ) -> list[VariantMultiple]:
        """Read every attribute of every object, one request per pair.

        Failed reads are dropped; see :func:`group_variants` for which objects
        end up in the result.
        """
        ids = list(ids)
        attribute_names = list(attribute_names)
        results = await asyncio.gather(
            *(
                self._read_property_or_none(object_id, attribute_name)
                for object_id in ids
                for attribute_name in attribute_names
            )
        )
        return group_variants(ids, attribute_names, results)

    async def write_property(
        self,
        object_id: UUID,
        attribute_name: str,
        new_value: Any,
        priority: str | None = None,
    ) -> None:
        """Write one attribute, optionally at a write priority."""
        await self._http.patch(
            "objects",
            object_id,
            payload=_write_body([(attribute_name, new_value)], priority),
        )

    async def write_property_multiple(
        self,
        ids: Iterable[UUID],
        attribute_values: Iterable[tuple[str, Any]],
        priority: str | None = None,
    ) -> None:
        """Write the same attribute values to several objects.

        All writes run to completion; the first failure is raised afterwards.
        """
        body = _write_body(attribute_values, priority)
        results = await asyncio.gather(
            *(self._http.patch("objects", object_id, payload=body) for object_id in ids),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, Exception)]
        for err in errors[1:]:
            _LOGGER.warning("Additional write failure: %s", err)
        if errors:
            raise errors[0]

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def get_commands(self, object_id: UUID) -> list[Command]:
        """List the commands an object accepts."""
        data = await self._http.get("objects", object_id, "commands")
        if not isinstance(data, list):
            _LOGGER.warning("Could not parse commands response for %s", object_id)
            return []

        commands: list[Command] = []
        for entry in data:
            try:
                commands.append(Command.from_json(entry))
            except ValueError as err:
                _LOGGER.warning("Skipping command of %s: %s", object_id, err)
        return commands

    async def send_command(
        self, object_id: UUID, command: str, values: Iterable[Any] | None = None
    ) -> None:
        """Send a command with its ordered arguments."""
        await self._http.put(
            "objects",
            object_id,
            "commands",
            command,
            payload=list(values) if values is not None else [],
        )

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def get_network_devices(
        self, device_type: str | None = None
    ) -> list[MetasysObject]:
        """List all network devices, optionally of one type."""

        async def fetch_page(page: int) -> Any:
            params: dict[str, Any] = {"page": page}
            if device_type is not None:
                params["type"] = device_type
            return await self._http.get("networkDevices", params=params)

        items = await collect_items(fetch_page, description="network devices")
        return [MetasysObject.from_json(item) for item in items]

    async def get_network_device_types(self) -> list[NetworkDeviceType]:
        """List the network device types known to the server."""
        data = await self._http.get("networkDevices", "availableTypes")
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            _LOGGER.warning("Could not parse network device types response")
            return []

        types: list[NetworkDeviceType] = []
        for item in items:
            type_url = item.get("typeUrl") if isinstance(item, dict) else None
            if not isinstance(type_url, str):
                _LOGGER.warning("Network device type has no typeUrl: %r", item)
                continue

            document = await self._http.get_url(type_url)
            type_id = document.get("id") if isinstance(document, dict) else None
            description = (
                document.get("description") if isinstance(document, dict) else None
            )
            if isinstance(type_id, bool) or not isinstance(type_id, int):
                _LOGGER.warning("Could not get type enumeration from %s", type_url)
                continue
            if not isinstance(description, str):
                _LOGGER.warning("Type enumeration at %s has no description", type_url)
                continue
            types.append(NetworkDeviceType(id=type_id, description=description))
        return types

    async def get_objects(
        self, object_id: UUID, levels: int = 1
    ) -> list[MetasysObject] | None:
        """List the child objects of an object, expanding ``levels`` deep.

        ``levels=1`` lists direct children only; each extra level attaches the
        children of every listed object. Returns None when ``levels < 1``.
        """
        if levels < 1:
            return None

        items = await collect_items(
            lambda page: self._http.get(
                "objects", object_id, "objects", params={"page": page}
            ),
            description=f"objects of {object_id}",
            require_total=True,
        )

        objects: list[MetasysObject] = []
        for item in items:
            children: tuple[MetasysObject, ...] = ()
            if levels - 1 > 0:
                child_id = parse_object_id(item.get("id"))
                if child_id is None:
                    _LOGGER.debug("Not expanding object without id: %r", item)
                else:
                    children = tuple(await self.get_objects(child_id, levels - 1) or ())
            objects.append(MetasysObject.from_json(item, children))
        return objects
