"""Value types built from Metasys API responses.

Every model is a frozen snapshot of one JSON response. Nothing here performs
I/O; the client builds these and hands them to the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from .localization import Localizer

ARRAY_RESOURCE = "dataTypeEnumSet.arrayDataType"


class ApiVersion(Enum):
    """Supported Metasys server API versions."""

    V2 = "v2"


@dataclass(frozen=True)
class AccessToken:
    """Bearer token and its absolute UTC expiry."""

    token: str | None
    expires: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.token is None:
            return True
        return (now or datetime.now(tz=UTC)) >= self.expires

    @property
    def authorization_header(self) -> str | None:
        """Value of the ``Authorization`` header, or None without a token."""
        if not self.token:
            return None
        return f"Bearer {self.token}"


def parse_object_id(value: Any) -> UUID | None:
    """Return the identifier in ``value`` or None when it is not a UUID string."""
    if not isinstance(value, str):
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Variant:
    """A single attribute value read from an object.

    Attributes:
        id: Identifier of the object the value was read from.
        attribute: Attribute name (e.g., "presentValue").
        value: Raw JSON value as returned by the server.
        string_value: Value rendered as text for ``culture``.
        numeric_value: Numeric interpretation, if the value is a number or bool.
        boolean_value: Boolean interpretation, if the value is a bool.
        array_value: Element variants, if the value is an array.
        reliability: Reliability enumeration key, when reported.
        priority: Write priority enumeration key, when reported.
        culture: Locale used to render enumeration keys.
    """

    id: UUID
    attribute: str
    value: Any
    string_value: str
    numeric_value: float | None = None
    boolean_value: bool | None = None
    array_value: tuple[Variant, ...] = ()
    reliability: str | None = None
    priority: str | None = None
    culture: str = "en-US"

    @classmethod
    def from_json(
        cls,
        object_id: UUID,
        attribute: str,
        raw: Any,
        *,
        culture: str,
        localizer: Localizer,
    ) -> Variant:
        value = raw
        reliability = None
        priority = None
        # Values with status are wrapped: {"value": ..., "reliability": ..., "priority": ...}
        if isinstance(raw, dict) and "value" in raw:
            value = raw["value"]
            reliability = raw.get("reliability")
            priority = raw.get("priority")

        numeric_value: float | None = None
        boolean_value: bool | None = None
        array_value: tuple[Variant, ...] = ()

        if isinstance(value, bool):
            boolean_value = value
            numeric_value = 1.0 if value else 0.0
            string_value = str(value)
        elif isinstance(value, int | float):
            numeric_value = float(value)
            string_value = str(value)
        elif isinstance(value, str):
            string_value = localizer.localize(value, culture)
        elif isinstance(value, list):
            array_value = tuple(
                cls.from_json(
                    object_id, attribute, element, culture=culture, localizer=localizer
                )
                for element in value
            )
            string_value = localizer.localize(ARRAY_RESOURCE, culture)
        elif value is None:
            string_value = ""
        else:
            string_value = json.dumps(value)

        return cls(
            id=object_id,
            attribute=attribute,
            value=value,
            string_value=string_value,
            numeric_value=numeric_value,
            boolean_value=boolean_value,
            array_value=array_value,
            reliability=reliability,
            priority=priority,
            culture=culture,
        )


@dataclass(frozen=True)
class VariantMultiple:
    """Variants read from one object, grouped by its identifier."""

    id: UUID
    variants: tuple[Variant, ...] = ()


@dataclass(frozen=True)
class MetasysObject:
    """Flattened summary of a network device or object.

    ``children`` is only populated when the object was listed with enough
    ``levels`` to expand it.
    """

    id: UUID | None
    item_reference: str | None = None
    name: str | None = None
    type_url: str | None = None
    description: str | None = None
    category: str | None = None
    children: tuple[MetasysObject, ...] = field(default_factory=tuple)

    @property
    def children_count(self) -> int:
        return len(self.children)

    @classmethod
    def from_json(
        cls, item: dict[str, Any], children: tuple[MetasysObject, ...] = ()
    ) -> MetasysObject:
        return cls(
            id=parse_object_id(item.get("id")),
            item_reference=item.get("itemReference"),
            name=item.get("name"),
            type_url=item.get("typeUrl"),
            description=item.get("description"),
            category=item.get("category"),
            children=children,
        )


@dataclass(frozen=True)
class CommandItem:
    """One argument slot of a command."""

    title: str | None
    type: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    enum_members: tuple[tuple[str, str | None], ...] = ()


@dataclass(frozen=True)
class Command:
    """A command an object accepts, with its ordered argument slots."""

    command_id: str
    title: str
    items: tuple[CommandItem, ...] = ()

    @classmethod
    def from_json(cls, data: Any) -> Command:
        """Build a command from one entry of the commands array.

        Raises:
            ValueError: If the entry is not an object with a ``commandId``.
        """
        if not isinstance(data, dict) or not isinstance(data.get("commandId"), str):
            raise ValueError(f"Command entry has no commandId: {data!r}")

        items = []
        for item in data.get("items") or []:
            if not isinstance(item, dict):
                raise ValueError(f"Command item is not an object: {item!r}")
            members = tuple(
                (member["const"], member.get("title"))
                for member in item.get("oneOf") or []
                if isinstance(member, dict) and "const" in member
            )
            items.append(
                CommandItem(
                    title=item.get("title"),
                    type=item.get("type"),
                    minimum=item.get("minimum"),
                    maximum=item.get("maximum"),
                    enum_members=members,
                )
            )

        return cls(
            command_id=data["commandId"],
            title=data.get("title") or data["commandId"],
            items=tuple(items),
        )


@dataclass(frozen=True)
class NetworkDeviceType:
    """Network device type enumeration entry."""

    id: int
    description: str
