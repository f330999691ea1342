"""Localized rendering of Metasys enumeration keys.

Resource tables are data, not code: a YAML document mapping each resource key
(``reliabilityEnumSet.reliable``) to its translations by locale::

    reliabilityEnumSet.reliable:
      en-US: Reliable
      de-DE: Zuverlässig

A :class:`Localizer` looks a key up for the requested locale, then walks its
fallback chain, and finally returns the key itself when nothing matches.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

import yaml

DEFAULT_LOCALE = "en-US"
DEFAULT_RESOURCES = Path(__file__).parent / "resources" / "metasys_resources.yaml"


class ResourceLoadError(Exception):
    """Error loading a localization resource table."""


def load_resources(path: Path) -> dict[str, dict[str, str]]:
    """Load a resource table from a YAML file.

    Raises:
        ResourceLoadError: If the file is missing or not a key → locale map.
    """
    if not path.exists():
        raise ResourceLoadError(f"File not found: {path}")
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ResourceLoadError(f"Resource table must be a mapping: {path}")

    table: dict[str, dict[str, str]] = {}
    for key, translations in data.items():
        if not isinstance(translations, dict):
            raise ResourceLoadError(f"Resource {key!r} has no translations")
        table[str(key)] = {str(loc): str(text) for loc, text in translations.items()}
    return table


class Localizer:
    """Look up resource strings by (key, locale) with a fallback chain."""

    def __init__(
        self,
        table: Mapping[str, Mapping[str, str]],
        *,
        fallback_locales: Sequence[str] = (DEFAULT_LOCALE,),
    ) -> None:
        self._table = table
        self._fallback_locales = tuple(fallback_locales)

    @classmethod
    def default(cls) -> Localizer:
        """Localizer backed by the bundled resource table."""
        return cls(load_resources(DEFAULT_RESOURCES))

    def locale_chain(self, locale: str) -> tuple[str, ...]:
        chain = [locale]
        # "de" also matches a bare-language entry for "de-DE"
        language = locale.split("-", 1)[0]
        if language != locale:
            chain.append(language)
        chain.extend(loc for loc in self._fallback_locales if loc not in chain)
        return tuple(chain)

    def localize(self, resource: str, locale: str = DEFAULT_LOCALE) -> str:
        translations = self._table.get(resource)
        if not translations:
            return resource
        for candidate in self.locale_chain(locale):
            if candidate in translations:
                return translations[candidate]
        return resource
