"""Sequential walking of paged Metasys list endpoints.

List responses look like ``{"total": 42, "items": [...], "next": "<url>"}``.
Pages are requested one at a time from page 1 until ``next`` is null. A page
that cannot be read ends the walk; the items gathered so far are kept.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

_LOGGER = logging.getLogger(__name__)

FetchPage = Callable[[int], Awaitable[Any]]


def _read_page(
    response: Any, *, require_total: bool
) -> tuple[list[Any], bool] | None:
    """Return (items, has_next) for one page, or None if the page is malformed."""
    if not isinstance(response, dict):
        return None
    if require_total:
        total = response.get("total")
        if not isinstance(total, int):
            return None
        if total <= 0:
            return [], False
    items = response.get("items")
    if not isinstance(items, list):
        return None
    return items, response.get("next") is not None


async def collect_items(
    fetch_page: FetchPage,
    *,
    description: str,
    require_total: bool = False,
) -> list[dict[str, Any]]:
    """Fetch every page and return the items in page order.

    Args:
        fetch_page: Coroutine function returning the decoded body of a page
        description: Listing name used in log messages
        require_total: Pages must carry ``total``; a zero total ends the walk

    Returns:
        All object items from all readable pages.
    """
    items: list[dict[str, Any]] = []
    page = 1

    while True:
        response = await fetch_page(page)
        result = _read_page(response, require_total=require_total)
        if result is None:
            _LOGGER.warning("Could not read page %d of %s", page, description)
            break

        page_items, has_next = result
        for item in page_items:
            if isinstance(item, dict):
                items.append(item)
            else:
                _LOGGER.warning("Skipping malformed item in %s: %r", description, item)

        if not has_next:
            break
        page += 1

    _LOGGER.debug("Collected %d items from %d page(s) of %s", len(items), page, description)
    return items
