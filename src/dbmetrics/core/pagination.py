"""Generic page walking over `limit`/`offset` paginated endpoints."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from dbmetrics.core.models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")


def walk_pages(
    limit: int,
    fetch_page: Callable[[int], Page[T]],
    stop: Callable[[Page[T]], bool] | None = None,
) -> list[T]:
    """
    Fetch pages at offsets 0, limit, 2*limit, ... and concatenate their items.

    The walk ends when a page reports `has_more=False`, or when the optional
    `stop` hook returns True for the page just appended (regardless of
    `has_more`). Errors raised by `fetch_page` propagate unchanged; the items
    collected so far are discarded with the local list.

    Args:
        limit: Page size; also the offset increment.
        fetch_page: Callable taking an offset and returning one Page.
        stop: Optional early-stop predicate evaluated after each page.

    Returns:
        All items of all fetched pages, in response order.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    out: list[T] = []
    offset = 0
    while True:
        page = fetch_page(offset)
        out.extend(page.items)
        logger.debug("fetched page offset=%d items=%d has_more=%s", offset, len(page.items), page.has_more)
        if stop is not None and stop(page):
            break
        if not page.has_more:
            break
        offset += limit
    return out
