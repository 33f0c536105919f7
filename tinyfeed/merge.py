"""Merge and order items from several feeds."""

from collections.abc import Iterable

from .config import DEFAULT_LIMIT
from .models import FeedItem


def merge_items(
    items: Iterable[FeedItem], limit: int = DEFAULT_LIMIT
) -> list[FeedItem]:
    """Order items newest first and keep the first ``limit`` of them.

    Items without a parsed timestamp go after every dated item. Items with
    equal keys keep their input order, which makes the result deterministic
    for a given fetch order.

    Args:
        items: Items of all fetched feeds, in fetch order
        limit: Maximum number of items to return

    Returns:
        A new list of at most ``limit`` items

    Raises:
        ValueError: If limit is not a positive integer
    """
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit}")

    dated = []
    undated = []
    for item in items:
        if item.published is None:
            undated.append(item)
        else:
            dated.append(item)

    # list.sort stays stable with reverse=True
    dated.sort(key=lambda it: it.published.timestamp(), reverse=True)

    return (dated + undated)[:limit]
