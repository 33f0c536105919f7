"""Data models for tinyfeed."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class FeedItem:
    """Represents a single RSS/Atom/JSON feed entry."""

    title: str
    link: str
    description: str = ""
    content: str = ""
    published: datetime | None = None
    published_raw: str | None = None
    # Back-reference to the owning feed, not part of the item's identity
    feed: "Feed | None" = field(default=None, repr=False, compare=False)


@dataclass
class Feed:
    """Represents one fetched and parsed feed document."""

    title: str
    link: str
    source: str
    description: str = ""
    items: list[FeedItem] = field(default_factory=list)
