"""Display field derivation for feed items.

These helpers are exposed to the HTML template and must never raise for a
single odd item: problems are logged and an empty or best-effort value is
returned instead.
"""

from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .logging_config import create_execution_logger
from .models import FeedItem

PREVIEW_LENGTH = 600
TRUNCATION_INDICATOR = "…"
UNKNOWN_DATE = "Once upon a time"

logger = create_execution_logger("normalizer")


def set_execution_id(execution_id: str) -> None:
    """Tag normalizer diagnostics with the current run's execution id."""
    logger.execution_id = execution_id


def domain(item: FeedItem) -> str:
    """Return the hostname of the item's link without a leading ``www.``."""
    try:
        hostname = urlparse(item.link).hostname or ""
    except ValueError as e:
        logger.warning(
            f"Failed to parse domain {item.link}: {e}",
            item_link=item.link,
            error=str(e),
        )
        return ""

    if not hostname and item.link:
        logger.warning(
            f"No hostname in link {item.link}",
            item_link=item.link,
        )
    return hostname.removeprefix("www.")


def preview(item: FeedItem, max_length: int = PREVIEW_LENGTH) -> str:
    """Return a plain text preview of the item body.

    The description is preferred; the raw content is used when the
    description is empty.
    """
    text = item.description if item.description else item.content
    return truncate(clean_html_content(text), max_length)


def publication(item: FeedItem) -> str:
    """Return a human readable publication date for the item."""
    if item.published is None:
        if item.published_raw:
            return item.published_raw
        return UNKNOWN_DATE
    return item.published.strftime("%Y-%m-%d")


def truncate(
    text: str, max_length: int, indicator: str = TRUNCATION_INDICATOR
) -> str:
    """Shorten text to at most ``max_length`` characters plus an indicator.

    The cut backs off to the previous whitespace when that still keeps at
    least half of the budget, so words are not split when it can be avoided.

    Args:
        text: Text to shorten
        max_length: Maximum number of characters kept from ``text``
        indicator: Suffix appended when the text was shortened

    Returns:
        The original text, or its shortened form followed by ``indicator``
    """
    if len(text) <= max_length:
        return text

    cut = text[:max_length]
    boundary = max(cut.rfind(" "), cut.rfind("\n"), cut.rfind("\t"))
    if boundary >= max_length // 2:
        cut = cut[:boundary]

    return cut.rstrip() + indicator


def clean_html_content(content: str) -> str:
    """Remove HTML tags from content and normalize whitespace.

    Args:
        content: Raw content that may contain HTML

    Returns:
        Clean text content without HTML tags
    """
    if not content:
        return ""

    if "<" not in content and ">" not in content:
        return " ".join(content.split())

    soup = BeautifulSoup(content, "html.parser")

    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")

    return " ".join(text.split())
