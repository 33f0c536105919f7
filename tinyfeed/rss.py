"""Feed fetching and parsing module for tinyfeed."""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlparse

import feedparser
import requests
from dateutil import parser as date_parser

from .config import DEFAULT_TIMEOUT
from .exceptions import FeedFetchError
from .logging_config import create_execution_logger
from .models import Feed, FeedItem

USER_AGENT = "tinyfeed/1.0 (+static feed aggregator)"

# A parsed date that kept this year had no year in its text
_NO_YEAR = datetime(1, 1, 1)

# RFC 822 zone names dateutil does not resolve, in seconds east of UTC
RFC822_ZONES = {
    "UT": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


class FeedProcessor:
    """Handles RSS/Atom/JSON feed fetching and normalization."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        execution_id: str | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
            session: Optional preconfigured HTTP session
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

        self.logger.debug("FeedProcessor initialized", timeout=timeout)

    def fetch_feeds(
        self, sources: Sequence[str], workers: int = 1
    ) -> tuple[list[Feed], list[FeedItem]]:
        """Fetch and parse multiple feeds.

        A source that fails is logged and skipped; it never aborts the batch.
        With ``workers > 1`` sources are fetched on a thread pool, results are
        still collected in input order.

        Args:
            sources: Feed URLs or paths, in the order they were given
            workers: Number of concurrent fetches

        Returns:
            The successfully parsed feeds and the concatenation of their items
        """
        self.logger.log_execution_start(feed_count=len(sources), workers=workers)

        if workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._try_parse_feed, sources))
        else:
            results = [self._try_parse_feed(source) for source in sources]

        feeds = []
        all_items = []
        for feed in results:
            if feed is None:
                continue
            feeds.append(feed)
            all_items.extend(feed.items)

        self.logger.log_execution_end(
            success=True,
            feeds_fetched=len(feeds),
            feeds_failed=len(sources) - len(feeds),
            total_items=len(all_items),
        )
        return feeds, all_items

    def _try_parse_feed(self, source: str) -> Feed | None:
        try:
            feed = self.parse_feed(source)
        except Exception as e:
            self.logger.warning(
                f"Failed to parse feed {source}: {e}",
                source=source,
                error=str(e),
            )
            return None

        self.logger.log_feed_processing(source, len(feed.items))
        return feed

    def parse_feed(self, source: str) -> Feed:
        """Fetch and parse a single feed.

        Args:
            source: URL, bare host/path or local file path of the feed

        Returns:
            The parsed Feed with its items

        Raises:
            FeedFetchError: If the source cannot be resolved or is not a feed
            requests.RequestException: If the download fails
            OSError: If a local file cannot be read
        """
        self.logger.info("Starting to parse feed", source=source)

        document, headers = self.read_source(source)

        parsed = feedparser.parse(document, response_headers=headers)
        channel = parsed.get("feed", {})

        if parsed.get("bozo"):
            exc = parsed.get("bozo_exception")
            if not parsed.entries and not channel.get("title"):
                raise FeedFetchError(f"Invalid feed document: {source} ({exc})")
            self.logger.warning(
                f"Feed parsing warning for {source}: {exc}",
                source=source,
                error=str(exc),
            )

        feed = Feed(
            title=channel.get("title", ""),
            link=channel.get("link", ""),
            description=channel.get("subtitle", ""),
            source=source,
        )

        for entry in parsed.entries:
            try:
                feed.items.append(self.normalize_item(entry, feed))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry from {source}: {e}",
                    source=source,
                    error=str(e),
                )
                continue

        self.logger.info(
            "Successfully parsed feed",
            source=source,
            items_count=len(feed.items),
            total_entries=len(parsed.entries),
        )
        return feed

    def read_source(self, source: str) -> tuple[bytes, dict[str, str]]:
        """Return the raw document behind a source and its response headers.

        ``http``/``https`` URLs are downloaded, existing files are read from
        disk and scheme-less strings such as ``example.com/rss.xml`` are
        treated as HTTPS URLs. Headers help feedparser pick the encoding and
        recognise JSON feeds.

        Raises:
            FeedFetchError: For empty sources and unsupported schemes
        """
        source = source.strip()
        if not source:
            raise FeedFetchError("Empty feed source")

        scheme = urlparse(source).scheme.lower()
        if scheme in ("http", "https"):
            return self._download(source)

        path = Path(source)
        if path.is_file():
            self.logger.info("Reading feed from file", source=source)
            headers = {}
            if path.suffix.lower() == ".json":
                headers["content-type"] = "application/feed+json"
            return path.read_bytes(), headers

        if not scheme:
            return self._download(f"https://{source}")

        raise FeedFetchError(f"Unsupported feed source scheme '{scheme}': {source}")

    def _download(self, url: str) -> tuple[bytes, dict[str, str]]:
        self.logger.info("Downloading feed content", source=url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        self.logger.info(
            "Feed downloaded successfully",
            source=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        headers = {key.lower(): value for key, value in response.headers.items()}
        return response.content, headers

    def normalize_item(self, entry: dict, feed: Feed) -> FeedItem:
        """Normalize a feedparser entry into a FeedItem.

        Args:
            entry: Raw feed entry from feedparser
            feed: Feed the entry belongs to

        Returns:
            Normalized FeedItem object
        """
        description = entry.get("summary") or entry.get("description") or ""

        content = ""
        raw_content = entry.get("content")
        if isinstance(raw_content, list) and raw_content:
            content = raw_content[0].get("value", "") or ""
        elif isinstance(raw_content, str):
            content = raw_content

        published, published_raw = parse_entry_date(entry)

        return FeedItem(
            title=entry.get("title", "") or "",
            link=entry.get("link", "") or "",
            description=description,
            content=content,
            published=published,
            published_raw=published_raw,
            feed=feed,
        )


def parse_entry_date(entry: dict) -> tuple[datetime | None, str | None]:
    """Extract the publication timestamp and raw date string of an entry.

    The raw string is ``published`` falling back to ``updated``. It is parsed
    with dateutil, keeping its UTC offset and resolving RFC 822 zone names.
    feedparser's own parsed struct for the same field is used when dateutil
    cannot read the string or finds a zone it does not know. Other naive
    values are taken as UTC.

    Returns:
        A tuple of the timezone-aware timestamp (or None) and the raw string
    """
    raw, struct = None, None
    for key in ("published", "updated"):
        if entry.get(key):
            raw, struct = entry[key], entry.get(f"{key}_parsed")
            break
    else:
        struct = entry.get("published_parsed") or entry.get("updated_parsed")

    if raw:
        try:
            published = date_parser.parse(
                raw, default=_NO_YEAR, tzinfos=RFC822_ZONES
            )
        except (ValueError, OverflowError):
            published = None
        if published is not None and published.year != _NO_YEAR.year:
            if published.tzinfo is not None:
                return published, raw
            if not struct:
                return published.replace(tzinfo=UTC), raw

    if struct:
        return datetime(*struct[:6], tzinfo=UTC), raw

    return None, raw
