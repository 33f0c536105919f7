"""Shared fixtures and sample documents for tinyfeed tests."""

import logging
from unittest.mock import Mock

import pytest
import requests

from tinyfeed.logging_config import StructuredFormatter

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>https://www.example.com/</link>
    <description>Posts about examples</description>
    <item>
      <title>First post</title>
      <link>https://www.example.com/first</link>
      <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
      <pubDate>Tue, 05 Mar 2024 10:00:00 GMT</pubDate>
      <guid>https://www.example.com/first</guid>
    </item>
    <item>
      <title>Undated post</title>
      <link>https://www.example.com/undated</link>
      <description>No date on this one</description>
    </item>
    <item>
      <title>Older post</title>
      <link>https://www.example.com/older</link>
      <description>From last year</description>
      <pubDate>Fri, 01 Dec 2023 08:30:00 +0100</pubDate>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Journal</title>
  <link href="https://journal.example.org/"/>
  <id>urn:uuid:60a76c80-d399-11d9-b93C-0003939e0af6</id>
  <updated>2024-03-06T12:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <link href="https://journal.example.org/entry"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2024-03-06T12:00:00Z</updated>
    <content type="html">&lt;div&gt;&lt;h2&gt;Heading&lt;/h2&gt;&lt;p&gt;Entry body&lt;/p&gt;&lt;/div&gt;</content>
  </entry>
</feed>
"""

NOT_A_FEED = "this is definitely not <a feed"


def fake_response(body: str, status_code: int = 200) -> Mock:
    """Build a stand-in for requests.Response."""
    response = Mock()
    response.content = body.encode("utf-8")
    response.status_code = status_code
    response.headers = {"Content-Type": "application/xml; charset=utf-8"}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error"
        )
    return response


def fake_session(pages: dict) -> Mock:
    """Build a session whose get() serves ``pages`` by URL.

    Values are response bodies, or exceptions raised for that URL. Unknown
    URLs raise a ConnectionError.
    """
    session = Mock()
    session.headers = {}

    def get(url, timeout=None):
        page = pages.get(url)
        if page is None:
            raise requests.ConnectionError(f"Failed to resolve {url}")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, Mock):
            return page
        return fake_response(page)

    session.get.side_effect = get
    return session


@pytest.fixture
def restore_logging():
    """Undo handler and level changes made by setup_structured_logging."""
    root_logger = logging.getLogger()
    original_level = root_logger.level

    yield

    for handler in root_logger.handlers[:]:
        if isinstance(handler.formatter, StructuredFormatter):
            root_logger.removeHandler(handler)
    root_logger.setLevel(original_level)
    for name in list(logging.Logger.manager.loggerDict):
        if name == "tinyfeed" or name.startswith("tinyfeed."):
            logging.getLogger(name).setLevel(logging.NOTSET)
