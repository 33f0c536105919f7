"""Exception hierarchy for tinyfeed."""


class TinyfeedError(Exception):
    """Base class for errors raised by tinyfeed."""


class FeedFetchError(TinyfeedError):
    """Raised when a source cannot be downloaded or parsed as a feed."""


class TemplateLoadError(TinyfeedError):
    """Raised when the HTML template cannot be read or compiled."""


class RenderError(TinyfeedError):
    """Raised when rendering the HTML template fails."""


class NonceError(TinyfeedError):
    """Raised when no random nonce can be produced."""
