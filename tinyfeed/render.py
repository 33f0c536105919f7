"""HTML rendering of the merged feed items."""

import base64
import secrets
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TextIO

import jinja2

from .config import Config
from .exceptions import NonceError, RenderError, TemplateLoadError
from .logging_config import create_execution_logger
from .models import Feed, FeedItem
from .normalize import domain, preview, publication

DEFAULT_TEMPLATE = Path(__file__).parent / "template.html"

NONCE_SIZE = 16

IMAGE_CSP_ALLOW = "*"
IMAGE_CSP_BLOCK = "'none'"

# Functions callable by name from templates
TEMPLATE_HELPERS: Mapping[str, Callable[[FeedItem], str]] = {
    "domain": domain,
    "preview": preview,
    "publication": publication,
}


def image_csp(allow_images: bool) -> str:
    """Return the img-src policy value for the rendered page."""
    return IMAGE_CSP_ALLOW if allow_images else IMAGE_CSP_BLOCK


def generate_nonce(
    size: int = NONCE_SIZE,
    token_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """Return a URL-safe base64 encoded random nonce.

    Args:
        size: Number of random bytes
        token_bytes: Randomness source, ``secrets.token_bytes`` by default

    Raises:
        NonceError: If the randomness source fails or returns too few bytes
    """
    try:
        raw = token_bytes(size)
    except Exception as e:
        raise NonceError(f"failed to generate nonce: {e}") from e

    if not raw or len(raw) < size:
        raise NonceError(
            f"failed to generate nonce: got {len(raw or b'')} of {size} bytes"
        )

    return base64.urlsafe_b64encode(raw).decode("ascii")


def build_metadata(
    config: Config,
    token_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> dict[str, str]:
    """Assemble the per-run metadata exposed to the template as ``Metadata``."""
    return {
        "name": config.name,
        "imageCsp": image_csp(config.allow_images),
        "stylesheet": config.stylesheet,
        "nonce": generate_nonce(token_bytes=token_bytes),
    }


class Renderer:
    """Renders items and feeds into an HTML document with Jinja2."""

    def __init__(
        self,
        template_path: str = "",
        helpers: Mapping[str, Callable[[FeedItem], str]] = TEMPLATE_HELPERS,
        execution_id: str | None = None,
    ):
        """Initialize the renderer.

        Args:
            template_path: Template override, empty for the built-in template
            helpers: Functions exposed to the template by name
            execution_id: Execution ID for logging context
        """
        self.template_path = template_path
        self.logger = create_execution_logger("renderer", execution_id)
        self.environment = jinja2.Environment(
            autoescape=jinja2.select_autoescape(default_for_string=True),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )
        self.environment.globals.update(helpers)

    def load_template(self) -> jinja2.Template:
        """Read and compile the configured template.

        Raises:
            TemplateLoadError: If the file is unreadable or not a valid template
        """
        path = Path(self.template_path) if self.template_path else DEFAULT_TEMPLATE

        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateLoadError(f"error loading html template {path}: {e}") from e

        try:
            template = self.environment.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateLoadError(
                f"error loading html template {path}: line {e.lineno}: {e.message}"
            ) from e

        self.logger.debug("Template loaded", template=str(path))
        return template

    def render(
        self,
        items: Sequence[FeedItem],
        feeds: Sequence[Feed],
        metadata: Mapping[str, str],
        out: TextIO,
        template: jinja2.Template | None = None,
    ) -> None:
        """Render the document into ``out``.

        Output is streamed; whatever was written before a failure stays
        written. ``template`` defaults to the result of ``load_template``.

        Raises:
            TemplateLoadError: If the template cannot be loaded
            RenderError: If rendering fails
        """
        if template is None:
            template = self.load_template()
        context = {"Items": list(items), "Feeds": list(feeds), "Metadata": dict(metadata)}

        try:
            for chunk in template.generate(context):
                out.write(chunk)
        except Exception as e:
            raise RenderError(f"error rendering html template: {e}") from e

        self.logger.info(
            "Rendered document", items_count=len(items), feeds_count=len(feeds)
        )
