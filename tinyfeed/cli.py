"""Command line entry point for tinyfeed."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from . import normalize
from .config import LOG_LEVELS, Config
from .exceptions import TinyfeedError
from .logging_config import (
    create_execution_logger,
    new_execution_id,
    setup_structured_logging,
)
from .merge import merge_items
from .render import Renderer, build_metadata
from .rss import FeedProcessor

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

EXAMPLES = """examples:
  single feed      tinyfeed lovergne.dev/rss.xml > index.html
  multiple feeds   cat feeds.txt | tinyfeed > index.html
  feeds file       tinyfeed --input feeds.txt --name 'My news' > index.html
"""


def positive_int(value: str) -> int:
    """Parse a strictly positive integer for argparse arguments.

    Raises:
        argparse.ArgumentTypeError: If the value is not a positive integer
    """
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def positive_float(value: str) -> float:
    """Parse a strictly positive number for argparse arguments."""
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyfeed",
        usage="%(prog)s [options] [FEED_URL ...]",
        description=(
            "Aggregate a collection of feeds into a static HTML page. "
            "Only RSS, Atom and JSON feeds are supported."
        ),
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("sources", nargs="*", metavar="FEED_URL", help="feed URL or path")
    parser.add_argument("-n", "--name", help="title of the page (env: TINYFEED_NAME)")
    parser.add_argument(
        "-l",
        "--limit",
        type=positive_int,
        help="maximum number of items to display (env: TINYFEED_LIMIT, default: 49)",
    )
    parser.add_argument(
        "-t",
        "--template",
        help="path to a custom HTML template (env: TINYFEED_TEMPLATE)",
    )
    parser.add_argument(
        "-s",
        "--stylesheet",
        help="URL of an external stylesheet (env: TINYFEED_STYLESHEET)",
    )
    parser.add_argument(
        "--no-images",
        dest="allow_images",
        action="store_false",
        help="forbid the page from loading remote images",
    )
    parser.add_argument(
        "-i", "--input", help="file with one feed URL per line"
    )
    parser.add_argument(
        "-o", "--output", help="write the page to this file instead of stdout"
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        help="HTTP timeout in seconds (env: TINYFEED_TIMEOUT, default: 30)",
    )
    parser.add_argument(
        "-p",
        "--parallel",
        type=positive_int,
        help="number of feeds fetched concurrently (env: TINYFEED_PARALLEL, default: 1)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="diagnostics verbosity (env: LOG_LEVEL, default: WARNING)",
    )
    return parser


def read_stdin_sources(stream: TextIO | None) -> list[str]:
    """Return whitespace separated sources piped on stdin.

    Nothing is read from an interactive terminal.
    """
    if stream is None or stream.isatty():
        return []
    return stream.read().split()


def read_file_sources(path: str) -> list[str]:
    """Return the non-empty lines of a sources file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8 text
    """
    if not path:
        return []
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def apply_arguments(config: Config, args: argparse.Namespace) -> Config:
    """Overlay parsed command line flags on an environment based config."""
    if args.name is not None:
        config.name = args.name
    if args.limit is not None:
        config.limit = args.limit
    if args.template is not None:
        config.template_path = args.template
    if args.stylesheet is not None:
        config.stylesheet = args.stylesheet
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.parallel is not None:
        config.parallel = args.parallel
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.output is not None:
        config.output_path = args.output
    config.allow_images = args.allow_images
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """Run tinyfeed and return the process exit code."""
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    try:
        config = apply_arguments(Config.from_env(), args)
    except ValueError as e:
        parser.print_usage(sys.stderr)
        print(f"tinyfeed: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    setup_structured_logging(config.log_level, sys.stderr)
    execution_id = new_execution_id()
    main_logger = create_execution_logger("main", execution_id)
    normalize.set_execution_id(execution_id)

    try:
        sources = list(args.sources)
        sources += read_stdin_sources(sys.stdin)
        sources += read_file_sources(args.input or "")
    except (OSError, UnicodeDecodeError) as e:
        main_logger.error(f"error reading input sources: {e}", error=str(e))
        return EXIT_USAGE

    if not sources:
        parser.print_usage(sys.stderr)
        main_logger.error("you must input at least one feed url")
        return EXIT_USAGE

    config.sources = sources
    main_logger.log_execution_start(feed_count=len(sources))

    processor = FeedProcessor(timeout=config.timeout, execution_id=execution_id)
    feeds, items = processor.fetch_feeds(config.sources, workers=config.parallel)
    items = merge_items(items, config.limit)

    try:
        metadata = build_metadata(config)
        renderer = Renderer(config.template_path, execution_id=execution_id)
        template = renderer.load_template()
        if config.output_path:
            with open(config.output_path, "w", encoding="utf-8") as out:
                renderer.render(items, feeds, metadata, out, template)
        else:
            renderer.render(items, feeds, metadata, sys.stdout, template)
            sys.stdout.flush()
    except (TinyfeedError, OSError) as e:
        main_logger.error(str(e), error=str(e))
        main_logger.log_execution_end(success=False, error=str(e))
        return EXIT_FAILURE

    main_logger.log_metrics(
        {
            "sources": len(sources),
            "feeds_fetched": len(feeds),
            "feeds_failed": len(sources) - len(feeds),
            "items_rendered": len(items),
        }
    )
    main_logger.log_execution_end(success=True)
    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
