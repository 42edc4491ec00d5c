"""
Command line entry point: rebuild the search indices of one channel.

    nixsearch-import --channel nixos-21.05 --es-url http://localhost:9200
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from nixsearch.core.dependencies import get_settings
from nixsearch.domain.errors import IndexerError
from nixsearch.services.pipeline import run_channel

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nixsearch-import",
        description="Index the packages and options of a channel's latest evaluation.",
    )
    parser.add_argument("-c", "--channel", required=True, help="Channel name, e.g. nixos-21.05")
    parser.add_argument("-u", "--es-url", help="Elasticsearch connection URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--progress", action="store_true", help="Show bulk load progress")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Transport libraries log every request at INFO.
    for noisy in ("elastic_transport", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = get_settings(es_url=args.es_url)
        asyncio.run(run_channel(args.channel, settings, show_progress=args.progress))
    except IndexerError as e:
        logger.debug("Channel import failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
