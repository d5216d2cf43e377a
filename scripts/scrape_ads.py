#!/usr/bin/env python3
"""CLI shim for the ad crawler."""
from __future__ import annotations

import asyncio

from adscraper.crawl import CliArgs, parse_args, run
from adscraper.logging import configure_logging, logging_context, set_global_context


def main() -> None:
    """Parse CLI arguments and crawl the seed pages."""
    configure_logging()
    set_global_context(app="adscraper")
    args: CliArgs = parse_args()
    with logging_context(crawl_name=args.crawl_name, dry_run=args.dry_run or None):
        asyncio.run(run(args))


if __name__ == "__main__":
    main()
