#!/usr/bin/env python3
"""
Notion relation linker daemon.

Every TICK_INTERVAL seconds, links uncategorized transactions to their
Category page and unlinked transactions to their Month page.

Usage:
    notion-linker                  # Run forever
    notion-linker --once           # Run a single tick and exit
    notion-linker --dry-run        # Log links without writing them
    notion-linker --check          # Verify database access and exit
"""

import argparse
import logging
import sys
from typing import List, Optional

from notion_linker.categories import CategoryRegistry, load_category_registry
from notion_linker.categorizer import CategoryLinker
from notion_linker.config import (
    CATEGORY_RECHECK,
    LOG_FILE,
    LOG_LEVEL,
    MAX_RETRIES,
    RETRY_DELAY,
    TICK_INTERVAL,
    TICK_ITERATIONS,
    validate_config,
)
from notion_linker.errors import ConfigurationError, RemoteOperationError
from notion_linker.linker import MonthLinker
from notion_linker.notion_api import NotionClient
from notion_linker.scheduler import Scheduler

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL, log_file: str = LOG_FILE):
    """Console logging, plus a log file when LOG_FILE is set."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)


def build_scheduler(
    client: NotionClient,
    settings: dict,
    registry: CategoryRegistry,
    dry_run: bool = False,
    tick_interval: float = TICK_INTERVAL
) -> Scheduler:
    """Wire the Categorizer and Linker passes into a Scheduler."""
    category_linker = CategoryLinker(
        client,
        settings['transactions_database_id'],
        settings['category_database_id'],
        registry=registry,
        recheck_before_write=CATEGORY_RECHECK,
        dry_run=dry_run,
    )
    month_linker = MonthLinker(
        client,
        settings['transactions_database_id'],
        settings['month_database_id'],
        dry_run=dry_run,
    )
    return Scheduler(
        passes=[
            ('Categorizer', category_linker.link_categories),
            ('Linker', month_linker.link_months),
        ],
        max_retries=MAX_RETRIES,
        retry_delay=RETRY_DELAY,
        tick_interval=tick_interval,
        tick_iterations=TICK_ITERATIONS,
    )


def check_access(client: NotionClient, settings: dict) -> bool:
    """Validate that all three databases are shared with the integration."""
    ok = True
    for label, key in [
        ('Transactions', 'transactions_database_id'),
        ('Month', 'month_database_id'),
        ('Category', 'category_database_id'),
    ]:
        try:
            client.validate_database_access(settings[key], label)
        except RemoteOperationError as e:
            logger.error(str(e))
            ok = False
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Link Notion transactions to their Month and Category pages'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single tick and exit'
    )
    parser.add_argument(
        '--max-ticks',
        type=int,
        default=None,
        help='Stop after this many ticks (default: run forever)'
    )
    parser.add_argument(
        '--interval', '-i',
        type=float,
        default=TICK_INTERVAL,
        help=f'Seconds between ticks (default: {TICK_INTERVAL:g})'
    )
    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Log links without writing to Notion'
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Verify access to the three databases and exit'
    )
    parser.add_argument(
        '--log-level',
        default=LOG_LEVEL,
        help=f'Logging level (default: {LOG_LEVEL})'
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = validate_config()
        registry = load_category_registry()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    max_ticks = 1 if args.once else args.max_ticks

    with NotionClient(settings['token']) as client:
        if args.check:
            return 0 if check_access(client, settings) else 1

        logger.info("=" * 60)
        logger.info("NOTION LINKER STARTED")
        logger.info(f"Interval: {args.interval:g}s, Max retries: {MAX_RETRIES}, Retry delay: {RETRY_DELAY:g}s")
        logger.info(f"Dry run: {args.dry_run}, Category re-check: {CATEGORY_RECHECK}")
        logger.info("=" * 60)

        scheduler = build_scheduler(client, settings, registry, dry_run=args.dry_run, tick_interval=args.interval)
        try:
            ticks = scheduler.run_forever(max_ticks=max_ticks)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            return 1

    logger.info(f"Stopped after {ticks} tick(s)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
