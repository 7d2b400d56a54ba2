"""Command line interface for the repository inventory fetcher."""

import sys
import click
from loguru import logger

from .config import (
    DEFAULT_FIELDS,
    ERROR_FILE,
    ERROR_POLICIES,
    EXTENDED_FIELDS,
    FETCH_RETRIES,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    MAX_PAGES,
    ON_ERROR,
    PAGE_SIZE,
    SNAPSHOT_FILE,
    SOURCE,
    SOURCES,
    VISIBILITIES,
    FetcherConfig,
    parse_fields,
)
from .exceptions import ConfigurationError
from .fetcher import InventoryFetcher
from .sources import create_source


def setup_logging(log_level: str = LOG_LEVEL, log_file: str = LOG_FILE):
    """Setup logging configuration."""
    # Remove default logger
    logger.remove()

    # Add console logger
    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=log_level,
        colorize=True
    )

    # Add file logger
    if log_file:
        logger.add(
            log_file,
            format=LOG_FORMAT,
            level=log_level,
            rotation="10 MB",
            retention="7 days"
        )


def build_config(account: str, source: str, page_size: int, max_pages: int, fields: tuple,
                 extended: bool, visibility: str, source_only: bool, on_error: str, retries: int,
                 snapshot_file: str, error_file: str, dry_run: bool) -> FetcherConfig:
    """Turn CLI options into a validated configuration."""
    requested = parse_fields(fields)
    base_fields = EXTENDED_FIELDS if extended else DEFAULT_FIELDS
    field_set = base_fields + tuple(f for f in requested if f not in base_fields)

    return FetcherConfig(
        account=(account or "").strip(),
        source=source,
        page_size=page_size,
        max_pages=max_pages,
        on_error=on_error,
        fetch_retries=retries,
        fields=field_set,
        visibility=visibility,
        source_only=source_only,
        snapshot_path=snapshot_file,
        error_path=error_file,
        dry_run=dry_run,
    ).validate()


@click.command()
@click.option(
    '--account', '-a',
    envvar='INVENTORY_ACCOUNT',
    help='GitHub user or organization to inventory (env: INVENTORY_ACCOUNT)'
)
@click.option(
    '--source',
    type=click.Choice(SOURCES),
    default=SOURCE,
    help=f'Where to list repositories from: gh CLI or REST API (default: {SOURCE})'
)
@click.option(
    '--page-size', '-p',
    type=int,
    default=PAGE_SIZE,
    help=f'Repositories requested per page (default: {PAGE_SIZE})'
)
@click.option(
    '--max-pages',
    type=int,
    default=MAX_PAGES,
    help=f'Hard cap on pages fetched in one run (default: {MAX_PAGES})'
)
@click.option(
    '--fields', '-f',
    multiple=True,
    help='Extra fields to request, comma separated; name and url are always included'
)
@click.option(
    '--extended',
    is_flag=True,
    help='Request the extended field set (ownership, counts, timestamps, merge settings)'
)
@click.option(
    '--visibility',
    type=click.Choice(VISIBILITIES),
    default=None,
    help='Only list repositories with this visibility'
)
@click.option(
    '--source-only',
    is_flag=True,
    help='Skip forks'
)
@click.option(
    '--on-error',
    type=click.Choice(ERROR_POLICIES),
    default=ON_ERROR,
    help=f'On a failed page: record it and continue, or stop fetching (default: {ON_ERROR})'
)
@click.option(
    '--retries',
    type=int,
    default=FETCH_RETRIES,
    help=f'Attempts per page before it is recorded as failed (default: {FETCH_RETRIES})'
)
@click.option(
    '--snapshot-file', '-o',
    default=SNAPSHOT_FILE,
    help=f'Snapshot output path (default: {SNAPSHOT_FILE})'
)
@click.option(
    '--error-file', '-e',
    default=ERROR_FILE,
    help=f'Fetch error output path (default: {ERROR_FILE})'
)
@click.option(
    '--log-level', '-l',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    default=LOG_LEVEL,
    help=f'Logging level (default: {LOG_LEVEL})'
)
@click.option(
    '--log-file',
    default=LOG_FILE,
    help=f'Log file path (default: {LOG_FILE})'
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Fetch and report without writing any output files'
)
def main(account: str, source: str, page_size: int, max_pages: int, fields: tuple,
         extended: bool, visibility: str, source_only: bool, on_error: str, retries: int,
         snapshot_file: str, error_file: str, log_level: str, log_file: str, dry_run: bool):
    """
    Repository Inventory Fetcher

    Pages through every repository of a GitHub account, removes duplicates,
    sorts them by url and writes the result plus a list of failed pages to
    JSON files.

    Example usage:

        python -m repo_inventory -a octocat

        python -m repo_inventory -a my-org --extended --source-only -o repos.json
    """
    # Setup logging
    setup_logging(log_level, log_file)

    try:
        config = build_config(
            account, source, page_size, max_pages, fields, extended, visibility,
            source_only, on_error, retries, snapshot_file, error_file, dry_run,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info("Starting Repository Inventory Fetcher")
    logger.info(f"Account: {config.account}")
    logger.info(f"Source: {config.source}")
    logger.info(f"Page size: {config.page_size}")
    logger.info(f"Fields: {', '.join(config.fields)}")
    logger.info(f"Snapshot file: {config.snapshot_path}")
    logger.info(f"Error file: {config.error_path}")
    logger.info(f"Dry run: {config.dry_run}")

    try:
        with create_source(config) as repo_source:
            result = InventoryFetcher(config, repo_source).run()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Inventory interrupted by user")
        sys.exit(1)

    if not result.success:
        logger.error(f"Inventory failed: {result.write_error}")
        sys.exit(1)

    if config.dry_run:
        logger.info("DRY RUN: Would write the following repositories:")
        for record in result.snapshot.records[:10]:  # Show first 10
            logger.info(f"  - {record.url}")
        if len(result.snapshot) > 10:
            logger.info(f"  ... and {len(result.snapshot) - 10} more")

    if result.errors:
        logger.warning(f"Inventory completed with {len(result.errors)} failed pages, see {config.error_path}")
    logger.info("Repository Inventory Fetcher completed successfully")


if __name__ == '__main__':
    main()
