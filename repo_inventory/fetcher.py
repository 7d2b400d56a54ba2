"""Runs one inventory: fetch every page, finalize, persist."""

import time
from typing import List, Optional

from loguru import logger

from .config import FetcherConfig
from .exceptions import FetchFailure, WriteError
from .inventory import Accumulator, finalize
from .io_handler import OutputHandler
from .models import FetchError, RunResult, RunState
from .paginator import Paginator
from .sources import RepositorySource
from .utils import log_run_summary


class InventoryFetcher:
    """Drives a single run through IDLE -> FETCHING -> FINALIZING -> PERSISTING -> DONE.

    A write failure ends the run in FAILED instead of DONE. Page failures
    never do: they are recorded as FetchError entries.
    """

    def __init__(self, config: FetcherConfig, source: RepositorySource,
                 paginator: Optional[Paginator] = None):
        self.config = config
        self.paginator = paginator or Paginator(
            source,
            retries=config.fetch_retries,
            retry_delay=config.retry_delay,
            visibility=config.visibility,
            source_only=config.source_only,
        )
        self.state = RunState.IDLE
        self.accumulator = Accumulator()
        self.errors: List[FetchError] = []
        self.pages_fetched = 0

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    def _record_error(self, cursor: int, message: str) -> None:
        self.errors.append(FetchError(page_identifier=cursor, message=message))

    def fetch_all(self) -> None:
        """Fetch pages until the source runs out or a stop condition hits.

        At most ``max_pages`` pages are attempted.
        """
        config = self.config
        self._transition(RunState.FETCHING)
        consecutive_failures = 0

        for cursor in range(1, config.max_pages + 1):
            logger.info(f"Fetching page {cursor} of {config.account} (page size {config.page_size})")
            try:
                records, has_more = self.paginator.fetch_page(
                    config.account, config.page_size, cursor, config.fields
                )
            except FetchFailure as e:
                logger.error(f"Failed to fetch page {cursor}: {e}")
                self._record_error(cursor, str(e))
                consecutive_failures += 1

                if config.on_error == "abort":
                    logger.warning("Stopping fetch after first failed page (on_error=abort)")
                    return
                if consecutive_failures >= config.max_consecutive_failures:
                    logger.warning(f"Stopping fetch after {consecutive_failures} consecutive failed pages")
                    return
                continue

            consecutive_failures = 0
            self.pages_fetched += 1
            self.accumulator.add_page(records)
            logger.info(f"Page {cursor}: {len(records)} repositories ({len(self.accumulator)} so far)")

            if not has_more:
                return

        next_cursor = config.max_pages + 1
        message = f"Stopped after {config.max_pages} pages; page {next_cursor} and later were not fetched"
        logger.warning(message)
        self._record_error(next_cursor, message)

    def run(self) -> RunResult:
        """Execute the whole run and report how it ended."""
        start_time = time.time()

        self.fetch_all()

        self._transition(RunState.FINALIZING)
        snapshot = finalize(self.accumulator.records)

        result = RunResult(
            state=RunState.DONE,
            snapshot=snapshot,
            errors=list(self.errors),
            pages_fetched=self.pages_fetched,
            records_seen=len(self.accumulator),
        )

        if self.config.dry_run:
            logger.info("DRY RUN: skipping writes")
        else:
            self._transition(RunState.PERSISTING)
            try:
                OutputHandler.persist(snapshot, self.errors, self.config.snapshot_path, self.config.error_path)
            except WriteError as e:
                result.state = RunState.FAILED
                result.write_error = e

        self._transition(result.state)
        log_run_summary(result, time.time() - start_time)
        return result
