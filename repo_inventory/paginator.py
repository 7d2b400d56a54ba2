"""Page-by-page fetching on top of a repository source."""

from typing import List, Sequence, Tuple

from loguru import logger
from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import FETCH_RETRIES, RETRY_DELAY
from .exceptions import ClientError, FetchFailure, PayloadError, RateLimitError
from .models import PageRequest, RepositoryRecord
from .sources import RepositorySource

# Failures that a second attempt will not fix
PERMANENT_FAILURES = (PayloadError, ClientError, RateLimitError)


class Paginator:
    """Fetches single pages and turns their payloads into records."""

    def __init__(self, source: RepositorySource, retries: int = FETCH_RETRIES,
                 retry_delay: float = RETRY_DELAY, visibility: str = None, source_only: bool = False):
        self.source = source
        self.retries = retries
        self.retry_delay = retry_delay
        self.visibility = visibility
        self.source_only = source_only

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.retry_delay, max=60),
            retry=(
                retry_if_exception_type(FetchFailure)
                & retry_if_not_exception_type(PERMANENT_FAILURES)
            ),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state):
        logger.warning(
            f"Attempt {retry_state.attempt_number} failed: {retry_state.outcome.exception()}. "
            f"Retrying in {retry_state.next_action.sleep:.2f} seconds..."
        )

    def fetch_page(self, account: str, page_size: int, cursor: int,
                   fields: Sequence[str]) -> Tuple[List[RepositoryRecord], bool]:
        """Fetch page ``cursor`` of ``account``'s repositories.

        Returns:
            The page's records and whether another page may follow.

        Raises:
            FetchFailure: when every attempt failed
        """
        request = PageRequest(
            account=account,
            page_size=page_size,
            cursor=cursor,
            fields=tuple(fields),
            visibility=self.visibility,
            source_only=self.source_only,
        )

        page = self._retrying()(self.source.fetch, request)

        records = []
        for item in page.items:
            try:
                records.append(RepositoryRecord.from_payload(item))
            except ValueError as e:
                logger.warning(f"Skipping entry on page {cursor}: {e}")
        return records, page.has_more
