"""HTTP client for the GitHub REST API with rate limiting."""

import time
from typing import Any, Dict, Optional

import requests
from loguru import logger

from .config import DEFAULT_HEADERS, FETCH_TIMEOUT, GITHUB_TOKEN, RATE_LIMIT_DELAY
from .exceptions import ClientError, FetchTimeoutError, NetworkError, PayloadError, RateLimitError


class HTTPClient:
    """HTTP client with token auth, rate limiting and error translation."""

    def __init__(self, token: Optional[str] = None, timeout: float = FETCH_TIMEOUT,
                 rate_limit_delay: Optional[float] = None, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

        token = GITHUB_TOKEN if token is None else token
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.debug("No GITHUB_TOKEN configured - using unauthenticated requests")

        self.timeout = timeout
        self.last_request_time = 0
        self._rate_limit_delay = RATE_LIMIT_DELAY if rate_limit_delay is None else rate_limit_delay

    def _rate_limit(self):
        """Implement rate limiting between requests."""
        current_time = time.time()
        time_since_last = current_time - self.last_request_time
        delay = self._rate_limit_delay
        if time_since_last < delay:
            sleep_time = delay - time_since_last
            logger.debug(
                f"Rate limiting: sleeping for {sleep_time:.2f} seconds"
            )
            time.sleep(sleep_time)
        self.last_request_time = time.time()

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make a GET request, translating failures into fetch exceptions."""
        self._rate_limit()

        logger.debug(f"Making GET request to: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"Request timed out after {self.timeout}s: {url}")
            raise FetchTimeoutError(f"Request timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            logger.warning(f"Request failed for {url}: {e}")
            raise NetworkError(f"Request failed for {url}: {e}") from e

        if response.status_code >= 400:
            status_code = response.status_code
            if self._is_rate_limited(response):
                reset = response.headers.get("X-RateLimit-Reset", "unknown")
                logger.warning(f"Rate limited ({status_code}): {url} (reset: {reset})")
                raise RateLimitError(f"Rate limited ({status_code}), resets at {reset}")
            if 400 <= status_code < 500:
                # Client errors are permanent
                logger.warning(f"Client error ({status_code}): {url}")
                raise ClientError(f"Client error ({status_code}) for {url}", status_code=status_code)
            logger.warning(f"HTTP error ({status_code}): {url}")
            raise NetworkError(f"HTTP error ({status_code}) for {url}")

        logger.debug(
            f"Successfully fetched: {url} (status: {response.status_code})"
        )
        return response

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a URL and decode its JSON body."""
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise PayloadError(f"Invalid JSON from {url}: {e}") from e

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
