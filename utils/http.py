"""HTTP utilities for fetching the seed dataset.

Provides:
- RetryStrategy, a thin wrapper building urllib3 Retry objects
- SessionManager, a requests.Session with retries and connection pooling
- fetch_json, a single GET that returns the decoded JSON body
"""

import logging
from typing import Any, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

logger = logging.getLogger(__name__)


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 2.0,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3).
                         0 disables retries entirely.
            backoff_factor: Exponential backoff multiplier (default: 2.0)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 500, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 500, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        Exhausted status retries return the last response instead of raising,
        so callers see the real status via raise_for_status().
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 10, pool_maxsize: int = 20):
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_json(url: str, session: Optional[requests.Session] = None,
               timeout: float = 30.0) -> Any:
    """GET ``url`` and return its decoded JSON body.

    Args:
        url: Address to fetch
        session: Session to use (default: a throwaway requests.Session)
        timeout: Seconds to wait for connect and for each read

    Raises:
        requests.RequestException: connection failure, timeout, or a
            non-2xx status
        ValueError: the body is not valid JSON
    """
    owned = session is None
    if owned:
        session = requests.Session()
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
        logger.debug("GET %s -> %d (%d bytes)", url, response.status_code,
                     len(response.content))
        return response.json()
    finally:
        if owned:
            session.close()
