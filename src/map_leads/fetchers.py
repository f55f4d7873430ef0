"""HTTP session and website fetcher."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .errors import FetchError
from .validation import is_supported_url

CHUNK_SIZE = 16 * 1024
MAX_BODY_BYTES = 2 * 1024 * 1024


def make_retry_session(user_agent: str, total: int = 3) -> Session:
    """Create requests session with retry/backoff defaults.

    Only GET is retried; a provider run started by POST must never be
    submitted twice.
    """
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    retry = Retry(
        total=total,
        backoff_factor=0.6,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset({"GET"}),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsFetcher:
    """Requests-based fetcher with a hard wall-clock deadline per page."""

    def __init__(
        self,
        *,
        session: Session,
        timeout: float,
        logger: logging.Logger,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._logger = logger
        self._clock = clock

    def fetch(self, url: str) -> str:
        if not is_supported_url(url):
            self._logger.debug("Skipping unsupported URL: %s", url)
            return ""
        try:
            return self._read_within_deadline(url)
        except (RequestException, FetchError) as exc:
            self._logger.debug("Requests fetch failed for %s: %s", url, exc)
            return ""

    def _read_within_deadline(self, url: str) -> str:
        """Read the body, giving up once the wall-clock deadline has passed.

        The deadline is checked as each chunk arrives and once more at end of
        body. A read that stalls is cut by the socket read timeout, so a fetch
        can overrun the deadline by at most one read timeout.
        """
        deadline = self._clock() + self._timeout
        with self._session.get(url, timeout=self._timeout, stream=True) as response:
            response.raise_for_status()
            body = bytearray()
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if self._clock() > deadline:
                    raise FetchError(f"Timed out after {self._timeout:.1f}s")
                body.extend(chunk)
                if len(body) >= MAX_BODY_BYTES:
                    break
            if self._clock() > deadline:
                raise FetchError(f"Timed out after {self._timeout:.1f}s")
            encoding = response.encoding or "utf-8"
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")
