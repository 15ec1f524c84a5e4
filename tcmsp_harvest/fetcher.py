import logging
import time
from typing import Any, Callable, Dict, Optional

from playwright.sync_api import Error as PlaywrightError, sync_playwright

from .config import DEFAULT_INTERVAL_SEC, DEFAULT_TIMEOUT_MS, HEADERS, UA
from .errors import TransportError

logger = logging.getLogger(__name__)


class RateLimitedFetcher:
    """Serialized HTTP GETs with a fixed pause between consecutive requests.

    TCMSP only tolerates slow, one-at-a-time access, so the pause is counted
    from the moment the previous request finished (successfully or not) and
    applies to every request issued through the same instance. Share one
    fetcher across a whole batch.

    The transport is Playwright's ``APIRequestContext``; it is started on the
    first request. Any object with a compatible ``get(url, params=, timeout=)``
    can be passed as ``request_context`` instead.
    """

    def __init__(
        self,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        request_context: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_sec < 0:
            raise ValueError("interval_sec must be >= 0")
        self.interval_sec = interval_sec
        self.timeout_ms = timeout_ms
        self._request = request_context
        self._owns_request = request_context is None
        self._playwright = None
        self._sleep = sleep
        self._clock = clock
        self._last_done: Optional[float] = None
        self.requests_made = 0

    def __enter__(self) -> "RateLimitedFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_request and self._request is not None:
            try:
                self._request.dispose()
            finally:
                self._request = None
                if self._playwright is not None:
                    self._playwright.stop()
                    self._playwright = None

    def _context(self):
        if self._request is None:
            self._playwright = sync_playwright().start()
            self._request = self._playwright.request.new_context(
                user_agent=UA,
                extra_http_headers=HEADERS,
                timeout=self.timeout_ms,
            )
        return self._request

    def _wait_turn(self) -> None:
        if self._last_done is None:
            return
        remaining = self.interval_sec - (self._clock() - self._last_done)
        if remaining > 0:
            self._sleep(remaining)

    def get(self, url: str, params: Optional[Dict[str, str]] = None) -> bytes:
        """Return the raw body of ``url``; raise TransportError otherwise."""
        self._wait_turn()
        logger.debug("[GET] %s %s", url, params or "")
        try:
            response = self._context().get(url, params=params, timeout=self.timeout_ms)
            try:
                status = response.status
                ok = response.ok
                reason = response.status_text
                body = response.body() if ok else b""
            finally:
                response.dispose()
        except PlaywrightError as exc:
            raise TransportError(url, None, str(exc)) from exc
        finally:
            self.requests_made += 1
            self._last_done = self._clock()
        if not ok:
            raise TransportError(url, status, reason)
        return body

    def fetch(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        return self.get(url, params=params).decode("utf-8", errors="replace")
