"""Rate-limited client for ESPN's public college football site API."""

import logging
import threading
import time
from datetime import date
from typing import Optional

import requests

from pipeline import settings

logger = logging.getLogger(__name__)


class EspnApiClient:
    """HTTP client with rate limiting and retry logic for the ESPN site API.

    Safe to share across worker threads: each thread gets its own session and
    the rate limiter is serialized.
    """

    def __init__(
        self,
        base_url: str = settings.ESPN_BASE_URL,
        requests_per_second: float = settings.ESPN_REQUESTS_PER_SECOND,
        max_retries: int = settings.ESPN_MAX_RETRIES,
        timeout: int = settings.ESPN_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.min_interval = 1.0 / requests_per_second
        self.max_retries = max_retries
        self.timeout = timeout
        self._last_request_time = 0.0
        self._lock = threading.Lock()
        self._local = threading.local()
        self.request_count = 0

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": "PlayoffTracker/1.0"})
            self._local.session = session
        return session

    def _rate_limit(self):
        with self._lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_request_time = time.time()
            self.request_count += 1

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        params = dict(params or {})
        # ESPN's edge cache ignores Cache-Control; a changing query string doesn't
        params["_"] = int(time.time() * 1000)
        for attempt in range(1, self.max_retries + 1):
            self._rate_limit()
            last_try = attempt == self.max_retries
            try:
                resp = self.session.get(url, params=params, timeout=self.timeout)
            except requests.exceptions.Timeout:
                logger.warning("Timeout on %s (attempt %d/%d)", url, attempt, self.max_retries)
                if last_try:
                    raise
                continue

            status = resp.status_code
            if status == 404:
                logger.debug("404 on %s", url)
                return {}
            if (status == 429 or status >= 500) and not last_try:
                wait = min(2 ** attempt, 10)
                logger.warning("HTTP %d on %s, retrying in %ds (attempt %d/%d)",
                               status, url, wait, attempt, self.max_retries)
                time.sleep(wait)
                continue
            resp.raise_for_status()
            return resp.json()
        return {}

    def get_rankings(self) -> dict:
        return self._get("/rankings")

    def get_scoreboard(self, dates: str, limit: int = 300) -> dict:
        """Scoreboard for ``YYYYMMDD`` or ``YYYYMMDD-YYYYMMDD``, FBS only."""
        return self._get("/scoreboard", params={
            "dates": dates,
            "limit": limit,
            "groups": settings.SCOREBOARD_GROUP,
        })

    def get_scoreboard_for_day(self, day: date) -> dict:
        return self.get_scoreboard(day.strftime("%Y%m%d"))

    def get_standings(self) -> dict:
        return self._get("/standings")
