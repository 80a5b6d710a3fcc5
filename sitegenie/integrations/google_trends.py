"""Interest-over-time series from Google Trends, via pytrends."""

import asyncio
import logging
import threading
import time
from collections import deque
from typing import Optional

from pytrends.request import TrendReq

from sitegenie.exceptions import ProviderError

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class GoogleTrendsClient:
    """Fetch the Trends interest series for a niche name.

    pytrends is synchronous; each lookup runs in the loop's default
    executor and is throttled there to ``requests_per_minute``.

    Usage::

        client = GoogleTrendsClient(geo="US")
        values = await client.get_interest_series("hydroponics")
    """

    def __init__(
        self,
        hl: str = "en-US",
        tz: int = -120,
        geo: str = "",
        timeout: tuple[int, int] = (10, 30),
        retries: int = 2,
        backoff_factor: float = 1.5,
        requests_per_minute: int = 10,
    ):
        self._session_options = {
            "hl": hl,
            "tz": tz,
            "timeout": timeout,
            "retries": retries,
            "backoff_factor": backoff_factor,
        }
        self._default_geo = geo
        self._max_calls = max(1, requests_per_minute)
        self._recent_calls: deque[float] = deque()
        self._lock = threading.Lock()

    def _get_pytrends(self) -> TrendReq:
        return TrendReq(**self._session_options)

    def _throttle(self) -> None:
        """Block the executor thread until the per-minute budget has room.

        The lock is held while sleeping, so waiting threads queue behind it.
        """
        with self._lock:
            now = time.monotonic()
            while self._recent_calls and now - self._recent_calls[0] >= WINDOW_SECONDS:
                self._recent_calls.popleft()
            if len(self._recent_calls) >= self._max_calls:
                pause = WINDOW_SECONDS - (now - self._recent_calls[0])
                logger.debug("Throttling Google Trends for %.1fs", pause)
                time.sleep(max(pause, 0.0))
                self._recent_calls.popleft()
            self._recent_calls.append(time.monotonic())

    def _interest_values(self, keyword: str, timeframe: str, geo: str) -> list[float]:
        self._throttle()
        session = self._get_pytrends()
        session.build_payload([keyword], timeframe=timeframe, geo=geo)
        frame = session.interest_over_time()
        if frame.empty or keyword not in frame.columns:
            return []
        return [float(value) for value in frame[keyword].tolist()]

    async def get_interest_series(
        self,
        keyword: str,
        timeframe: str = "today 12-m",
        geo: Optional[str] = None,
    ) -> list[float]:
        """Interest values (0-100) for ``keyword``, oldest first.

        An empty list means Trends knows nothing about the keyword.

        Raises:
            ProviderError: when the pytrends call fails.
        """
        region = self._default_geo if geo is None else geo
        loop = asyncio.get_running_loop()
        try:
            series = await loop.run_in_executor(
                None, self._interest_values, keyword, timeframe, region,
            )
        except Exception as exc:
            raise ProviderError(
                f"Google Trends request failed for {keyword!r}: {exc}",
                provider="google_trends",
            ) from exc
        logger.info("Google Trends returned %d points for %r", len(series), keyword)
        return series
