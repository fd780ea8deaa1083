"""Keep the hosting instance awake while people are talking to the bot.

Free hosting tiers put idle instances to sleep. While the last inbound
event is inside the session window an APScheduler job pings the bot's own
public URL; once the window passes the job skips and the host may sleep.
The only state shared with the bot core is the ``ActivityTracker``.
"""

from __future__ import annotations

import time
from typing import Callable

import httpx
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = structlog.get_logger(__name__)

JOB_ID = "keepalive_ping"


class ActivityTracker:
    """Timestamp of the last inbound event. Written by the bot, read here."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_activity: float | None = None

    @property
    def last_activity(self) -> float | None:
        return self._last_activity

    def record(self) -> None:
        self._last_activity = self._clock()

    def idle_for(self) -> float | None:
        """Seconds since the last event, or ``None`` if there was none."""
        if self._last_activity is None:
            return None
        return self._clock() - self._last_activity


class KeepAliveService:
    def __init__(
        self,
        tracker: ActivityTracker,
        url: str,
        session_minutes: int = 30,
        interval_minutes: int = 10,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._tracker = tracker
        self._url = url
        self._session_seconds = session_minutes * 60
        self._interval_minutes = interval_minutes
        self._timeout = timeout
        self._client = client
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def session_active(self) -> bool:
        idle = self._tracker.idle_for()
        return idle is not None and idle < self._session_seconds

    async def ping(self) -> bool:
        """Ping the URL if a session is active. Returns True when a ping succeeded."""
        if not self.enabled or not self.session_active():
            logger.debug("keepalive_skipped", idle_seconds=self._tracker.idle_for())
            return False
        try:
            if self._client is not None:
                response = await self._client.get(self._url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._url)
        except httpx.HTTPError as e:
            logger.warning("keepalive_ping_failed", url=self._url, error=str(e))
            return False
        logger.info("keepalive_ping", url=self._url, status=response.status_code)
        return response.status_code < 500

    def start(self, scheduler: AsyncIOScheduler) -> None:
        if not self.enabled:
            logger.info("keepalive_disabled")
            return
        scheduler.add_job(
            self.ping,
            "interval",
            minutes=self._interval_minutes,
            id=JOB_ID,
            replace_existing=True,
        )
        self._scheduler = scheduler
        logger.info("keepalive_started", url=self._url, interval_minutes=self._interval_minutes)

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.get_job(JOB_ID) is not None:
            self._scheduler.remove_job(JOB_ID)
        self._scheduler = None
