"""Unit tests for ActivityTracker and KeepAliveService.

Tests:
  - idle time is measured from the last recorded event
  - ping is sent only while the session window is open
  - transport errors are logged and reported as False
  - start() registers one interval job on the scheduler; disabled without a URL
"""

from __future__ import annotations

import httpx
import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from tests.conftest import FakeClock
from tulubot.services.keepalive import JOB_ID, ActivityTracker, KeepAliveService


def _service(
    clock: FakeClock,
    handler,
    url: str = "https://bot.example.com/health",
) -> tuple[KeepAliveService, ActivityTracker, httpx.AsyncClient]:
    tracker = ActivityTracker(clock=clock)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = KeepAliveService(tracker, url, session_minutes=30, interval_minutes=10, client=client)
    return service, tracker, client


class TestActivityTracker:
    def test_idle_for(self) -> None:
        clock = FakeClock()
        tracker = ActivityTracker(clock=clock)
        assert tracker.idle_for() is None

        tracker.record()
        clock.advance(42)

        assert tracker.idle_for() == 42


class TestKeepAlivePing:
    @pytest.mark.asyncio
    async def test_pings_during_session(self) -> None:
        hits: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hits.append(request)
            return httpx.Response(200, text="ok")

        clock = FakeClock()
        service, tracker, client = _service(clock, handler)
        tracker.record()
        clock.advance(60)

        async with client:
            assert await service.ping() is True
        assert len(hits) == 1
        assert str(hits[0].url) == "https://bot.example.com/health"

    @pytest.mark.asyncio
    async def test_skips_after_session(self) -> None:
        hits: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hits.append(request)
            return httpx.Response(200)

        clock = FakeClock()
        service, tracker, client = _service(clock, handler)
        tracker.record()
        clock.advance(31 * 60)

        async with client:
            assert await service.ping() is False
        assert hits == []

    @pytest.mark.asyncio
    async def test_skips_before_any_activity(self) -> None:
        service, _, client = _service(FakeClock(), lambda r: httpx.Response(200))
        async with client:
            assert await service.ping() is False

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        clock = FakeClock()
        service, tracker, client = _service(clock, handler)
        tracker.record()

        async with client:
            assert await service.ping() is False


class TestKeepAliveScheduling:
    @pytest.mark.asyncio
    async def test_start_registers_job(self) -> None:
        scheduler = AsyncIOScheduler()
        service, _, client = _service(FakeClock(), lambda r: httpx.Response(200))

        service.start(scheduler)
        assert scheduler.get_job(JOB_ID) is not None
        service.stop()
        assert scheduler.get_job(JOB_ID) is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_disabled_without_url(self) -> None:
        scheduler = AsyncIOScheduler()
        service, _, client = _service(FakeClock(), lambda r: httpx.Response(200), url="")

        assert not service.enabled
        service.start(scheduler)
        assert scheduler.get_job(JOB_ID) is None
        await client.aclose()
