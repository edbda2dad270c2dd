from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

import pytest

from webscaffold.cache import MemoryCache
from webscaffold.core.config import Config
from webscaffold.lifecycle import BackgroundLoops, MaintenanceJob, maintenance_jobs, run_periodic
from webscaffold.registry import Registry

pytestmark = pytest.mark.unit


def test_jobs_follow_enabled_stores(sqlite_config: Config) -> None:
    registry = Registry(sqlite_config, memory_cache=MemoryCache())

    assert [job.name for job in maintenance_jobs(registry)] == ["memory_cache.purge"]
    assert maintenance_jobs(Registry(sqlite_config)) == []


@pytest.mark.asyncio
async def test_run_periodic_survives_failures(caplog: pytest.LogCaptureFixture) -> None:
    calls: list[int] = []

    def flaky() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return 0

    shutdown = asyncio.Event()
    task = asyncio.create_task(
        run_periodic(MaintenanceJob("flaky", flaky, 60), shutdown_event=shutdown, interval_seconds=0.02)
    )
    with caplog.at_level(logging.ERROR, logger="webscaffold.lifecycle"):
        await asyncio.sleep(0.15)
        shutdown.set()
        await asyncio.wait_for(task, timeout=1)

    assert len(calls) >= 2
    assert "Maintenance job flaky failed" in caplog.text


@pytest.mark.asyncio
async def test_background_loops_purge_memory_cache(sqlite_config: Config) -> None:
    cache = MemoryCache()
    cache.set("stale", 1, ttl=timedelta(microseconds=1))
    loops = BackgroundLoops(maintenance_jobs(Registry(sqlite_config, memory_cache=cache)), interval_override=0.02)

    loops.start()
    assert loops.running
    await asyncio.sleep(0.1)
    await loops.stop()

    assert not loops.running
    assert len(cache) == 0
