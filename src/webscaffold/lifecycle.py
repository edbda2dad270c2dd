"""Background maintenance loops started with the web application."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from .registry import Registry

logger = logging.getLogger(__name__)

MEMORY_CACHE_PURGE_INTERVAL = 60.0
CACHE_STORE_EXPIRE_INTERVAL = 60.0
SESSION_EXPIRE_INTERVAL = 10 * 60.0
TASK_QUEUE_CLEAR_INTERVAL = 2 * 60.0
TASK_QUEUE_RETENTION = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class MaintenanceJob:
    name: str
    run: Callable[[], object]
    interval_seconds: float


def maintenance_jobs(registry: Registry) -> list[MaintenanceJob]:
    """Return the periodic jobs that apply to the enabled stores."""

    jobs: list[MaintenanceJob] = []
    memory_cache = registry.memory_cache
    if memory_cache is not None:
        jobs.append(MaintenanceJob("memory_cache.purge", memory_cache.purge_expired, MEMORY_CACHE_PURGE_INTERVAL))
    cache_store = registry.cache_store
    if cache_store is not None:
        jobs.append(MaintenanceJob("cache_store.expire", cache_store.expire_now, CACHE_STORE_EXPIRE_INTERVAL))
    session_store = registry.session_store
    if session_store is not None:
        jobs.append(MaintenanceJob("session_store.expire", session_store.expire_sessions, SESSION_EXPIRE_INTERVAL))
    task_store = registry.task_store
    if task_store is not None:
        jobs.append(
            MaintenanceJob(
                "task_store.queue_clear",
                lambda: task_store.queue_clear(TASK_QUEUE_RETENTION),
                TASK_QUEUE_CLEAR_INTERVAL,
            )
        )
    return jobs


async def run_periodic(
    job: MaintenanceJob,
    *,
    shutdown_event: asyncio.Event,
    interval_seconds: float | None = None,
) -> None:
    """Run ``job`` every interval until ``shutdown_event`` is set.

    A failing iteration is logged and the loop carries on.
    """

    interval = max(0.01, float(interval_seconds or job.interval_seconds))
    while not shutdown_event.is_set():
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
        else:
            break
        try:
            result = await asyncio.to_thread(job.run)
        except Exception:
            logger.exception("Maintenance job %s failed", job.name)
        else:
            if result:
                logger.info("Maintenance job %s removed %s entries", job.name, result)


class BackgroundLoops:
    """Owns the maintenance tasks for one running application."""

    def __init__(self, jobs: list[MaintenanceJob], *, interval_override: float | None = None) -> None:
        self._jobs = list(jobs)
        self._interval_override = interval_override
        self._shutdown_event: asyncio.Event | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def job_names(self) -> list[str]:
        return [job.name for job in self._jobs]

    def start(self) -> None:
        if self._tasks:
            return
        self._shutdown_event = asyncio.Event()
        for job in self._jobs:
            task = asyncio.create_task(
                run_periodic(
                    job,
                    shutdown_event=self._shutdown_event,
                    interval_seconds=self._interval_override,
                ),
                name=f"webscaffold-{job.name}",
            )
            self._tasks.append(task)
        logger.info("Started maintenance loops: %s", ", ".join(self.job_names))

    async def stop(self) -> None:
        """Signal every loop and wait until all of them returned."""

        if self._shutdown_event is not None:
            self._shutdown_event.set()
        tasks, self._tasks = self._tasks, []
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._shutdown_event = None


__all__ = ["BackgroundLoops", "MaintenanceJob", "maintenance_jobs", "run_periodic"]
