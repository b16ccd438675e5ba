"""Scheduler service - registry of per-endpoint monitoring tasks.

Design:
- One APScheduler interval job per monitored endpoint, keyed by endpoint id
- Creating a task checks the endpoint once right away, then every
  monitoring_interval seconds
- Each firing runs inside its own error boundary; a failing check is logged
  and never cancels future firings
- Overlapping firings for the same endpoint are skipped (max_instances=1)
- Registry mutations happen on the event loop thread with no await between
  reading and writing the registry, so concurrent API calls cannot corrupt it
- Multi-step flows on one endpoint (update then re-arm, remove then delete)
  hold that endpoint's lock() so they cannot interleave
"""
import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Dict, Optional, Set

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..exceptions import EndpointNotFoundError, TaskNotFoundError
from ..models import MonitoredEndpoint
from .monitoring import MonitoringService
from .repository import Repository

logger = logging.getLogger(__name__)


@dataclass
class Task:
    """Runtime registration that keeps an endpoint being polled."""
    endpoint_id: int
    job: Job


class SchedulerService:
    """Owns the task registry and the scheduler that fires the checks."""

    def __init__(self, repository: Repository, monitoring: MonitoringService):
        self.repository = repository
        self.monitoring = monitoring
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._tasks: Dict[int, Task] = {}
        self._pending: Set[asyncio.Task] = set()
        # Dropped once no flow holds or waits on them
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler with an empty registry."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.start()
        self._tasks = {}
        self._running = True
        logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler and forget every registered task."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._tasks.clear()
            self._running = False
            logger.info("Scheduler stopped")

    async def wait_for_pending_checks(self):
        """Wait for fire-and-forget first checks that are still running."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def active_task_ids(self) -> Set[int]:
        return set(self._tasks)

    def get_task(self, endpoint_id: int) -> Optional[Task]:
        return self._tasks.get(endpoint_id)

    def lock(self, endpoint_id: int) -> asyncio.Lock:
        """Lock serialising the API flows that touch one endpoint."""
        lock = self._locks.get(endpoint_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[endpoint_id] = lock
        return lock

    async def create_task(
        self,
        endpoint_id: int,
        wait_for_first_check: bool = True,
        log_enabled: bool = True,
    ) -> Task:
        """Start monitoring a persisted endpoint.

        Raises EndpointNotFoundError, without registering anything, when no
        endpoint has this id. An endpoint that already has a task gets its
        job replaced.
        """
        endpoint = await self.repository.get_endpoint(endpoint_id)
        if endpoint is None:
            raise EndpointNotFoundError(endpoint_id)
        if endpoint_id in self._tasks:
            logger.warning(f"Task #{endpoint_id} already active, replacing it")
        return await self._start_monitoring(endpoint, wait_for_first_check, log_enabled)

    def remove_task(self, endpoint_id: int, log_enabled: bool = True):
        """Stop future checks of an endpoint. Persisted data is left alone."""
        task = self._tasks.pop(endpoint_id, None)
        if task is None:
            raise TaskNotFoundError(endpoint_id)

        self._remove_job(task)
        if log_enabled:
            logger.info(f"Removed task #{endpoint_id}")

    async def replace_task(self, endpoint_id: int, wait_for_first_check: bool = False) -> Task:
        """Re-arm the task of an updated endpoint so new settings take effect.

        The old job is swapped for the new one in a single step, so the
        endpoint is never left without a task.
        """
        endpoint = await self.repository.get_endpoint(endpoint_id)
        if endpoint is None:
            raise EndpointNotFoundError(endpoint_id)
        return await self._start_monitoring(endpoint, wait_for_first_check, log_enabled=True)

    async def initialize_tasks(self, wait_for_first_checks: bool = False) -> int:
        """Create a task for every persisted endpoint.

        Any failure propagates to the caller; at startup that is fatal.
        """
        endpoints = await self.repository.list_endpoints()
        for endpoint in endpoints:
            await self._start_monitoring(endpoint, wait_for_first_checks, log_enabled=False)

        logger.info(f"Initialized tasks for all {len(endpoints)} existing endpoints")
        return len(endpoints)

    async def _start_monitoring(
        self, endpoint: MonitoredEndpoint, wait_for_first_check: bool, log_enabled: bool
    ) -> Task:
        if not self._running:
            raise RuntimeError("Scheduler is not running")

        existing = self._tasks.pop(endpoint.id, None)
        if existing is not None:
            self._remove_job(existing)

        job = self.scheduler.add_job(
            self._run_check,
            trigger=IntervalTrigger(seconds=endpoint.monitoring_interval),
            args=[endpoint],
            id=f"endpoint-{endpoint.id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=endpoint.monitoring_interval,
        )
        task = Task(endpoint_id=endpoint.id, job=job)
        self._tasks[endpoint.id] = task

        if log_enabled:
            logger.info(f"Created task #{endpoint.id} | {endpoint.name} | {endpoint.url}")

        # Immediate first check
        if wait_for_first_check:
            await self._run_check(endpoint, log_enabled)
        else:
            pending = asyncio.create_task(self._run_check(endpoint, log_enabled))
            self._pending.add(pending)
            pending.add_done_callback(self._pending.discard)

        return task

    def _remove_job(self, task: Task):
        try:
            task.job.remove()
        except LookupError:
            # Job already gone, e.g. after a scheduler restart
            logger.debug(f"Job for task #{task.endpoint_id} was already removed")

    async def _run_check(self, endpoint: MonitoredEndpoint, log_enabled: bool = True):
        """One scheduled check, isolated from the scheduler."""
        try:
            await self.monitoring.check(endpoint, log_enabled=log_enabled)
        except Exception as e:
            logger.error(f"Error checking endpoint #{endpoint.id}: {e}")
