"""Background scheduler for time-based work.

The scheduler publishes scheduled posts whose time has come and drains the
export queue one job at a time. It runs as a single asyncio task owned by
the application; blocking database work is pushed to a thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from commune_api.core.settings import settings
from commune_api.db.session import SessionLocal
from commune_api.services import exports, posts

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs a tick immediately on start, then every ``interval`` seconds."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        interval: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.interval = max(0.1, float(interval or settings.scheduler_interval_seconds))
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._processing_export = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            logger.warning("Scheduler is already running")
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info("Scheduler started with a %ss interval", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Scheduler stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    async def tick(self) -> None:
        try:
            await asyncio.to_thread(self.publish_due_posts)
        except Exception:
            logger.exception("Publishing scheduled posts failed")

        if self._processing_export:
            return
        self._processing_export = True
        try:
            await asyncio.to_thread(self.process_next_export)
        except Exception:
            logger.exception("Processing export queue failed")
        finally:
            self._processing_export = False

    def publish_due_posts(self) -> int:
        with self._session_factory() as db:
            count = posts.publish_scheduled_posts(db)
        if count:
            logger.info("Published %s scheduled posts", count)
        return count

    def process_next_export(self) -> int | None:
        """Process the oldest pending export; returns its id, or None when idle."""
        with self._session_factory() as db:
            job = exports.get_next_pending_job(db)
            if job is None:
                return None
            job_id = job.id
            exports.process_export_job(db, job_id)
        return job_id


scheduler = Scheduler()
