"""
In-process registry of visual-generation jobs.

``create`` registers a pending job, spawns the slow work as an asyncio task
owned by the store and returns the job id straight away.  The task is the
only writer for its job: when it finishes, the job moves ``pending -> done``
exactly once.  A worker that raises still completes its job, with an empty
result, so pollers are never left waiting on a job that will not finish.

Nothing is persisted; a restart invalidates every outstanding id.  Finished
jobs are evicted after ``ttl_seconds``.
"""

import asyncio
import dataclasses
import logging
import secrets
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    pending = "pending"
    done = "done"


@dataclasses.dataclass(frozen=True)
class GenerationJob:
    id: str
    status: JobStatus
    result: Any = None
    created_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None


Worker = Callable[[Any], Awaitable[Any]]


def new_job_id() -> str:
    """Nanosecond clock in hex plus 64 random bits."""
    return f"{time.time_ns():x}-{secrets.token_hex(8)}"


class JobStore:
    def __init__(self, worker: Worker, ttl_seconds: float | None = None):
        self._worker = worker
        self._ttl_seconds = ttl_seconds
        self._jobs: dict[str, GenerationJob] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._jobs)

    async def create(self, request: Any) -> str:
        """Register a pending job for *request* and schedule its worker."""
        job_id = new_job_id()
        while job_id in self._jobs:
            job_id = new_job_id()

        self._jobs[job_id] = GenerationJob(id=job_id, status=JobStatus.pending)
        self._tasks[job_id] = asyncio.create_task(self._run(job_id, request), name=f"visual-job-{job_id}")
        logger.info("Job %s created", job_id)
        return job_id

    def get(self, job_id: str) -> GenerationJob | None:
        """Point-in-time read; ``None`` when the id is unknown or evicted."""
        return self._jobs.get(job_id)

    async def wait(self, job_id: str) -> GenerationJob | None:
        """Wait for the job's worker to finish, then return the record."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return self.get(job_id)

    async def _run(self, job_id: str, request: Any) -> None:
        result = None
        try:
            result = await self._worker(request)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Visual generation failed for job %s", job_id)
        finally:
            self._tasks.pop(job_id, None)
        self._complete(job_id, result)

    def _complete(self, job_id: str, result: Any) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Job %s vanished before completion", job_id)
            return
        if job.status is JobStatus.done:
            logger.warning("Ignoring second completion of job %s", job_id)
            return

        # Records are replaced whole, never edited in place.
        self._jobs[job_id] = dataclasses.replace(
            job,
            status=JobStatus.done,
            result=result,
            completed_at=datetime.now(timezone.utc),
        )
        logger.info("Job %s done (empty=%s)", job_id, result is None)

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------
    def evict_expired(self, now: datetime | None = None) -> int:
        """Drop finished jobs older than the TTL; return how many went."""
        if self._ttl_seconds is None:
            return 0
        now = now or datetime.now(timezone.utc)
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if job.status is JobStatus.done
            and job.completed_at is not None
            and (now - job.completed_at).total_seconds() > self._ttl_seconds
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info("Evicted %d expired jobs", len(expired))
        return len(expired)

    def start_sweeper(self, interval_seconds: float) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep(interval_seconds), name="job-store-sweeper")

    async def _sweep(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.evict_expired()

    async def close(self) -> None:
        """Cancel the sweeper and any workers still running."""
        tasks = list(self._tasks.values())
        if self._sweeper is not None:
            tasks.append(self._sweeper)
            self._sweeper = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
