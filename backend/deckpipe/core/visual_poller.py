"""
Create-then-poll resolution of slow visual jobs.

One *cycle* issues the creation request and then reads the job status up to
``max_attempts`` times, ``interval`` seconds apart.  A cycle ends early when
the job is done with a payload (success) or reports ``failed`` / disappears
(abort).  Timed-out and aborted cycles are retried from the creation step up
to ``max_retries`` cycles in total; after that the poller hands back its
fallback value.  Backend failures never escape ``resolve``.

The per-step decisions are the pure functions ``classify``,
``next_poll_step`` and ``should_retry``; ``VisualPoller`` only wires them
into loops.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Create = Callable[[], Awaitable[str | None]]
Read = Callable[[str], Awaitable[Any]]


class PollOutcome(str, Enum):
    succeeded = "succeeded"
    pending = "pending"
    failed = "failed"
    missing = "missing"


class PollStep(str, Enum):
    finish = "finish"  # payload in hand
    wait = "wait"  # sleep, then read again
    abort = "abort"  # cycle failed, maybe retry
    timeout = "timeout"  # attempt budget spent, maybe retry


_DONE_STATUSES = {"done", "succeeded"}


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def classify(record: Any) -> tuple[PollOutcome, Any]:
    """Map a status record to an outcome and its payload.

    Accepts either mapping records (``{"status", "visual"}``) or objects with
    ``status`` / ``result`` attributes such as ``GenerationJob``.  A done job
    with an empty payload counts as failed.
    """
    if record is None:
        return PollOutcome.missing, None

    status = _field(record, "status")
    status = getattr(status, "value", status)
    payload = _field(record, "visual")
    if payload is None:
        payload = _field(record, "result")

    if status in _DONE_STATUSES:
        if payload:
            return PollOutcome.succeeded, payload
        return PollOutcome.failed, None
    if status == "failed":
        return PollOutcome.failed, None
    return PollOutcome.pending, None


def next_poll_step(outcome: PollOutcome, attempt: int, max_attempts: int) -> PollStep:
    """Decide what follows read number *attempt* (1-based) of a cycle."""
    if outcome is PollOutcome.succeeded:
        return PollStep.finish
    if outcome in (PollOutcome.failed, PollOutcome.missing):
        return PollStep.abort
    if attempt >= max_attempts:
        return PollStep.timeout
    return PollStep.wait


def should_retry(cycle: int, max_cycles: int) -> bool:
    """True while another create-and-poll cycle is allowed after *cycle* (1-based)."""
    return cycle < max_cycles


def attempts_to_cover(seconds: float, interval: float, minimum: int = 1) -> int:
    """Reads per cycle needed for the last read to land after *seconds*."""
    if interval <= 0:
        return max(1, minimum)
    return max(minimum, math.ceil(seconds / interval) + 1)


class CreationFailed(Exception):
    """The creation request produced no job id."""


class VisualPoller:
    def __init__(
        self,
        max_attempts: int = 10,
        interval: float = 3.0,
        max_retries: int = 3,
        fallback: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.interval = interval
        self.max_retries = max(1, max_retries)
        self.fallback = fallback
        self._sleep = sleep

    async def resolve(self, create: Create, read: Read, label: str = "visual") -> Any:
        """Run create-and-poll cycles until a payload arrives or the budget runs out."""
        cycle = 1
        while True:
            try:
                payload = await self._cycle(create, read, label, cycle)
            except CreationFailed:
                logger.warning("%s: creation failed, using fallback", label)
                return self.fallback
            if payload is not None:
                return payload
            if not should_retry(cycle, self.max_retries):
                logger.warning("%s: gave up after %d cycles, using fallback", label, cycle)
                return self.fallback
            cycle += 1

    async def _cycle(self, create: Create, read: Read, label: str, cycle: int) -> Any:
        try:
            job_id = await create()
        except Exception as exc:
            raise CreationFailed(str(exc)) from exc
        if not job_id:
            raise CreationFailed("no job id returned")

        attempt = 0
        while True:
            attempt += 1
            try:
                record = await read(job_id)
            except Exception:
                logger.warning("%s: status read %d for %s failed", label, attempt, job_id, exc_info=True)
                record = {"status": "pending"}

            outcome, payload = classify(record)
            step = next_poll_step(outcome, attempt, self.max_attempts)
            if step is PollStep.finish:
                logger.info("%s: job %s ready after %d reads (cycle %d)", label, job_id, attempt, cycle)
                return payload
            if step is PollStep.abort:
                logger.warning("%s: job %s %s (cycle %d)", label, job_id, outcome.value, cycle)
                return None
            if step is PollStep.timeout:
                logger.warning("%s: job %s timed out after %d reads (cycle %d)", label, job_id, attempt, cycle)
                return None
            await self._sleep(self.interval)
