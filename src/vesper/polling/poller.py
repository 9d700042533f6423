"""Bounded polling of an external render job until it reaches a terminal status."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from vesper.models.errors import (
    InconsistentState,
    OperationCancelled,
    ProviderError,
    RenderExplicitFailure,
    RenderTimeout,
)
from vesper.models.render import RenderJob, RenderPoll, RenderStatus

logger = logging.getLogger(__name__)

PollFn = Callable[[str], Awaitable[RenderPoll]]
Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

_DONE = {"done", "completed", "succeeded", "success", "finished"}
_FAILED = {"error", "failed", "failure", "errored"}


class RenderJobPoller:
    """Polls one job sequentially, never overlapping, within attempt and wall-clock bounds.

    ``poll`` performs one status check for a job id. ``clock`` returns
    monotonic seconds and ``sleep`` waits; both are injectable for tests.
    """

    def __init__(
        self,
        poll: PollFn,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self._poll = poll
        self._clock = clock
        self._sleep = sleep

    def submitted(
        self, job_id: str, max_attempts: int = 60, poll_interval: float = 5.0
    ) -> RenderJob:
        """Create the job record for a freshly submitted render."""
        return RenderJob(
            job_id=job_id,
            submitted_at=self._clock(),
            max_attempts=max_attempts,
            poll_interval=poll_interval,
        )

    async def wait(
        self, job: RenderJob, cancel_event: asyncio.Event | None = None
    ) -> RenderJob:
        """Poll until ``job`` is done and return it, or raise its terminal error.

        The terminal status is recorded on ``job`` before any error is raised.
        """
        if job.is_terminal:
            raise ValueError(f"Render job {job.job_id} is already terminal ({job.status})")

        logger.info(
            f"Polling render job {job.job_id} (max {job.max_attempts} attempts, "
            f"every {job.poll_interval}s)"
        )
        while True:
            self._check_cancelled(job, cancel_event)

            elapsed = self._clock() - job.submitted_at
            out_of_time = job.max_wait_seconds > 0 and elapsed >= job.max_wait_seconds
            if job.attempts >= job.max_attempts or out_of_time:
                job.transition(RenderStatus.TIMEOUT, error="Render did not finish in time")
                logger.info(
                    f"Render job {job.job_id} timed out after {job.attempts} polls "
                    f"({elapsed:.1f}s)"
                )
                raise RenderTimeout(
                    f"Render job {job.job_id} timed out",
                    job_id=job.job_id,
                    details={"attempts": job.attempts, "elapsed_seconds": round(elapsed, 3)},
                )

            try:
                observed = await self._poll(job.job_id)
            except ProviderError as e:
                job.attempts += 1
                logger.warning(
                    f"Render job {job.job_id} poll {job.attempts} failed ({e.kind}): {e.message}"
                )
            else:
                job.attempts += 1
                status = observed.status.strip().lower()
                logger.debug(f"Render job {job.job_id} poll {job.attempts}: {status}")

                if status in _DONE:
                    if not observed.result_url:
                        job.transition(RenderStatus.ERROR, error="Done without a result url")
                        raise InconsistentState(
                            f"Render job {job.job_id} reported done without a result url",
                            job_id=job.job_id,
                        )
                    job.transition(RenderStatus.DONE, result_url=observed.result_url)
                    logger.info(f"Render job {job.job_id} done after {job.attempts} polls")
                    return job

                if status in _FAILED:
                    failed = RenderStatus.ERROR if status == "error" else RenderStatus.FAILED
                    job.transition(failed, error=f"Render service reported {status}")
                    logger.info(f"Render job {job.job_id} failed: {status}")
                    raise RenderExplicitFailure(
                        f"Render job {job.job_id} reported {status}",
                        job_id=job.job_id,
                        details={"status": status},
                    )

                if job.status == RenderStatus.SUBMITTED:
                    job.transition(RenderStatus.PROCESSING)

            if job.attempts < job.max_attempts:
                self._check_cancelled(job, cancel_event)
                await self._sleep(job.poll_interval)

    @staticmethod
    def _check_cancelled(job: RenderJob, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Polling of render job {job.job_id} cancelled")
            raise OperationCancelled(
                f"Polling of render job {job.job_id} cancelled", details={"job_id": job.job_id}
            )
