"""
Pipeline engine: runs one stage handler per job activation and chains the
next stage from its result.

    compose --(render_delay)--> render --(0)--> publish

The engine never touches the broker directly; it talks to a ``JobQueue``
passed in by the caller (Celery in production, an in-memory fake in tests).
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from .contracts import ComposedText, Declined, JobState, PublishResult, RenderedMedia, Stage
from .exceptions import ContractError

logger = logging.getLogger(__name__)

# stage -> (follow-up stage, output type, payload key for the output)
CHAIN = {
    Stage.COMPOSE: (Stage.RENDER, ComposedText, "composed"),
    Stage.RENDER: (Stage.PUBLISH, RenderedMedia, "media"),
    Stage.PUBLISH: (None, PublishResult, None),
}


def stamp(message: str) -> str:
    return f"{datetime.now(timezone.utc).isoformat(timespec='seconds')} {message}"


class JobQueue(ABC):
    """Admission side of the durable queue."""

    @abstractmethod
    def add(self, stage: Stage, payload: dict, delay: float = 0) -> str:
        """Persist a new job visible after ``delay`` seconds and return its id."""


class Reporter:
    """Write-only progress/log channel handed to a stage handler."""

    def __init__(self, job):
        self._job = job
        self._progress = 0

    @property
    def current(self) -> int:
        return self._progress

    def progress(self, value: int) -> None:
        value = max(0, min(100, int(value)))
        if value <= self._progress:
            return
        self._progress = value
        self._job.set_progress(value)

    def log(self, message: str) -> None:
        logger.info("[job %s] %s", self._job.id, message)
        self._job.append_log(stamp(message))


class PipelineEngine:
    def __init__(self, queue: JobQueue, handlers, *, render_delay: float):
        self.queue = queue
        self.handlers = {h.stage: h for h in handlers}
        self.render_delay = render_delay

    def enqueue(self, stage: Stage, payload: dict, delay: float = 0) -> str:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        job_id = self.queue.add(Stage(stage), payload, delay)
        logger.info("Enqueued %s job %s (delay=%ss)", Stage(stage).value, job_id, delay)
        return job_id

    def start(self, variant) -> str:
        """Open a new pipeline instance with an already-resolved variant."""
        return self.enqueue(Stage.COMPOSE, {"variant": variant.to_dict()})

    def _delay_for(self, stage: Stage) -> float:
        return self.render_delay if stage is Stage.RENDER else 0

    def dispatch(self, job):
        stage = Stage(job.stage)
        handler = self.handlers.get(stage)
        if handler is None:
            raise ContractError(f"No handler registered for stage {stage.value!r}")

        # redelivery after the follow-up was already queued
        if job.state == JobState.COMPLETED.value:
            logger.warning("Skipping %s job %s: already completed", stage.value, job.id)
            job.append_log(stamp(f"Skipped redelivered {stage.value} job, already completed"))
            return None

        job.begin_attempt()
        reporter = Reporter(job)
        reporter.log(f"Starting {stage.value} (attempt {job.attempt})")

        try:
            outcome = handler.execute(job.payload, reporter)

            if isinstance(outcome, Declined):
                reporter.log(f"Abandoned pipeline: {outcome.reason}")
                job.transition(JobState.COMPLETED, progress=0)
                return outcome

            next_stage, output_type, key = CHAIN[stage]
            if not isinstance(outcome, output_type):
                raise ContractError(
                    f"{stage.value} returned {type(outcome).__name__}, expected {output_type.__name__}"
                )

            if next_stage is None:
                reporter.log(f"Finished pipeline: {outcome.to_dict()}")
                job.transition(JobState.COMPLETED, progress=100, result=outcome.to_dict())
                return outcome

            # the variant travels untouched; it is never resolved again downstream
            next_payload = {"variant": job.payload["variant"], key: outcome.to_dict()}
            next_id = self.enqueue(next_stage, next_payload, self._delay_for(next_stage))
            reporter.log(f"Queued {next_stage.value} job {next_id}")
            job.transition(JobState.COMPLETED, progress=100)
            return outcome

        except Exception as e:
            logger.exception("Stage %s failed for job %s", stage.value, job.id)
            job.append_log(stamp(f"Error in {stage.value}: {type(e).__name__}: {e}"))
            job.transition(JobState.FAILED, progress=0, error=f"{type(e).__name__}: {e}"[:4000])
            raise
