"""
Shared fixtures: an in-memory stand-in for the durable queue and for a job
row, so the engine and handlers can be exercised without Redis or a database.
"""
import pytest

from publisher.contracts import JobState, Stage
from publisher.engine import JobQueue, PipelineEngine
from publisher.variants import resolve_variant


class FakeJob:
    def __init__(self, job_id, stage, payload, delay=0):
        self.id = job_id
        self.stage = Stage(stage).value
        self.payload = payload
        self.delay = delay
        self.state = (JobState.DELAYED if delay > 0 else JobState.WAITING).value
        self.progress = 0
        self.progress_history = []
        self.logs = []
        self.attempt = 0
        self.result = {}
        self.error = ""

    def begin_attempt(self):
        self.state = JobState.ACTIVE.value
        self.attempt += 1
        self.progress = 0
        self.error = ""

    def set_progress(self, value):
        self.progress = value
        self.progress_history.append(value)

    def append_log(self, entry):
        self.logs.append(entry)

    def transition(self, state, *, progress=None, error=None, result=None):
        self.state = JobState(state).value
        if progress is not None:
            self.progress = progress
        if error is not None:
            self.error = error
        if result is not None:
            self.result = result


class FakeQueue(JobQueue):
    def __init__(self):
        self.jobs = []

    def add(self, stage, payload, delay=0):
        job = FakeJob(f"job-{len(self.jobs) + 1}", stage, payload, delay)
        self.jobs.append(job)
        return job.id

    def of_stage(self, stage):
        return [j for j in self.jobs if j.stage == Stage(stage).value]

    def get(self, job_id):
        return next(j for j in self.jobs if j.id == job_id)


class StubHandler:
    """Handler double: reports a little progress, then returns or raises."""

    def __init__(self, stage, outcome=None, error=None):
        self.stage = stage
        self.outcome = outcome
        self.error = error
        self.payloads = []

    def execute(self, payload, reporter):
        self.payloads.append(payload)
        reporter.log(f"{self.stage.value} working")
        reporter.progress(40)
        if self.error is not None:
            raise self.error
        return self.outcome


RENDER_DELAY = 600


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def variant():
    return resolve_variant("lo_fi")


@pytest.fixture
def make_engine(queue):
    def factory(*handlers):
        return PipelineEngine(queue, handlers, render_delay=RENDER_DELAY)
    return factory
