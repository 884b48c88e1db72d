import uuid
from django.db import models
from django.db.models import F
from django.utils import timezone

from .contracts import JobState, Stage as PipelineStage


class Job(models.Model):
    class Stage(models.TextChoices):
        COMPOSE = PipelineStage.COMPOSE.value
        RENDER = PipelineStage.RENDER.value
        PUBLISH = PipelineStage.PUBLISH.value

    class State(models.TextChoices):
        WAITING = JobState.WAITING.value
        DELAYED = JobState.DELAYED.value
        ACTIVE = JobState.ACTIVE.value
        COMPLETED = JobState.COMPLETED.value
        FAILED = JobState.FAILED.value

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stage = models.CharField(max_length=16, choices=Stage.choices)
    payload = models.JSONField(default=dict, blank=True)     # immutable once created
    state = models.CharField(max_length=16, choices=State.choices, default=State.WAITING)
    progress = models.PositiveSmallIntegerField(default=0)  # 0..100
    logs = models.JSONField(default=list, blank=True)        # append-only, timestamped
    attempt = models.PositiveIntegerField(default=0)
    visible_at = models.DateTimeField(default=timezone.now)
    result = models.JSONField(default=dict, blank=True)
    error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["stage", "state"], name="job_stage_state_idx")]

    def __str__(self):
        return f"{self.stage}:{self.id} [{self.state}]"

    # --- job handle used by the pipeline engine -------------------------

    def begin_attempt(self):
        self.state = self.State.ACTIVE
        self.attempt = F("attempt") + 1
        self.progress = 0
        self.error = ""
        self.save(update_fields=["state", "attempt", "progress", "error", "updated_at"])
        self.refresh_from_db(fields=["attempt"])

    def set_progress(self, value: int):
        self.progress = max(0, min(100, int(value)))
        self.save(update_fields=["progress", "updated_at"])

    def append_log(self, entry: str):
        self.logs = [*(self.logs or []), entry]
        self.save(update_fields=["logs", "updated_at"])

    def transition(self, state, *, progress=None, error=None, result=None):
        self.state = JobState(state).value
        if progress is not None:
            self.progress = max(0, min(100, int(progress)))
        if error is not None:
            self.error = error
        if result is not None:
            self.result = result
        self.save(update_fields=["state", "progress", "error", "result", "updated_at"])
