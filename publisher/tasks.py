from datetime import timedelta

from celery import shared_task
from celery.utils.log import get_task_logger
from django.conf import settings
from django.utils import timezone

from .clients import ImageGenerator, SongService, TextGenerator
from .contracts import JobState, Stage
from .engine import JobQueue, PipelineEngine
from .exceptions import TransientFault
from .models import Job
from .stages import ComposeHandler, PublishHandler, RenderHandler
from .variants import STYLED_PROFILES, parse_profile, pick_profile, resolve_variant, sample_styles
from .workspace import Workspace
from .youtube import YouTubeUploader

logger = get_task_logger(__name__)


class CeleryJobQueue(JobQueue):
    """Job rows in the database, activation through Celery countdown."""

    def add(self, stage: Stage, payload: dict, delay: float = 0) -> str:
        job = Job.objects.create(
            stage=Stage(stage).value,
            payload=payload,
            state=(JobState.DELAYED if delay > 0 else JobState.WAITING).value,
            visible_at=timezone.now() + timedelta(seconds=delay),
        )
        run_stage.apply_async(args=[str(job.id)], countdown=delay or None)
        return str(job.id)


def build_handlers():
    timeout = settings.HTTP_TIMEOUT
    text = TextGenerator(settings.TEXT_API_URL, settings.OPENAI_API_KEY, settings.TEXT_MODEL,
                         timeout=timeout)
    images = ImageGenerator(settings.TEXT_API_URL, settings.OPENAI_API_KEY, settings.IMAGE_MODEL,
                            timeout=timeout)
    songs = SongService(settings.SONG_API_URL, timeout=timeout)
    workspace = Workspace(settings.WORKSPACE_ROOT)
    uploader = YouTubeUploader(
        settings.YOUTUBE_TOKEN_PATH,
        settings.YOUTUBE_CREDENTIALS_PATH,
        category_id=settings.YOUTUBE_CATEGORY_ID,
        privacy_status=settings.YOUTUBE_PRIVACY_STATUS,
        video_license=settings.YOUTUBE_LICENSE,
    )
    return [
        ComposeHandler(text, songs, model=settings.SONG_MODEL, tag_budget=settings.PIPELINE_TAG_BUDGET),
        RenderHandler(text, images, songs, workspace, video_size=settings.VIDEO_SIZE,
                      image_size=settings.IMAGE_SIZE, ffmpeg=settings.FFMPEG_BINARY, timeout=timeout),
        PublishHandler(uploader, workspace),
    ]


def build_engine(queue: JobQueue | None = None, handlers=None) -> PipelineEngine:
    return PipelineEngine(
        queue or CeleryJobQueue(),
        build_handlers() if handlers is None else handlers,
        render_delay=settings.PIPELINE_RENDER_DELAY_SECONDS,
    )


def launch(profile=None, styles=None, engine: PipelineEngine | None = None) -> dict:
    """Resolve a variant (random profile/styles when missing) and enqueue Compose."""
    profile = parse_profile(profile) if profile else pick_profile()
    if profile in STYLED_PROFILES and not styles:
        styles = sample_styles()
    variant = resolve_variant(
        profile,
        styles,
        cover_image=settings.PIPELINE_COVER_IMAGES.get(profile.value),
        playlist_id=settings.PIPELINE_PLAYLISTS.get(profile.value),
    )
    job_id = (engine or build_engine(handlers=[])).start(variant)
    logger.info("Started %s pipeline %s styles=%s", profile.value, job_id, list(variant.styles))
    return {"job_id": job_id, "profile": profile.value, "styles": list(variant.styles)}


@shared_task(
    bind=True,
    autoretry_for=(TransientFault,),
    retry_backoff=True,
    retry_backoff_max=settings.PIPELINE_RETRY_BACKOFF_MAX,
    max_retries=settings.PIPELINE_MAX_RETRIES,
)
def run_stage(self, job_id: str):
    job = Job.objects.get(pk=job_id)
    logger.info("Dispatching %s job %s (retry %s)", job.stage, job_id, self.request.retries)
    outcome = build_engine().dispatch(job)
    return type(outcome).__name__


@shared_task
def start_pipeline(profile=None, styles=None):
    return launch(profile, styles)
