"""
Stage handlers. Each one turns the previous stage's record into the next one.

Handlers only report through the ``Reporter`` they are given; job state is
the engine's business. A ``Declined`` return abandons the pipeline instance,
anything raised is a fault the worker may retry.
"""
import logging
import random
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from .clients import download
from .contracts import ComposedText, Declined, PublishResult, RenderedMedia, Stage
from .exceptions import MalformedResponse, ResourceFault
from .media import encode_still_video, prepare_cover
from .utils import sanitize_tags, sanitize_title
from .variants import VariantConfig

logger = logging.getLogger(__name__)


class StageHandler(ABC):
    stage: Stage

    @abstractmethod
    def execute(self, payload: dict, reporter):
        """Return the stage's output record, a ``Declined``, or raise."""


def _messages(prompt, **values) -> list[dict]:
    return [m.render(**values) for m in prompt]


class ComposeHandler(StageHandler):
    stage = Stage.COMPOSE

    def __init__(self, text, songs, *, model: str, tag_budget: int = 100, rng=random):
        self.text = text
        self.songs = songs
        self.model = model
        self.tag_budget = tag_budget
        self.rng = rng

    def execute(self, payload, reporter):
        variant = VariantConfig.from_dict(payload["variant"])
        reporter.log(f"Composing {variant.profile.value} song...")
        reporter.progress(10)

        structure = self.text.complete(_messages(variant.song_prompt))
        reporter.progress(30)

        title = sanitize_title(self.text.complete(_messages(variant.title_prompt, structure=structure)))
        tags = sanitize_tags(self.text.complete(_messages(variant.tags_prompt, structure=structure)),
                             self.tag_budget)
        if not title:
            raise MalformedResponse("Generated title is empty after sanitizing")
        reporter.progress(50)
        reporter.log(f"Submitting song {title!r} with tags {tags!r}")

        reply = self.songs.custom_generate(
            prompt=structure,
            tags=tags,
            title=title,
            model=self.model,
            make_instrumental=variant.instrumental,
        )
        if not reply.ok:
            return Declined(f"song service answered {reply.status}")
        if not reply.clips:
            raise MalformedResponse("Song service returned no clips")
        reporter.progress(80)

        clip = self.rng.choice(reply.clips)
        try:
            song_id = str(clip["id"])
        except (KeyError, TypeError) as e:
            raise MalformedResponse("Clip without id") from e
        reporter.log(f"Song created: {song_id}")
        return ComposedText(song_id=song_id, title=title, tags=tags)


class RenderHandler(StageHandler):
    stage = Stage.RENDER

    def __init__(self, text, images, songs, workspace, *, video_size: str = "1920x1080",
                 image_size: str = "1792x1024", ffmpeg: str = "ffmpeg", timeout: float = 120,
                 downloader=download, encoder=encode_still_video):
        self.text = text
        self.images = images
        self.songs = songs
        self.workspace = workspace
        self.video_size = video_size
        self.image_size = image_size
        self.ffmpeg = ffmpeg
        self.timeout = timeout
        self.downloader = downloader
        self.encoder = encoder

    def _cover_url(self, variant: VariantConfig, title: str, reporter) -> str:
        reporter.log("Generating cover image...")
        prompt = self.text.complete(_messages(variant.cover_prompt, title=title))
        return self.images.generate(prompt, size=self.image_size)

    def execute(self, payload, reporter):
        variant = VariantConfig.from_dict(payload["variant"])
        composed = ComposedText.from_dict(payload["composed"])
        reporter.log(f"Creating video for song: {composed.song_id}")
        reporter.progress(10)

        reply = self.songs.get(composed.song_id)
        if not reply.ok:
            return Declined(f"song lookup answered {reply.status}")
        if not reply.clips or not reply.clips[0].get("audio_url"):
            raise MalformedResponse(f"Song {composed.song_id} has no audio url yet")
        audio_url = reply.clips[0]["audio_url"]
        reporter.progress(20)

        image_url = None
        if not variant.cover_image:
            image_url = self._cover_url(variant, composed.title, reporter)
        reporter.progress(40)

        reporter.log("Cleaning directories...")
        scratch = self.workspace.prepare(composed.song_id)
        audio_path = scratch.temp / f"{composed.song_id}.mp3"
        raw_image = scratch.temp / f"{composed.song_id}.src"
        image_path = scratch.temp / f"{composed.song_id}.png"
        output_path = scratch.output / f"{composed.song_id}.mp4"

        reporter.log("Downloading audio...")
        reporter.progress(50)
        self.downloader(audio_url, audio_path, timeout=self.timeout)
        reporter.progress(70)

        if image_url:
            reporter.log("Downloading generated image...")
            self.downloader(image_url, raw_image, timeout=self.timeout)
        else:
            reporter.log(f"Using static cover {variant.cover_image}")
            try:
                shutil.copyfile(variant.cover_image, raw_image)
            except OSError as e:
                raise ResourceFault(f"Static cover unavailable: {e}") from e
        prepare_cover(raw_image, image_path)
        reporter.progress(80)

        reporter.log("Creating video...")
        reporter.progress(90)
        self.encoder(image_path, audio_path, output_path, size=self.video_size, ffmpeg=self.ffmpeg)
        self.workspace.discard(audio_path, raw_image, image_path)
        self.workspace.remove_directory(scratch.temp)
        reporter.log(f"Video created for song: {composed.song_id}")

        return RenderedMedia(video_path=str(output_path), title=composed.title, song_id=composed.song_id)


class PublishHandler(StageHandler):
    stage = Stage.PUBLISH

    def __init__(self, uploader, workspace):
        self.uploader = uploader
        self.workspace = workspace

    def execute(self, payload, reporter):
        variant = VariantConfig.from_dict(payload["variant"])
        media = RenderedMedia.from_dict(payload["media"])
        video_path = Path(media.video_path)
        reporter.log("Uploading video...")
        reporter.progress(10)

        if not video_path.is_file():
            raise ResourceFault(f"Rendered video missing: {video_path}")

        title = variant.final_title(media.title)
        reporter.progress(40)
        video_id = self.uploader.upload(
            video_path,
            title=title,
            description=variant.description,
            tags=list(variant.video_tags),
        )
        reporter.progress(80)
        reporter.log(f"Uploaded {title!r} as {video_id}")

        playlist_id = None
        if variant.playlist_id:
            if self.uploader.add_to_playlist(video_id, variant.playlist_id):
                playlist_id = variant.playlist_id
                reporter.log(f"Added to playlist {playlist_id}")
            else:
                reporter.log(f"Could not add to playlist {variant.playlist_id}, keeping upload")
        reporter.progress(90)

        self.workspace.discard(video_path)
        self.workspace.remove_directory(self.workspace.locate(media.song_id).output)
        reporter.log(f"Video uploaded and file deleted: {video_path}")
        return PublishResult(video_id=video_id, playlist_id=playlist_id)
