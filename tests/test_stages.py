"""
Stage handlers against mocked external services.
"""
from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from publisher.clients import SongReply
from publisher.contracts import ComposedText, Declined, PublishResult, RenderedMedia, Stage
from publisher.engine import Reporter
from publisher.exceptions import EncodeError, MalformedResponse, ResourceFault
from publisher.stages import ComposeHandler, PublishHandler, RenderHandler
from publisher.variants import resolve_variant
from publisher.workspace import Workspace

from .conftest import FakeJob

STRUCTURE = "[Intro]\n[Verse]\n┳┻┳┻┳┻\n[fade out]"


def _reporter(stage):
    return Reporter(FakeJob("job-t", stage, {}))


def fake_download(url, dest, timeout=None):
    dest = Path(dest)
    if dest.suffix == ".src":
        Image.new("RGB", (8, 8), "purple").save(dest, format="PNG")
    else:
        dest.write_bytes(b"ID3-audio")
    return dest


def fake_encode(image, audio, output, size=None, ffmpeg=None):
    assert image.exists() and audio.exists()
    output.write_bytes(b"mp4")
    return output


# -----------------------------------------------------
# Compose
# -----------------------------------------------------
class TestComposeHandler:
    @pytest.fixture
    def text(self):
        text = Mock()
        text.complete.side_effect = [STRUCTURE, '"Rainy Window"!', "LO-FI, soft piano, vinyl crackle"]
        return text

    @pytest.fixture
    def songs(self):
        songs = Mock()
        songs.custom_generate.return_value = SongReply(200, [{"id": "clip-a"}, {"id": "clip-b"}])
        return songs

    def _handler(self, text, songs, **kw):
        rng = Mock()
        rng.choice.side_effect = lambda clips: clips[-1]
        return ComposeHandler(text, songs, model="chirp-v3-5", rng=rng, **kw)

    def test_composes_and_submits_song(self, text, songs, variant):
        reporter = _reporter(Stage.COMPOSE)
        out = self._handler(text, songs).execute({"variant": variant.to_dict()}, reporter)

        assert out == ComposedText(song_id="clip-b", title="Rainy Window", tags="LO-FI, soft piano, vinyl crackle")
        songs.custom_generate.assert_called_once_with(
            prompt=STRUCTURE,
            tags="LO-FI, soft piano, vinyl crackle",
            title="Rainy Window",
            model="chirp-v3-5",
            make_instrumental=False,
        )
        assert reporter.current == 80

    def test_uses_variant_prompts(self, text, songs, variant):
        self._handler(text, songs).execute({"variant": variant.to_dict()}, _reporter(Stage.COMPOSE))

        song_call, title_call, tags_call = text.complete.call_args_list
        assert song_call.args[0] == [m.render() for m in variant.song_prompt]
        assert STRUCTURE in title_call.args[0][1]["content"]
        assert STRUCTURE in tags_call.args[0][1]["content"]

    def test_tag_budget_drops_whole_tags(self, text, songs, variant):
        out = self._handler(text, songs, tag_budget=20).execute(
            {"variant": variant.to_dict()}, _reporter(Stage.COMPOSE))
        assert out.tags == "LO-FI, soft piano"

    def test_non_success_status_declines(self, text, songs, variant):
        songs.custom_generate.return_value = SongReply(503, [])
        out = self._handler(text, songs).execute({"variant": variant.to_dict()}, _reporter(Stage.COMPOSE))

        assert isinstance(out, Declined)
        assert "503" in out.reason

    def test_empty_clip_list_is_malformed(self, text, songs, variant):
        songs.custom_generate.return_value = SongReply(200, [])
        with pytest.raises(MalformedResponse):
            self._handler(text, songs).execute({"variant": variant.to_dict()}, _reporter(Stage.COMPOSE))

    def test_blank_title_is_malformed(self, songs, variant):
        text = Mock()
        text.complete.side_effect = [STRUCTURE, "!!!", "LO-FI"]
        with pytest.raises(MalformedResponse):
            self._handler(text, songs).execute({"variant": variant.to_dict()}, _reporter(Stage.COMPOSE))
        songs.custom_generate.assert_not_called()


# -----------------------------------------------------
# Render
# -----------------------------------------------------
COMPOSED = ComposedText(song_id="song-1", title="Rainy Window", tags="LO-FI")


class TestRenderHandler:
    @pytest.fixture
    def deps(self, tmp_path):
        text = Mock()
        text.complete.return_value = "anime girl studying by a rainy window"
        images = Mock()
        images.generate.return_value = "https://img/cover.png"
        songs = Mock()
        songs.get.return_value = SongReply(200, [{"id": "song-1", "audio_url": "https://cdn/song-1.mp3"}])
        return {
            "text": text,
            "images": images,
            "songs": songs,
            "workspace": Workspace(tmp_path / "ws"),
            "downloader": Mock(wraps=fake_download),
            "encoder": Mock(wraps=fake_encode),
        }

    def _handler(self, deps):
        return RenderHandler(deps["text"], deps["images"], deps["songs"], deps["workspace"],
                             video_size="1920x1080", image_size="1792x1024",
                             downloader=deps["downloader"], encoder=deps["encoder"])

    def test_renders_video_and_cleans_sources(self, deps, variant, tmp_path):
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}
        out = self._handler(deps).execute(payload, _reporter(Stage.RENDER))

        expected = tmp_path / "ws" / "videos" / "song-1" / "song-1.mp4"
        assert out == RenderedMedia(video_path=str(expected), title="Rainy Window", song_id="song-1")
        assert expected.read_bytes() == b"mp4"
        assert not (tmp_path / "ws" / "temp" / "song-1").exists()

        deps["images"].generate.assert_called_once_with("anime girl studying by a rainy window", size="1792x1024")
        cover_messages = deps["text"].complete.call_args.args[0]
        assert "Rainy Window" in cover_messages[1]["content"]
        urls = [c.args[0] for c in deps["downloader"].call_args_list]
        assert urls == ["https://cdn/song-1.mp3", "https://img/cover.png"]
        assert deps["encoder"].call_args.kwargs["size"] == "1920x1080"

    def test_static_cover_skips_image_generation(self, deps, tmp_path):
        cover = tmp_path / "static.jpg"
        Image.new("RGB", (8, 8), "teal").save(cover, format="JPEG")
        variant = resolve_variant("lo_fi", cover_image=str(cover))
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}

        out = self._handler(deps).execute(payload, _reporter(Stage.RENDER))

        assert Path(out.video_path).exists()
        deps["images"].generate.assert_not_called()
        deps["text"].complete.assert_not_called()
        assert deps["downloader"].call_count == 1
        assert cover.exists()

    def test_missing_static_cover_is_resource_fault(self, deps, tmp_path):
        variant = resolve_variant("lo_fi", cover_image=str(tmp_path / "nope.png"))
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}
        with pytest.raises(ResourceFault):
            self._handler(deps).execute(payload, _reporter(Stage.RENDER))

    def test_lookup_refused_declines(self, deps, variant):
        deps["songs"].get.return_value = SongReply(404, [])
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}

        out = self._handler(deps).execute(payload, _reporter(Stage.RENDER))

        assert isinstance(out, Declined)
        deps["downloader"].assert_not_called()

    def test_audio_not_ready_is_malformed(self, deps, variant):
        deps["songs"].get.return_value = SongReply(200, [{"id": "song-1", "audio_url": ""}])
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}
        with pytest.raises(MalformedResponse):
            self._handler(deps).execute(payload, _reporter(Stage.RENDER))

    def test_encoder_failure_propagates(self, deps, variant):
        deps["encoder"] = Mock(side_effect=EncodeError("moov atom not found"))
        payload = {"variant": variant.to_dict(), "composed": COMPOSED.to_dict()}
        with pytest.raises(EncodeError):
            self._handler(deps).execute(payload, _reporter(Stage.RENDER))


# -----------------------------------------------------
# Publish
# -----------------------------------------------------
class TestPublishHandler:
    @pytest.fixture
    def rendered(self, tmp_path):
        video = tmp_path / "song-1.mp4"
        video.write_bytes(b"mp4")
        return RenderedMedia(video_path=str(video), title="Rainy Window", song_id="song-1")

    def test_uploads_with_variant_metadata_and_deletes_file(self, rendered, variant, tmp_path):
        uploader = Mock()
        uploader.upload.return_value = "yt-42"
        payload = {"variant": variant.to_dict(), "media": rendered.to_dict()}

        out = PublishHandler(uploader, Workspace(tmp_path)).execute(payload, _reporter(Stage.PUBLISH))

        assert out == PublishResult(video_id="yt-42", playlist_id=None)
        uploader.upload.assert_called_once_with(
            Path(rendered.video_path),
            title="lo-fi chill beat - Rainy Window",
            description=variant.description,
            tags=list(variant.video_tags),
        )
        uploader.add_to_playlist.assert_not_called()
        assert not Path(rendered.video_path).exists()

    def test_playlist_from_variant(self, rendered, tmp_path):
        variant = resolve_variant("type_beat", ("MF DOOM", "Madlib"), playlist_id="PL-beats")
        uploader = Mock()
        uploader.upload.return_value = "yt-7"
        uploader.add_to_playlist.return_value = True
        payload = {"variant": variant.to_dict(), "media": rendered.to_dict()}

        out = PublishHandler(uploader, Workspace(tmp_path)).execute(payload, _reporter(Stage.PUBLISH))

        assert out.playlist_id == "PL-beats"
        uploader.add_to_playlist.assert_called_once_with("yt-7", "PL-beats")
        assert uploader.upload.call_args.kwargs["title"] == "[FREE] MF DOOM x Madlib type beat - Rainy Window"

    def test_playlist_failure_keeps_upload(self, rendered, tmp_path):
        variant = resolve_variant("lo_fi", playlist_id="PL-gone")
        uploader = Mock()
        uploader.upload.return_value = "yt-8"
        uploader.add_to_playlist.return_value = False
        payload = {"variant": variant.to_dict(), "media": rendered.to_dict()}

        out = PublishHandler(uploader, Workspace(tmp_path)).execute(payload, _reporter(Stage.PUBLISH))

        assert out == PublishResult(video_id="yt-8", playlist_id=None)
        uploader.upload.assert_called_once()
        assert not Path(rendered.video_path).exists()

    def test_output_directory_removed(self, variant, tmp_path):
        ws = Workspace(tmp_path / "ws")
        output = ws.prepare("song-1").output
        video = output / "song-1.mp4"
        video.write_bytes(b"mp4")
        uploader = Mock()
        uploader.upload.return_value = "yt-9"
        media = RenderedMedia(video_path=str(video), title="Rainy Window", song_id="song-1")
        payload = {"variant": variant.to_dict(), "media": media.to_dict()}

        PublishHandler(uploader, ws).execute(payload, _reporter(Stage.PUBLISH))

        assert not output.exists()

    def test_missing_file_is_resource_fault(self, rendered, variant, tmp_path):
        Path(rendered.video_path).unlink()
        uploader = Mock()
        payload = {"variant": variant.to_dict(), "media": rendered.to_dict()}

        with pytest.raises(ResourceFault):
            PublishHandler(uploader, Workspace(tmp_path)).execute(payload, _reporter(Stage.PUBLISH))
        uploader.upload.assert_not_called()

    def test_upload_failure_keeps_file(self, rendered, variant, tmp_path):
        uploader = Mock()
        uploader.upload.side_effect = RuntimeError("quota exceeded")
        payload = {"variant": variant.to_dict(), "media": rendered.to_dict()}

        with pytest.raises(RuntimeError):
            PublishHandler(uploader, Workspace(tmp_path)).execute(payload, _reporter(Stage.PUBLISH))
        assert Path(rendered.video_path).exists()
