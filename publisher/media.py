import logging
import subprocess
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .exceptions import EncodeError, MalformedResponse

logger = logging.getLogger(__name__)


def parse_size(size: str) -> tuple[int, int]:
    width, _, height = size.lower().partition("x")
    return int(width), int(height)


def prepare_cover(src: Path, dest: Path) -> Path:
    """Re-save the cover as an RGB PNG so ffmpeg always gets a plain still."""
    try:
        with Image.open(src) as img:
            img.convert("RGB").save(dest, format="PNG")
    except UnidentifiedImageError as e:
        raise MalformedResponse(f"Cover image {src} is not a readable image") from e
    return dest


def encode_still_video(image: Path, audio: Path, output: Path, size: str = "1920x1080",
                       ffmpeg: str = "ffmpeg") -> Path:
    """Loop a still image over an audio track; H.264/AAC MP4, letterboxed to ``size``."""
    width, height = parse_size(size)
    output.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        ffmpeg,
        "-y",
        "-loop", "1",
        "-i", str(image),
        "-i", str(audio),
        "-vf", (
            f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color=black"
        ),
        "-c:v", "libx264",
        "-tune", "stillimage",
        "-preset", "veryfast",
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-b:a", "192k",
        "-shortest",
        str(output),
    ]
    logger.info("Encoding %s", output.name)
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except subprocess.CalledProcessError as e:
        err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
        raise EncodeError(err[-4000:]) from e
    except FileNotFoundError as e:
        raise EncodeError(f"ffmpeg binary not found: {ffmpeg}") from e
    return output
