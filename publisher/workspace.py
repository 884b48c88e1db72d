"""
Scratch directories for the render stage.

Each render gets ``<root>/temp/<key>`` for downloads and
``<root>/videos/<key>`` for the encoded output, keyed by song id so two
pipeline instances never share files.
"""
import logging
import shutil
from pathlib import Path
from typing import NamedTuple

from .exceptions import ResourceFault
from .utils import safe_component

logger = logging.getLogger(__name__)

KEEP_MARKER = ".gitkeep"


class ScratchDirs(NamedTuple):
    temp: Path
    output: Path


class Workspace:
    def __init__(self, root, keep: str = KEEP_MARKER):
        self.root = Path(root)
        self.keep = keep

    def clean_directory(self, path) -> Path:
        """Ensure ``path`` exists and holds nothing but the keep marker."""
        path = Path(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
            for child in path.iterdir():
                if child.name == self.keep:
                    continue
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        except OSError as e:
            raise ResourceFault(f"Could not clean {path}: {e}") from e
        return path

    def locate(self, key: str) -> ScratchDirs:
        name = safe_component(key)
        return ScratchDirs(temp=self.root / "temp" / name, output=self.root / "videos" / name)

    def prepare(self, key: str) -> ScratchDirs:
        dirs = ScratchDirs(*(self.clean_directory(p) for p in self.locate(key)))
        logger.debug("Prepared scratch dirs %s", dirs)
        return dirs

    def discard(self, *paths) -> None:
        for p in paths:
            try:
                Path(p).unlink(missing_ok=True)
            except OSError as e:
                raise ResourceFault(f"Could not delete {p}: {e}") from e

    def remove_directory(self, path) -> None:
        """Drop a per-song directory once its stage no longer needs it."""
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise ResourceFault(f"Could not remove {path}: {e}") from e
