"""
Stage names, job states and the records handed from one stage to the next.

Everything here is JSON-friendly so it can ride inside a Job payload.
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class Stage(str, Enum):
    COMPOSE = "compose"
    RENDER = "render"
    PUBLISH = "publish"


class JobState(str, Enum):
    WAITING = "waiting"
    DELAYED = "delayed"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class _Record:
    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict):
        return cls(**data)


@dataclass(frozen=True)
class ComposedText(_Record):
    song_id: str
    title: str
    tags: str


@dataclass(frozen=True)
class RenderedMedia(_Record):
    video_path: str
    title: str
    song_id: str


@dataclass(frozen=True)
class PublishResult(_Record):
    video_id: str
    playlist_id: Optional[str] = None


@dataclass(frozen=True)
class Declined:
    """Returned (never raised) when an external service says no. Ends the pipeline instance."""
    reason: str
