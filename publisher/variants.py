"""
Content profiles.

A profile selector (plus a style pair for profiles that need one) resolves to
a frozen ``VariantConfig``. The config is resolved once, when the Compose job
is enqueued, and then copied verbatim into every downstream payload.
"""
import random
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple

from . import prompts
from .prompts import STYLE_CATALOG


class Profile(str, Enum):
    LO_FI = "lo_fi"
    TYPE_BEAT = "type_beat"


DEFAULT_PROFILE = Profile.LO_FI
STYLED_PROFILES = frozenset({Profile.TYPE_BEAT})


def fill(template: str, **values: str) -> str:
    """Substitute ``{name}`` placeholders, leaving unknown ones in place."""
    for name, value in values.items():
        template = template.replace("{" + name + "}", value)
    return template


class Message(NamedTuple):
    role: str
    content: str

    def render(self, **values: str) -> dict:
        return {"role": self.role, "content": fill(self.content, **values).strip()}


Prompt = Tuple[Message, ...]


@dataclass(frozen=True)
class VariantConfig:
    profile: Profile
    styles: Tuple[str, ...]
    song_prompt: Prompt
    title_prompt: Prompt
    tags_prompt: Prompt
    cover_prompt: Prompt
    title_template: str
    description: str
    video_tags: Tuple[str, ...]
    playlist_id: Optional[str] = None
    cover_image: Optional[str] = None
    instrumental: bool = False

    def final_title(self, title: str) -> str:
        return fill(self.title_template, title=title)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.value,
            "styles": list(self.styles),
            "song_prompt": [m._asdict() for m in self.song_prompt],
            "title_prompt": [m._asdict() for m in self.title_prompt],
            "tags_prompt": [m._asdict() for m in self.tags_prompt],
            "cover_prompt": [m._asdict() for m in self.cover_prompt],
            "title_template": self.title_template,
            "description": self.description,
            "video_tags": list(self.video_tags),
            "playlist_id": self.playlist_id,
            "cover_image": self.cover_image,
            "instrumental": self.instrumental,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VariantConfig":
        def prompt(key):
            return tuple(Message(**m) for m in data[key])

        return cls(
            profile=Profile(data["profile"]),
            styles=tuple(data["styles"]),
            song_prompt=prompt("song_prompt"),
            title_prompt=prompt("title_prompt"),
            tags_prompt=prompt("tags_prompt"),
            cover_prompt=prompt("cover_prompt"),
            title_template=data["title_template"],
            description=data["description"],
            video_tags=tuple(data["video_tags"]),
            playlist_id=data.get("playlist_id"),
            cover_image=data.get("cover_image"),
            instrumental=data.get("instrumental", False),
        )


def parse_profile(selector) -> Profile:
    """Unknown selectors fall back to the default profile."""
    if isinstance(selector, Profile):
        return selector
    try:
        return Profile(str(selector or "").strip().lower())
    except ValueError:
        return DEFAULT_PROFILE


def _build(profile: Profile, table: dict, styles: Tuple[str, ...], **extra) -> VariantConfig:
    values = {}
    if styles:
        values = {"style_a": styles[0], "style_b": styles[1]}

    def pair(name):
        return (
            Message("system", fill(table[f"{name}_system"], **values)),
            Message("user", fill(table[f"{name}_user"], **values)),
        )

    return VariantConfig(
        profile=profile,
        styles=styles,
        song_prompt=pair("song"),
        title_prompt=pair("title"),
        tags_prompt=pair("tags"),
        cover_prompt=pair("cover"),
        title_template=fill(table["title_template"], **values),
        description=fill(table["description"], **values),
        video_tags=tuple(table["video_tags"]),
        **extra,
    )


def resolve_variant(selector, styles: Optional[Sequence[str]] = None, *,
                    cover_image: Optional[str] = None,
                    playlist_id: Optional[str] = None) -> VariantConfig:
    profile = parse_profile(selector)
    extra = {"cover_image": cover_image, "playlist_id": playlist_id}

    if profile is Profile.LO_FI:
        return _build(profile, prompts.LO_FI, (), **extra)
    if profile is Profile.TYPE_BEAT:
        if not styles or len(styles) != 2 or styles[0] == styles[1]:
            raise ValueError(f"{profile.value} needs two distinct styles, got {styles!r}")
        return _build(profile, prompts.TYPE_BEAT, (styles[0], styles[1]), **extra)
    raise AssertionError(f"unhandled profile {profile!r}")


def sample_styles(catalog: Sequence[str] = STYLE_CATALOG, rng=random) -> Tuple[str, str]:
    entries = list(dict.fromkeys(catalog))
    if len(entries) < 2:
        raise ValueError("Style catalog needs at least two distinct entries")
    first, second = rng.sample(entries, 2)
    return first, second


def pick_profile(rng=random) -> Profile:
    return rng.choice(list(Profile))
