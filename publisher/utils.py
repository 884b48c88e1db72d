import re

# Anything outside letters, digits, comma, hyphen and whitespace is dropped
_DISALLOWED = re.compile(r"[^a-zA-Z0-9,\-\s]")
_UNSAFE_PATH = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_title(raw: str) -> str:
    """Strip disallowed characters and collapse whitespace."""
    return " ".join(_DISALLOWED.sub("", raw or "").split())


def sanitize_tags(raw: str, budget: int = 100) -> str:
    """
    Clean a comma separated tag string and keep whole tags while the joined
    result still fits in ``budget`` characters. The first tag that would
    overflow ends the list; a tag is never cut in half.
    """
    tags = [" ".join(t.split()) for t in _DISALLOWED.sub("", raw or "").split(",")]
    kept = []
    for tag in tags:
        if not tag:
            continue
        if len(", ".join(kept + [tag])) > budget:
            break
        kept.append(tag)
    return ", ".join(kept)


def safe_component(value: str) -> str:
    """Make an external id safe to use as a single path component."""
    cleaned = _UNSAFE_PATH.sub("_", str(value)).strip("_")
    if not cleaned:
        raise ValueError(f"Cannot build a path component from {value!r}")
    return cleaned
