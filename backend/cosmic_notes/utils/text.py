from __future__ import annotations

import re

from cosmic_notes.config import settings

MAX_TAG_LENGTH = 50

_NOTE_REFERENCE = re.compile(r"\[(\d+)\]")
_HASHTAG = re.compile(r"#(\w+)")


def normalize_tag_name(name: str) -> str:
    """Normalize a tag name: trimmed, lowercase, max 50 chars."""
    return name.strip().lower()[:MAX_TAG_LENGTH]


def normalize_tag_names(names: list[str] | None) -> list[str]:
    """Normalize and de-duplicate tag names, preserving first-seen order."""
    normalized: list[str] = []
    for name in names or []:
        if not isinstance(name, str):
            continue
        tag = normalize_tag_name(name)
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized


def linkify_summary(summary: str, link_path: str | None = None) -> str:
    """Turn bracketed note ids like `[42]` into markdown links to the note."""
    base = (link_path if link_path is not None else settings.note_link_path).rstrip("/")
    return _NOTE_REFERENCE.sub(lambda m: f"[[{m.group(1)}]({base}/{m.group(1)})]", summary)


def extract_hashtags(content: str) -> tuple[list[str], str]:
    """Pull `#hashtags` out of note content.

    Returns the normalized tag names and the content with the `#` markers
    dropped (the words themselves stay in place).
    """
    tags: list[str] = []

    def _collect(match: re.Match[str]) -> str:
        word = match.group(1)
        tag = normalize_tag_name(word)
        if tag and tag not in tags:
            tags.append(tag)
        return word

    return tags, _HASHTAG.sub(_collect, content)
