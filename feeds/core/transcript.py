"""Parse WebVTT caption documents into deduplicated plain text.

Auto-generated captions repeat text across overlapping cue windows, so a
line is kept only the first time it appears anywhere in the document.
"""

from __future__ import annotations

import re

HEADER_PREFIXES = ("WEBVTT", "Kind:", "Language:")
TIMING_RE = re.compile(r"^\d{2}:\d{2}")
TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")

# &amp; last so "&amp;lt;" decodes to "&lt;" rather than "<"
HTML_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&nbsp;", " "),
    ("&amp;", "&"),
)


def _clean_line(line: str) -> str:
    text = TAG_RE.sub("", line)
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text.strip()


def _is_skipped(line: str) -> bool:
    return (
        not line
        or line.startswith(HEADER_PREFIXES)
        or line.startswith("NOTE")
        or bool(TIMING_RE.match(line))
    )


def parse_captions(document: str) -> list[str]:
    """Return the spoken-text lines of a caption document, in order.

    Header, timing and NOTE lines are dropped, markup is stripped and each
    distinct line is emitted once.
    """
    segments: list[str] = []
    seen: set[str] = set()

    for raw in document.replace("\ufeff", "").splitlines():
        line = raw.strip()
        if _is_skipped(line):
            continue
        cleaned = _clean_line(line)
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            segments.append(cleaned)

    return segments


def captions_to_text(document: str) -> str:
    """Join parsed caption segments into one whitespace-normalized string."""
    return WHITESPACE_RE.sub(" ", " ".join(parse_captions(document))).strip()
