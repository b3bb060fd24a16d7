"""Content kinds, extraction requests and per-kind extraction results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union


class ContentKind(str, Enum):
    """Dispatch key for choosing an extraction strategy."""

    ARTICLE = "article"
    YOUTUBE = "youtube"
    BLUESKY = "bluesky"
    PODCAST = "podcast"


class InvalidRequestError(ValueError):
    """The extraction request itself is malformed (e.g. no URL)."""


@dataclass(frozen=True)
class ExtractionRequest:
    """A reference to remote content that should be turned into text."""

    url: str
    source: str | None = None
    title: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> ExtractionRequest:
        """Build a request from a decoded JSON body.

        Raises:
            InvalidRequestError: If the payload is not an object or has no URL.
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        url = payload.get("url")
        if not isinstance(url, str) or not url.strip():
            raise InvalidRequestError("URL is required")

        source = payload.get("source")
        title = payload.get("title")
        return cls(
            url=url.strip(),
            source=source if isinstance(source, str) else None,
            title=title if isinstance(title, str) else None,
        )


@dataclass(frozen=True)
class _ResultBase:
    """Fields shared by every extraction result.

    Exactly one of ``text`` and ``error`` is set.
    """

    kind: ClassVar[ContentKind]

    text: str | None = None
    title: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error is None):
            raise ValueError(
                f"{type(self).__name__} needs exactly one of text or error"
            )

    @property
    def ok(self) -> bool:
        return self.text is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape returned by the extract endpoint."""
        return {
            "type": self.kind.value,
            "text": self.text,
            "title": self.title,
            "error": self.error,
        }


@dataclass(frozen=True)
class ArticleResult(_ResultBase):
    kind: ClassVar[ContentKind] = ContentKind.ARTICLE


@dataclass(frozen=True)
class YouTubeResult(_ResultBase):
    kind: ClassVar[ContentKind] = ContentKind.YOUTUBE


@dataclass(frozen=True)
class BlueskyResult(_ResultBase):
    kind: ClassVar[ContentKind] = ContentKind.BLUESKY


@dataclass(frozen=True)
class PodcastResult(_ResultBase):
    kind: ClassVar[ContentKind] = ContentKind.PODCAST

    fallback_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["fallbackUrl"] = self.fallback_url
        return data


ExtractionResult = Union[ArticleResult, YouTubeResult, BlueskyResult, PodcastResult]
