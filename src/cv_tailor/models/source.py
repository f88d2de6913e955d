"""Request-scoped source document and extraction result."""

from __future__ import annotations

from dataclasses import dataclass

from cv_tailor.parsers.media import MediaKind, classify_media, guess_media_type


@dataclass(frozen=True)
class SourceDocument:
    """Raw resume bytes as acquired from an upload or from storage."""

    data: bytes
    media_type: str
    file_name: str
    kind: MediaKind

    @classmethod
    def create(
        cls,
        data: bytes,
        file_name: str,
        media_type: str | None = None,
    ) -> SourceDocument:
        resolved = guess_media_type(file_name, media_type)
        return cls(
            data=data,
            media_type=resolved,
            file_name=file_name,
            kind=classify_media(resolved),
        )


@dataclass(frozen=True)
class ExtractedText:
    text: str
