"""Coarse media-type classification for source documents."""

from __future__ import annotations

import mimetypes
from enum import Enum


class MediaKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    DOCUMENT_BINARY = "document_binary"
    UNKNOWN = "unknown"


PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_DOCUMENT_MEDIA_TYPES = {
    PDF_MEDIA_TYPE,
    DOCX_MEDIA_TYPE,
    "application/msword",
    "application/rtf",
    "application/vnd.oasis.opendocument.text",
}

_TEXT_MEDIA_TYPES = {
    "application/json",
    "application/x-markdown",
}

# mimetypes does not know these on every platform
_EXT_MEDIA_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".docx": DOCX_MEDIA_TYPE,
    ".webp": "image/webp",
}

_GENERIC_MEDIA_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def guess_media_type(file_name: str, declared: str | None = None) -> str:
    """Return the declared media type, or one guessed from the file name."""
    declared = (declared or "").split(";")[0].strip().lower()
    if declared not in _GENERIC_MEDIA_TYPES:
        return declared

    lower = file_name.lower()
    for ext, media_type in _EXT_MEDIA_TYPES.items():
        if lower.endswith(ext):
            return media_type
    guessed, _ = mimetypes.guess_type(lower)
    return guessed or "application/octet-stream"


def classify_media(media_type: str) -> MediaKind:
    media_type = media_type.split(";")[0].strip().lower()
    if media_type.startswith("text/") or media_type in _TEXT_MEDIA_TYPES:
        return MediaKind.TEXT
    if media_type.startswith("image/"):
        return MediaKind.IMAGE
    if media_type in _DOCUMENT_MEDIA_TYPES:
        return MediaKind.DOCUMENT_BINARY
    return MediaKind.UNKNOWN
