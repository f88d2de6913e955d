"""Data models for the resume tailoring pipeline."""

from cv_tailor.models.requests import (
    FailureResponse,
    ReferenceRequest,
    SuccessResponse,
    UploadRequest,
)
from cv_tailor.models.source import ExtractedText, SourceDocument
from cv_tailor.models.tailoring import (
    RenderedArtifact,
    TailoredDocument,
    TailoringContext,
    TailoringRecord,
)

__all__ = [
    "ExtractedText",
    "FailureResponse",
    "ReferenceRequest",
    "RenderedArtifact",
    "SourceDocument",
    "SuccessResponse",
    "TailoredDocument",
    "TailoringContext",
    "TailoringRecord",
    "UploadRequest",
]
