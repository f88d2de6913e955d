"""Text extraction adapter: raw resume bytes to plain text."""

from __future__ import annotations

import logging
from typing import Protocol

import anthropic

from cv_tailor.clients.llm_client import LLMClient, as_service_error
from cv_tailor.errors import ExternalServiceError, ExtractionEmptyError
from cv_tailor.models.source import ExtractedText, SourceDocument
from cv_tailor.parsers.local_extractor import DOCUMENT_PARSE_ERRORS, docx_bytes_to_text
from cv_tailor.parsers.media import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, MediaKind

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH = 10
DEFAULT_MAX_INLINE_CHARS = 100_000

EXTRACTION_INSTRUCTION = """\
Extract all text from this resume. Use OCR if the content is scanned or an image.
Return only the plain text, preserving the original line breaks and reading order.
Do not summarize, translate, reformat or add commentary."""


class ExtractionService(Protocol):
    async def extract_inline(self, text: str) -> str: ...

    async def extract_image(self, data: bytes, media_type: str) -> str: ...

    async def extract_document(self, data: bytes, file_name: str, media_type: str) -> str: ...


class ClaudeExtractionService:
    """Extraction through the Claude API."""

    stage = "extraction"

    def __init__(self, llm: LLMClient, model: str = "claude-haiku-4-5-20251001"):
        self.llm = llm
        self.model = model

    async def extract_inline(self, text: str) -> str:
        prompt = f"{EXTRACTION_INSTRUCTION}\n\n---\n{text}"
        try:
            response = await self.llm.generate(prompt=prompt, model=self.model)
        except anthropic.APIError as e:
            raise as_service_error(self.stage, e) from e
        return response.text

    async def extract_image(self, data: bytes, media_type: str) -> str:
        try:
            response = await self.llm.extract_text_from_image(
                data, media_type, EXTRACTION_INSTRUCTION, model=self.model,
            )
        except anthropic.APIError as e:
            raise as_service_error(self.stage, e) from e
        return response.text

    async def extract_document(self, data: bytes, file_name: str, media_type: str) -> str:
        # Document blocks accept PDF and plain text only
        if media_type == DOCX_MEDIA_TYPE:
            try:
                data = docx_bytes_to_text(data).encode("utf-8")
            except DOCUMENT_PARSE_ERRORS as e:
                logger.error("Could not read %s as DOCX", file_name, exc_info=True)
                raise ExternalServiceError(
                    f"could not parse {file_name}: {e}",
                    stage=self.stage,
                    provider_detail=type(e).__name__,
                ) from e
            file_name = f"{file_name.rsplit('.', 1)[0]}.txt"
            media_type = "text/plain"
        elif media_type != PDF_MEDIA_TYPE:
            raise ExternalServiceError(
                f"{file_name}: {media_type} is not supported; upload PDF, DOCX, text or an image",
                stage=self.stage,
                provider_detail="unsupported document format",
            )
        try:
            response = await self.llm.extract_text_from_document(
                data, file_name, media_type, EXTRACTION_INSTRUCTION, model=self.model,
            )
        except anthropic.APIError as e:
            raise as_service_error(self.stage, e) from e
        return response.text


class TextExtractor:
    """Chooses the request shape by media kind and gates the result length."""

    def __init__(
        self,
        service: ExtractionService,
        *,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_inline_chars: int = DEFAULT_MAX_INLINE_CHARS,
    ):
        self.service = service
        self.min_length = min_length
        self.max_inline_chars = max_inline_chars

    async def extract(self, source: SourceDocument) -> ExtractedText:
        logger.debug(
            "Extracting %s (%s, %s, %d bytes)",
            source.file_name, source.media_type, source.kind.value, len(source.data),
        )
        if source.kind is MediaKind.TEXT:
            text = source.data.decode("utf-8", errors="replace")[: self.max_inline_chars]
            raw = await self.service.extract_inline(text)
        elif source.kind is MediaKind.IMAGE:
            raw = await self.service.extract_image(source.data, source.media_type)
        elif source.kind is MediaKind.DOCUMENT_BINARY:
            raw = await self.service.extract_document(
                source.data, source.file_name, source.media_type,
            )
        else:
            raw = await self.service.extract_image(source.data, source.media_type)

        text = (raw or "").strip()
        if len(text) < self.min_length:
            raise ExtractionEmptyError(
                f"extraction returned {len(text)} characters (minimum {self.min_length})"
                f" for {source.file_name}"
            )
        return ExtractedText(text=text)
