"""Offline text extraction for PDF, DOCX and plain-text resumes."""

from __future__ import annotations

import io
import logging
import zipfile

import fitz  # pymupdf
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from cv_tailor.errors import ExternalServiceError
from cv_tailor.parsers.media import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE

logger = logging.getLogger(__name__)

# Raised by PyMuPDF and python-docx for corrupt or misnamed files
DOCUMENT_PARSE_ERRORS = (fitz.FileDataError, PackageNotFoundError, zipfile.BadZipFile, ValueError)


def pdf_bytes_to_text(data: bytes) -> str:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return "\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


def docx_bytes_to_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


class LocalExtractionService:
    """Extraction service that never leaves the process.

    Handles text layers only: scanned PDFs yield little or no text and
    images are refused.
    """

    stage = "extraction"

    async def extract_inline(self, text: str) -> str:
        return text

    async def extract_image(self, data: bytes, media_type: str) -> str:
        raise ExternalServiceError(
            f"local extraction cannot OCR {media_type}",
            stage=self.stage,
            provider_detail="image input requires the remote extraction service",
        )

    async def extract_document(self, data: bytes, file_name: str, media_type: str) -> str:
        try:
            if media_type == PDF_MEDIA_TYPE:
                text = pdf_bytes_to_text(data)
            elif media_type == DOCX_MEDIA_TYPE:
                text = docx_bytes_to_text(data)
            else:
                raise ExternalServiceError(
                    f"local extraction does not support {media_type}",
                    stage=self.stage,
                    provider_detail="unsupported document format",
                )
        except DOCUMENT_PARSE_ERRORS as e:
            logger.error("Local extraction of %s failed", file_name, exc_info=True)
            raise ExternalServiceError(
                f"could not parse {file_name}: {e}",
                stage=self.stage,
                provider_detail=type(e).__name__,
            ) from e
        logger.debug("Local extraction of %s: %d chars", file_name, len(text))
        return text
