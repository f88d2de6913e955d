"""Claude API wrapper for text extraction and resume generation."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

import anthropic

from cv_tailor.errors import ExternalServiceError

logger = logging.getLogger(__name__)

FILES_API_BETA = "files-api-2025-04-14"


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int


def as_service_error(stage: str, exc: anthropic.APIError) -> ExternalServiceError:
    """Translate an SDK failure into the pipeline's error taxonomy."""
    status = getattr(exc, "status_code", None)
    if isinstance(exc, anthropic.APITimeoutError):
        detail = "request timed out"
    elif isinstance(exc, anthropic.APIConnectionError):
        detail = "connection failed"
    else:
        detail = getattr(exc, "message", None) or str(exc)
    return ExternalServiceError(
        f"{stage} request failed: {exc}",
        stage=stage,
        status=status,
        provider_detail=detail,
    )


class LLMClient:
    """Async Claude API client.

    SDK-level retries are disabled: a failed call surfaces immediately and
    the caller decides whether to resubmit.
    """

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        kwargs: dict = {"max_retries": 0}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)

    def _to_response(self, model: str, message) -> LLMResponse:
        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.info("LLM usage: model=%s, %d input, %d output tokens", model, input_tokens, output_tokens)
        return LLMResponse(
            text=message.content[0].text if message.content else "",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def generate(
        self,
        prompt: str,
        system: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        temperature: float = 0.0,
        max_tokens: int = 8192,
    ) -> LLMResponse:
        """Send a prompt to Claude and return the text response with usage."""
        logger.debug("LLM call: model=%s", model)
        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.APIError:
            logger.error("LLM call failed", exc_info=True)
            raise
        return self._to_response(model, message)

    async def extract_text_from_image(
        self,
        image_bytes: bytes,
        image_media_type: str,
        instruction: str,
        model: str = "claude-haiku-4-5-20251001",
        max_tokens: int = 8192,
    ) -> LLMResponse:
        """Extract text from an image sent inline as base64."""
        b64_data = base64.b64encode(image_bytes).decode("utf-8")
        logger.debug("Image extraction: %d bytes (%s)", len(image_bytes), image_media_type)
        try:
            message = await self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": image_media_type,
                                "data": b64_data,
                            },
                        },
                        {"type": "text", "text": instruction},
                    ],
                }],
            )
        except anthropic.APIError:
            logger.error("Image extraction call failed", exc_info=True)
            raise
        return self._to_response(model, message)

    async def extract_text_from_document(
        self,
        document_bytes: bytes,
        file_name: str,
        media_type: str,
        instruction: str,
        model: str = "claude-haiku-4-5-20251001",
        max_tokens: int = 8192,
    ) -> LLMResponse:
        """Upload a document through the Files API, extract its text by file id, then delete the file."""
        logger.debug("Document upload: %s, %d bytes (%s)", file_name, len(document_bytes), media_type)
        try:
            uploaded = await self.client.beta.files.upload(
                file=(file_name, document_bytes, media_type),
            )
        except anthropic.APIError:
            logger.error("Document upload failed", exc_info=True)
            raise
        try:
            message = await self.client.beta.messages.create(
                model=model,
                max_tokens=max_tokens,
                betas=[FILES_API_BETA],
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "document", "source": {"type": "file", "file_id": uploaded.id}},
                        {"type": "text", "text": instruction},
                    ],
                }],
            )
        except anthropic.APIError:
            logger.error("Document extraction call failed", exc_info=True)
            raise
        finally:
            await self._delete_file(uploaded.id)
        return self._to_response(model, message)

    async def _delete_file(self, file_id: str) -> None:
        try:
            await self.client.beta.files.delete(file_id)
        except anthropic.APIError as e:
            logger.warning("Could not delete uploaded file %s: %s", file_id, e)
