"""Main pipeline orchestrator - sequences acquisition, extraction, tailoring and publication."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from cv_tailor.config import AppConfig
from cv_tailor.errors import BadRequestError, TailoringError
from cv_tailor.export.layout import PageGeometry
from cv_tailor.export.pdf_renderer import render_pdf
from cv_tailor.models.requests import FailureResponse, ReferenceRequest, SuccessResponse, UploadRequest
from cv_tailor.models.source import SourceDocument
from cv_tailor.models.tailoring import RenderedArtifact, TailoringContext, TailoringRecord
from cv_tailor.parsers.sanitizer import sanitize
from cv_tailor.pipeline.publisher import Publisher, new_artifact_keys
from cv_tailor.pipeline.resume_writer import ResumeWriter
from cv_tailor.pipeline.scoring import score_tailoring
from cv_tailor.pipeline.source_resolver import SourceResolver
from cv_tailor.pipeline.text_extractor import TextExtractor

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    ACQUIRE_SOURCE = "acquire_source"
    EXTRACT_TEXT = "extract_text"
    TAILOR_CONTENT = "tailor_content"
    SANITIZE = "sanitize"
    RENDER = "render"
    PERSIST = "persist"
    DONE = "done"


@dataclass
class PipelineResult:
    """Complete result of one successful tailoring run."""

    request_id: str
    record_id: str
    download_url: str
    score: int
    tailored_markdown: str
    markdown_url: str | None = None
    missing: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def to_response(self) -> dict:
        return SuccessResponse(
            tailored_resume_id=self.record_id,
            download_url=self.download_url,
            markdown_url=self.markdown_url,
            score=self.score,
            missing=self.missing,
        ).model_dump(by_alias=True)


def failure_response(error: TailoringError, request_id: str) -> dict:
    body = FailureResponse(
        error=error.user_message,
        error_code=error.error_code,
        technical_error=error.technical_error,
        request_id=request_id,
    ).model_dump(by_alias=True)
    body.update(error.diagnostics())
    return body


def _today() -> str:
    return date.today().isoformat()


PhaseCallback = Callable[[PipelineStage, str], None]


class PipelineOrchestrator:
    """Runs one request through AcquireSource -> ExtractText -> TailorContent
    -> Sanitize -> Render -> Persist.

    No stage is retried; the first failure ends the run.
    """

    def __init__(
        self,
        resolver: SourceResolver,
        extractor: TextExtractor,
        writer: ResumeWriter,
        publisher: Publisher,
        *,
        geometry: PageGeometry | None = None,
        today: Callable[[], str] = _today,
    ):
        self.resolver = resolver
        self.extractor = extractor
        self.writer = writer
        self.publisher = publisher
        self.geometry = geometry or PageGeometry()
        self.today = today

    async def run_upload(
        self,
        request: UploadRequest,
        *,
        request_id: str | None = None,
        on_phase: PhaseCallback | None = None,
    ) -> PipelineResult:
        """Tailor a resume uploaded with the request."""

        async def acquire() -> tuple[SourceDocument, TailoringContext]:
            source = self.resolver.from_upload(request.data, request.file_name, request.media_type)
            context = TailoringContext.from_fields(
                request.job_title, request.company_name, request.job_description,
            )
            return source, context

        return await self._run(
            acquire,
            request_id=request_id or uuid.uuid4().hex,
            user_id=request.user_id,
            on_phase=on_phase,
        )

    async def run_reference(
        self,
        request: ReferenceRequest,
        *,
        request_id: str | None = None,
        on_phase: PhaseCallback | None = None,
    ) -> PipelineResult:
        """Tailor a stored resume (``resumeId``) or inline text (``resumeContent``)."""
        if not request.resume_id and not (request.resume_content or "").strip():
            raise BadRequestError("either resumeId or resumeContent is required")

        async def acquire() -> tuple[SourceDocument, TailoringContext]:
            if request.resume_id:
                source = await self.resolver.from_reference(request.resume_id)
            else:
                source = self.resolver.from_content(request.resume_content)
            context = await self.resolver.resolve_context(
                job_id=request.job_id,
                job_title=request.job_title,
                company_name=request.company_name,
                job_description=request.job_description,
            )
            return source, context

        return await self._run(
            acquire,
            request_id=request_id or uuid.uuid4().hex,
            user_id=request.user_id,
            source_reference=request.resume_id,
            job_id=request.job_id,
            on_phase=on_phase,
        )

    async def _run(
        self,
        acquire: Callable[[], Awaitable[tuple[SourceDocument, TailoringContext]]],
        *,
        request_id: str,
        user_id: str | None = None,
        source_reference: str | None = None,
        job_id: str | None = None,
        on_phase: PhaseCallback | None = None,
    ) -> PipelineResult:
        start = time.monotonic()

        def _enter(stage: PipelineStage, detail: str = "") -> None:
            logger.info("Pipeline %s: stage %s", request_id, stage.value)
            if on_phase:
                on_phase(stage, detail)

        _enter(PipelineStage.ACQUIRE_SOURCE)
        source, context = await acquire()

        _enter(PipelineStage.EXTRACT_TEXT, source.file_name)
        extracted = await self.extractor.extract(source)

        _enter(PipelineStage.TAILOR_CONTENT, context.headline)
        tailored = await self.writer.write(extracted.text, context)

        _enter(PipelineStage.SANITIZE)
        markdown = sanitize(tailored.markdown)

        _enter(PipelineStage.RENDER)
        pdf_bytes = render_pdf(
            markdown,
            headline=context.headline,
            generated_on=self.today(),
            geometry=self.geometry,
        )
        key_pdf, key_markdown = new_artifact_keys(user_id)
        artifact = RenderedArtifact(
            pdf_bytes=pdf_bytes,
            markdown_bytes=markdown.encode("utf-8"),
            storage_key_pdf=key_pdf,
            storage_key_markdown=key_markdown,
        )

        _enter(PipelineStage.PERSIST)
        score = score_tailoring(markdown, context.job_description)
        record = TailoringRecord(
            user_id=user_id,
            source_reference=source_reference,
            job_id=job_id,
            job_title=context.job_title,
            company_name=context.company_name,
            job_description=context.job_description,
            tailored_markdown=markdown,
            storage_key_pdf=key_pdf,
            score=score,
        )
        published = await self.publisher.publish(artifact, record)

        elapsed = time.monotonic() - start
        _enter(PipelineStage.DONE, f"score {score}, {elapsed:.1f}s")
        if published.partial:
            logger.warning("Pipeline %s: partial success, missing %s", request_id, published.missing)

        return PipelineResult(
            request_id=request_id,
            record_id=published.record_id,
            download_url=published.download_url,
            markdown_url=published.markdown_url,
            missing=published.missing,
            score=score,
            tailored_markdown=markdown,
            elapsed_seconds=elapsed,
        )

    async def handle_upload(
        self, request: UploadRequest, *, on_phase: PhaseCallback | None = None
    ) -> dict:
        """Run an upload request and return the response body, success or failure."""
        return await self._handle(
            lambda request_id: self.run_upload(request, request_id=request_id, on_phase=on_phase)
        )

    async def handle_reference(
        self, request: ReferenceRequest, *, on_phase: PhaseCallback | None = None
    ) -> dict:
        """Run a reference request and return the response body, success or failure."""
        return await self._handle(
            lambda request_id: self.run_reference(request, request_id=request_id, on_phase=on_phase)
        )

    async def _handle(self, runner: Callable[[str], Awaitable[PipelineResult]]) -> dict:
        request_id = uuid.uuid4().hex
        try:
            result = await runner(request_id)
        except TailoringError as e:
            logger.error("Pipeline %s failed: [%s] %s", request_id, e.error_code, e)
            return failure_response(e, request_id)
        except Exception as e:
            logger.exception("Pipeline %s failed unexpectedly", request_id)
            return failure_response(TailoringError(f"{type(e).__name__}: {e}"), request_id)
        return result.to_response()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        local_extract: bool = False,
        today: Callable[[], str] = _today,
    ) -> PipelineOrchestrator:
        """Build an orchestrator with real clients for ``config``."""
        from cv_tailor.clients.llm_client import LLMClient
        from cv_tailor.parsers.local_extractor import LocalExtractionService
        from cv_tailor.pipeline.text_extractor import ClaudeExtractionService
        from cv_tailor.templates.loader import load_template

        storage, records = build_storage(config)
        llm = LLMClient(timeout=config.llm.timeout)

        if local_extract:
            service = LocalExtractionService()
        else:
            service = ClaudeExtractionService(llm, model=config.llm.extraction_model)

        return cls(
            resolver=SourceResolver(storage, records, fallback_bucket=config.storage.fallback_bucket),
            extractor=TextExtractor(
                service,
                min_length=config.pipeline.min_extracted_chars,
                max_inline_chars=config.pipeline.max_inline_text_chars,
            ),
            writer=ResumeWriter(
                llm,
                load_template(config.pipeline.template),
                model=config.llm.tailoring_model,
                temperature=config.llm.temperature,
                max_tokens=config.llm.max_tokens,
                min_length=config.pipeline.min_tailored_chars,
            ),
            publisher=Publisher(
                storage,
                records,
                bucket=config.storage.artifact_bucket,
                records_table=config.storage.records_table,
            ),
            geometry=PageGeometry(
                width=config.render.page_width,
                height=config.render.page_height,
                margin=config.render.margin,
                line_gap=config.render.line_gap,
            ),
            today=today,
        )


def build_storage(config: AppConfig):
    """Object storage and record store for the configured backend."""
    if config.storage.backend == "local":
        from cv_tailor.clients.local_store import LocalObjectStorage, SqliteRecordStore

        root = config.storage.resolved_local_root
        return LocalObjectStorage(root / "storage"), SqliteRecordStore(root / "records.db")

    from cv_tailor.clients.supabase_store import (
        SupabaseObjectStorage,
        SupabaseRecordStore,
        create_supabase_client,
    )

    client = create_supabase_client()
    return SupabaseObjectStorage(client), SupabaseRecordStore(client)
