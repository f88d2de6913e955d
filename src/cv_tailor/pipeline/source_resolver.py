"""Source acquisition: resolve resume bytes from an upload or a stored reference."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse

from cv_tailor.clients.storage import (
    ObjectNotFoundError,
    ObjectStorage,
    RecordStore,
    RecordStoreError,
    StorageClientError,
)
from cv_tailor.errors import (
    BadRequestError,
    ExternalServiceError,
    NotFoundError,
    ReferenceInvalidError,
)
from cv_tailor.models.source import SourceDocument
from cv_tailor.models.tailoring import TailoringContext

logger = logging.getLogger(__name__)

STAGE = "acquisition"

_PUBLIC_URL_MARKERS = ("/object/public/", "/object/sign/", "/object/authenticated/")


@dataclass(frozen=True)
class RecordShape:
    """One table that may hold a resume reference, and where its files live."""

    table: str
    locator_fields: tuple[str, ...]
    bucket: str


RECORD_SHAPES = (
    RecordShape("candidate_resumes", ("file_path", "file_url"), "documents"),
    RecordShape("resumes", ("file_url", "file_path"), "resumes"),
)

JOBS_TABLE = "jobs"


@dataclass(frozen=True)
class StorageLocator:
    bucket: str
    key: str


def parse_locator(locator: str, default_bucket: str) -> StorageLocator:
    """Split a stored locator into bucket and key.

    Public object URLs carry their own bucket; bare keys belong to
    ``default_bucket``.
    """
    locator = locator.strip()
    if locator.startswith(("http://", "https://")):
        path = urlparse(locator).path
        for marker in _PUBLIC_URL_MARKERS:
            if marker in path:
                bucket, _, key = path.split(marker, 1)[1].partition("/")
                if bucket and key:
                    return StorageLocator(bucket, key)
        return StorageLocator(default_bucket, path.lstrip("/"))
    return StorageLocator(default_bucket, locator.lstrip("/"))


def key_variants(key: str, bucket: str) -> list[str]:
    """Ordered, de-duplicated spellings a stored key may have been recorded under."""
    candidates = [key, unquote(key), quote(key, safe="/")]
    for candidate in list(candidates):
        for prefix in (f"{bucket}/", "public/"):
            if candidate.startswith(prefix):
                candidates.append(candidate[len(prefix):])
    return list(dict.fromkeys(c for c in candidates if c))


def resolution_plan(locator: StorageLocator, fallback_bucket: str) -> list[StorageLocator]:
    """Every (bucket, key) attempt in order: implied bucket first, then the fallback."""
    buckets = list(dict.fromkeys([locator.bucket, fallback_bucket]))
    return [
        StorageLocator(bucket, key)
        for bucket in buckets
        for key in key_variants(locator.key, bucket)
    ]


class SourceResolver:
    def __init__(
        self,
        storage: ObjectStorage,
        records: RecordStore,
        *,
        fallback_bucket: str = "resumes",
        record_shapes: tuple[RecordShape, ...] = RECORD_SHAPES,
    ):
        self.storage = storage
        self.records = records
        self.fallback_bucket = fallback_bucket
        self.record_shapes = record_shapes

    def from_upload(self, data: bytes, file_name: str, media_type: str | None = None) -> SourceDocument:
        if not data:
            raise BadRequestError("uploaded file is empty")
        return SourceDocument.create(data, file_name or "resume", media_type)

    def from_content(self, text: str) -> SourceDocument:
        return SourceDocument.create(text.encode("utf-8"), "resume.txt", "text/plain")

    async def _select(self, table: str, record_id: str) -> dict | None:
        try:
            return await self.records.select_one(table, record_id)
        except RecordStoreError as e:
            logger.error("Lookup in %s failed", table, exc_info=True)
            raise ExternalServiceError(
                f"lookup of {record_id} in {table} failed: {e}",
                stage=STAGE,
                provider_detail=str(e),
            ) from e

    async def from_reference(self, resume_id: str) -> SourceDocument:
        """Resolve a resume record id to its stored file."""
        for shape in self.record_shapes:
            row = await self._select(shape.table, resume_id)
            if row is None:
                continue
            locator = next((row[f] for f in shape.locator_fields if row.get(f)), None)
            if not locator:
                raise ReferenceInvalidError(
                    f"{shape.table} record {resume_id} has no "
                    f"{' or '.join(shape.locator_fields)}"
                )
            return await self._download(parse_locator(locator, shape.bucket), row)
        raise NotFoundError(f"resume {resume_id} not found")

    async def _download(self, locator: StorageLocator, row: dict) -> SourceDocument:
        plan = resolution_plan(locator, self.fallback_bucket)
        for attempt in plan:
            try:
                data = await self.storage.download(attempt.bucket, attempt.key)
            except ObjectNotFoundError:
                logger.debug("No object at %s/%s", attempt.bucket, attempt.key)
                continue
            except StorageClientError as e:
                logger.error("Download of %s/%s failed", attempt.bucket, attempt.key, exc_info=True)
                raise ExternalServiceError(
                    f"download of {attempt.bucket}/{attempt.key} failed: {e}",
                    stage=STAGE,
                    provider_detail=str(e),
                ) from e
            logger.info("Resolved resume at %s/%s", attempt.bucket, attempt.key)
            file_name = row.get("name") or row.get("file_name") or unquote(attempt.key.rsplit("/", 1)[-1])
            media_type = row.get("file_type") if "/" in (row.get("file_type") or "") else None
            return SourceDocument.create(data, file_name, media_type)
        tried = ", ".join(f"{a.bucket}/{a.key}" for a in plan)
        raise NotFoundError(f"stored file not found; tried {tried}")

    async def resolve_context(
        self,
        *,
        job_id: str | None = None,
        job_title: str | None = None,
        company_name: str | None = None,
        job_description: str | None = None,
    ) -> TailoringContext:
        """Fill missing job fields from the job record, then apply placeholders."""
        if job_id and not (job_title and company_name and job_description):
            job = await self._select(JOBS_TABLE, job_id)
            if job is None:
                raise NotFoundError(f"job {job_id} not found")
            job_title = job_title or job.get("title")
            company_name = company_name or job.get("company") or job.get("company_name")
            job_description = job_description or job.get("description")
        return TailoringContext.from_fields(job_title, company_name, job_description)
