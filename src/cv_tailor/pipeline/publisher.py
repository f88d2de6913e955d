"""Persistence and publication of rendered artifacts."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from cv_tailor.clients.storage import ObjectStorage, RecordStore, RecordStoreError, StorageClientError
from cv_tailor.errors import PersistenceFailedError, StorageWriteFailedError
from cv_tailor.models.tailoring import RenderedArtifact, TailoringRecord

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
MARKDOWN_CONTENT_TYPE = "text/markdown; charset=utf-8"


@dataclass
class PublishResult:
    """Outcome of publishing one artifact.

    ``missing`` names optional locators that could not be produced; an empty
    list is full success, anything else is a partial success.
    """

    record_id: str
    download_url: str
    markdown_url: str | None = None
    missing: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.missing)


def new_artifact_keys(user_id: str | None) -> tuple[str, str]:
    """Fresh, never-reused storage keys for the PDF and its markdown sibling."""
    stem = f"{user_id or 'anonymous'}/{uuid.uuid4().hex}"
    return f"{stem}.pdf", f"{stem}.md"


class Publisher:
    def __init__(
        self,
        storage: ObjectStorage,
        records: RecordStore,
        *,
        bucket: str = "tailored-resumes",
        records_table: str = "tailored_resumes",
    ):
        self.storage = storage
        self.records = records
        self.bucket = bucket
        self.records_table = records_table

    async def publish(self, artifact: RenderedArtifact, record: TailoringRecord) -> PublishResult:
        """Upload the PDF, then the markdown (best effort), then insert the record.

        Artifacts already uploaded stay in place when a later step fails.
        """
        try:
            await self.storage.upload(
                self.bucket, artifact.storage_key_pdf, artifact.pdf_bytes, PDF_CONTENT_TYPE,
            )
        except StorageClientError as e:
            logger.error("PDF upload to %s/%s failed", self.bucket, artifact.storage_key_pdf, exc_info=True)
            raise StorageWriteFailedError(f"PDF upload failed: {e}") from e

        markdown_url: str | None = None
        missing: list[str] = []
        try:
            await self.storage.upload(
                self.bucket, artifact.storage_key_markdown, artifact.markdown_bytes, MARKDOWN_CONTENT_TYPE,
            )
            markdown_url = self.storage.public_url(self.bucket, artifact.storage_key_markdown)
        except StorageClientError as e:
            logger.warning("Markdown upload to %s/%s failed: %s", self.bucket, artifact.storage_key_markdown, e)
            missing.append("markdownUrl")

        try:
            record_id = await self.records.insert(self.records_table, record.to_row())
        except RecordStoreError as e:
            logger.error("Insert into %s failed", self.records_table, exc_info=True)
            raise PersistenceFailedError(f"record insert failed: {e}") from e

        return PublishResult(
            record_id=record_id,
            download_url=self.storage.public_url(self.bucket, artifact.storage_key_pdf),
            markdown_url=markdown_url,
            missing=missing,
        )
