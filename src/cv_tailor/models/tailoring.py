"""Models for the tailoring context, its output, and the persisted record."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

DEFAULT_JOB_TITLE = "Professional Role"
DEFAULT_COMPANY_NAME = "Company"


class TailoringContext(BaseModel):
    job_title: str = DEFAULT_JOB_TITLE
    company_name: str = DEFAULT_COMPANY_NAME
    job_description: str = ""

    @classmethod
    def from_fields(
        cls,
        job_title: str | None,
        company_name: str | None,
        job_description: str | None,
    ) -> TailoringContext:
        """Build a context, substituting placeholders for blank fields."""
        return cls(
            job_title=(job_title or "").strip() or DEFAULT_JOB_TITLE,
            company_name=(company_name or "").strip() or DEFAULT_COMPANY_NAME,
            job_description=(job_description or "").strip(),
        )

    @property
    def headline(self) -> str:
        """Sub-line drawn under the candidate name."""
        return f"{self.job_title} | {self.company_name}"


class TailoredDocument(BaseModel):
    markdown: str


@dataclass(frozen=True)
class RenderedArtifact:
    pdf_bytes: bytes
    markdown_bytes: bytes
    storage_key_pdf: str
    storage_key_markdown: str


class TailoringRecord(BaseModel):
    """One row in the tailored-resume table, written once per successful run."""

    user_id: str | None = None
    source_reference: str | None = None
    job_id: str | None = None
    job_title: str | None = None
    company_name: str | None = None
    job_description: str | None = None
    tailored_markdown: str
    storage_key_pdf: str
    status: str = "completed"
    score: int = 75

    def to_row(self) -> dict:
        """Column mapping for the ``tailored_resumes`` table."""
        return {
            "user_id": self.user_id,
            "original_resume_id": self.source_reference,
            "job_id": self.job_id,
            "job_title": self.job_title,
            "company_name": self.company_name,
            "job_description": self.job_description,
            "tailored_content": self.tailored_markdown,
            "tailored_file_path": self.storage_key_pdf,
            "status": self.status,
            "tailoring_score": self.score,
            "file_format": "pdf",
        }
