"""Inbound request shapes and outbound response bodies."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class UploadRequest:
    """Direct-upload request: the resume file travels with the request."""

    data: bytes
    file_name: str
    media_type: str | None = None
    user_id: str | None = None
    job_title: str | None = None
    company_name: str | None = None
    job_description: str | None = None


class ReferenceRequest(BaseModel):
    """Reference-based request: the resume is a stored record or inline text."""

    user_id: str | None = Field(default=None, alias="userId")
    resume_id: str | None = Field(default=None, alias="resumeId")
    resume_content: str | None = Field(default=None, alias="resumeContent")
    job_id: str | None = Field(default=None, alias="jobId")
    job_title: str | None = Field(default=None, alias="jobTitle")
    company_name: str | None = Field(default=None, alias="companyName")
    job_description: str | None = Field(default=None, alias="jobDescription")

    model_config = {"populate_by_name": True}


class SuccessResponse(BaseModel):
    success: bool = True
    tailored_resume_id: str = Field(alias="tailoredResumeId")
    download_url: str = Field(alias="downloadUrl")
    markdown_url: str | None = Field(default=None, alias="markdownUrl")
    score: int
    missing: list[str] = []

    model_config = {"populate_by_name": True}


class FailureResponse(BaseModel):
    success: bool = False
    error: str
    error_code: str = Field(alias="errorCode")
    technical_error: str = Field(alias="technicalError")
    request_id: str = Field(alias="requestId")

    model_config = {"populate_by_name": True}
