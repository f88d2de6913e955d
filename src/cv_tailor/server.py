"""FastAPI application exposing the tailoring pipeline."""

from __future__ import annotations

import json
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from cv_tailor.errors import BadRequestError
from cv_tailor.models.requests import ReferenceRequest, UploadRequest
from cv_tailor.pipeline.orchestrator import PipelineOrchestrator, failure_response

logger = logging.getLogger(__name__)

_UPLOAD_TEXT_FIELDS = {
    "userId": "user_id",
    "jobTitle": "job_title",
    "companyName": "company_name",
    "jobDescription": "job_description",
}


def _bad_request(message: str) -> dict:
    return failure_response(BadRequestError(message), uuid.uuid4().hex)


async def _upload_request(request: Request) -> UploadRequest | dict:
    try:
        form = await request.form()
    except (MultiPartException, HTTPException) as exc:
        detail = getattr(exc, "detail", None) or getattr(exc, "message", None) or str(exc)
        return _bad_request(f"invalid multipart body: {detail}")
    upload = form.get("file")
    if upload is None or isinstance(upload, str):
        return _bad_request("multipart field 'file' is required")
    data = await upload.read()
    fields = {
        attr: value
        for name, attr in _UPLOAD_TEXT_FIELDS.items()
        if isinstance(value := form.get(name), str) and value
    }
    return UploadRequest(
        data=data,
        file_name=upload.filename or "resume",
        media_type=upload.content_type,
        **fields,
    )


async def _reference_request(request: Request) -> ReferenceRequest | dict:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _bad_request("request body must be JSON")
    if not isinstance(payload, dict):
        return _bad_request("request body must be a JSON object")
    try:
        return ReferenceRequest.model_validate(payload)
    except ValidationError as exc:
        return _bad_request(f"invalid request: {exc}")


def create_app(orchestrator: PipelineOrchestrator) -> FastAPI:
    """Build the HTTP app around an already configured orchestrator."""
    app = FastAPI(title="cv-tailor", version="0.1.0")

    @app.post("/tailor-resume")
    async def tailor_resume(request: Request) -> JSONResponse:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("multipart/form-data"):
            parsed = await _upload_request(request)
            if isinstance(parsed, dict):
                return JSONResponse(parsed)
            body = await orchestrator.handle_upload(parsed)
        else:
            parsed = await _reference_request(request)
            if isinstance(parsed, dict):
                return JSONResponse(parsed)
            body = await orchestrator.handle_reference(parsed)
        # failures are reported in the body; the transport status stays 200
        return JSONResponse(body)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


def build_app() -> FastAPI:
    """ASGI factory: configuration from config.yaml, secrets from the environment."""
    from dotenv import load_dotenv

    from cv_tailor.config import load_config

    load_dotenv()
    return create_app(PipelineOrchestrator.from_config(load_config()))
