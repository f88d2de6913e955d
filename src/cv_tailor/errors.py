"""Error taxonomy surfaced to callers of the tailoring pipeline.

Every failure leaving the pipeline is one of these classes. Each carries a
stable ``error_code`` and a short ``user_message``; the exception string is
the verbose technical message. Adapters wrap third-party exceptions into
these at their boundary.
"""

from __future__ import annotations


class TailoringError(Exception):
    """Base class for all client-facing pipeline failures."""

    error_code = "INTERNAL_ERROR"
    user_message = "Resume tailoring failed. Please try again."

    @property
    def technical_error(self) -> str:
        return str(self) or self.__class__.__name__

    def diagnostics(self) -> dict:
        """Extra response fields describing the failure."""
        return {}


class BadRequestError(TailoringError):
    error_code = "BAD_REQUEST"
    user_message = "The request is missing required information."


class ReferenceInvalidError(TailoringError):
    error_code = "REFERENCE_INVALID"
    user_message = "The selected resume has no stored file to read."


class NotFoundError(TailoringError):
    error_code = "NOT_FOUND"
    user_message = "The requested resume or job could not be found."


class ExtractionEmptyError(TailoringError):
    error_code = "EXTRACTION_EMPTY"
    user_message = "We could not read any text from your resume file."


class TailoringEmptyError(TailoringError):
    error_code = "TAILORING_EMPTY"
    user_message = "The tailored resume came back empty. Please try again."


class ExternalServiceError(TailoringError):
    error_code = "EXTERNAL_SERVICE_ERROR"
    user_message = "An external service failed while processing your resume."

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        status: int | None = None,
        provider_detail: str | None = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.status = status
        self.provider_detail = provider_detail

    def diagnostics(self) -> dict:
        return {
            "stage": self.stage,
            "providerStatus": self.status,
            "providerDetail": self.provider_detail,
        }


class RenderError(TailoringError):
    error_code = "RENDER_ERROR"
    user_message = "We could not generate the PDF for your tailored resume."


class StorageWriteFailedError(TailoringError):
    error_code = "STORAGE_WRITE_FAILED"
    user_message = "We could not save the generated PDF."


class PersistenceFailedError(TailoringError):
    error_code = "PERSISTENCE_FAILED"
    user_message = "We could not save the tailored resume record."
