from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class AIError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="AI_SERVICE_UNAVAILABLE",
            details=details
        )

class AIKillSwitchError(AppException):
    def __init__(self):
        super().__init__(
            message="AI services are currently offline for maintenance.",
            status_code=503,
            error_code="AI_KILL_SWITCH_ACTIVE"
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

# --- Analysis pipeline taxonomy ---

class PipelineError(AppException):
    """Base for every failure that halts a resume analysis run."""
    status_code = 500
    error_code = "PIPELINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=type(self).status_code,
            error_code=type(self).error_code,
            details=details
        )

    @property
    def resume_id(self) -> Optional[int]:
        return (self.details or {}).get("resume_id")

class InvalidFileError(PipelineError):
    status_code = 400
    error_code = "INVALID_FILE"

class UploadError(PipelineError):
    status_code = 502
    error_code = "UPLOAD_FAILED"

class RecordCreationError(PipelineError):
    status_code = 500
    error_code = "RECORD_CREATION_FAILED"

class ExtractionError(PipelineError):
    status_code = 502
    error_code = "AI_ANALYSIS_FAILED"

class PersistError(PipelineError):
    status_code = 500
    error_code = "PERSIST_FAILED"

class JobSearchError(PipelineError):
    """Raised inside job sources only; always absorbed into an empty result."""
    status_code = 502
    error_code = "JOB_SEARCH_FAILED"
