"""
Resume analysis pipeline.

upload -> placeholder record -> structured extraction -> job grounding ->
persistence. Stages run strictly in order; the first unrecoverable failure
aborts the run. Job grounding never fails the run.
"""
import asyncio
import enum
import inspect
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.core.config import settings
from app.core.exceptions import (
    AppException, ExtractionError, InvalidFileError, PersistError, PipelineError,
    RecordCreationError, UploadError,
)
from app.schemas.analysis import AnalysisPayload
from app.schemas.resume import ResumeRecord
from app.services.document_text import extract_text
from app.services.job_search import JobSource
from app.services.resume_extractor import StructuredExtractor
from app.services.resume_repository import ResumeRepository
from app.services.storage import ObjectStorage, build_object_path

logger = logging.getLogger(__name__)

_EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class AnalysisStage(str, enum.Enum):
    UPLOAD_STARTED = "upload_started"
    UPLOAD_COMPLETE = "upload_complete"
    RECORD_CREATED = "record_created"
    EXTRACTION_COMPLETE = "extraction_complete"
    JOB_SEARCH_COMPLETE = "job_search_complete"
    PERSISTENCE_COMPLETE = "persistence_complete"


# percent, status text shown to the user
MILESTONES = {
    AnalysisStage.UPLOAD_STARTED: (10, "Uploading your resume..."),
    AnalysisStage.UPLOAD_COMPLETE: (25, "Creating analysis record..."),
    AnalysisStage.RECORD_CREATED: (40, "AI is analyzing your resume..."),
    AnalysisStage.EXTRACTION_COMPLETE: (70, "Searching for live jobs..."),
    AnalysisStage.JOB_SEARCH_COMPLETE: (90, "Finalizing your report..."),
    AnalysisStage.PERSISTENCE_COMPLETE: (100, "Analysis complete!"),
}


@dataclass(frozen=True)
class AnalysisProgress:
    stage: AnalysisStage
    percent: int
    message: str


@dataclass
class ResumeUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


ProgressCallback = Callable[[AnalysisProgress], Any]


def resolve_mime_type(upload: ResumeUpload) -> Optional[str]:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type in settings.allowed_mime_types:
        return content_type
    ext = os.path.splitext(upload.filename)[1].lower()
    if ext in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[ext]
    guessed, _ = mimetypes.guess_type(upload.filename)
    return guessed if guessed in settings.allowed_mime_types else None


def validate_upload(upload: ResumeUpload, max_bytes: Optional[int] = None) -> str:
    """
    Check type and size before any network call. Returns the MIME type.
    A file of exactly `max_bytes` is accepted.
    """
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    size = len(upload.content)
    if size == 0:
        raise InvalidFileError("The uploaded file is empty.")
    if size > limit:
        raise InvalidFileError(
            f"File size must be less than {limit // (1024 * 1024)}MB.",
            details={"size": size, "limit": limit},
        )
    mime_type = resolve_mime_type(upload)
    if mime_type is None:
        raise InvalidFileError("Only PDF and DOCX files are supported.", details={"filename": upload.filename})
    return mime_type


class AnalysisPipeline:
    def __init__(
        self,
        storage: ObjectStorage,
        repository: ResumeRepository,
        extractor: StructuredExtractor,
        job_source: JobSource,
    ):
        self.storage = storage
        self.repository = repository
        self.extractor = extractor
        self.job_source = job_source

    async def _report(self, progress: Optional[ProgressCallback], stage: AnalysisStage):
        percent, message = MILESTONES[stage]
        logger.info(f"Analysis progress {percent}%: {message}", extra={"stage": stage.value})
        if progress is None:
            return
        result = progress(AnalysisProgress(stage=stage, percent=percent, message=message))
        if inspect.isawaitable(result):
            await result

    async def run_analysis(
        self,
        upload: ResumeUpload,
        owner_id: str,
        progress: Optional[ProgressCallback] = None,
    ) -> ResumeRecord:
        """
        Analyze one resume for `owner_id` and return the committed record.

        Raises:
            InvalidFileError: rejected before any network call.
            UploadError, RecordCreationError, ExtractionError, PersistError:
                the first failing stage. Errors raised once the placeholder
                exists carry details["resume_id"]; marking the record failed
                is left to the caller.
        """
        mime_type = validate_upload(upload)

        # 1. Upload
        await self._report(progress, AnalysisStage.UPLOAD_STARTED)
        try:
            stored = await self.storage.upload(
                build_object_path(owner_id, upload.filename), upload.content, mime_type
            )
        except UploadError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during resume upload.")
            raise UploadError(f"Failed to upload file: {e}") from e
        await self._report(progress, AnalysisStage.UPLOAD_COMPLETE)

        # 2. Placeholder record
        try:
            resume = await self.repository.create_placeholder(upload.filename, stored.public_url, owner_id)
        except RecordCreationError:
            raise
        except Exception as e:
            logger.exception("Unexpected error creating resume record.")
            raise RecordCreationError(f"Failed to create resume record: {e}") from e
        resume_id = resume.id
        await self._report(progress, AnalysisStage.RECORD_CREATED)

        # 3. Structured extraction
        try:
            analysis = await self.extractor.extract(upload.content, mime_type, upload.filename)
        except ExtractionError as e:
            raise ExtractionError(e.message, details={**(e.details or {}), "resume_id": resume_id}) from e
        except AppException as e:
            raise ExtractionError(f"AI analysis failed: {e.message}", details={"resume_id": resume_id}) from e
        except Exception as e:
            logger.exception("Unexpected error during resume extraction.")
            raise ExtractionError(f"AI analysis failed: {e}", details={"resume_id": resume_id}) from e
        await self._report(progress, AnalysisStage.EXTRACTION_COMPLETE)

        # 4. Job grounding (best-effort)
        jobs = await self.job_source.resolve_jobs(analysis.job_titles)
        await self._report(progress, AnalysisStage.JOB_SEARCH_COMPLETE)

        # 5. Persistence
        extracted = await asyncio.to_thread(extract_text, upload.content, upload.filename)
        payload = AnalysisPayload.from_extraction(
            analysis, [job.model_dump() for job in jobs], extracted_text=extracted
        )
        try:
            record = await self.repository.finalize(resume_id, payload)
        except PipelineError:
            raise
        except Exception as e:
            logger.exception("Unexpected error saving analysis results.")
            raise PersistError(f"Failed to save analysis results: {e}", details={"resume_id": resume_id}) from e
        await self._report(progress, AnalysisStage.PERSISTENCE_COMPLETE)

        return ResumeRecord.model_validate(record)
