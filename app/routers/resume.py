import logging
from typing import List

from fastapi import APIRouter, Depends, File, Request, UploadFile

from app.core.config import settings
from app.core.exceptions import NotFoundError, PipelineError
from app.core.limiter import limiter
from app.core.session import SessionContext
from app.dependencies import get_analysis_pipeline, get_resume_repository, get_session_context
from app.schemas.resume import ResumeRecord, ResumeStats, ResumeSummary
from app.services.analysis_pipeline import AnalysisPipeline, AnalysisProgress, ResumeUpload
from app.services.resume_repository import ResumeRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/resumes", response_model=ResumeRecord)
@limiter.limit(settings.upload_rate_limit)
async def analyze_resume(
    request: Request,
    file: UploadFile = File(...),
    context: SessionContext = Depends(get_session_context),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    """
    Upload a resume (PDF or DOCX, max 5MB) and run the full analysis.
    """
    # One byte past the ceiling is enough for the size check to reject it
    content = await file.read(settings.max_upload_bytes + 1)

    upload = ResumeUpload(
        filename=file.filename or "resume",
        content=content,
        content_type=file.content_type,
    )

    def on_progress(update: AnalysisProgress):
        logger.info(f"[{context.user_id}] {update.percent}% {update.message}")

    try:
        return await pipeline.run_analysis(upload, context.user_id, progress=on_progress)
    except PipelineError as e:
        if e.resume_id is not None:
            await repository.mark_failed(e.resume_id)
        raise


@router.get("/resumes", response_model=List[ResumeSummary])
def list_resumes(
    context: SessionContext = Depends(get_session_context),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    return repository.list_resumes(context.user_id)


@router.get("/resumes/stats", response_model=ResumeStats)
def resume_stats(
    context: SessionContext = Depends(get_session_context),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    return repository.get_stats(context.user_id)


@router.get("/resumes/{resume_id}", response_model=ResumeRecord)
def get_resume(
    resume_id: int,
    context: SessionContext = Depends(get_session_context),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    resume = repository.get_resume(resume_id, owner_id=context.user_id)
    if resume is None:
        raise NotFoundError("Resume not found")
    return resume
