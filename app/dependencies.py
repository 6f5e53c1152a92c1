"""
FastAPI dependency providers.

Identity comes from the upstream auth gateway as request headers; the
session context built from it is the only user state routers see.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError
from app.core.session import SessionContext, bootstrap_session
from app.database import get_db
from app.services.analysis_pipeline import AnalysisPipeline
from app.services.job_search import get_job_source
from app.services.openrouter_client import OpenRouterClient
from app.services.resume_extractor import StructuredExtractor
from app.services.resume_repository import ResumeRepository
from app.services.storage import LocalObjectStorage


def get_session_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    x_theme: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> SessionContext:
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Please sign in to continue.")
    return bootstrap_session(
        db,
        x_user_id.strip(),
        email=x_user_email,
        full_name=x_user_name,
        theme=x_theme,
    )


def get_resume_repository(db: Session = Depends(get_db)) -> ResumeRepository:
    return ResumeRepository(db)


def get_analysis_pipeline(
    repository: ResumeRepository = Depends(get_resume_repository),
) -> AnalysisPipeline:
    client = OpenRouterClient()
    return AnalysisPipeline(
        storage=LocalObjectStorage(),
        repository=repository,
        extractor=StructuredExtractor(client),
        job_source=get_job_source(client),
    )


__all__ = [
    "get_session_context",
    "get_resume_repository",
    "get_analysis_pipeline",
]
