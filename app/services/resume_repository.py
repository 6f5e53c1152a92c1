import asyncio
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import PersistError, RecordCreationError
from app.models.resume import (
    AnalysisStatus, ExperienceLevel, Feedback, MatchedJob, Resume, Skill, SkillCategory,
)
from app.schemas.analysis import AnalysisPayload
from app.schemas.resume import NOT_SPECIFIED, ResumeStats
from app.services.coercion import coerce_number, coerce_text

logger = logging.getLogger(__name__)

DEFAULT_SKILL_CONFIDENCE = 0.8

_LEVELS = {level.value for level in ExperienceLevel}
_CATEGORIES = {category.value for category in SkillCategory}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# --- Sanitization ---

def sanitize_header(analysis: AnalysisPayload) -> Dict[str, Any]:
    level = analysis.experience_level
    if not isinstance(level, str) or level.strip().lower() not in _LEVELS:
        level = ExperienceLevel.ENTRY_LEVEL.value
    return {
        "score": coerce_number(analysis.score, default=0.0, minimum=0.0, maximum=100.0),
        "experience_level": level.strip().lower(),
        "total_experience": coerce_number(analysis.total_experience, default=0.0, minimum=0.0),
        "extracted_text": analysis.extracted_text,
    }


def sanitize_skill(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    name = coerce_text(raw.get("name"))
    if not name:
        return None
    category = raw.get("category")
    if not isinstance(category, str) or category.strip().lower() not in _CATEGORIES:
        category = SkillCategory.TECHNICAL.value
    years = raw.get("experience_years")
    return {
        "name": name,
        "category": category.strip().lower(),
        "confidence": coerce_number(
            raw.get("confidence"), default=DEFAULT_SKILL_CONFIDENCE, minimum=0.0, maximum=1.0
        ),
        "experience_years": coerce_number(years, minimum=0.0) if _is_number(years) else None,
    }


def sanitize_job(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    title = coerce_text(raw.get("title"))
    if not title:
        return None
    return {
        "title": title,
        "company": coerce_text(raw.get("company")),
        "location": coerce_text(raw.get("location")),
        "match_percentage": coerce_number(raw.get("match_percentage"), default=0.0, minimum=0.0, maximum=100.0),
        "apply_url": coerce_text(raw.get("apply_url")),
        "description": coerce_text(raw.get("description")),
        "salary_range": coerce_text(raw.get("salary_range"), NOT_SPECIFIED),
        "experience_required": coerce_text(raw.get("experience_required"), NOT_SPECIFIED),
        "job_type": coerce_text(raw.get("job_type")),
    }


class ResumeRepository:
    """
    Persistence for resume analyses.

    Writes are committed one unit at a time (header, then each child
    collection), so a failed child insert leaves earlier writes in place.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    async def create_placeholder(self, filename: str, file_url: str, owner_id: str) -> Resume:
        resume = Resume(
            user_id=owner_id,
            filename=filename,
            file_url=file_url,
            status=AnalysisStatus.PROCESSING.value,
        )
        try:
            self.db.add(resume)
            self._commit()
            self.db.refresh(resume)
        except SQLAlchemyError as e:
            logger.error(f"Error creating resume record for {owner_id}: {e}")
            raise RecordCreationError("Failed to create resume record.")

        logger.info(f"Created resume {resume.id} for {owner_id} in processing state")
        return resume

    async def _insert_rows(self, model, resume_id: int, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        self.db.add_all([model(resume_id=resume_id, **row) for row in rows])
        self._commit()
        return len(rows)

    async def _insert_skills(self, resume_id: int, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_rows(Skill, resume_id, rows)

    async def _insert_feedback(self, resume_id: int, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_rows(Feedback, resume_id, rows)

    async def _insert_jobs(self, resume_id: int, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_rows(MatchedJob, resume_id, rows)

    async def finalize(self, resume_id: int, analysis: AnalysisPayload) -> Resume:
        """
        Merge one analysis into its placeholder record.

        The header (scores + status=completed) is written first; skills,
        feedback and jobs are then inserted independently. The first failure
        is raised as PersistError. On success the record is re-read so the
        caller sees what was committed.
        """
        header = sanitize_header(analysis)
        skills = [row for row in (sanitize_skill(s) for s in analysis.skills) if row]
        feedback = [{"suggestion": text} for text in (coerce_text(f) for f in analysis.feedback) if text]
        jobs = [row for row in (sanitize_job(j) for j in analysis.jobs) if row]

        try:
            updated = (
                self.db.query(Resume)
                .filter(Resume.id == resume_id)
                .update({**header, "status": AnalysisStatus.COMPLETED.value}, synchronize_session=False)
            )
            self._commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating resume {resume_id} with analysis: {e}")
            raise PersistError("Failed to save analysis results.", details={"resume_id": resume_id, "stage": "header"}) from e
        if not updated:
            raise PersistError(f"Resume {resume_id} not found.", details={"resume_id": resume_id, "stage": "header"})

        results = await asyncio.gather(
            self._insert_skills(resume_id, skills),
            self._insert_feedback(resume_id, feedback),
            self._insert_jobs(resume_id, jobs),
            return_exceptions=True,
        )
        for stage, result in zip(("skills", "feedback", "jobs"), results):
            if isinstance(result, Exception):
                logger.error(f"Error inserting {stage} for resume {resume_id}: {result}")
                raise PersistError(
                    f"Failed to save {stage}.", details={"resume_id": resume_id, "stage": stage}
                ) from result

        logger.info(
            f"Finalized resume {resume_id}: {len(skills)} skills, {len(feedback)} suggestions, {len(jobs)} jobs"
        )
        resume = self.get_resume(resume_id)
        if resume is None:
            raise PersistError(f"Resume {resume_id} vanished after update.", details={"resume_id": resume_id})
        return resume

    async def mark_failed(self, resume_id: int) -> None:
        try:
            self.db.query(Resume).filter(Resume.id == resume_id).update(
                {"status": AnalysisStatus.FAILED.value}, synchronize_session=False
            )
            self._commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not mark resume {resume_id} as failed: {e}")
            return
        logger.info(f"Marked resume {resume_id} as failed")

    # --- Reads ---

    def get_resume(self, resume_id: int, owner_id: Optional[str] = None) -> Optional[Resume]:
        # Drop identity-map state so the composite is read back from the database
        self.db.expire_all()
        query = (
            self.db.query(Resume)
            .options(
                selectinload(Resume.skills),
                selectinload(Resume.feedback),
                selectinload(Resume.matched_jobs),
            )
            .filter(Resume.id == resume_id)
        )
        if owner_id is not None:
            query = query.filter(Resume.user_id == owner_id)
        return query.first()

    def list_resumes(self, owner_id: str) -> List[Resume]:
        return (
            self.db.query(Resume)
            .filter(Resume.user_id == owner_id)
            .order_by(Resume.created_at.desc(), Resume.id.desc())
            .all()
        )

    def get_stats(self, owner_id: str) -> ResumeStats:
        total = self.db.query(func.count(Resume.id)).filter(Resume.user_id == owner_id).scalar() or 0
        average = (
            self.db.query(func.avg(Resume.score))
            .filter(Resume.user_id == owner_id, Resume.status == AnalysisStatus.COMPLETED.value)
            .scalar()
        )
        job_matches = (
            self.db.query(func.count(MatchedJob.id))
            .join(Resume, MatchedJob.resume_id == Resume.id)
            .filter(Resume.user_id == owner_id)
            .scalar()
            or 0
        )
        return ResumeStats(
            total_resumes=total,
            average_score=round(average or 0),
            total_job_matches=job_matches,
        )
