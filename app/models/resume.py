from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.database import Base


class ExperienceLevel(str, enum.Enum):
    """Ordered lowest tier first."""
    ENTRY_LEVEL = "entry-level"
    JUNIOR = "junior"
    MID_LEVEL = "mid-level"
    SENIOR = "senior"


class SkillCategory(str, enum.Enum):
    TECHNICAL = "technical"
    SOFT = "soft"
    DOMAIN = "domain"


class AnalysisStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    filename = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    extracted_text = Column(Text, nullable=True)
    score = Column(Float, default=0.0, nullable=False)
    experience_level = Column(String, default=ExperienceLevel.ENTRY_LEVEL.value, nullable=False)
    total_experience = Column(Float, default=0.0, nullable=False)
    status = Column(String, default=AnalysisStatus.PROCESSING.value, nullable=False, index=True)  # String keeps SQLite simple
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    skills = relationship("Skill", back_populates="resume", cascade="all, delete-orphan", order_by="Skill.id")
    feedback = relationship("Feedback", back_populates="resume", cascade="all, delete-orphan", order_by="Feedback.id")
    matched_jobs = relationship("MatchedJob", back_populates="resume", cascade="all, delete-orphan", order_by="MatchedJob.id")

    def __repr__(self):
        return f"<Resume {self.id} {self.filename} ({self.status})>"


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, default=SkillCategory.TECHNICAL.value, nullable=False)
    confidence = Column(Float, default=0.8, nullable=False)
    experience_years = Column(Float, nullable=True)

    resume = relationship("Resume", back_populates="skills")


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    suggestion = Column(Text, nullable=False)

    resume = relationship("Resume", back_populates="feedback")


class MatchedJob(Base):
    __tablename__ = "matched_jobs"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    company = Column(String, default="")
    location = Column(String, default="")
    match_percentage = Column(Float, default=0.0, nullable=False)
    apply_url = Column(String, default="")
    description = Column(Text, default="")
    salary_range = Column(String, default="Not specified")
    experience_required = Column(String, default="Not specified")
    job_type = Column(String, default="")

    resume = relationship("Resume", back_populates="matched_jobs")
