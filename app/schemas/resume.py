from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

NOT_SPECIFIED = "Not specified"

# --- JOB SCHEMAS ---

class JobListing(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    company: str = ""
    location: str = ""
    match_percentage: float = 0.0
    apply_url: str = ""
    description: str = ""
    salary_range: str = NOT_SPECIFIED
    experience_required: str = NOT_SPECIFIED
    job_type: str = ""

class MatchedJobResponse(JobListing):
    id: int
    resume_id: int

# --- SKILL / FEEDBACK SCHEMAS ---

class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resume_id: int
    name: str
    category: str
    confidence: float
    experience_years: Optional[float] = None

class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resume_id: int
    suggestion: str

# --- RESUME SCHEMAS ---

class ResumeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    filename: str
    file_url: str
    score: float
    experience_level: str
    total_experience: float
    status: str
    created_at: Optional[datetime] = None

class ResumeRecord(ResumeSummary):
    """Composite record: header plus every child collection."""
    extracted_text: Optional[str] = None
    skills: List[SkillResponse] = []
    feedback: List[FeedbackResponse] = []
    matched_jobs: List[MatchedJobResponse] = []

class ResumeStats(BaseModel):
    total_resumes: int
    average_score: int
    total_job_matches: int
