"""
Structured-output contract for resume extraction.

RESUME_ANALYSIS_SCHEMA is the JSON-schema descriptor sent with the
extraction request; ExtractedAnalysis is what the parsed reply becomes.
AnalysisPayload is the loosely-typed bundle handed to the persistence
layer, which owns sanitization.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.resume import ExperienceLevel, SkillCategory

RESUME_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {
            "type": "number",
            "description": "An overall score for the resume from 0-100 based on clarity, skills, and experience.",
        },
        "feedback": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of 3-5 actionable suggestions to improve the resume.",
        },
        "skills": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "category": {"type": "string", "enum": [c.value for c in SkillCategory]},
                    "confidence": {
                        "type": "number",
                        "description": "Confidence score from 0.0 to 1.0 on whether the candidate possesses this skill.",
                    },
                    "experience_years": {
                        "type": "number",
                        "description": "Estimated years of hands-on experience with this skill, if stated or inferable.",
                    },
                },
                "required": ["name", "category", "confidence"],
            },
            "description": "A list of skills extracted from the resume.",
        },
        "experience_level": {
            "type": "string",
            "enum": [level.value for level in ExperienceLevel],
            "description": "The estimated experience level of the candidate.",
        },
        "total_experience": {
            "type": "number",
            "description": "Total years of professional experience.",
        },
        "job_titles": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of 3-5 suitable job titles for the candidate based on the resume.",
        },
    },
    "required": ["score", "feedback", "skills", "experience_level", "total_experience", "job_titles"],
}


def response_format() -> Dict[str, Any]:
    """OpenAI-style structured output block accepted by OpenRouter."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "resume_analysis",
            "strict": True,
            "schema": RESUME_ANALYSIS_SCHEMA,
        },
    }


class ExtractedAnalysis(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Scalars are kept as returned; coercion happens at persistence time
    score: Any = None
    experience_level: Any = None
    total_experience: Any = None
    feedback: List[Any] = Field(default_factory=list)
    skills: List[Dict[str, Any]] = Field(default_factory=list)
    job_titles: List[str] = Field(default_factory=list)

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback_list(cls, value):
        return value if isinstance(value, list) else []

    @field_validator("skills", mode="before")
    @classmethod
    def _skills_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("job_titles", mode="before")
    @classmethod
    def _titles_list(cls, value):
        if not isinstance(value, list):
            return []
        return [t.strip() for t in value if isinstance(t, str) and t.strip()]


class AnalysisPayload(BaseModel):
    """Everything finalize() writes for one analysis run."""
    score: Any = None
    experience_level: Any = None
    total_experience: Any = None
    extracted_text: Optional[str] = None
    skills: List[Dict[str, Any]] = Field(default_factory=list)
    feedback: List[Any] = Field(default_factory=list)
    jobs: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_extraction(
        cls,
        analysis: ExtractedAnalysis,
        jobs: List[Dict[str, Any]],
        extracted_text: Optional[str] = None,
    ) -> "AnalysisPayload":
        return cls(
            score=analysis.score,
            experience_level=analysis.experience_level,
            total_experience=analysis.total_experience,
            extracted_text=extracted_text,
            skills=analysis.skills,
            feedback=analysis.feedback,
            jobs=jobs,
        )
