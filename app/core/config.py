import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    base_url: str = os.getenv("OPENROUTER_URL", "https://openrouter.ai/api/v1/chat/completions")
    extraction_model: str = Field(default=os.getenv("AI_EXTRACTION_MODEL", "google/gemini-2.5-pro"))
    search_model: str = Field(default=os.getenv("AI_SEARCH_MODEL", "google/gemini-2.5-flash"))
    kill_switch: bool = Field(default=os.getenv("AI_KILL_SWITCH", "false").lower() == "true")
    max_attempts: int = int(os.getenv("AI_MAX_ATTEMPTS", "1"))
    timeout_seconds: float = float(os.getenv("AI_TIMEOUT_SECONDS", "120"))
    temperature: float = 0.2

class JobSearchSettings(BaseModel):
    # "grounded" (search-grounded generation) or "jsearch" (RapidAPI JSearch)
    source: str = os.getenv("JOB_SOURCE", "grounded").strip().lower()
    locale: str = os.getenv("JOB_SEARCH_LOCALE", "India")
    country: str = os.getenv("JOB_SEARCH_COUNTRY", "in")
    employment_types: str = os.getenv("JOB_SEARCH_EMPLOYMENT_TYPES", "FULLTIME,CONTRACTOR,PARTTIME")
    max_results: int = int(os.getenv("JOB_SEARCH_MAX_RESULTS", "10"))
    rapidapi_key: Optional[str] = Field(default=os.getenv("RAPIDAPI_KEY"))
    rapidapi_host: str = os.getenv("JSEARCH_HOST", "jsearch.p.rapidapi.com")
    timeout_seconds: float = float(os.getenv("JSEARCH_TIMEOUT_SECONDS", "30"))

class Config(BaseModel):
    app_name: str = "Resume Insight"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Object storage
    storage_dir: str = os.getenv("STORAGE_DIR", "./storage/resumes")
    storage_public_url: str = os.getenv("STORAGE_PUBLIC_URL", "http://localhost:8000/files/resumes")

    # Upload constraints
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    allowed_mime_types: List[str] = [
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # AI Components
    ai: AISettings = AISettings()
    jobs: JobSearchSettings = JobSearchSettings()

    # CORS origins, comma-separated
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    upload_rate_limit: str = os.getenv("UPLOAD_RATE_LIMIT", "10/minute")

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if not settings.ai.openrouter_api_key:
        _critical_missing.append("OPENROUTER_API_KEY")
    if settings.jobs.source == "jsearch" and not settings.jobs.rapidapi_key:
        _critical_missing.append("RAPIDAPI_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
elif not settings.ai.openrouter_api_key:
    _logger.warning("OPENROUTER_API_KEY is not set; AI analysis requests will fail.")
