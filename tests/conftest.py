import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["JOB_SOURCE"] = "grounded"
os.environ["UPLOAD_RATE_LIMIT"] = "1000/minute"

from app.database import Base, get_db
from app.main import app
from app.core.exceptions import AIError, UploadError
from app.schemas.analysis import ExtractedAnalysis
from app.schemas.resume import JobListing
from app.services.job_search import JobSource
from app.services.storage import ObjectStorage, StoredObject
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PDF_MIME = "application/pdf"

SAMPLE_ANALYSIS = {
    "score": 82,
    "experience_level": "mid-level",
    "total_experience": 4,
    "feedback": ["Add metrics"],
    "skills": [{"name": "Go", "category": "technical", "confidence": 0.9}],
    "job_titles": ["Backend Engineer"],
}


# --- Fakes for external collaborators ---

class FakeLLM:
    """Scripted stand-in for OpenRouterClient.complete()."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, messages, model, temperature=None, response_format=None, plugins=None):
        self.calls.append({
            "messages": messages,
            "model": model,
            "response_format": response_format,
            "plugins": plugins,
        })
        if not self.replies:
            raise AIError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeStorage(ObjectStorage):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    async def upload(self, path, data, content_type=None):
        if self.fail:
            raise UploadError("Failed to upload file.")
        self.uploads.append((path, len(data), content_type))
        return StoredObject(path=path, public_url=f"https://files.test/{path}")


class FakeExtractor:
    def __init__(self, data=None, error: Exception = None):
        self.data = SAMPLE_ANALYSIS if data is None else data
        self.error = error
        self.calls = []

    async def extract(self, content, mime_type, filename="resume"):
        self.calls.append((len(content), mime_type, filename))
        if self.error is not None:
            raise self.error
        return ExtractedAnalysis.model_validate(self.data)


class FakeJobSource(JobSource):
    name = "fake"

    def __init__(self, jobs=None, error: Exception = None):
        self.jobs = jobs if jobs is not None else []
        self.error = error
        self.searched = []

    async def search(self, titles):
        self.searched.append(list(titles))
        if self.error is not None:
            raise self.error
        return list(self.jobs)


def make_job(title="Backend Engineer", **overrides):
    data = {
        "title": title,
        "company": "Acme",
        "location": "Bengaluru, India",
        "match_percentage": 88,
        "apply_url": "https://jobs.example.com/1",
        "description": "Build APIs.",
        "salary_range": "Not specified",
        "experience_required": "3+ years",
        "job_type": "Full-time",
    }
    data.update(overrides)
    return JobListing(**data)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture
def auth_headers():
    return {"X-User-ID": "u1", "X-User-Email": "u1@example.com", "X-User-Name": "Asha Rao"}
