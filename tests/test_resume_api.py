import pytest
from fastapi import Depends, status

from app.core.exceptions import ExtractionError
from app.dependencies import get_analysis_pipeline, get_resume_repository
from app.main import app
from app.services.analysis_pipeline import AnalysisPipeline
from app.services.resume_repository import ResumeRepository
from conftest import FakeExtractor, FakeJobSource, FakeStorage, PDF_MIME, make_job

PDF_FILE = ("resume.pdf", b"%PDF-1.4\nfake resume bytes", PDF_MIME)


@pytest.fixture
def pipeline_parts():
    return {
        "storage": FakeStorage(),
        "extractor": FakeExtractor(),
        "job_source": FakeJobSource(jobs=[make_job(), make_job("Platform Engineer", match_percentage=77)]),
    }


@pytest.fixture
def api(client, pipeline_parts):
    """TestClient whose analysis pipeline talks to fakes instead of external services."""
    def override_pipeline(repository: ResumeRepository = Depends(get_resume_repository)):
        return AnalysisPipeline(repository=repository, **pipeline_parts)

    app.dependency_overrides[get_analysis_pipeline] = override_pipeline
    yield client
    app.dependency_overrides.pop(get_analysis_pipeline, None)


def _upload(api, headers, file=PDF_FILE):
    return api.post("/api/resumes", files={"file": file}, headers=headers)


def test_upload_runs_full_analysis(api, auth_headers):
    response = _upload(api, auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "completed"
    assert data["user_id"] == "u1"
    assert data["score"] == 82
    assert [s["name"] for s in data["skills"]] == ["Go"]
    assert [j["title"] for j in data["matched_jobs"]] == ["Backend Engineer", "Platform Engineer"]
    assert data["matched_jobs"][1]["match_percentage"] == 77


def test_upload_requires_identity(api):
    response = _upload(api, {})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["errors"][0]["code"] == "AUTH_FAILED"


def test_unsupported_file_type_is_rejected(api, auth_headers, pipeline_parts):
    response = _upload(api, auth_headers, file=("notes.txt", b"hello", "text/plain"))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "INVALID_FILE"
    assert pipeline_parts["storage"].uploads == []
    assert api.get("/api/resumes", headers=auth_headers).json() == []


def test_extraction_failure_marks_record_failed(api, auth_headers, pipeline_parts):
    pipeline_parts["extractor"].error = ExtractionError("AI analysis returned malformed JSON.")

    response = _upload(api, auth_headers)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    error = response.json()["errors"][0]
    assert error["code"] == "AI_ANALYSIS_FAILED"
    resume_id = error["details"]["resume_id"]

    record = api.get(f"/api/resumes/{resume_id}", headers=auth_headers).json()
    assert record["status"] == "failed"
    assert pipeline_parts["job_source"].searched == []


def test_job_search_failure_still_returns_completed(api, auth_headers, pipeline_parts):
    pipeline_parts["job_source"].error = RuntimeError("search backend down")

    response = _upload(api, auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "completed"
    assert response.json()["matched_jobs"] == []


def test_list_get_and_stats(api, auth_headers):
    first = _upload(api, auth_headers).json()
    second = _upload(api, auth_headers).json()

    listed = api.get("/api/resumes", headers=auth_headers).json()
    assert [r["id"] for r in listed] == [second["id"], first["id"]]
    assert "skills" not in listed[0]

    record = api.get(f"/api/resumes/{first['id']}", headers=auth_headers).json()
    assert record["id"] == first["id"]
    assert len(record["feedback"]) == 1

    stats = api.get("/api/resumes/stats", headers=auth_headers).json()
    assert stats == {"total_resumes": 2, "average_score": 82, "total_job_matches": 4}


def test_records_are_owner_scoped(api, auth_headers):
    resume_id = _upload(api, auth_headers).json()["id"]
    other = {"X-User-ID": "u2", "X-User-Email": "u2@example.com"}

    response = api.get(f"/api/resumes/{resume_id}", headers=other)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert api.get("/api/resumes", headers=other).json() == []


def test_profile_read_and_update(api, auth_headers):
    profile = api.get("/api/profile", headers=auth_headers).json()
    assert profile == {"id": "u1", "full_name": "Asha Rao", "email": "u1@example.com"}

    response = api.patch("/api/profile", json={"full_name": "Asha R."}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["full_name"] == "Asha R."

    # Email stays as first recorded
    changed = dict(auth_headers, **{"X-User-Email": "new@example.com"})
    assert api.get("/api/profile", headers=changed).json()["email"] == "u1@example.com"


def test_profile_update_validates_name(api, auth_headers):
    response = api.patch("/api/profile", json={"full_name": ""}, headers=auth_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_persist_failure_after_completed_header_marks_record_failed(client, auth_headers, pipeline_parts):
    def override_pipeline(repository: ResumeRepository = Depends(get_resume_repository)):
        async def broken_insert(resume_id, rows):
            raise RuntimeError("matched_jobs insert rejected")

        repository._insert_jobs = broken_insert
        return AnalysisPipeline(repository=repository, **pipeline_parts)

    app.dependency_overrides[get_analysis_pipeline] = override_pipeline
    try:
        response = _upload(client, auth_headers)
    finally:
        app.dependency_overrides.pop(get_analysis_pipeline, None)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    error = response.json()["errors"][0]
    assert error["code"] == "PERSIST_FAILED"
    assert error["details"]["stage"] == "jobs"

    record = client.get(f"/api/resumes/{error['details']['resume_id']}", headers=auth_headers).json()
    assert record["status"] == "failed"
    assert [s["name"] for s in record["skills"]] == ["Go"]
    assert record["matched_jobs"] == []
