"""
HTTP-level tests: every route runs against in-memory storage with the
offline text-generation fallbacks and stubbed blob/identity services.
"""
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_blob_store, get_identity_provider, get_llm_service, get_storage
from app.api.v1 import auth
from app.core.config import Settings, get_settings
from app.main import app
from app.schemas.requests import SignupRequest


@pytest.fixture
def client(storage, blob_store, identity_provider):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_llm_service] = lambda: None
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client, user_id, content, media_type="application/pdf", file_name="jane.pdf"):
    return client.post(
        "/api/v1/resumes",
        files={"resume": (file_name, content, media_type)},
        data={"userId": str(user_id)},
    )


def create_job_spec(client, user_id, **overrides):
    payload = {
        "userId": user_id,
        "title": "Backend Engineer",
        "description": "Build and operate APIs.",
        "requiredSkills": ["Go", "SQL"],
        **overrides,
    }
    return client.post("/api/v1/job-specs", json=payload)


def test_health_reports_offline_services(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "llm": "offline", "supabase": "not configured"}


def test_health_reads_injected_settings(client):
    app.dependency_overrides[get_settings] = lambda: Settings(GROQ_API_KEY="gsk_test_key")

    assert client.get("/api/v1/health").json()["llm"] == "configured"


def test_correlation_id_is_echoed(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-123"})

    assert response.headers["X-Correlation-ID"] == "req-123"
    assert client.get("/api/v1/health").headers["X-Correlation-ID"]


def test_upload_to_download_flow(client, user, two_page_pdf):
    uploaded = upload(client, user.id, two_page_pdf)
    assert uploaded.status_code == 201
    resume = uploaded.json()
    assert resume["parsed"] is True
    assert "## Contact Information" in resume["parsedContent"]
    assert resume["userId"] == user.id
    assert resume["fileName"] == "jane.pdf"
    assert "fileKey" not in resume and "profile" not in resume

    assert client.get(f"/api/v1/resumes/{resume['id']}").json() == resume
    assert client.get(f"/api/v1/resumes/user/{user.id}").json() == [resume]

    job = create_job_spec(client, user.id, responsibilities=["Own the billing service"])
    assert job.status_code == 201
    job_id = job.json()["id"]
    assert client.get(f"/api/v1/job-specs/{job_id}").json()["requiredSkills"] == ["Go", "SQL"]
    assert len(client.get(f"/api/v1/job-specs/user/{user.id}").json()) == 1

    generated = client.post(
        "/api/v1/generate-questions",
        json={"userId": user.id, "resumeId": resume["id"], "jobSpecId": job_id},
    )
    assert generated.status_code == 201
    question_set = generated.json()
    assert question_set["resumeId"] == resume["id"]
    assert question_set["jobSpecId"] == job_id
    assert {q["type"] for q in question_set["questions"]} >= {"Technical", "Behavioral"}

    listed = client.get(f"/api/v1/interview-questions/user/{user.id}").json()
    assert [item["id"] for item in listed] == [question_set["id"]]
    assert client.get(f"/api/v1/interview-questions/{question_set['id']}").json() == question_set

    download = client.get(f"/api/v1/interview-questions/{question_set['id']}/download")
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("text/plain")
    assert "attachment" in download.headers["content-disposition"]
    assert "Position:     Backend Engineer" in download.text
    assert f"1. [Technical] {question_set['questions'][0]['question']}" in download.text


def test_unparseable_upload_is_stored_then_generation_refused(client, user):
    uploaded = upload(client, user.id, b"%PDF-1.4\nthis is not really a pdf document")
    assert uploaded.status_code == 201
    resume = uploaded.json()
    assert resume["parsed"] is False
    assert resume["parsedContent"] is None

    job_id = create_job_spec(client, user.id).json()["id"]
    response = client.post(
        "/api/v1/generate-questions",
        json={"userId": user.id, "resumeId": resume["id"], "jobSpecId": job_id},
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "precondition_failed"
    assert client.get(f"/api/v1/interview-questions/user/{user.id}").json() == []


def test_encrypted_upload_is_stored_unparsed(client, user, encrypted_pdf, blob_store):
    uploaded = upload(client, user.id, encrypted_pdf)

    assert uploaded.status_code == 201
    assert uploaded.json()["parsed"] is False
    assert list(blob_store.blobs.values()) == [encrypted_pdf]


def test_oversized_upload_is_read_only_up_to_the_limit(client, user, blob_store):
    app.dependency_overrides[get_settings] = lambda: Settings(MAX_FILE_SIZE_MB=1)

    response = upload(client, user.id, b"%PDF-1.4\n" + b"0" * (3 * 1024 * 1024))

    assert response.status_code == 400
    assert response.json()["details"] == {"size_bytes": 1024 * 1024 + 1, "max_bytes": 1024 * 1024}
    assert blob_store.blobs == {}


def test_reparse_endpoint_returns_resume(client, parsed_resume):
    response = client.post(f"/api/v1/resumes/{parsed_resume.id}/parse")

    assert response.status_code == 200
    assert response.json()["parsed"] is True


def test_non_pdf_upload_is_rejected(client, user):
    response = upload(client, user.id, b"plain text resume", media_type="text/plain", file_name="cv.txt")

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


@pytest.mark.parametrize("path", [
    "/api/v1/resumes/9999",
    "/api/v1/job-specs/9999",
    "/api/v1/interview-questions/9999",
    "/api/v1/interview-questions/9999/download",
    "/api/v1/subscriptions/user/9999",
])
def test_missing_entities_return_not_found(client, path):
    response = client.get(path)

    assert response.status_code == 404
    body = response.json()
    assert body["kind"] == "not_found"
    assert body["message"]


def test_generation_for_other_users_resume_is_not_found(client, user, other_user, parsed_resume, job_spec):
    response = client.post(
        "/api/v1/generate-questions",
        json={"userId": other_user.id, "resumeId": parsed_resume.id, "jobSpecId": job_spec.id},
    )

    assert response.status_code == 404


def test_malformed_request_body_is_validation_error(client):
    response = client.post("/api/v1/generate-questions", json={"userId": 1})

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "validation_error"
    assert body["details"]["errors"]


def test_job_spec_for_unknown_user_is_not_found(client):
    assert create_job_spec(client, 9999).status_code == 404


def test_update_plan_creates_then_updates_subscription(client, user):
    response = client.post("/api/v1/update-plan", json={"userId": user.id, "plan": "Professional"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "plan": "professional"}

    subscription = client.get(f"/api/v1/subscriptions/user/{user.id}").json()
    assert subscription["plan"] == "professional"
    assert subscription["status"] == "active"
    assert subscription["currentPeriodEnd"] > subscription["currentPeriodStart"]

    client.post("/api/v1/update-plan", json={"userId": user.id, "plan": "basic"})
    updated = client.get(f"/api/v1/subscriptions/user/{user.id}").json()
    assert updated["id"] == subscription["id"]
    assert updated["plan"] == "basic"


def test_update_plan_rejects_unknown_plan(client, user):
    response = client.post("/api/v1/update-plan", json={"userId": user.id, "plan": "platinum"})

    assert response.status_code == 400
    assert response.json()["details"]["supported"] == ["free", "basic", "professional", "enterprise"]


def test_signup_login_and_current_user(client):
    signup = client.post(
        "/api/v1/auth/signup",
        json={"email": "sam@hireprompt.io", "password": "secret1", "fullName": "Sam Lee"},
    )
    assert signup.status_code == 201
    user = signup.json()
    assert user["username"] == "sam"
    assert user["plan"] == "free"
    assert "externalId" not in user

    duplicate = client.post("/api/v1/auth/signup", json={"email": "sam@hireprompt.io", "password": "secret1"})
    assert duplicate.status_code == 400

    login = client.post("/api/v1/auth/login", json={"email": "sam@hireprompt.io", "password": "secret1"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["id"] == user["id"]
    token = body["session"]["accessToken"]

    me = client.get("/api/v1/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "sam@hireprompt.io"


def test_bad_credentials_and_missing_token_are_rejected(client):
    client.post("/api/v1/auth/signup", json={"email": "sam@hireprompt.io", "password": "secret1"})

    login = client.post("/api/v1/auth/login", json={"email": "sam@hireprompt.io", "password": "wrong-one"})
    assert login.status_code == 401
    assert login.json()["kind"] == "authentication_error"

    assert client.get("/api/v1/auth/user").status_code == 401
    assert client.get("/api/v1/auth/user", headers={"Authorization": "Bearer nope"}).status_code == 401


async def test_signup_storage_calls_leave_event_loop_free(storage, identity_provider, slow_storage, loop_stall):
    slow_storage("get_user_by_email", "get_user_by_username", "create_user")
    payload = SignupRequest(email="sam@hireprompt.io", password="secret1")

    user, longest_gap = await loop_stall(auth.signup(payload, storage, identity_provider))

    assert user.username == "sam"
    assert longest_gap < 0.2
