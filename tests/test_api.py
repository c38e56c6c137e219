"""
Tests for the HTTP layer, with the provider replaced by the scripted fake.
"""

from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

from talentrank.api import ServiceContainer, create_app
from talentrank.core.exceptions import AuthenticationError
from talentrank.services.document_store import InMemoryDocumentStore

JOB_DESCRIPTION = (
    "We are looking for a senior Python developer with 5 years of experience in Django and AWS"
)


@pytest.fixture
def store():
    return InMemoryDocumentStore(
        [
            {
                "id": "1",
                "user_id": "user-1",
                "filename": "jane.pdf",
                "content": "Senior Python developer, Django, AWS, PostgreSQL",
                "embedding": [1.0, 0.0, 0.0],
            },
            {
                "id": "2",
                "user_id": "user-1",
                "filename": "john.docx",
                "content": "Graphic designer, Figma, branding",
                "embedding": [0.0, 1.0, 0.0],
            },
        ]
    )


@pytest.fixture
def make_client(make_settings, store, fake_client, recording_sleep, clock):
    with ExitStack() as stack:

        def _make(overrides=None):
            base = {"provider": {"embedding_dimensions": 3}}
            for section, values in (overrides or {}).items():
                base.setdefault(section, {}).update(values)
            container = ServiceContainer.from_settings(
                make_settings(base),
                documents=store,
                client=fake_client,
                sleep=recording_sleep,
                clock=clock,
            )
            return stack.enter_context(TestClient(create_app(container)))

        yield _make


def test_root(make_client):
    response = make_client().get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "TalentRank API is running"


class TestHealth:
    def test_reports_provider_cache_and_system(self, make_client):
        body = make_client().get("/api/health").json()

        assert body["services"]["provider"]["status"] == "unknown"
        assert body["services"]["embedding_cache"]["name"] == "embeddings"
        assert "process_memory_mb" in body["system"]
        assert body["version"]

    def test_active_check_marks_unhealthy_provider_as_degraded(self, make_client, fake_client):
        fake_client.healthy = False

        body = make_client().get("/api/health", params={"probe": "true"}).json()

        assert body["services"]["provider"]["status"] == "unhealthy"
        assert body["status"] == "degraded"


class TestMatching:
    def test_hybrid_match(self, make_client):
        response = make_client().post(
            "/api/resumes/match",
            json={"scope_key": "user-1", "query": "python django developer", "limit": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "hybrid"
        assert body["is_degraded"] is False
        assert body["requested_count"] == 1
        assert [m["filename"] for m in body["matches"]] == ["jane.pdf"]

    def test_provider_failure_degrades_to_lexical(self, make_client, fake_client):
        fake_client.embed_script = [AuthenticationError("bad token", status=401)]

        body = make_client().post(
            "/api/resumes/match", json={"scope_key": "user-1", "query": "python django developer"}
        ).json()

        assert body["mode"] == "lexical"
        assert body["is_degraded"] is True
        assert body["degraded_reason"] == "provider_failed"
        assert [m["filename"] for m in body["matches"]] == ["jane.pdf"]

    def test_missing_query_is_a_validation_error(self, make_client):
        response = make_client().post("/api/resumes/match", json={"scope_key": "user-1"})

        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "validation_error"
        assert body["details"][0]["field"] == "query"

    def test_rate_limited_scope_gets_429(self, make_client):
        client = make_client({"rate_limits": {"api_requests": {"max_requests": 2, "window_seconds": 60}}})
        payload = {"scope_key": "user-1", "query": "python"}

        assert client.post("/api/resumes/match", json=payload).status_code == 200
        assert client.post("/api/resumes/match", json=payload).status_code == 200
        refused = client.post("/api/resumes/match", json=payload)

        assert refused.status_code == 429
        assert refused.headers["Retry-After"] == "60"
        assert refused.json()["error_type"] == "rate_limit_error"

        other = client.post("/api/resumes/match", json={"scope_key": "user-2", "query": "python"})
        assert other.status_code == 200


class TestEmbeddings:
    def test_embedding(self, make_client, fake_client):
        client = make_client()

        first = client.post("/api/embeddings", json={"text": "python developer"}).json()
        second = client.post("/api/embeddings", json={"text": "python developer"}).json()

        assert first["dimensions"] == 3
        assert first["embedding"] == [1.0, 0.0, 0.0]
        assert first["cached"] is False
        assert second["cached"] is True
        assert len(fake_client.embed_calls) == 1

    def test_blank_text_is_a_validation_error(self, make_client):
        response = make_client().post("/api/embeddings", json={"text": "   "})

        assert response.status_code == 422
        assert response.json()["details"][0]["reason"] == "empty_input"

    def test_provider_failure_is_503(self, make_client, fake_client):
        fake_client.embed_script = [AuthenticationError("bad token", status=401)]

        response = make_client().post("/api/embeddings", json={"text": "python developer"})

        assert response.status_code == 503
        body = response.json()
        assert body["error_type"] == "external_service_error"
        assert body["context"]["reason"] == "provider_failed"
        assert body["code"] == "ProviderUnavailableError"
        assert body["error_id"]


class TestChat:
    def test_small_talk_skips_ranking(self, make_client, fake_client):
        fake_client.complete_script = ["Hi! Send me a job description."]

        body = make_client().post("/api/chat", json={"scope_key": "user-1", "message": "hello"}).json()

        assert body["reply"] == "Hi! Send me a job description."
        assert body["show_matches"] is False
        assert body["matches"] == []
        assert fake_client.embed_calls == []

    def test_job_description_is_ranked_and_analyzed(self, make_client, fake_client):
        fake_client.complete_script = ["## Analysis"]

        body = make_client().post(
            "/api/chat", json={"scope_key": "user-1", "message": JOB_DESCRIPTION}
        ).json()

        assert body["show_matches"] is True
        assert body["mode"] == "hybrid"
        assert body["reply"] == "## Analysis"
        assert body["matches"][0]["filename"] == "jane.pdf"

    def test_history_with_matches_is_accepted(self, make_client, fake_client):
        history = [
            {"role": "user", "content": JOB_DESCRIPTION},
            {
                "role": "assistant",
                "content": "Jane is the strongest match.",
                "matches": [
                    {
                        "document_id": "1",
                        "filename": "jane.pdf",
                        "similarity": 0.9,
                        "content": "Senior Python developer",
                    }
                ],
            },
        ]

        response = make_client().post(
            "/api/chat",
            json={"scope_key": "user-1", "message": "What is Jane's strongest skill?", "history": history},
        )

        assert response.status_code == 200
        sent = fake_client.complete_calls[0]["messages"]
        assert "[Previous resume analysis context:" in sent[2]["content"]
