from __future__ import annotations

from fastapi.testclient import TestClient

from tutor.dependencies import get_analytics_recorder, get_rag_service
from tutor.main import app
from tutor.models.schemas import AnswerResult, CourseQuestionStats, Source
from tutor.services.errors import ConfigurationError, QuestionValidationError, UpstreamProviderError


class StubRAGService:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple] = []

    async def answer_question(self, question, course_id=None) -> AnswerResult:
        self.calls.append((question, course_id))
        if self.error is not None:
            raise self.error
        return AnswerResult(
            answer="A BST keeps keys ordered [1].",
            sources=[Source(index=1, preview="Binary search trees...", page=4, similarity=0.91)],
            cached=False,
        )


class StubAnalytics:
    async def summarize(self, days=30, course_id=None):
        return [CourseQuestionStats(course_id="CS201", questions=3, avg_sources_used=2.0)]


def make_client(service: StubRAGService) -> TestClient:
    app.dependency_overrides[get_rag_service] = lambda: service
    app.dependency_overrides[get_analytics_recorder] = lambda: StubAnalytics()
    return TestClient(app)


def teardown_function() -> None:
    app.dependency_overrides.clear()


def test_ask_returns_answer_sources_and_cached_flag() -> None:
    service = StubRAGService()
    client = make_client(service)

    response = client.post("/chat/ask", json={"question": "What is a BST?", "courseId": "CS201"})

    assert response.status_code == 200, response.text
    assert response.json() == {
        "answer": "A BST keeps keys ordered [1].",
        "sources": [{"index": 1, "preview": "Binary search trees...", "page": 4, "similarity": 0.91}],
        "cached": False,
    }
    assert service.calls == [("What is a BST?", "CS201")]


def test_ask_accepts_snake_case_course_id() -> None:
    service = StubRAGService()
    client = make_client(service)

    client.post("/chat/ask", json={"question": "Q?", "course_id": "MA101"})

    assert service.calls == [("Q?", "MA101")]


def test_validation_error_maps_to_400() -> None:
    client = make_client(StubRAGService(error=QuestionValidationError("Question is required.")))

    response = client.post("/chat/ask", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Question is required."


def test_configuration_error_surfaces_provider_message() -> None:
    client = make_client(StubRAGService(error=ConfigurationError("Gemini")))

    response = client.post("/chat/ask", json={"question": "Q?"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Gemini API key not configured"


def test_upstream_and_unexpected_errors_are_generic() -> None:
    client = make_client(StubRAGService(error=UpstreamProviderError("generate")))
    response = client.post("/chat/ask", json={"question": "Q?"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate answer"

    client = make_client(StubRAGService(error=KeyError("secret internal detail")))
    response = client.post("/chat/ask", json={"question": "Q?"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate answer"


def test_ping_and_reports() -> None:
    client = make_client(StubRAGService())

    assert client.get("/chat/ping").json() == {"status": "chat-router-ready"}

    report = client.get("/reports/questions", params={"days": 7})
    assert report.status_code == 200
    assert report.json()["total_questions"] == 3
    assert report.json()["results"][0]["course_id"] == "CS201"


def test_ask_without_pipeline_reports_misconfiguration() -> None:
    app.dependency_overrides.clear()
    client = TestClient(app)

    response = client.post("/chat/ask", json={"question": "Q?"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Answer pipeline is not configured"


def test_health_reports_uninitialized_runtime() -> None:
    client = TestClient(app)

    payload = client.get("/health").json()

    assert payload["status"] == "ok"
    assert payload["cache_backend"] == "disabled"
    assert payload["queue_backend"] == "uninitialized"
    assert payload["queue_pending_jobs"] == 0
