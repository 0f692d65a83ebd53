"""HTTP tests for /ai/summarize."""

import json
import uuid
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.common.ai.deepseek import DeepSeekError, get_ai_client
from src.common.database.database import get_db_session
from src.events.dispatcher import get_dispatcher
from src.models.models import GeneratedSummary, RawContent
from src.modules.summaries import summary_controller, summary_service

SUMMARY_REPLY = json.dumps({"summary": "Apex runs on the Salesforce platform.", "key_concepts": ["Apex", "Governor limits"]})


@pytest.fixture
def build_client(dispatcher):
    def _build(ai_client, db):
        app = FastAPI()
        app.include_router(summary_controller.router)
        app.dependency_overrides[get_db_session] = lambda: db
        app.dependency_overrides[get_ai_client] = lambda: ai_client
        app.dependency_overrides[get_dispatcher] = lambda: dispatcher
        return TestClient(app)
    return _build


def test_summarize_text(build_client, make_ai_client, db, dispatcher):
    client = build_client(make_ai_client(SUMMARY_REPLY, tokens=1000), db)
    response = client.post("/ai/summarize", json={"text_content": "Apex is ...", "summary_length": "short"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["id"] is not None
    assert body["summary"]["text"] == "Apex runs on the Salesforce platform."
    assert body["summary"]["key_concepts"] == ["Apex", "Governor limits"]
    assert body["summary"]["summary_type"] == "short"
    assert body["summary"]["content_title"] == "User Provided Content"
    assert body["metadata"]["model_used"] == "deepseek-chat"
    assert body["metadata"]["estimated_cost"] == pytest.approx(0.00027)
    assert isinstance(db.added[0], GeneratedSummary)
    assert dispatcher.dispatch.call_args.kwargs["operation_type"] == "summary"


def test_blank_content_returns_400(build_client, make_ai_client, db):
    client = build_client(make_ai_client(), db)
    response = client.post("/ai/summarize", json={"text_content": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "No content provided for summarization"


def test_invalid_length_returns_422(build_client, make_ai_client, db):
    client = build_client(make_ai_client(), db)
    response = client.post("/ai/summarize", json={"text_content": "Apex", "summary_length": "huge"})
    assert response.status_code == 422


def test_long_content_is_truncated(build_client, make_ai_client, db):
    ai_client = make_ai_client(SUMMARY_REPLY)
    client = build_client(ai_client, db)
    response = client.post("/ai/summarize", json={"text_content": "a" * 20000})
    assert response.json()["metadata"]["content_length"] == summary_service.MAX_CONTENT_LENGTH + 3
    assert "a" * 15000 + "..." in ai_client.calls[0]["messages"][1]["content"]


def test_stored_content_is_summarized(build_client, make_ai_client, make_session):
    stored = RawContent(id=uuid.uuid4(), title="Apex Basics", content_type="trailhead_module", raw_text="Apex text")
    db = make_session(execute_result=stored)
    client = build_client(make_ai_client(SUMMARY_REPLY), db)
    response = client.post("/ai/summarize", json={"original_content_id": str(stored.id)})
    assert response.status_code == 200
    assert response.json()["summary"]["content_title"] == "Apex Basics"
    assert db.added[0].original_content_id == stored.id


def test_save_failure_still_returns_summary(build_client, make_ai_client, make_session):
    db = make_session(fail_commit=True)
    client = build_client(make_ai_client(SUMMARY_REPLY), db)
    response = client.post("/ai/summarize", json={"text_content": "Apex"})
    assert response.status_code == 200
    assert response.json()["id"] is None
    assert db.rollbacks == 1


def test_llm_failure_returns_500(build_client, make_ai_client, db, dispatcher):
    client = build_client(make_ai_client(DeepSeekError("down")), db)
    response = client.post("/ai/summarize", json={"text_content": "Apex"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate summary"
    assert dispatcher.dispatch.await_args.kwargs["success"] is False


def test_list_summaries(build_client, make_ai_client, make_session):
    original = RawContent(id=uuid.uuid4(), title="Apex Basics", content_type="trailhead_module")
    summary = GeneratedSummary(
        id=uuid.uuid4(), original_content_id=original.id, original_content=original,
        summary_text="Apex runs on the platform.", summary_type="medium", key_concepts=["Apex"],
        cost_in_tokens=900, ai_model_used="deepseek-chat", created_at=datetime.now(timezone.utc),
    )
    db = make_session(execute_result=summary)
    client = build_client(make_ai_client(), db)
    response = client.get("/ai/summarize", params={"content_id": str(original.id), "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["summaries"][0]["original_content"]["title"] == "Apex Basics"
    assert body["summaries"][0]["key_concepts"] == ["Apex"]
    assert "original_content_id" in str(db.statements[0])
