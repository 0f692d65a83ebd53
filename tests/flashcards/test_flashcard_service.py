"""Tests for flashcard generation."""

import json
import uuid

import pytest
from fastapi import BackgroundTasks, HTTPException

from src.common.ai.deepseek import DeepSeekError
from src.models.models import RawContent
from src.modules.flashcards import flashcard_service
from src.modules.flashcards.schemas import FlashcardGenerateRequest

CARDS = [
    {"question": "Q1", "answer": "A1", "difficulty": "Easy", "tags": ["apex"]},
    {"question": "Q2", "answer": "A2", "difficulty": "Medium", "tags": ["hands-on"]},
    {"question": "Q3", "answer": "A3", "difficulty": "Hard", "tags": []},
    {"question": "Q4", "answer": "A4", "difficulty": "Medium", "tags": []},
]


class TestFilterByDifficulty:
    def test_mixed_keeps_everything(self):
        assert flashcard_service.filter_by_difficulty(CARDS, "mixed", 4) == CARDS

    def test_enough_matches(self):
        filtered = flashcard_service.filter_by_difficulty(CARDS, "medium", 4)
        assert [card["question"] for card in filtered] == ["Q2", "Q4"]

    def test_tops_up_when_too_few_match(self):
        filtered = flashcard_service.filter_by_difficulty(CARDS, "hard", 4)
        assert [card["question"] for card in filtered] == ["Q3", "Q1", "Q2", "Q4"]


def test_difficulty_breakdown():
    assert flashcard_service.get_difficulty_breakdown(CARDS) == {"Easy": 1, "Medium": 2, "Hard": 1}


def test_study_recommendations():
    recommendations = flashcard_service.generate_study_recommendations(CARDS, "Platform Developer I")
    assert "Align your study with Platform Developer I certification exam objectives" in recommendations
    assert 'Spend extra time on the "Hard" difficulty cards' in recommendations
    assert "Practice these concepts in a Salesforce org or trailhead playground" in recommendations


class TestGenerateFlashcardSet:
    async def test_blank_topic_is_rejected(self, db, make_ai_client, dispatcher):
        request = FlashcardGenerateRequest(topic=" ", text_content="Apex")
        with pytest.raises(HTTPException) as exc_info:
            await flashcard_service.generate_flashcard_set(request, db, make_ai_client(), dispatcher, BackgroundTasks())
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("num_flashcards", [0, 51])
    async def test_card_count_out_of_range(self, db, make_ai_client, dispatcher, num_flashcards):
        request = FlashcardGenerateRequest(topic="Apex", text_content="Apex", num_flashcards=num_flashcards)
        with pytest.raises(HTTPException) as exc_info:
            await flashcard_service.generate_flashcard_set(request, db, make_ai_client(), dispatcher, BackgroundTasks())
        assert exc_info.value.status_code == 400

    async def test_blank_content_is_rejected(self, db, make_ai_client, dispatcher):
        request = FlashcardGenerateRequest(topic="Apex", text_content="")
        with pytest.raises(HTTPException) as exc_info:
            await flashcard_service.generate_flashcard_set(request, db, make_ai_client(), dispatcher, BackgroundTasks())
        assert exc_info.value.detail == "No content provided for flashcard generation"

    async def test_missing_source_content_is_404(self, db, make_ai_client, dispatcher):
        request = FlashcardGenerateRequest(topic="Apex", source_content_id=uuid.uuid4())
        with pytest.raises(HTTPException) as exc_info:
            await flashcard_service.generate_flashcard_set(request, db, make_ai_client(), dispatcher, BackgroundTasks())
        assert exc_info.value.status_code == 404

    async def test_uses_stored_content(self, make_session, make_ai_client, dispatcher):
        stored = RawContent(id=uuid.uuid4(), title="Apex Basics", content_type="trailhead_module", raw_text="Apex text")
        db = make_session(execute_result=stored)
        client = make_ai_client(json.dumps({"flashcards": CARDS}))
        request = FlashcardGenerateRequest(topic="Apex", source_content_id=stored.id)
        generated = await flashcard_service.generate_flashcard_set(
            request, db, client, dispatcher, BackgroundTasks()
        )
        assert generated["content_title"] == "Apex Basics"
        assert "Apex text" in client.calls[0]["messages"][1]["content"]

    async def test_success_saves_set_and_schedules_usage(self, db, make_ai_client, dispatcher):
        background_tasks = BackgroundTasks()
        client = make_ai_client(json.dumps({"flashcards": CARDS}), tokens=500)
        request = FlashcardGenerateRequest(topic="Apex", text_content="x" * 13000, num_flashcards=4)
        generated = await flashcard_service.generate_flashcard_set(request, db, client, dispatcher, background_tasks)

        assert generated["id"] is not None
        assert generated["content_length"] == flashcard_service.MAX_CONTENT_LENGTH + 3
        assert db.added[0].num_cards == 4
        assert db.added[0].cost_in_tokens == 500
        assert background_tasks.tasks[0].kwargs["operation_type"] == "flashcards"
        assert background_tasks.tasks[0].kwargs["tokens_consumed"] == 500

    async def test_save_failure_still_returns_cards(self, make_session, make_ai_client, dispatcher):
        db = make_session(fail_commit=True)
        client = make_ai_client(json.dumps({"flashcards": CARDS}))
        request = FlashcardGenerateRequest(topic="Apex", text_content="Apex", num_flashcards=4)
        generated = await flashcard_service.generate_flashcard_set(request, db, client, dispatcher, BackgroundTasks())
        assert generated["id"] is None
        assert len(generated["flashcards"]) == 4
        assert db.rollbacks == 1

    async def test_llm_failure_records_usage_and_returns_500(self, db, make_ai_client, dispatcher):
        request = FlashcardGenerateRequest(topic="Apex", text_content="Apex")
        with pytest.raises(HTTPException) as exc_info:
            await flashcard_service.generate_flashcard_set(
                request, db, make_ai_client(DeepSeekError("down")), dispatcher, BackgroundTasks()
            )
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to generate flashcards"
        kwargs = dispatcher.dispatch.await_args.kwargs
        assert kwargs["success"] is False
        assert kwargs["operation_type"] == "flashcards"
