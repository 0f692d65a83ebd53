"""Tests for the per-source lookups and their result projections."""

import uuid

from sqlalchemy.dialects import postgresql

from src.models.models import GeneratedFlashcardSet, GeneratedLearningPath, GeneratedSummary, RawContent
from src.modules.search import search_service


def _compile(stmt):
    return stmt.compile(dialect=postgresql.dialect())


class TestProjections:
    def test_raw_content(self):
        content = RawContent(
            id=uuid.uuid4(), title="Apex Basics", content_type="trailhead_module",
            source_url="https://trailhead.salesforce.com/content/learn/modules/apex_database",
            raw_text="x" * 300, content_metadata={"badges": ["Apex"]},
        )
        result = search_service.format_raw_content(content)
        assert result.source == "stored_content"
        assert result.description == "x" * 200
        assert result.url == content.source_url
        assert result.metadata == {"badges": ["Apex"]}
        assert result.match_text == "Apex Basics " + "x" * 300

    def test_learning_path_uses_generated_title(self):
        path = GeneratedLearningPath(
            id=uuid.uuid4(), request_prompt="Become an admin",
            generated_content={"title": "Admin Path", "description": "Six weeks to certification"},
            difficulty_level="Beginner", estimated_duration="6 weeks",
        )
        result = search_service.format_learning_path(path)
        assert result.title == "Admin Path"
        assert result.description == "Six weeks to certification"
        assert result.content_type == "learning_path"
        assert result.match_text == "Become an admin"

    def test_learning_path_fallbacks(self):
        path = GeneratedLearningPath(id=uuid.uuid4(), request_prompt="Become an admin", generated_content={})
        result = search_service.format_learning_path(path)
        assert result.title == "Learning Path"
        assert result.description == "Become an admin"

    def test_flashcard_set(self):
        flashcard_set = GeneratedFlashcardSet(
            id=uuid.uuid4(), topic="Apex Triggers", num_cards=12, certification_focus="Platform Developer I"
        )
        result = search_service.format_flashcard_set(flashcard_set)
        assert result.title == "Apex Triggers Flashcards"
        assert result.description == "12 flashcards for Apex Triggers"
        assert result.num_cards == 12
        assert result.certification_focus == "Platform Developer I"
        assert result.match_text == "Apex Triggers"

    def test_summary_with_original_content(self):
        original = RawContent(
            id=uuid.uuid4(), title="Apex Basics", content_type="trailhead_module",
            source_url="https://trailhead.salesforce.com/apex",
        )
        summary = GeneratedSummary(
            id=uuid.uuid4(), summary_text="s" * 250, summary_type="short",
            key_concepts=["Apex"], original_content=original,
        )
        result = search_service.format_summary(summary)
        assert result.title == "Apex Basics"
        assert result.description == "s" * 200 + "..."
        assert result.source_url == "https://trailhead.salesforce.com/apex"
        assert result.key_concepts == ["Apex"]

    def test_summary_without_original_content(self):
        summary = GeneratedSummary(id=uuid.uuid4(), summary_text="Short summary", summary_type="medium")
        result = search_service.format_summary(summary)
        assert result.title == "Content Summary"
        assert result.description == "Short summary..."
        assert result.source_url is None
        assert result.key_concepts == []


class TestLookups:
    async def test_learning_paths_only_active(self, make_session):
        path = GeneratedLearningPath(
            id=uuid.uuid4(), request_prompt="apex developer", generated_content={"title": "Apex Path"}
        )
        db = make_session(execute_result=path)
        results = await search_service.search_learning_paths(db, "apex", 5)

        assert [result.title for result in results] == ["Apex Path"]
        compiled = _compile(db.statements[0])
        assert "ai_generated_learning_paths.status = " in str(compiled)
        assert "active" in compiled.params.values()

    async def test_stored_content_newest_first(self, make_session):
        db = make_session()
        assert await search_service.search_stored_content(db, "apex", 5) == []
        sql = str(_compile(db.statements[0]))
        assert "ORDER BY raw_content.fetched_at DESC" in sql
        assert "LIMIT" in sql

    async def test_flashcard_sets_match_topic(self, make_session):
        flashcard_set = GeneratedFlashcardSet(id=uuid.uuid4(), topic="Apex", num_cards=3)
        db = make_session(execute_result=flashcard_set)
        results = await search_service.search_flashcard_sets(db, "apex", 5)
        assert results[0].source == "flashcard_sets"
        assert "ai_generated_flashcards.topic ILIKE" in str(_compile(db.statements[0]))

    async def test_summaries_match_text(self, make_session):
        summary = GeneratedSummary(id=uuid.uuid4(), summary_text="Apex governor limits")
        db = make_session(execute_result=summary)
        results = await search_service.search_summaries(db, "apex", 5)
        assert results[0].title == "Content Summary"
        assert "ai_generated_summaries.summary_text ILIKE" in str(_compile(db.statements[0]))

    async def test_wildcards_in_query_are_literal(self, make_session):
        db = make_session()
        await search_service.search_flashcard_sets(db, "100%_done", 5)
        compiled = _compile(db.statements[0])
        assert "ESCAPE" in str(compiled)
        assert "%100\\%\\_done%" in compiled.params.values()


def test_like_pattern_escapes_wildcards():
    assert search_service.like_pattern("apex") == "%apex%"
    assert search_service.like_pattern("50%_off") == "%50\\%\\_off%"
    assert search_service.like_pattern("a\\b") == "%a\\\\b%"
