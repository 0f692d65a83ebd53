# src/search/search_service.py

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from src.common.ai import content_generation
from src.common.ai.deepseek import DeepSeekClient
from src.common.config import settings
from src.events.dispatcher import EventDispatcher
from src.models.models import (
    AIModel, GeneratedFlashcardSet, GeneratedLearningPath, GeneratedSummary,
    LearningPathStatus, RawContent, SearchQueryRecord,
)
from src.modules.analytics.analytics_service import AI_USAGE_EVENT, estimate_cost
from src.modules.search.errors import (
    EnhancementFailed, PersistenceFailed, SearchValidationError, SourceUnavailable,
)
from src.modules.search.ranking import merge_results
from src.modules.search.schemas import (
    FlashcardSetResult, IntelligentSearchRequest, IntelligentSearchResponse,
    LearningPathResult, RawContentResult, SearchMetadata, SearchResultBase,
    SearchSource, SummaryResult,
)

logger = logging.getLogger(__name__)

ENHANCEMENT_FALLBACK = "Search completed, but AI enhancement unavailable."

SourceLookup = Callable[[AsyncSession, str, int], Awaitable[List[SearchResultBase]]]

# --- Projections ---

def format_raw_content(content: RawContent) -> RawContentResult:
    raw_text = content.raw_text or ""
    return RawContentResult(
        id=content.id,
        title=content.title,
        description=raw_text[:200],
        content_type=content.content_type,
        url=content.source_url,
        metadata=content.content_metadata,
        match_text=f"{content.title} {raw_text}",
    )

def format_learning_path(path: GeneratedLearningPath) -> LearningPathResult:
    generated = path.generated_content or {}
    return LearningPathResult(
        id=path.id,
        title=generated.get("title") or "Learning Path",
        description=generated.get("description") or path.request_prompt,
        difficulty_level=path.difficulty_level,
        estimated_duration=path.estimated_duration,
        match_text=path.request_prompt or "",
    )

def format_flashcard_set(flashcard_set: GeneratedFlashcardSet) -> FlashcardSetResult:
    return FlashcardSetResult(
        id=flashcard_set.id,
        title=f"{flashcard_set.topic} Flashcards",
        description=f"{flashcard_set.num_cards} flashcards for {flashcard_set.topic}",
        topic=flashcard_set.topic,
        num_cards=flashcard_set.num_cards or 0,
        certification_focus=flashcard_set.certification_focus,
        match_text=flashcard_set.topic,
    )

def format_summary(summary: GeneratedSummary) -> SummaryResult:
    original = summary.original_content
    return SummaryResult(
        id=summary.id,
        title=original.title if original and original.title else "Content Summary",
        description=summary.summary_text[:200] + "...",
        summary_type=summary.summary_type,
        key_concepts=summary.key_concepts or [],
        source_url=original.source_url if original else None,
        match_text=summary.summary_text,
    )

# --- Per-source lookups ---

def like_pattern(query: str) -> str:
    """Substring ILIKE pattern matching `%` and `_` in the query literally."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"

async def search_stored_content(db: AsyncSession, query: str, cap: int) -> List[SearchResultBase]:
    pattern = like_pattern(query)
    stmt = (
        select(RawContent)
        .where(
            or_(
                RawContent.title.ilike(pattern, escape="\\"),
                RawContent.raw_text.ilike(pattern, escape="\\"),
            )
        )
        .order_by(RawContent.fetched_at.desc())
        .limit(cap)
    )
    result = await db.execute(stmt)
    return [format_raw_content(content) for content in result.scalars().all()]

async def search_learning_paths(db: AsyncSession, query: str, cap: int) -> List[SearchResultBase]:
    pattern = like_pattern(query)
    stmt = (
        select(GeneratedLearningPath)
        .where(
            or_(
                GeneratedLearningPath.request_prompt.ilike(pattern, escape="\\"),
                GeneratedLearningPath.generated_content["title"].astext.ilike(pattern, escape="\\"),
            ),
            GeneratedLearningPath.status == LearningPathStatus.ACTIVE.value,
        )
        .limit(cap)
    )
    result = await db.execute(stmt)
    return [format_learning_path(path) for path in result.scalars().all()]

async def search_flashcard_sets(db: AsyncSession, query: str, cap: int) -> List[SearchResultBase]:
    stmt = (
        select(GeneratedFlashcardSet)
        .where(GeneratedFlashcardSet.topic.ilike(like_pattern(query), escape="\\"))
        .limit(cap)
    )
    result = await db.execute(stmt)
    return [format_flashcard_set(flashcard_set) for flashcard_set in result.scalars().all()]

async def search_summaries(db: AsyncSession, query: str, cap: int) -> List[SearchResultBase]:
    stmt = (
        select(GeneratedSummary)
        .options(selectinload(GeneratedSummary.original_content))
        .where(GeneratedSummary.summary_text.ilike(like_pattern(query), escape="\\"))
        .limit(cap)
    )
    result = await db.execute(stmt)
    return [format_summary(summary) for summary in result.scalars().all()]

# Iteration order is the merge order.
SEARCH_SOURCES: Dict[SearchSource, SourceLookup] = {
    SearchSource.STORED_CONTENT: search_stored_content,
    SearchSource.LEARNING_PATHS: search_learning_paths,
    SearchSource.FLASHCARD_SETS: search_flashcard_sets,
    SearchSource.SUMMARIES: search_summaries,
}

# --- Fan-out ---

async def _run_lookup(
    source: SearchSource,
    lookup: SourceLookup,
    query: str,
    cap: int,
    session_factory: async_sessionmaker,
    semaphore: asyncio.Semaphore,
    timeout: float,
) -> List[SearchResultBase]:
    async def _query() -> List[SearchResultBase]:
        async with session_factory() as session:
            return await lookup(session, query, cap)

    async with semaphore:
        try:
            return (await asyncio.wait_for(_query(), timeout))[:cap]
        except Exception as e:
            logger.error(str(SourceUnavailable(source.value, e)))
            return []

async def fan_out(
    query: str,
    session_factory: async_sessionmaker,
    sources: Dict[SearchSource, SourceLookup],
    cap: int = settings.SEARCH_SOURCE_CAP,
    timeout: float = settings.SEARCH_SOURCE_TIMEOUT_SECONDS,
    concurrency: int = settings.SEARCH_FANOUT_CONCURRENCY,
) -> List[Tuple[str, List[SearchResultBase]]]:
    """
    Query every source concurrently, each in its own session.
    A failing or slow source yields an empty list instead of failing the search.
    Returns (source, hits) pairs in the order of `sources`.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    ordered = list(sources.items())
    hits = await asyncio.gather(*[
        _run_lookup(source, lookup, query, cap, session_factory, semaphore, timeout)
        for source, lookup in ordered
    ])
    return [(source.value, source_hits) for (source, _), source_hits in zip(ordered, hits)]

# --- AI enhancement ---

@dataclass
class EnhancementOutcome:
    enhanced_response: str
    recommendations: List[str] = field(default_factory=list)
    tokens: int = 0
    degraded: bool = False

async def enhance_results(
    ai_client: DeepSeekClient,
    query: str,
    results: Sequence[SearchResultBase],
    user_context: Optional[str] = None,
    max_retries: int = settings.AI_ENHANCEMENT_MAX_RETRIES,
) -> EnhancementOutcome:
    """
    Ask the LLM to synthesize the merged results. Never raises: on any failure the
    outcome carries the fallback sentence and no recommendations.
    """
    payload = [result.model_dump(mode="json") for result in results]
    attempts = 1 + max(0, min(max_retries, 1))
    tokens = 0

    for attempt in range(1, attempts + 1):
        try:
            enhancement = await content_generation.enhance_search_results(
                ai_client, query, payload, user_context
            )
            return EnhancementOutcome(
                enhanced_response=enhancement["enhanced_response"],
                recommendations=enhancement["recommendations"],
                tokens=tokens + enhancement["tokens"],
            )
        except Exception as e:
            tokens += getattr(e, "tokens", 0)
            logger.error(f"{EnhancementFailed(str(e))!r} (attempt {attempt}/{attempts})")

    return EnhancementOutcome(enhanced_response=ENHANCEMENT_FALLBACK, tokens=tokens, degraded=True)

# --- Related topics & suggestions ---

def generate_related_topics(query: str, results: Sequence[SearchResultBase]) -> List[str]:
    topics: Dict[str, None] = {}

    for result in results:
        if isinstance(result, FlashcardSetResult):
            topics[result.topic] = None
        elif isinstance(result, RawContentResult):
            metadata = result.metadata or {}
            if result.content_type == "trailhead_module":
                for badge in metadata.get("badges") or []:
                    topics[badge] = None
            if metadata.get("category"):
                topics[metadata["category"]] = None

    query_lower = query.lower()
    if "admin" in query_lower:
        topics.update(dict.fromkeys(["User Management", "Security", "Reports and Dashboards"]))
    if "developer" in query_lower or "apex" in query_lower:
        topics.update(dict.fromkeys(["Lightning Web Components", "Visualforce", "Integration"]))
    if "sales" in query_lower:
        topics.update(dict.fromkeys(["Opportunities", "Leads", "Campaigns"]))

    return list(topics)[:8]

def generate_learning_suggestions(query: str, results: Sequence[SearchResultBase]) -> List[str]:
    suggestions = []

    if results:
        suggestions.append("Create a personalized learning path based on these results")
        suggestions.append("Generate flashcards from the most relevant content")
        suggestions.append("Get AI-powered summaries of key resources")

    query_lower = query.lower()
    if "certification" in query_lower or "exam" in query_lower:
        suggestions.append("Focus on hands-on practice with Trailhead Playgrounds")
        suggestions.append("Take practice exams to assess your readiness")
    if "beginner" in query_lower or "basic" in query_lower:
        suggestions.append("Start with Trailhead fundamentals modules")
        suggestions.append("Join the Trailblazer Community for support")

    suggestions.append("Bookmark important resources for future reference")
    suggestions.append("Set up a study schedule with spaced repetition")

    return suggestions[:6]

# --- Search log ---

async def log_search(session_factory: async_sessionmaker, record_data: dict) -> Optional[uuid.UUID]:
    """
    Append the SearchQueryRecord for one search in its own session.
    Returns the record id, or None when the row could not be written.
    """
    record = SearchQueryRecord(id=uuid.uuid4(), **record_data)
    try:
        async with session_factory() as db:
            db.add(record)
            await db.commit()
    except Exception as e:
        logger.error(str(PersistenceFailed(f"Could not save search '{record_data.get('query_text')}': {e}")))
        return None
    return record.id

async def get_search_history(
    db: AsyncSession,
    user_id: Optional[str] = None,
    limit: int = 10,
) -> List[SearchQueryRecord]:
    stmt = select(SearchQueryRecord).order_by(SearchQueryRecord.created_at.desc()).limit(limit)
    if user_id:
        stmt = stmt.where(SearchQueryRecord.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().all()

# --- Pipeline ---

async def intelligent_search(
    request: IntelligentSearchRequest,
    session_factory: async_sessionmaker,
    ai_client: DeepSeekClient,
    dispatcher: EventDispatcher,
    background_tasks: BackgroundTasks,
    sources: Optional[Dict[SearchSource, SourceLookup]] = None,
) -> IntelligentSearchResponse:
    """
    Fan out over the content collections, rank and merge the hits, optionally
    enhance them with AI, write the search log and schedule usage analytics.

    Raises SearchValidationError for a blank query; every other failure degrades.
    """
    query = request.query.strip()
    if not query:
        raise SearchValidationError("Search query is required")

    logger.info(f"Intelligent search for: {query}")

    sources = sources if sources is not None else SEARCH_SOURCES
    if request.content_types:
        sources = {source: lookup for source, lookup in sources.items() if source in request.content_types}

    per_source = await fan_out(query, session_factory, sources)
    results = merge_results(query, per_source, request.limit)

    enhanced_response = None
    recommendations: List[str] = []
    tokens = 0
    if request.enhance_with_ai and results:
        outcome = await enhance_results(ai_client, query, results, request.user_context)
        enhanced_response = outcome.enhanced_response
        recommendations = outcome.recommendations
        tokens = outcome.tokens

    user_id = str(request.user_id) if request.user_id else None
    search_id = await log_search(
        session_factory,
        {
            "user_id": request.user_id,
            "query_text": query,
            "search_type": request.search_type,
            "results_found": len(results),
            "top_results": [
                {"id": str(r.id), "title": r.title, "relevance_score": r.relevance_score}
                for r in results[:5]
            ],
            "ai_enhanced_response": enhanced_response,
            "cost_in_tokens": tokens,
        },
    )

    if request.enhance_with_ai and tokens > 0:
        background_tasks.add_task(
            dispatcher.dispatch,
            AI_USAGE_EVENT,
            operation_type="search",
            ai_model_used=AIModel.CHAT.value,
            tokens_consumed=tokens,
            success=True,
            user_id=user_id,
        )

    return IntelligentSearchResponse(
        id=search_id,
        query=query,
        results=[result.model_dump() for result in results],
        total_results=len(results),
        ai_enhanced_response=enhanced_response,
        recommendations=recommendations,
        related_topics=generate_related_topics(query, results),
        learning_suggestions=generate_learning_suggestions(query, results),
        metadata=SearchMetadata(
            searched_at=datetime.now(timezone.utc),
            search_type=request.search_type,
            tokens_used=tokens,
            estimated_cost=estimate_cost(tokens, AIModel.CHAT.value) if request.enhance_with_ai else 0.0,
            content_sources=list(dict.fromkeys(r.content_type for r in results)),
        ),
    )
