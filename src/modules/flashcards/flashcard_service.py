# src/flashcards/flashcard_service.py

import logging
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from src.common.ai import content_generation
from src.common.ai.deepseek import DeepSeekClient, DeepSeekError
from src.common.utils.global_functions import truncate_content
from src.events.dispatcher import EventDispatcher
from src.models.models import AIModel, GeneratedFlashcardSet, RawContent
from src.modules.analytics.analytics_service import record_failure, schedule_usage
from src.modules.flashcards.schemas import FlashcardGenerateRequest

logger = logging.getLogger(__name__)

MODEL = AIModel.REASONER.value
MAX_CONTENT_LENGTH = 12000  # roughly 3000 tokens
MAX_FLASHCARDS = 50

def filter_by_difficulty(flashcards: List[dict], preference: str, num_cards: int) -> List[dict]:
    """
    Keep cards of the preferred difficulty. When too few match, top up with
    cards of other difficulties so the set stays usable.
    """
    if preference == "mixed":
        return flashcards

    target = preference.lower()
    filtered = [card for card in flashcards if str(card.get("difficulty", "")).lower() == target]

    if len(filtered) < min(num_cards / 2, 5):
        remaining = [
            card for card in flashcards if str(card.get("difficulty", "")).lower() != target
        ][:num_cards - len(filtered)]
        filtered = filtered + remaining

    return filtered

def generate_study_recommendations(flashcards: List[dict], certification: Optional[str] = None) -> List[str]:
    recommendations = [
        "Review each flashcard multiple times with spaced repetition",
        "Focus on understanding concepts, not just memorizing answers",
        "Practice explaining answers in your own words",
    ]

    if certification:
        recommendations.append(f"Align your study with {certification} certification exam objectives")
        recommendations.append("Take practice exams after mastering these flashcards")

    if any(card.get("difficulty") == "Hard" for card in flashcards):
        recommendations.append('Spend extra time on the "Hard" difficulty cards')
        recommendations.append("Create additional examples for complex concepts")

    if any({"hands-on", "practical"} & set(card.get("tags") or []) for card in flashcards):
        recommendations.append("Practice these concepts in a Salesforce org or trailhead playground")

    return recommendations

def get_difficulty_breakdown(flashcards: List[dict]) -> Dict[str, int]:
    breakdown = {"Easy": 0, "Medium": 0, "Hard": 0}
    for card in flashcards:
        if card.get("difficulty") in breakdown:
            breakdown[card["difficulty"]] += 1
    return breakdown

async def resolve_content(
    request: FlashcardGenerateRequest,
    db: AsyncSession
) -> Tuple[str, str]:
    """
    Return (content, content title) from the request text or the stored raw content.
    """
    content = request.text_content or ""
    title = "User Provided Content"

    if request.source_content_id:
        result = await db.execute(select(RawContent).where(RawContent.id == request.source_content_id))
        stored = result.scalars().first()
        if not stored:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Source content not found"
            )
        title = stored.title
        if not content.strip():
            content = stored.raw_text or ""

    return content, title

async def generate_flashcard_set(
    request: FlashcardGenerateRequest,
    db: AsyncSession,
    ai_client: DeepSeekClient,
    dispatcher: EventDispatcher,
    background_tasks: BackgroundTasks,
) -> dict:
    """
    Generate, filter and store a flashcard set.
    Returns a dict with id, flashcards, content_title, content_length and tokens.
    """
    topic = (request.topic or "").strip()
    if not topic:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Topic is required for flashcard generation"
        )
    if request.num_flashcards < 1 or request.num_flashcards > MAX_FLASHCARDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Number of flashcards must be between 1 and {MAX_FLASHCARDS}"
        )

    content, content_title = await resolve_content(request, db)
    if not content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No content provided for flashcard generation"
        )
    content = truncate_content(content, MAX_CONTENT_LENGTH)

    logger.info(f"Generating flashcards for topic: {topic}")
    try:
        generated = await content_generation.generate_flashcards(
            ai_client, content, topic, request.num_flashcards, request.certification
        )
    except (DeepSeekError, ValueError) as e:
        logger.error(f"Flashcard generation error: {e}")
        await record_failure(
            dispatcher,
            str(e),
            operation_type="flashcards",
            ai_model_used=MODEL,
            tokens_consumed=getattr(e, "tokens", 0),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate flashcards"
        )

    tokens = generated["tokens"]
    flashcards = filter_by_difficulty(
        generated["flashcards"], request.difficulty_preference, request.num_flashcards
    )

    flashcard_set = GeneratedFlashcardSet(
        topic=topic,
        source_content_id=request.source_content_id,
        flashcards_data=flashcards,
        certification_focus=request.certification,
        num_cards=len(flashcards),
        cost_in_tokens=tokens,
        ai_model_used=MODEL,
    )
    set_id = None
    try:
        db.add(flashcard_set)
        await db.commit()
        await db.refresh(flashcard_set)
        set_id = flashcard_set.id
    except Exception as e:
        logger.error(f"Error saving flashcards: {e}")
        await db.rollback()

    schedule_usage(
        background_tasks,
        dispatcher,
        operation_type="flashcards",
        ai_model_used=MODEL,
        tokens_consumed=tokens,
    )

    return {
        "id": set_id,
        "topic": topic,
        "flashcards": flashcards,
        "content_title": content_title,
        "content_length": len(content),
        "tokens": tokens,
    }

async def get_flashcard_sets(
    db: AsyncSession,
    topic: Optional[str] = None,
    certification: Optional[str] = None,
    limit: int = 10
) -> List[GeneratedFlashcardSet]:
    stmt = (
        select(GeneratedFlashcardSet)
        .options(selectinload(GeneratedFlashcardSet.source_content))
        .order_by(GeneratedFlashcardSet.created_at.desc())
        .limit(limit)
    )
    if topic:
        stmt = stmt.where(GeneratedFlashcardSet.topic.ilike(f"%{topic}%"))
    if certification:
        stmt = stmt.where(GeneratedFlashcardSet.certification_focus.ilike(f"%{certification}%"))
    result = await db.execute(stmt)
    return result.scalars().all()
