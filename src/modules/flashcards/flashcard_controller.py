# src/flashcards/flashcard_controller.py

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.ai.deepseek import DeepSeekClient, get_ai_client
from src.common.database.database import get_db_session
from src.common.utils.global_functions import build_generation_metadata
from src.events.dispatcher import EventDispatcher, get_dispatcher
from src.modules.flashcards import flashcard_service, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/generate-flashcards", tags=["flashcards"])

@router.post("", response_model=schemas.FlashcardGenerateResponse)
async def generate_flashcards(
    flashcard_request: schemas.FlashcardGenerateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    ai_client: DeepSeekClient = Depends(get_ai_client),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """
    Generate certification flashcards from text or stored content.
    """
    generated = await flashcard_service.generate_flashcard_set(
        flashcard_request, db, ai_client, dispatcher, background_tasks
    )
    flashcards = generated["flashcards"]
    base_metadata = build_generation_metadata(
        generated["tokens"], flashcard_service.MODEL, generated["content_length"]
    )
    return schemas.FlashcardGenerateResponse(
        id=generated["id"],
        flashcard_set=schemas.FlashcardSetPayload(
            topic=generated["topic"],
            flashcards=flashcards,
            certification_focus=flashcard_request.certification,
            content_source=generated["content_title"],
            study_recommendations=flashcard_service.generate_study_recommendations(
                flashcards, flashcard_request.certification
            ),
        ),
        metadata=schemas.FlashcardGenerationMetadata(
            **base_metadata.model_dump(),
            total_cards=len(flashcards),
            difficulty_breakdown=flashcard_service.get_difficulty_breakdown(flashcards),
        ),
    )

@router.get("", response_model=schemas.FlashcardSetListResponse)
async def get_flashcard_sets(
    topic: Optional[str] = Query(None),
    certification: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Retrieve recent flashcard sets, filtered by topic and certification.
    """
    try:
        flashcard_sets = await flashcard_service.get_flashcard_sets(db, topic, certification, limit)
    except Exception as e:
        logger.error(f"Error fetching flashcard sets: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch flashcard sets"
        )
    return schemas.FlashcardSetListResponse(
        flashcard_sets=[schemas.FlashcardSetResponse.model_validate(item) for item in flashcard_sets],
        count=len(flashcard_sets)
    )
