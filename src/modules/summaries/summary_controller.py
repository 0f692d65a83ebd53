# src/summaries/summary_controller.py

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.ai.deepseek import DeepSeekClient, get_ai_client
from src.common.database.database import get_db_session
from src.common.utils.global_functions import build_generation_metadata
from src.events.dispatcher import EventDispatcher, get_dispatcher
from src.modules.summaries import summary_service, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/summarize", tags=["summaries"])

@router.post("", response_model=schemas.SummarizeResponse)
async def summarize(
    summarize_request: schemas.SummarizeRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    ai_client: DeepSeekClient = Depends(get_ai_client),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """
    Summarize learning content and extract its key concepts.
    """
    generated = await summary_service.summarize(
        summarize_request, db, ai_client, dispatcher, background_tasks
    )
    return schemas.SummarizeResponse(
        id=generated["id"],
        summary=schemas.SummaryPayload(
            text=generated["summary"],
            key_concepts=generated["key_concepts"],
            summary_type=summarize_request.summary_length,
            content_title=generated["content_title"],
        ),
        metadata=build_generation_metadata(
            generated["tokens"], summary_service.MODEL, generated["content_length"]
        ),
    )

@router.get("", response_model=schemas.SummaryListResponse)
async def get_summaries(
    content_id: Optional[UUID] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Retrieve recent summaries, optionally for one piece of stored content.
    """
    try:
        summaries = await summary_service.get_summaries(db, str(content_id) if content_id else None, limit)
    except Exception as e:
        logger.error(f"Error fetching summaries: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch summaries"
        )
    return schemas.SummaryListResponse(
        summaries=[schemas.SummaryResponse.model_validate(summary) for summary in summaries],
        count=len(summaries)
    )
