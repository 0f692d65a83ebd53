# src/search/search_controller.py

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.common.ai.deepseek import DeepSeekClient, get_ai_client
from src.common.database.database import get_db_session, get_session_factory
from src.events.dispatcher import EventDispatcher, get_dispatcher
from src.modules.search import search_service, schemas
from src.modules.search.errors import SearchValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/intelligent-search", tags=["search"])

@router.post("", response_model=schemas.IntelligentSearchResponse)
async def intelligent_search(
    search_request: schemas.IntelligentSearchRequest,
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    ai_client: DeepSeekClient = Depends(get_ai_client),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """
    Multi-source search.

    Searches stored content, learning paths, flashcard sets and summaries, ranks
    the hits by relevance and optionally adds an AI-written synthesis. A source
    that fails contributes no results; the response is still returned.
    """
    try:
        return await search_service.intelligent_search(
            search_request,
            session_factory,
            ai_client,
            dispatcher,
            background_tasks,
        )
    except SearchValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

@router.get("", response_model=schemas.SearchHistoryResponse)
async def get_search_history(
    user_id: Optional[UUID] = Query(None, description="Only searches made by this user"),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Retrieve recent searches, newest first.
    """
    try:
        history = await search_service.get_search_history(db, str(user_id) if user_id else None, limit)
    except Exception as e:
        logger.error(f"Error fetching search history: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch search history"
        )
    return schemas.SearchHistoryResponse(
        search_history=[schemas.SearchQueryRecordResponse.model_validate(record) for record in history],
        count=len(history)
    )
