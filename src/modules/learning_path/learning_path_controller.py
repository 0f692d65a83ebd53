# src/learning_path/learning_path_controller.py

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.ai.deepseek import DeepSeekClient, get_ai_client
from src.common.database.database import get_db_session
from src.common.utils.global_functions import build_generation_metadata
from src.events.dispatcher import EventDispatcher, get_dispatcher
from src.modules.learning_path import learning_path_service, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/generate-learning-path", tags=["learning-path"])

@router.post("", response_model=schemas.LearningPathGenerateResponse)
async def generate_learning_path(
    path_request: schemas.LearningPathGenerateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    ai_client: DeepSeekClient = Depends(get_ai_client),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """
    Generate a personalized learning path from the learner's goal.
    """
    path_id, path, tokens = await learning_path_service.generate_learning_path(
        path_request, db, ai_client, dispatcher, background_tasks
    )
    return schemas.LearningPathGenerateResponse(
        id=path_id,
        learning_path=path,
        metadata=build_generation_metadata(tokens, learning_path_service.MODEL),
    )

@router.get("", response_model=schemas.LearningPathListResponse)
async def get_learning_paths(
    user_id: Optional[UUID] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Retrieve active generated learning paths, optionally for one user.
    """
    try:
        paths = await learning_path_service.get_learning_paths(db, str(user_id) if user_id else None, limit)
    except Exception as e:
        logger.error(f"Error fetching learning paths: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch learning paths"
        )
    return schemas.LearningPathListResponse(
        learning_paths=[schemas.LearningPathResponse.model_validate(path) for path in paths],
        count=len(paths)
    )
