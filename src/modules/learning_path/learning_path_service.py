# src/learning_path/learning_path_service.py

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.common.ai import content_generation
from src.common.ai.deepseek import DeepSeekClient, DeepSeekError
from src.events.dispatcher import EventDispatcher
from src.models.models import AIModel, GeneratedLearningPath, LearningPathStatus
from src.modules.analytics.analytics_service import record_failure, schedule_usage
from src.modules.learning_path.schemas import LearningPathGenerateRequest

logger = logging.getLogger(__name__)

MODEL = AIModel.REASONER.value

def build_goal_prompt(request: LearningPathGenerateRequest) -> str:
    """
    Wrap the learner's goal with the context the path should take into account.
    """
    certification_line = (
        f"\n- Certification Goal: {request.certification_goal}" if request.certification_goal else ""
    )
    return f"""
{request.prompt.strip()}

Additional Context:
- Current Knowledge: {request.existing_knowledge}
- Learning Style: {request.preferred_learning_style or 'Mixed (visual, hands-on, reading)'}
- Time Commitment: {request.time_commitment or 'Flexible schedule'}{certification_line}

Please create a comprehensive learning path that integrates:
1. Official Salesforce Trailhead modules
2. Developer documentation and guides
3. Hands-on practice recommendations
4. Real-world project ideas
5. Certification preparation alignment
"""

async def save_learning_path(
    request: LearningPathGenerateRequest,
    path: dict,
    tokens: int,
    db: AsyncSession
) -> Optional[GeneratedLearningPath]:
    """
    Persist a generated path. Returns None (and logs) if the insert fails.
    """
    new_path = GeneratedLearningPath(
        user_id=request.user_id,
        request_prompt=request.prompt.strip(),
        existing_knowledge=request.existing_knowledge,
        generated_content=path,
        difficulty_level=path.get("difficulty_level"),
        estimated_duration=path.get("estimated_total_duration"),
        cost_in_tokens=tokens,
        ai_model_used=MODEL,
        status=LearningPathStatus.ACTIVE.value,
    )
    try:
        db.add(new_path)
        await db.commit()
        await db.refresh(new_path)
        return new_path
    except Exception as e:
        logger.error(f"Error saving learning path: {e}")
        await db.rollback()
        return None

async def generate_learning_path(
    request: LearningPathGenerateRequest,
    db: AsyncSession,
    ai_client: DeepSeekClient,
    dispatcher: EventDispatcher,
    background_tasks: BackgroundTasks,
) -> Tuple[Optional[UUID], dict, int]:
    """
    Generate, store and account for a personalized learning path.
    Returns (saved id or None, generated path, tokens used).
    """
    if not request.prompt or not request.prompt.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Learning goal prompt is required"
        )

    user_id = str(request.user_id) if request.user_id else None
    logger.info(f"Generating learning path for: {request.prompt.strip()}")

    try:
        generated = await content_generation.generate_learning_path(
            ai_client,
            build_goal_prompt(request),
            request.existing_knowledge,
            request.preferred_learning_style,
            request.time_commitment,
        )
    except (DeepSeekError, ValueError) as e:
        logger.error(f"Learning path generation error: {e}")
        await record_failure(
            dispatcher,
            str(e),
            operation_type="learning_path",
            ai_model_used=MODEL,
            tokens_consumed=getattr(e, "tokens", 0),
            user_id=user_id,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate learning path"
        )

    path, tokens = generated["path"], generated["tokens"]
    saved = await save_learning_path(request, path, tokens, db)

    schedule_usage(
        background_tasks,
        dispatcher,
        operation_type="learning_path",
        ai_model_used=MODEL,
        tokens_consumed=tokens,
        user_id=user_id,
    )
    return (saved.id if saved else None), path, tokens

async def get_learning_paths(
    db: AsyncSession,
    user_id: Optional[str] = None,
    limit: int = 10
) -> List[GeneratedLearningPath]:
    """
    Return active generated paths, newest first.
    """
    stmt = (
        select(GeneratedLearningPath)
        .where(GeneratedLearningPath.status == LearningPathStatus.ACTIVE.value)
        .order_by(GeneratedLearningPath.created_at.desc())
        .limit(limit)
    )
    if user_id:
        stmt = stmt.where(GeneratedLearningPath.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().all()
