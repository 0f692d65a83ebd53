# src/summaries/summary_service.py

import logging
from typing import List, Optional

from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from src.common.ai import content_generation
from src.common.ai.deepseek import DeepSeekClient, DeepSeekError
from src.common.utils.global_functions import truncate_content
from src.events.dispatcher import EventDispatcher
from src.models.models import AIModel, GeneratedSummary, RawContent
from src.modules.analytics.analytics_service import record_failure, schedule_usage
from src.modules.summaries.schemas import SummarizeRequest

logger = logging.getLogger(__name__)

MODEL = AIModel.CHAT.value
MAX_CONTENT_LENGTH = 15000  # roughly 3000-4000 tokens

async def summarize(
    request: SummarizeRequest,
    db: AsyncSession,
    ai_client: DeepSeekClient,
    dispatcher: EventDispatcher,
    background_tasks: BackgroundTasks,
) -> dict:
    """
    Summarize text (or stored raw content), store the summary and account for usage.
    Returns a dict with id, summary, key_concepts, content_title, content_length and tokens.
    """
    content = request.text_content or ""
    content_title = "User Provided Content"

    if request.original_content_id:
        result = await db.execute(select(RawContent).where(RawContent.id == request.original_content_id))
        stored = result.scalars().first()
        if not stored:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Original content not found"
            )
        content_title = stored.title
        if not content.strip():
            content = stored.raw_text or ""

    if not content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No content provided for summarization"
        )
    content = truncate_content(content, MAX_CONTENT_LENGTH)

    logger.info(f"Generating summary for content: {content_title}")
    try:
        generated = await content_generation.summarize_content(
            ai_client, content, request.summary_length, request.focus
        )
    except DeepSeekError as e:
        logger.error(f"Summarization error: {e}")
        await record_failure(dispatcher, str(e), operation_type="summary", ai_model_used=MODEL)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate summary"
        )

    summary = GeneratedSummary(
        original_content_id=request.original_content_id,
        summary_text=generated["summary"],
        summary_type=request.summary_length,
        key_concepts=generated["key_concepts"],
        cost_in_tokens=generated["tokens"],
        ai_model_used=MODEL,
    )
    summary_id = None
    try:
        db.add(summary)
        await db.commit()
        await db.refresh(summary)
        summary_id = summary.id
    except Exception as e:
        logger.error(f"Error saving summary: {e}")
        await db.rollback()

    schedule_usage(
        background_tasks,
        dispatcher,
        operation_type="summary",
        ai_model_used=MODEL,
        tokens_consumed=generated["tokens"],
    )

    return {
        "id": summary_id,
        "summary": generated["summary"],
        "key_concepts": generated["key_concepts"],
        "content_title": content_title,
        "content_length": len(content),
        "tokens": generated["tokens"],
    }

async def get_summaries(
    db: AsyncSession,
    content_id: Optional[str] = None,
    limit: int = 10
) -> List[GeneratedSummary]:
    stmt = (
        select(GeneratedSummary)
        .options(selectinload(GeneratedSummary.original_content))
        .order_by(GeneratedSummary.created_at.desc())
        .limit(limit)
    )
    if content_id:
        stmt = stmt.where(GeneratedSummary.original_content_id == content_id)
    result = await db.execute(stmt)
    return result.scalars().all()
