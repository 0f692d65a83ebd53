# src/modules/analytics/analytics_service.py

from typing import Optional
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from src.events.dispatcher import EventDispatcher
from src.models.models import AIModel, AIUsageAnalytics

# USD per million tokens
MODEL_PRICING = {
    AIModel.CHAT.value: 0.27,
    AIModel.REASONER.value: 0.55,
}

AI_USAGE_EVENT = "ai_usage_recorded"

def estimate_cost(tokens: int, model: str) -> float:
    return (tokens / 1_000_000) * MODEL_PRICING.get(model, 0.0)

async def record_usage(
    operation_type: str,
    ai_model_used: str,
    tokens_consumed: int,
    db: AsyncSession,
    success: bool = True,
    error_message: Optional[str] = None,
    user_id: Optional[str] = None,
    commit: bool = True,
) -> AIUsageAnalytics:
    """
    Store one AI usage row. Pass commit=False when the caller owns the transaction
    (e.g. the event dispatcher).
    """
    usage = AIUsageAnalytics(
        user_id=user_id,
        operation_type=operation_type,
        ai_model_used=ai_model_used,
        tokens_consumed=tokens_consumed,
        cost_estimate=estimate_cost(tokens_consumed, ai_model_used),
        success=success,
        error_message=error_message,
    )
    db.add(usage)
    if commit:
        await db.commit()
        await db.refresh(usage)
    return usage

def schedule_usage(background_tasks: BackgroundTasks, dispatcher: EventDispatcher, **usage) -> None:
    """
    Record a successful AI operation after the response has been sent.
    """
    background_tasks.add_task(dispatcher.dispatch, AI_USAGE_EVENT, success=True, **usage)

async def record_failure(dispatcher: EventDispatcher, error_message: str, **usage) -> None:
    """
    Record a failed AI operation. Awaited directly because background tasks
    do not run when the request ends with an error response.
    """
    await dispatcher.dispatch(
        AI_USAGE_EVENT,
        tokens_consumed=usage.pop("tokens_consumed", 0),
        success=False,
        error_message=error_message,
        **usage,
    )
