import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from src.events.dispatcher import EventDispatcher
from src.modules.analytics.analytics_service import AI_USAGE_EVENT, record_usage

logger = logging.getLogger(__name__)

async def store_ai_usage(
    operation_type: str,
    ai_model_used: str,
    tokens_consumed: int,
    db: AsyncSession,
    success: bool = True,
    error_message: Optional[str] = None,
    user_id: Optional[str] = None,
    **kwargs,
):
    """
    Listens for 'ai_usage_recorded'.
    Queues an AIUsageAnalytics row; the dispatcher commits.
    """
    try:
        await record_usage(
            operation_type=operation_type,
            ai_model_used=ai_model_used,
            tokens_consumed=tokens_consumed,
            db=db,
            success=success,
            error_message=error_message,
            user_id=user_id,
            commit=False,
        )
        logger.info(f"Usage queued for '{operation_type}' ({tokens_consumed} tokens, success={success})")
    except Exception as e:
        logger.error(f"Error recording AI usage for '{operation_type}': {e}")

def register(dispatcher: EventDispatcher) -> None:
    dispatcher.subscribe(AI_USAGE_EVENT, store_ai_usage)
