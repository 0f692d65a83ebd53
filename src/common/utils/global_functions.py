# common/utils/global_functions.py
from datetime import datetime, timezone
from typing import Optional

from src.common.ai.schemas import GenerationMetadata
from src.modules.analytics.analytics_service import estimate_cost

def truncate_content(content: str, max_length: int) -> str:
    """
    Cap user supplied content before it is sent to the LLM.
    Truncated content is marked with a trailing ellipsis.
    """
    if len(content) > max_length:
        return content[:max_length] + "..."
    return content

def build_generation_metadata(
    tokens: int,
    model: str,
    content_length: Optional[int] = None
) -> GenerationMetadata:
    return GenerationMetadata(
        generated_at=datetime.now(timezone.utc),
        tokens_used=tokens,
        estimated_cost=estimate_cost(tokens, model),
        model_used=model,
        content_length=content_length,
    )
