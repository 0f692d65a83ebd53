# src/common/ai/schemas.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class GenerationMetadata(BaseModel):
    generated_at: datetime
    tokens_used: int
    estimated_cost: float
    model_used: str
    content_length: Optional[int] = None
