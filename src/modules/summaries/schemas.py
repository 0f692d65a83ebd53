# src/summaries/schemas.py

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel

from src.common.ai.schemas import GenerationMetadata

SummaryLength = Literal["short", "medium", "long"]

class SummarizeRequest(BaseModel):
    text_content: Optional[str] = None
    original_content_id: Optional[UUID] = None  # summarize stored raw content
    summary_length: SummaryLength = "medium"
    focus: Optional[str] = None

class SummaryPayload(BaseModel):
    text: str
    key_concepts: List[str]
    summary_type: str
    content_title: str

class SummarizeResponse(BaseModel):
    id: Optional[UUID] = None
    success: bool = True
    summary: SummaryPayload
    metadata: GenerationMetadata

class OriginalContentRef(BaseModel):
    title: str
    source_url: Optional[str] = None
    content_type: str

    class Config:
        from_attributes = True

class SummaryResponse(BaseModel):
    id: UUID
    original_content_id: Optional[UUID] = None
    original_content: Optional[OriginalContentRef] = None
    summary_text: str
    summary_type: str
    key_concepts: List[str] = []
    cost_in_tokens: int
    ai_model_used: str
    created_at: datetime

    class Config:
        from_attributes = True

class SummaryListResponse(BaseModel):
    success: bool = True
    summaries: List[SummaryResponse]
    count: int
