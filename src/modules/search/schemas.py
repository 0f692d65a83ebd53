# src/search/schemas.py

import enum
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field

class SearchSource(str, enum.Enum):
    STORED_CONTENT = "stored_content"
    LEARNING_PATHS = "learning_paths"
    FLASHCARD_SETS = "flashcard_sets"
    SUMMARIES = "summaries"

SearchType = Literal["keyword", "semantic", "hybrid"]

class SearchResultBase(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    content_type: str
    relevance_score: float = 0.0
    # Text the relevance score is computed from; never serialized.
    match_text: str = Field(default="", exclude=True)

class RawContentResult(SearchResultBase):
    source: Literal["stored_content"] = "stored_content"
    url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

class LearningPathResult(SearchResultBase):
    source: Literal["learning_paths"] = "learning_paths"
    content_type: str = "learning_path"
    difficulty_level: Optional[str] = None
    estimated_duration: Optional[str] = None

class FlashcardSetResult(SearchResultBase):
    source: Literal["flashcard_sets"] = "flashcard_sets"
    content_type: str = "flashcard_set"
    topic: str
    num_cards: int = 0
    certification_focus: Optional[str] = None

class SummaryResult(SearchResultBase):
    source: Literal["summaries"] = "summaries"
    content_type: str = "summary"
    summary_type: Optional[str] = None
    key_concepts: List[str] = []
    source_url: Optional[str] = None

SearchableItem = Annotated[
    Union[RawContentResult, LearningPathResult, FlashcardSetResult, SummaryResult],
    Field(discriminator="source"),
]

class IntelligentSearchRequest(BaseModel):
    query: str
    user_context: Optional[str] = None
    user_id: Optional[UUID] = None
    search_type: SearchType = "hybrid"
    content_types: List[SearchSource] = []  # empty means every source
    limit: int = Field(default=10, gt=0, le=50)
    enhance_with_ai: bool = True

class SearchMetadata(BaseModel):
    searched_at: datetime
    search_type: str
    tokens_used: int = 0
    estimated_cost: float = 0.0
    content_sources: List[str] = []

class IntelligentSearchResponse(BaseModel):
    id: Optional[UUID] = None
    success: bool = True
    query: str
    results: List[SearchableItem]
    total_results: int
    ai_enhanced_response: Optional[str] = None
    recommendations: List[str] = []
    related_topics: List[str] = []
    learning_suggestions: List[str] = []
    metadata: SearchMetadata

class TopResult(BaseModel):
    id: str
    title: str
    relevance_score: float

class SearchQueryRecordResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    query_text: str
    search_type: str
    results_found: int
    top_results: List[TopResult] = []
    ai_enhanced_response: Optional[str] = None
    cost_in_tokens: int = 0
    created_at: datetime

    class Config:
        from_attributes = True

class SearchHistoryResponse(BaseModel):
    success: bool = True
    search_history: List[SearchQueryRecordResponse]
    count: int
