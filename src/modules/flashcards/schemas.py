# src/flashcards/schemas.py

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from src.common.ai.schemas import GenerationMetadata

DifficultyPreference = Literal["mixed", "easy", "medium", "hard"]

class Flashcard(BaseModel):
    question: str
    answer: str
    explanation: Optional[str] = None
    tags: Optional[List[str]] = []
    difficulty: str = "Medium"  # Easy, Medium or Hard
    certification_relevance: Optional[List[str]] = []

class FlashcardGenerateRequest(BaseModel):
    topic: str
    text_content: Optional[str] = None
    source_content_id: Optional[UUID] = None  # reuse stored raw content
    num_flashcards: int = 10
    certification: Optional[str] = None
    difficulty_preference: DifficultyPreference = "mixed"

class FlashcardSetPayload(BaseModel):
    topic: str
    flashcards: List[Flashcard]
    certification_focus: Optional[str] = None
    content_source: str
    study_recommendations: List[str]

class FlashcardGenerationMetadata(GenerationMetadata):
    total_cards: int
    difficulty_breakdown: Dict[str, int]

class FlashcardGenerateResponse(BaseModel):
    id: Optional[UUID] = None
    success: bool = True
    flashcard_set: FlashcardSetPayload
    metadata: FlashcardGenerationMetadata

class SourceContentRef(BaseModel):
    title: str
    source_url: Optional[str] = None
    content_type: str

    class Config:
        from_attributes = True

class FlashcardSetResponse(BaseModel):
    id: UUID
    topic: str
    source_content_id: Optional[UUID] = None
    source_content: Optional[SourceContentRef] = None
    flashcards: List[Flashcard] = Field(validation_alias="flashcards_data")
    certification_focus: Optional[str] = None
    num_cards: int
    cost_in_tokens: int
    ai_model_used: str
    created_at: datetime

    class Config:
        from_attributes = True

class FlashcardSetListResponse(BaseModel):
    success: bool = True
    flashcard_sets: List[FlashcardSetResponse]
    count: int
