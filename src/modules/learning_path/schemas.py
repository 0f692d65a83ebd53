# src/learning_path/schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel

from src.common.ai.schemas import GenerationMetadata

class LearningPathGenerateRequest(BaseModel):
    user_id: Optional[UUID] = None
    prompt: str  # The learner's goal
    existing_knowledge: str = ""
    preferred_learning_style: Optional[str] = None
    time_commitment: Optional[str] = None
    certification_goal: Optional[str] = None

class LearningPathGenerateResponse(BaseModel):
    id: Optional[UUID] = None
    success: bool = True
    learning_path: Dict[str, Any]
    metadata: GenerationMetadata

class LearningPathResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    request_prompt: str
    existing_knowledge: Optional[str] = None
    generated_content: Dict[str, Any]
    difficulty_level: Optional[str] = None
    estimated_duration: Optional[str] = None
    cost_in_tokens: int
    ai_model_used: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True

class LearningPathListResponse(BaseModel):
    success: bool = True
    learning_paths: List[LearningPathResponse]
    count: int
