from typing import Optional
import uuid
import enum

from sqlalchemy import (
    Boolean, Column, Float, ForeignKey, Integer, String, Text, DateTime,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import declarative_base, relationship, Mapped

Base = declarative_base()

class AIModel(enum.Enum):
    CHAT = "deepseek-chat"
    REASONER = "deepseek-reasoner"

class LearningPathStatus(enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"

class RawContent(Base):
    __tablename__ = "raw_content"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    title = Column(String(500), nullable=False)
    source_url = Column(String(1000), nullable=True)
    # e.g. trailhead_module, developer_docs, developer_blog, certification_guide
    content_type = Column(String(50), nullable=False, index=True)
    raw_text = Column(Text, nullable=False, default="")
    # "metadata" is reserved on declarative classes
    content_metadata = Column("metadata", JSONB, nullable=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<RawContent(id={self.id}, title={self.title}, content_type={self.content_type})>"

class GeneratedLearningPath(Base):
    __tablename__ = "ai_generated_learning_paths"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    request_prompt = Column(Text, nullable=False)
    existing_knowledge = Column(Text, nullable=True)
    generated_content = Column(JSONB, nullable=False, default=dict)
    difficulty_level = Column(String(50), nullable=True)
    estimated_duration = Column(String(100), nullable=True)
    cost_in_tokens = Column(Integer, nullable=False, default=0)
    ai_model_used = Column(String(50), nullable=False, default=AIModel.REASONER.value)
    status = Column(String(20), nullable=False, default=LearningPathStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<GeneratedLearningPath(id={self.id}, status={self.status})>"

class GeneratedFlashcardSet(Base):
    __tablename__ = "ai_generated_flashcards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    topic = Column(String(255), nullable=False, index=True)
    source_content_id = Column(UUID(as_uuid=True), ForeignKey("raw_content.id"), nullable=True)
    flashcards_data = Column(JSONB, nullable=False, default=list)
    certification_focus = Column(String(255), nullable=True)
    num_cards = Column(Integer, nullable=False, default=0)
    cost_in_tokens = Column(Integer, nullable=False, default=0)
    ai_model_used = Column(String(50), nullable=False, default=AIModel.REASONER.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    source_content: Mapped[Optional[RawContent]] = relationship("RawContent")

    def __repr__(self):
        return f"<GeneratedFlashcardSet(id={self.id}, topic={self.topic}, num_cards={self.num_cards})>"

class GeneratedSummary(Base):
    __tablename__ = "ai_generated_summaries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    original_content_id = Column(UUID(as_uuid=True), ForeignKey("raw_content.id"), nullable=True, index=True)
    summary_text = Column(Text, nullable=False)
    summary_type = Column(String(20), nullable=False, default="medium")
    key_concepts = Column(JSONB, nullable=False, default=list)
    cost_in_tokens = Column(Integer, nullable=False, default=0)
    ai_model_used = Column(String(50), nullable=False, default=AIModel.CHAT.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    original_content: Mapped[Optional[RawContent]] = relationship("RawContent")

    def __repr__(self):
        return f"<GeneratedSummary(id={self.id}, summary_type={self.summary_type})>"

class SearchQueryRecord(Base):
    """Append-only log row, one per intelligent search request."""
    __tablename__ = "ai_search_queries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    query_text = Column(Text, nullable=False)
    search_type = Column(String(20), nullable=False)
    results_found = Column(Integer, nullable=False, default=0)
    top_results = Column(JSONB, nullable=False, default=list)  # [{id, title, relevance_score}]
    ai_enhanced_response = Column(Text, nullable=True)
    cost_in_tokens = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<SearchQueryRecord(id={self.id}, query_text={self.query_text}, results_found={self.results_found})>"

class AIUsageAnalytics(Base):
    __tablename__ = "ai_usage_analytics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    operation_type = Column(String(50), nullable=False)  # search, summary, flashcards, learning_path
    ai_model_used = Column(String(50), nullable=False)
    tokens_consumed = Column(Integer, nullable=False, default=0)
    cost_estimate = Column(Float, nullable=False, default=0.0)
    success = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<AIUsageAnalytics(id={self.id}, operation_type={self.operation_type}, success={self.success})>"
