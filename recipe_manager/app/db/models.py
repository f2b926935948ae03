from datetime import datetime
import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)

from recipe_manager.app.db.base import Base


class AiOperation(str, enum.Enum):
    MEAL_ASSISTANT = "MealAssistant"


class AiDebugLog(Base):
    __tablename__ = "ai_debug_logs"

    id = Column(String, primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    household_id = Column(String, nullable=True, index=True)
    user_id = Column(String, nullable=True)
    provider = Column(String, nullable=False)
    model = Column(String, nullable=False)
    operation = Column(String, nullable=False)
    request_json_sanitized = Column(Text, nullable=False, default="")
    response_json_sanitized = Column(Text, nullable=False, default="")
    status_code = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False, default=False)
    error = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_ai_debug_logs_created_at", "created_at"),
        Index("ix_ai_debug_logs_provider_operation", "provider", "operation"),
        Index("ix_ai_debug_logs_success", "success"),
    )
