"""
Usage Record Model

One row per AI assistant call that reached the upstream generation service.
Rows are append-only; the rate limiter counts them per user and function.
"""
import uuid
from sqlmodel import SQLModel, Field, DateTime
from datetime import datetime, timezone


class UsageRecord(SQLModel, table=True):
    """Audit entry for a single gateway invocation."""
    __tablename__ = "ai_usage_logs"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    user_id: str = Field(index=True)
    function_name: str = Field(index=True)  # "ai-grant-assistant"

    # Payload sizes in bytes
    request_size: int = 0
    response_size: int = 0

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True), index=True
    )
