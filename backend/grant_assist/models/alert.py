"""
Alert Record Model

Written by the admin alert dispatcher whenever an operator alert is raised.
"""
from sqlmodel import SQLModel, Field, Column, DateTime, JSON
from typing import Any, Dict, Optional
from datetime import datetime, timezone


class AlertRecord(SQLModel, table=True):
    __tablename__ = "alert_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    alert_type: str = Field(index=True)  # "rate_limit", "unusual_pattern", "security"
    alert_message: str
    user_id: Optional[str] = Field(default=None, index=True)
    # "metadata" is reserved on declarative models, so map the column by name
    alert_metadata: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column("metadata", JSON)
    )
    sent_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True), index=True
    )
