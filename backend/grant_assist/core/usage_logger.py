"""
Usage Logger

Records one usage row per assistant call. Best-effort: a failed write is
logged and never reaches the caller.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Session
from grant_assist.core.database import engine
from grant_assist.models.usage import UsageRecord

logger = logging.getLogger(__name__)


def record_usage(
    user_id: str,
    function_name: str,
    request_size: int,
    response_size: int,
    created_at: Optional[datetime] = None,
) -> Optional[UsageRecord]:
    """
    Insert a row into the ai_usage_logs table.

    Args:
        user_id: Authenticated user the call is billed to
        function_name: Gateway endpoint tag, e.g. "ai-grant-assistant"
        request_size: Raw request body size in bytes
        response_size: Serialized response payload size in bytes
        created_at: Processing time; defaults to now (UTC)

    Returns:
        The stored record, or None if the write failed.
    """
    try:
        with Session(engine) as session:
            record = UsageRecord(
                user_id=user_id,
                function_name=function_name,
                request_size=request_size,
                response_size=response_size,
                created_at=created_at or datetime.now(timezone.utc),
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
    except Exception as e:
        # Accounting must not discard an already generated answer
        logger.error(f"Failed to record usage for {function_name}: {e}")
        return None
