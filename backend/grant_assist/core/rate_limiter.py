"""
Rate Limiter

Sliding-window quota per user and function, counted from usage records.

The count and the later usage insert are separate round trips, so two
concurrent requests can both see count < limit and both proceed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from grant_assist.core.database import engine
from grant_assist.core.errors import InternalError
from grant_assist.models.usage import UsageRecord

logger = logging.getLogger(__name__)

WINDOW_MINUTES = 60
MAX_REQUESTS = 50


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a quota check for one request."""
    count: int
    limit: int = MAX_REQUESTS
    window_minutes: int = WINDOW_MINUTES

    @property
    def allowed(self) -> bool:
        return self.count < self.limit

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def remaining_after_request(self) -> int:
        """Quota left once the current request has been recorded."""
        return max(0, self.remaining - 1)

    def as_summary(self) -> Dict[str, int]:
        return {
            "remaining": self.remaining_after_request,
            "limit": self.limit,
            "windowMinutes": self.window_minutes,
        }

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining_after_request),
        }


def count_recent_usage(session: Session, user_id: str, function_name: str, since: datetime) -> int:
    """Count usage records for a user and function created at or after `since`."""
    statement = (
        select(func.count(UsageRecord.id))
        .where(UsageRecord.user_id == user_id)
        .where(UsageRecord.function_name == function_name)
        .where(UsageRecord.created_at >= since)
    )
    return session.exec(statement).one() or 0


def evaluate_rate_limit(
    user_id: str,
    function_name: str,
    now: Optional[datetime] = None,
    limit: int = MAX_REQUESTS,
    window_minutes: int = WINDOW_MINUTES,
) -> RateLimitDecision:
    """
    Check a user's quota for one function.

    Fails closed: if the usage store cannot be queried the request is
    rejected with InternalError.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(minutes=window_minutes)
    try:
        with Session(engine) as session:
            count = count_recent_usage(session, user_id, function_name, since)
    except SQLAlchemyError as e:
        logger.error(f"Rate limit check failed for {function_name}: {e}")
        raise InternalError("Unable to verify rate limit, please try again later")

    decision = RateLimitDecision(count=count, limit=limit, window_minutes=window_minutes)
    if not decision.allowed:
        logger.warning(
            f"Rate limit exceeded for user {user_id} on {function_name}: "
            f"{count} requests in {window_minutes} minutes (limit {limit})"
        )
    return decision
