"""
Usage API Routes

Lets signed-in users see how much of their AI quota is left.
"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select, func
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Any

from grant_assist.api.routes_assist import FUNCTION_NAME
from grant_assist.core.auth import get_current_user_id
from grant_assist.core.database import get_session
from grant_assist.core.rate_limiter import evaluate_rate_limit
from grant_assist.models.usage import UsageRecord

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("/me")
async def get_my_quota(user_id: str = Depends(get_current_user_id)) -> Dict[str, Any]:
    """Current window usage for the caller."""
    decision = evaluate_rate_limit(user_id, FUNCTION_NAME)
    return {
        "function_name": FUNCTION_NAME,
        "used": decision.count,
        "remaining": decision.remaining,
        "limit": decision.limit,
        "windowMinutes": decision.window_minutes,
    }


@router.get("/daily")
async def get_my_daily_usage(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> List[Dict[str, Any]]:
    """Get the caller's daily request counts for the last 7 days."""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start_date = today - timedelta(days=6)

    days = []
    for i in range(7):
        day = start_date + timedelta(days=i)
        next_day = day + timedelta(days=1)

        count = session.exec(
            select(func.count(UsageRecord.id))
            .where(UsageRecord.user_id == user_id)
            .where(UsageRecord.created_at >= day)
            .where(UsageRecord.created_at < next_day)
        ).one()

        days.append({
            "date": day.strftime("%Y-%m-%d"),
            "requests": count or 0
        })

    return days
