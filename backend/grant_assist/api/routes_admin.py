"""
Admin API Routes

Service-key protected endpoints for operators:
- Running the usage pattern monitor
- Reviewing recent alerts
- Aggregate usage statistics
"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, func
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Any

from grant_assist.api.deps import require_service_key
from grant_assist.core.database import get_session
from grant_assist.core.usage_monitor import monitor_usage_patterns
from grant_assist.models.alert import AlertRecord
from grant_assist.models.usage import UsageRecord

router = APIRouter(dependencies=[Depends(require_service_key)])


@router.post("/monitor")
async def run_usage_monitor() -> Dict[str, Any]:
    """Run all usage pattern checks now."""
    stats = await monitor_usage_patterns()
    return {"success": True, "message": "Monitoring completed", "stats": stats}


@router.get("/alerts")
async def list_alerts(
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
) -> List[Dict[str, Any]]:
    """Most recent alerts, newest first."""
    alerts = session.exec(
        select(AlertRecord).order_by(AlertRecord.sent_at.desc(), AlertRecord.id.desc()).limit(limit)
    ).all()
    return [
        {
            "id": a.id,
            "alert_type": a.alert_type,
            "message": a.alert_message,
            "user_id": a.user_id,
            "metadata": a.alert_metadata,
            "sent_at": a.sent_at.isoformat(),
        }
        for a in alerts
    ]


@router.get("/stats/overview")
async def get_overview(session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Get overall statistics: total requests, unique users, average sizes."""
    total = session.exec(select(func.count(UsageRecord.id))).one()

    unique_users = session.exec(
        select(func.count(func.distinct(UsageRecord.user_id)))
    ).one()

    avg_request = session.exec(select(func.avg(UsageRecord.request_size))).one()
    avg_response = session.exec(select(func.avg(UsageRecord.response_size))).one()

    last_hour = datetime.now(timezone.utc) - timedelta(hours=1)
    last_hour_count = session.exec(
        select(func.count(UsageRecord.id)).where(UsageRecord.created_at >= last_hour)
    ).one()

    return {
        "total_requests": total or 0,
        "unique_users": unique_users or 0,
        "avg_request_bytes": round(avg_request or 0),
        "avg_response_bytes": round(avg_response or 0),
        "last_hour_requests": last_hour_count or 0,
    }
