"""
Usage Pattern Monitor

Scans recent usage records and alerts for activity that looks like abuse.
Meant to be triggered periodically (cron or admin endpoint).
"""
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from sqlmodel import Session, select

from grant_assist.core.alerts import send_admin_alert
from grant_assist.core.database import engine
from grant_assist.models.alert import AlertRecord
from grant_assist.models.usage import UsageRecord

logger = logging.getLogger(__name__)

VOLUME_THRESHOLD = 100          # requests per hour across all users
PER_USER_THRESHOLD = 30         # requests per hour from one user
LARGE_REQUEST_BYTES = 10000
LARGE_REQUEST_THRESHOLD = 5
RATE_LIMIT_HIT_THRESHOLD = 3    # rate_limit alerts in the last 5 minutes


async def monitor_usage_patterns(
    now: Optional[datetime] = None,
    volume_threshold: int = VOLUME_THRESHOLD,
) -> Dict[str, Any]:
    """
    Run every usage check once and send an alert for each one that trips.

    Returns summary stats including how many alerts were sent.
    """
    now = now or datetime.now(timezone.utc)
    one_hour_ago = now - timedelta(hours=1)
    five_minutes_ago = now - timedelta(minutes=5)

    with Session(engine) as session:
        recent_logs = session.exec(
            select(UsageRecord).where(UsageRecord.created_at >= one_hour_ago)
        ).all()
        recent_alert_users = session.exec(
            select(AlertRecord.user_id)
            .where(AlertRecord.alert_type == "rate_limit")
            .where(AlertRecord.sent_at >= five_minutes_ago)
        ).all()

    if not recent_logs and not recent_alert_users:
        logger.info("No recent activity to monitor")
        return {"total_requests": 0, "unique_users": 0, "large_requests": 0, "alerts_sent": 0}

    logger.info(f"Analyzing {len(recent_logs)} usage records from the last hour")
    alerts_sent = 0

    # Overall volume spike
    if len(recent_logs) > volume_threshold:
        await send_admin_alert(
            "unusual_pattern",
            f"Unusual spike in AI requests detected. {len(recent_logs)} requests in the last hour "
            f"(threshold: {volume_threshold}).",
            metadata={"request_count": len(recent_logs), "threshold": volume_threshold, "time_window": "1 hour"},
        )
        alerts_sent += 1

    # Single user making excessive requests
    per_user = Counter(log.user_id for log in recent_logs)
    for user_id, count in sorted(per_user.items()):
        if count > PER_USER_THRESHOLD:
            await send_admin_alert(
                "unusual_pattern",
                f"User making excessive AI requests: {count} requests in the last hour.",
                user_id=user_id,
                metadata={"request_count": count, "time_window": "1 hour"},
            )
            alerts_sent += 1

    # Unusually large requests
    large = [log for log in recent_logs if (log.request_size or 0) > LARGE_REQUEST_BYTES]
    if len(large) > LARGE_REQUEST_THRESHOLD:
        affected = {log.user_id for log in large}
        await send_admin_alert(
            "unusual_pattern",
            f"Detected {len(large)} unusually large AI requests (>10KB) in the last hour "
            f"from {len(affected)} user(s).",
            metadata={"large_request_count": len(large), "affected_users": len(affected), "time_window": "1 hour"},
        )
        alerts_sent += 1

    # Many users hitting rate limits at once
    if len(recent_alert_users) > RATE_LIMIT_HIT_THRESHOLD:
        unique_users = {user_id for user_id in recent_alert_users if user_id}
        await send_admin_alert(
            "security",
            f"{len(unique_users)} different users hit rate limits in the last 5 minutes. "
            f"Possible coordinated abuse attempt.",
            metadata={
                "affected_users": len(unique_users),
                "rate_limit_hits": len(recent_alert_users),
                "time_window": "5 minutes",
            },
        )
        alerts_sent += 1

    logger.info(f"Usage pattern monitoring completed, {alerts_sent} alert(s) sent")
    return {
        "total_requests": len(recent_logs),
        "unique_users": len(per_user),
        "large_requests": len(large),
        "alerts_sent": alerts_sent,
    }
