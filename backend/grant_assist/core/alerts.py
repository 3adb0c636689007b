"""
Admin Alerts

Stores operator alerts and emails them to the configured admin addresses
through the Resend HTTP API.
"""
import html
import httpx
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlmodel import Session

from grant_assist.core.database import engine
from grant_assist.models.alert import AlertRecord

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
ALERT_FROM_ADDRESS = os.getenv("ALERT_FROM_ADDRESS", "Grant Assist Alerts <alerts@resend.dev>")

ALERT_TYPES = ("rate_limit", "unusual_pattern", "security")

RECOMMENDED_ACTIONS = {
    "rate_limit": [
        "Review user activity in the admin dashboard",
        "Check if this is legitimate usage or potential abuse",
        "Consider adjusting rate limits if necessary",
    ],
    "unusual_pattern": [
        "Investigate the unusual activity pattern",
        "Check for potential security issues",
        "Review AI usage logs for anomalies",
    ],
    "security": [
        "Investigate the security issue immediately",
        "Review system logs",
        "Take appropriate action to secure the system",
    ],
}


def get_admin_emails() -> List[str]:
    raw = os.getenv("ADMIN_ALERT_EMAILS", "")
    return [email.strip() for email in raw.split(",") if email.strip()]


def render_alert_email(
    alert_type: str,
    message: str,
    user_id: Optional[str],
    metadata: Optional[Dict[str, Any]],
) -> str:
    """Render the alert as a small HTML email body."""
    title = alert_type.replace("_", " ").upper()
    parts = [
        f"<h1>{html.escape(title)} ALERT</h1>",
        f"<p><strong>Time:</strong> {datetime.now(timezone.utc).isoformat()} UTC</p>",
    ]
    if user_id:
        parts.append(f"<p><strong>User:</strong> {html.escape(user_id)}</p>")
    parts.append(f"<p><strong>Message:</strong> {html.escape(message)}</p>")
    if metadata:
        parts.append(f"<pre>{html.escape(json.dumps(metadata, indent=2, default=str))}</pre>")
    actions = "".join(f"<li>{a}</li>" for a in RECOMMENDED_ACTIONS.get(alert_type, []))
    if actions:
        parts.append(f"<p><strong>Recommended Actions:</strong></p><ul>{actions}</ul>")
    return "\n".join(parts)


async def _email_admins(subject: str, body: str, recipients: List[str]) -> int:
    api_key = os.getenv("RESEND_API_KEY")
    if not api_key:
        logger.info("RESEND_API_KEY not configured, skipping alert email")
        return 0
    if not recipients:
        logger.info("No admin emails configured, skipping alert email")
        return 0

    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    async with httpx.AsyncClient(timeout=15.0) as client:
        for recipient in recipients:
            response = await client.post(
                RESEND_API_URL,
                json={"from": ALERT_FROM_ADDRESS, "to": recipient, "subject": subject, "html": body},
                headers=headers,
            )
            response.raise_for_status()
    return len(recipients)


async def send_admin_alert(
    alert_type: str,
    message: str,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AlertRecord:
    """
    Record an alert and email it to the admins.

    The alert row is written first so it exists even if email delivery fails.
    Email errors propagate to the caller.
    """
    if alert_type not in ALERT_TYPES:
        raise ValueError(f"Unknown alert type: {alert_type}")

    logger.info(f"Sending {alert_type} alert (user={user_id})")
    with Session(engine) as session:
        record = AlertRecord(
            alert_type=alert_type,
            alert_message=message,
            user_id=user_id,
            alert_metadata=metadata,
        )
        session.add(record)
        session.commit()
        session.refresh(record)

    subject = f"{alert_type.replace('_', ' ').upper()} Alert - Grant Assist"
    sent = await _email_admins(subject, render_alert_email(alert_type, message, user_id, metadata), get_admin_emails())
    if sent:
        logger.info(f"Alert sent to {sent} admin(s)")
    return record


async def notify_rate_limit_exceeded(user_id: str, limit: int, window_minutes: int) -> None:
    """Detached side effect of a quota rejection; never raises."""
    try:
        await send_admin_alert(
            "rate_limit",
            f"User exceeded AI request limit of {limit} requests per {window_minutes} minutes.",
            user_id=user_id,
            metadata={"limit": limit, "window_minutes": window_minutes},
        )
    except Exception:
        logger.exception(f"Failed to dispatch rate limit alert for user {user_id}")
