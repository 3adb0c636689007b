"""
AI Assistant API Routes

Rate-limited endpoint that polishes rough grant answers or suggests
improvements for them.
"""
from fastapi import APIRouter, Depends, Request
from starlette.background import BackgroundTask
import json
import logging

from grant_assist.core.alerts import notify_rate_limit_exceeded
from grant_assist.core.assistant import polish_answer, suggest_improvements
from grant_assist.core.auth import get_current_user_id
from grant_assist.core.errors import RateLimitExceeded, UpstreamError
from grant_assist.core.rate_limiter import evaluate_rate_limit
from grant_assist.core.responses import error_response, success_response
from grant_assist.core.usage_logger import record_usage
from grant_assist.core.validation import parse_assist_request
from grant_assist.models.assist import PolishRequest

logger = logging.getLogger(__name__)

router = APIRouter()

FUNCTION_NAME = "ai-grant-assistant"


@router.post("/ai-grant-assistant")
async def ai_grant_assistant(request: Request, user_id: str = Depends(get_current_user_id)):
    """
    Polish or suggest, selected by the body's "type" field.

    Order: authenticate (dependency), check quota, parse and validate the
    body, call the AI service once, record usage, respond. Any failure
    before the AI call returns immediately without recording usage.
    """
    decision = evaluate_rate_limit(user_id, FUNCTION_NAME)
    if not decision.allowed:
        return error_response(
            RateLimitExceeded(decision.limit, decision.window_minutes),
            background=BackgroundTask(
                notify_rate_limit_exceeded, user_id, decision.limit, decision.window_minutes
            ),
        )

    raw_body = await request.body()
    assist_request = parse_assist_request(raw_body)

    try:
        if isinstance(assist_request, PolishRequest):
            content = {"polished_answer": await polish_answer(assist_request)}
        else:
            content = {"suggestions": await suggest_improvements(assist_request)}
    except UpstreamError as exc:
        # The attempt still counts against the caller's quota
        record_usage(user_id, FUNCTION_NAME, len(raw_body), len(json.dumps(exc.to_payload()).encode("utf-8")))
        raise

    response_size = len(json.dumps(content).encode("utf-8"))
    record_usage(user_id, FUNCTION_NAME, len(raw_body), response_size)
    logger.info(
        f"{FUNCTION_NAME} ({assist_request.type}) served: "
        f"request={len(raw_body)}B response={response_size}B"
    )

    return success_response(content, decision)
