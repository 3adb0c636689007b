"""
Response Formatting

Builds the JSON responses returned by the assistant gateway.
"""
from typing import Any, Dict, Optional
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from grant_assist.core.errors import GatewayError
from grant_assist.core.rate_limiter import RateLimitDecision


def success_response(content: Dict[str, Any], decision: RateLimitDecision) -> JSONResponse:
    """Wrap generated content with the caller's rate limit summary."""
    return JSONResponse(
        content={**content, "rate_limit": decision.as_summary()},
        headers=decision.headers,
    )


def error_response(exc: GatewayError, background: Optional[BackgroundTask] = None) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(),
        headers=exc.headers,
        background=background,
    )
