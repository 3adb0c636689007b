"""
Upstream Client

Makes requests to the OpenAI-compatible AI gateway that hosts the
text-generation model. One attempt per call; retries are the caller's job.
"""
import httpx
import logging
import os
from typing import Any, Dict

from grant_assist.core.errors import InternalError, UpstreamError

logger = logging.getLogger(__name__)

AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
AI_GATEWAY_MODEL = os.getenv("AI_GATEWAY_MODEL", "google/gemini-2.5-flash")
AI_GATEWAY_TIMEOUT = float(os.getenv("AI_GATEWAY_TIMEOUT", "60"))


def get_api_key() -> str:
    api_key = os.getenv("AI_GATEWAY_API_KEY")
    if not api_key:
        raise InternalError("AI_GATEWAY_API_KEY not configured")
    return api_key


async def call_chat_completion(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Make a single non-streaming chat completion request.

    Args:
        payload: OpenAI-style body with messages (and optionally tools).
            The configured model is filled in when the payload has none.

    Returns:
        The decoded JSON response.

    Raises:
        UpstreamError: non-2xx status, timeout, transport failure or a body
            that is not JSON.
    """
    body = {"model": AI_GATEWAY_MODEL, **payload}
    headers = {
        "Authorization": f"Bearer {get_api_key()}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=AI_GATEWAY_TIMEOUT) as client:
            response = await client.post(AI_GATEWAY_URL, json=body, headers=headers)
    except httpx.TimeoutException:
        logger.error(f"AI gateway timed out after {AI_GATEWAY_TIMEOUT}s")
        raise UpstreamError("AI service timed out, please try again later")
    except httpx.RequestError as e:
        logger.error(f"AI gateway request failed: {e}")
        raise UpstreamError("AI service is unreachable, please try again later")

    if response.status_code == 429:
        logger.error("AI gateway rate limited the request")
        raise UpstreamError("AI service rate limits exceeded, please try again later.", 429)
    if response.status_code == 402:
        logger.error("AI gateway reports depleted credits")
        raise UpstreamError("AI credits depleted, please try again later.", 402)
    if not response.is_success:
        logger.error(f"AI gateway error: {response.status_code} - {response.text[:200]}")
        raise UpstreamError(f"AI service error: {response.status_code}", response.status_code)

    try:
        return response.json()
    except ValueError:
        logger.error("AI gateway returned a non-JSON body")
        raise UpstreamError("AI service returned an unreadable response")
