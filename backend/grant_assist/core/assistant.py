"""
Assistant Dispatcher

Turns validated assistant requests into upstream calls and extracts the
generated content from the OpenAI-style responses.
"""
import json
import logging
from typing import Any, Dict, List
from pydantic import ValidationError as PydanticValidationError

from grant_assist.core.errors import UpstreamError
from grant_assist.core.prompts import (
    SUGGESTIONS_FUNCTION,
    SUGGESTIONS_TOOL,
    build_polish_messages,
    build_suggest_messages,
)
from grant_assist.core.upstream import call_chat_completion
from grant_assist.models.assist import PolishRequest, SuggestRequest, SuggestionsResult

logger = logging.getLogger(__name__)


def _first_message(response: Any) -> Dict[str, Any]:
    if not isinstance(response, dict):
        raise UpstreamError("AI service returned an unexpected response")
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise UpstreamError("AI service returned no choices")
    message = choices[0].get("message")
    if not isinstance(message, dict):
        raise UpstreamError("AI service returned no message")
    return message


async def polish_answer(request: PolishRequest) -> str:
    """Rewrite a rough answer into a grant-ready one."""
    response = await call_chat_completion({"messages": build_polish_messages(request)})

    content = _first_message(response).get("content")
    if not isinstance(content, str) or not content.strip():
        raise UpstreamError("No content in AI response")
    return content


async def suggest_improvements(request: SuggestRequest) -> List[str]:
    """
    Ask for 3-5 improvement suggestions.

    The upstream model is forced to call the suggestions tool; anything
    other than a well-formed call is an UpstreamError.
    """
    response = await call_chat_completion({
        "messages": build_suggest_messages(request),
        "tools": [SUGGESTIONS_TOOL],
        "tool_choice": {"type": "function", "function": {"name": SUGGESTIONS_FUNCTION}},
    })

    tool_calls = _first_message(response).get("tool_calls")
    if not isinstance(tool_calls, list):
        raise UpstreamError("AI service did not return suggestions")
    function = next(
        (
            c["function"] for c in tool_calls
            if isinstance(c, dict)
            and isinstance(c.get("function"), dict)
            and c["function"].get("name") == SUGGESTIONS_FUNCTION
        ),
        None,
    )
    if function is None:
        raise UpstreamError("AI service did not return suggestions")

    arguments = function.get("arguments")
    try:
        parsed = json.loads(arguments) if isinstance(arguments, str) else arguments
        result = SuggestionsResult.model_validate(parsed)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.error(f"Malformed suggestions from AI service: {e}")
        raise UpstreamError("AI service returned malformed suggestions")
    return result.suggestions
