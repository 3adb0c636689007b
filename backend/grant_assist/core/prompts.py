"""
Prompt Templates

System instructions and user prompt builders for the assistant flavors.
"""
from typing import Any, Dict, List

from grant_assist.models.assist import (
    MAX_SUGGESTIONS,
    MIN_SUGGESTIONS,
    PolishRequest,
    SuggestRequest,
)

POLISH_SYSTEM_PROMPT = """You are High Spirit AI, a professional grant writer helping small business owners create compelling grant applications. Your job is to transform rough answers into polished, professional, grant-ready responses.

Guidelines:
- Keep the user's original intent and information
- Use clear, confident, professional language
- Be specific and detailed
- Use active voice
- Show impact and value
- Stay within word limit if provided (soft limit, +/-10% okay)
- Do not invent facts or data"""

SUGGEST_SYSTEM_PROMPT = """You are an expert grant writing coach helping small business owners strengthen their grant applications.

Review the user's draft answer and give specific, actionable suggestions for improving it:
- Point out missing details, numbers, dates or outcomes the reviewer will look for
- Flag vague or passive phrasing
- Make sure the answer directly addresses the question
- Respect the word limit: if the draft is over, suggest what to cut; if well under, suggest what to add
- Never rewrite the whole answer"""

SUGGESTIONS_FUNCTION = "provide_suggestions"

SUGGESTIONS_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": SUGGESTIONS_FUNCTION,
        "description": "Return concrete suggestions for improving a grant answer.",
        "parameters": {
            "type": "object",
            "properties": {
                "suggestions": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": MIN_SUGGESTIONS,
                    "maxItems": MAX_SUGGESTIONS,
                },
            },
            "required": ["suggestions"],
            "additionalProperties": False,
        },
    },
}


def build_polish_messages(request: PolishRequest) -> List[Dict[str, str]]:
    lines = [
        f"Grant Question: {request.question_text}",
        "",
        f"User's Rough Answer: {request.user_rough_answer}",
        "",
    ]
    if request.user_clarification:
        lines.append(f"Additional Clarification: {request.user_clarification}")
    if request.word_limit:
        lines.append(f"Word Limit: {request.word_limit} words")
    lines.append("")
    lines.append("Please polish this into a professional grant answer.")

    return [
        {"role": "system", "content": POLISH_SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def build_suggest_messages(request: SuggestRequest) -> List[Dict[str, str]]:
    lines = [
        f"Grant Question: {request.question_text}",
        "",
        f"User's Draft Answer: {request.user_rough_answer}",
        "",
        f"Current Word Count: {request.current_word_count}",
    ]
    if request.word_limit:
        lines.append(f"Word Limit: {request.word_limit} words")
    lines.append("")
    lines.append(
        f"Give {MIN_SUGGESTIONS}-{MAX_SUGGESTIONS} specific suggestions "
        f"by calling {SUGGESTIONS_FUNCTION}."
    )

    return [
        {"role": "system", "content": SUGGEST_SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]
