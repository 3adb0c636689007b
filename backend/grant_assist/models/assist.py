"""
AI Assistant Protocol Models

Pydantic models for the two request flavors accepted by the assistant
endpoint and for the structured output expected from the upstream service.
"""
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator

MAX_QUESTION_LENGTH = 1000
MAX_ROUGH_ANSWER_LENGTH = 5000
MAX_CLARIFICATION_LENGTH = 2000
MAX_WORD_LIMIT = 5000
MIN_SUGGESTIONS = 3
MAX_SUGGESTIONS = 5


class _AnswerRequest(BaseModel):
    question_text: str = Field(min_length=1, max_length=MAX_QUESTION_LENGTH, strict=True)
    user_rough_answer: str = Field(min_length=1, max_length=MAX_ROUGH_ANSWER_LENGTH, strict=True)

    @field_validator("question_text", "user_rough_answer")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PolishRequest(_AnswerRequest):
    type: Literal["polish"]
    word_limit: Optional[int] = Field(default=None, gt=0, le=MAX_WORD_LIMIT, strict=True)
    user_clarification: Optional[str] = Field(
        default=None, max_length=MAX_CLARIFICATION_LENGTH, strict=True
    )


class SuggestRequest(_AnswerRequest):
    type: Literal["suggest"]
    # 0 means no limit for suggestions
    word_limit: Optional[int] = Field(default=None, ge=0, le=MAX_WORD_LIMIT, strict=True)
    current_word_count: int = Field(ge=0, strict=True)


AssistRequest = Annotated[Union[PolishRequest, SuggestRequest], Field(discriminator="type")]


# --- Upstream structured output ---
class SuggestionsResult(BaseModel):
    """Arguments the upstream model must pass to the suggestions tool."""
    suggestions: List[Annotated[str, Field(min_length=1, strict=True)]] = Field(
        min_length=MIN_SUGGESTIONS, max_length=MAX_SUGGESTIONS
    )

    @field_validator("suggestions")
    @classmethod
    def _no_blank_items(cls, value: List[str]) -> List[str]:
        if any(not item.strip() for item in value):
            raise ValueError("suggestions must not be blank")
        return value
