"""Question variants and the rules deciding whether an answer is acceptable.

Each variant is its own pydantic model carrying only its valid fields, and
`Question` is a union discriminated on `type`. Extra fields are forbidden, so a
rating question with options cannot be built.
"""
from __future__ import annotations

import enum
import uuid
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

RATING_MIN = 1
RATING_MAX = 5
RATING_VALUES = tuple(range(RATING_MIN, RATING_MAX + 1))
YES_NO_VALUES = ("yes", "no")


class QuestionType(str, enum.Enum):
    multiple_choice = "multiple-choice"
    text = "text"
    rating = "rating"
    yes_no = "yes-no"


def new_question_id() -> str:
    return uuid.uuid4().hex


class _QuestionBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=new_question_id, min_length=1)
    prompt: str = Field(..., min_length=1)
    required: bool = False

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt must not be blank")
        return v


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["multiple-choice"] = "multiple-choice"
    options: List[str] = Field(..., min_length=1)

    @field_validator("options")
    @classmethod
    def _options_not_blank(cls, v: List[str]) -> List[str]:
        cleaned = [opt.strip() for opt in v]
        if any(not opt for opt in cleaned):
            raise ValueError("options must be non-empty strings")
        return cleaned


class TextQuestion(_QuestionBase):
    type: Literal["text"] = "text"


class RatingQuestion(_QuestionBase):
    type: Literal["rating"] = "rating"


class YesNoQuestion(_QuestionBase):
    type: Literal["yes-no"] = "yes-no"


Question = Annotated[
    Union[MultipleChoiceQuestion, TextQuestion, RatingQuestion, YesNoQuestion],
    Field(discriminator="type"),
]


def is_blank(value: Any) -> bool:
    """True for a missing answer: None or a string that is empty once trimmed."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def parse_rating(value: Any) -> Optional[int]:
    # bool is an int subclass; True is not a rating.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        rating = value
    elif isinstance(value, str):
        try:
            rating = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    if RATING_MIN <= rating <= RATING_MAX:
        return rating
    return None


def normalize_answer(question: Question, value: Any) -> Optional[str]:
    """Return the canonical stored form of `value`, or None if it is unacceptable.

    Blank answers normalize to the empty string; whether a blank answer is
    allowed at all is decided by `check_answer`.
    """
    if is_blank(value):
        return ""

    if isinstance(question, RatingQuestion):
        rating = parse_rating(value)
        return str(rating) if rating is not None else None

    if not isinstance(value, str):
        return None
    value = value.strip()

    if isinstance(question, MultipleChoiceQuestion):
        return value if value in question.options else None
    if isinstance(question, YesNoQuestion):
        lowered = value.lower()
        return lowered if lowered in YES_NO_VALUES else None
    if isinstance(question, TextQuestion):
        return value
    return None


def check_answer(question: Question, value: Any) -> bool:
    """Decide whether `value` is an acceptable answer to `question`."""
    if is_blank(value):
        return not question.required
    return normalize_answer(question, value) is not None
