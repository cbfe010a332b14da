"""Pydantic schemes for public submissions and stored responses.
"""
# app/schemas/response.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from surveyhub.survey.models import ResponseSnapshot
from surveyhub.survey.validator import Rejection


class ResponseSubmitIn(BaseModel):
    survey_id: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)
    respondent_email: Optional[str] = None
    user_agent: Optional[str] = None


class ResponseSubmitOut(BaseModel):
    ok: bool = True
    response_id: str


class RejectionOut(BaseModel):
    reason: str
    message: str
    question_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> "RejectionOut":
        return cls(
            reason=rejection.reason.value,
            message=rejection.message,
            question_ids=list(rejection.question_ids),
        )


class ResponseOut(BaseModel):
    response_id: str
    survey_id: str
    answers: Dict[str, str]
    respondent_email: str | None = None
    submitted_at: datetime

    @classmethod
    def from_snapshot(cls, response: ResponseSnapshot) -> "ResponseOut":
        return cls(
            response_id=response.response_id,
            survey_id=response.survey_id,
            answers=response.answers,
            respondent_email=response.respondent_email,
            submitted_at=response.submitted_at,
        )
