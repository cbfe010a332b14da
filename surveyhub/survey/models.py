"""Immutable views of a survey and its responses as read from storage.

All timestamps are UTC. Naive datetimes (SQLite drops the offset) are taken
to be UTC already.
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from surveyhub.survey.questions import Question, is_blank


class RejectionReason(str, enum.Enum):
    # Declaration order is the order in which submissions are checked.
    not_published = "not_published"
    expired = "expired"
    capacity_reached = "capacity_reached"
    missing_required_answers = "missing_required_answers"
    email_required = "email_required"
    invalid_answer_value = "invalid_answer_value"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CollectionPolicy(BaseModel):
    """The recognised response collection settings of a survey."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    allow_anonymous_responses: bool = True
    require_email: bool = False
    max_responses: Optional[int] = Field(default=None, gt=0)
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and as_utc(now) >= self.expires_at

    def is_full(self, response_count: int) -> bool:
        return self.max_responses is not None and response_count >= self.max_responses


class SurveySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    survey_id: str
    user_id: str
    title: str
    description: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    is_published: bool = False
    share_token: Optional[str] = None
    policy: CollectionPolicy = Field(default_factory=CollectionPolicy)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @classmethod
    def from_record(cls, record: Any) -> "SurveySnapshot":
        return cls(
            survey_id=record.survey_id,
            user_id=record.user_id,
            title=record.title,
            description=record.description,
            questions=record.questions or [],
            is_published=record.is_published,
            share_token=record.share_token,
            policy=CollectionPolicy(
                allow_anonymous_responses=record.allow_anonymous_responses,
                require_email=record.require_email,
                max_responses=record.max_responses,
                expires_at=record.expires_at,
            ),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def question_labels(self) -> Dict[str, str]:
        return {q.id: f"Q{i}" for i, q in enumerate(self.questions, start=1)}

    def closed_reason(self, now: datetime, response_count: int) -> Optional[RejectionReason]:
        """Name the first gate that stops this survey accepting responses, or None."""
        if not self.is_published:
            return RejectionReason.not_published
        if self.policy.is_expired(now):
            return RejectionReason.expired
        if self.policy.is_full(response_count):
            return RejectionReason.capacity_reached
        return None

    def can_accept_responses(self, now: datetime, response_count: int) -> bool:
        return self.closed_reason(now, response_count) is None

    def missing_required_questions(self, answers: Mapping[str, Any]) -> List[Question]:
        return [q for q in self.questions if q.required and is_blank(answers.get(q.id))]


class ResponseSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_id: str
    survey_id: str
    answers: Dict[str, str] = Field(default_factory=dict)
    respondent_email: Optional[str] = None
    submitted_at: datetime
    user_agent: Optional[str] = None

    @field_validator("submitted_at")
    @classmethod
    def _submitted_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @classmethod
    def from_record(cls, record: Any) -> "ResponseSnapshot":
        return cls(
            response_id=record.response_id,
            survey_id=record.survey_id,
            answers=record.answers or {},
            respondent_email=record.respondent_email,
            submitted_at=record.submitted_at,
            user_agent=record.user_agent,
        )
