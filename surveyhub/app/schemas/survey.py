"""Pydantic schemes for surveys, as authored by owners and shown to respondents.
"""
# app/schemas/survey.py
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field

from surveyhub.app.services.links import share_url
from surveyhub.survey.models import CollectionPolicy, SurveySnapshot
from surveyhub.survey.questions import Question


def _unique_question_ids(questions):
    seen = set()
    for q in questions:
        if q.id in seen:
            raise ValueError(f"duplicate question id: {q.id}")
        seen.add(q.id)
    return questions


def _title_not_blank(title):
    title = title.strip()
    if not title:
        raise ValueError("title must not be blank")
    return title


Title = Annotated[str, Field(min_length=1), AfterValidator(_title_not_blank)]
QuestionList = Annotated[List[Question], Field(min_length=1), AfterValidator(_unique_question_ids)]


class SurveyCreateIn(BaseModel):
    title: Title
    description: Optional[str] = None
    questions: QuestionList
    policy: CollectionPolicy = Field(default_factory=CollectionPolicy)


class SurveyUpdateIn(BaseModel):
    title: Optional[Title] = None
    description: Optional[str] = None
    questions: Optional[QuestionList] = None
    policy: Optional[CollectionPolicy] = None


class SurveyOut(BaseModel):
    survey_id: str
    user_id: str
    title: str
    description: str | None = None
    questions: List[Question]
    question_labels: dict[str, str]
    is_published: bool
    share_token: str | None = None
    share_url: str | None = None
    policy: CollectionPolicy
    created_at: datetime | None = None
    updated_at: datetime | None = None
    response_count: int | None = None

    @classmethod
    def from_snapshot(cls, survey: SurveySnapshot, response_count: Optional[int] = None) -> "SurveyOut":
        return cls(
            survey_id=survey.survey_id,
            user_id=survey.user_id,
            title=survey.title,
            description=survey.description,
            questions=survey.questions,
            question_labels=survey.question_labels(),
            is_published=survey.is_published,
            share_token=survey.share_token,
            share_url=share_url(survey.share_token) if survey.is_published and survey.share_token else None,
            policy=survey.policy,
            created_at=survey.created_at,
            updated_at=survey.updated_at,
            response_count=response_count,
        )


class PublicSurveyOut(BaseModel):
    """What a respondent sees after resolving a share token."""
    survey_id: str
    title: str
    description: str | None = None
    questions: List[Question]
    question_labels: dict[str, str]
    require_email: bool
    allow_anonymous_responses: bool

    @classmethod
    def from_snapshot(cls, survey: SurveySnapshot) -> "PublicSurveyOut":
        return cls(
            survey_id=survey.survey_id,
            title=survey.title,
            description=survey.description,
            questions=survey.questions,
            question_labels=survey.question_labels(),
            require_email=survey.policy.require_email,
            allow_anonymous_responses=survey.policy.allow_anonymous_responses,
        )
