"""Response validation.

`validate_response` is the single gate for public submissions. It does no I/O
and reads time only from its `now` argument, so a client-side pre-check and the
server produce the same outcome for the same inputs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from surveyhub.survey.models import RejectionReason, SurveySnapshot
from surveyhub.survey.questions import check_answer, is_blank, normalize_answer

REJECTION_MESSAGES = {
    RejectionReason.not_published: "This survey is not accepting responses.",
    RejectionReason.expired: "This survey has expired and is no longer accepting responses.",
    RejectionReason.capacity_reached: "This survey has reached its maximum number of responses.",
    RejectionReason.missing_required_answers: "Please answer all required questions.",
    RejectionReason.email_required: "Email address is required for this survey.",
    RejectionReason.invalid_answer_value: "Some answers are not valid for their questions.",
}


@dataclass(frozen=True)
class Accepted:
    answers: Dict[str, str]
    respondent_email: Optional[str] = None


@dataclass(frozen=True)
class Rejection:
    reason: RejectionReason
    question_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self.reason]


ValidationResult = Union[Accepted, Rejection]


def validate_response(
    survey: SurveySnapshot,
    now: datetime,
    answers: Mapping[str, Any],
    respondent_email: Optional[str],
    response_count: int,
) -> ValidationResult:
    """Check a submission against the survey's gates and question schema.

    Reasons are tried in `RejectionReason` order and the first that applies is
    returned. On success the answers are normalized for storage: strings are
    trimmed, ratings become "1".."5", yes/no answers are lower-cased, and blank
    answers or answers to unknown questions are dropped.
    """
    closed = survey.closed_reason(now, response_count)
    if closed is not None:
        return Rejection(closed)

    missing = survey.missing_required_questions(answers)
    if missing:
        return Rejection(RejectionReason.missing_required_answers, tuple(q.id for q in missing))

    email = respondent_email.strip() if isinstance(respondent_email, str) else None
    if survey.policy.require_email and not email:
        return Rejection(RejectionReason.email_required)

    normalized: Dict[str, str] = {}
    invalid = []
    for question in survey.questions:
        value = answers.get(question.id)
        if not check_answer(question, value):
            invalid.append(question.id)
            continue
        if not is_blank(value):
            normalized[question.id] = normalize_answer(question, value)
    if invalid:
        return Rejection(RejectionReason.invalid_answer_value, tuple(invalid))

    return Accepted(answers=normalized, respondent_email=email or None)
