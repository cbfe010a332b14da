"""Share-token resolution for the public survey page."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from surveyhub.survey.errors import NotFoundError
from surveyhub.survey.models import RejectionReason, SurveySnapshot


class ResolutionStatus(str, enum.Enum):
    open = "open"
    expired = "expired"
    capacity_reached = "capacity_reached"


@dataclass(frozen=True)
class Resolution:
    survey: SurveySnapshot
    status: ResolutionStatus
    response_count: int

    @property
    def is_open(self) -> bool:
        return self.status is ResolutionStatus.open


def resolve_share_token(store, token: str, now: datetime) -> Resolution:
    """Map a share token to its survey and say whether it is taking responses.

    `store` needs `get_survey_by_token` (published surveys only) and
    `count_responses`. Raises NotFoundError when no published survey owns the
    token, so a draft's token is indistinguishable from an unknown one. A found
    survey that is expired or full resolves to a closed status instead.
    """
    survey = store.get_survey_by_token(token) if token else None
    if survey is None or not survey.is_published:
        raise NotFoundError("share token")

    count = store.count_responses(survey.survey_id)
    closed = survey.closed_reason(now, count)
    if closed is RejectionReason.expired:
        status = ResolutionStatus.expired
    elif closed is RejectionReason.capacity_reached:
        status = ResolutionStatus.capacity_reached
    else:
        status = ResolutionStatus.open
    return Resolution(survey=survey, status=status, response_count=count)
