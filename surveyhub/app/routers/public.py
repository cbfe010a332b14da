"""Public endpoints reached through a survey's share link."""
# app/routers/public.py
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from surveyhub.app.schemas.response import RejectionOut, ResponseSubmitIn, ResponseSubmitOut
from surveyhub.app.schemas.survey import PublicSurveyOut
from surveyhub.app.services.surveys import SurveyService, get_now, get_survey_service
from surveyhub.survey.models import RejectionReason
from surveyhub.survey.resolver import ResolutionStatus
from surveyhub.survey.validator import Rejection

router = APIRouter()

REJECTION_STATUS = {
    RejectionReason.not_published: status.HTTP_403_FORBIDDEN,
    RejectionReason.expired: status.HTTP_410_GONE,
    RejectionReason.capacity_reached: status.HTTP_409_CONFLICT,
}

CLOSED_REASON = {
    ResolutionStatus.expired: RejectionReason.expired,
    ResolutionStatus.capacity_reached: RejectionReason.capacity_reached,
}


def rejection_response(rejection: Rejection) -> JSONResponse:
    return JSONResponse(
        status_code=REJECTION_STATUS.get(rejection.reason, status.HTTP_422_UNPROCESSABLE_ENTITY),
        content={"detail": RejectionOut.from_rejection(rejection).model_dump()},
    )


@router.get("/api/s/{token}", response_model=PublicSurveyOut)
def open_survey(token: str, service: SurveyService = Depends(get_survey_service), now: datetime = Depends(get_now)):
    """Resolve a share token for the respondent form.

    Args:
        token: The share token from the public link.
        service: The survey service.
        now: The current time.

    Returns:
        PublicSurveyOut: The survey as shown to respondents.

    Errors:
        404: No published survey with this token.
        409/410: The survey exists but is full or expired.
    """
    resolution = service.resolve(token, now)
    if not resolution.is_open:
        return rejection_response(Rejection(CLOSED_REASON[resolution.status]))
    return PublicSurveyOut.from_snapshot(resolution.survey)


@router.post(
    "/api/s/{token}/responses",
    response_model=ResponseSubmitOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_response(
    token: str,
    payload: ResponseSubmitIn,
    service: SurveyService = Depends(get_survey_service),
    now: datetime = Depends(get_now),
):
    """Submit a response through a share link.

    Errors:
        404: No published survey with this token.
        409/410: Capacity reached / expired.
        422: Missing required answers, missing email, or invalid answer values;
            the body names the reason and the offending question ids.
    """
    result = service.submit(token, payload, now)
    if isinstance(result, Rejection):
        return rejection_response(result)
    return ResponseSubmitOut(response_id=result.response_id)
