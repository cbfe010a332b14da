"""Owner endpoints: authoring, publishing, responses, analytics and export.

Every route authenticates with the signed owner token in the `t` query
parameter. Surveys of other owners answer 404.
"""
# app/routers/surveys.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Response, status

from surveyhub.app.core.security import require_owner
from surveyhub.app.schemas.response import ResponseOut
from surveyhub.app.schemas.survey import SurveyCreateIn, SurveyOut, SurveyUpdateIn
from surveyhub.app.services.surveys import SurveyService, get_now, get_survey_service
from surveyhub.survey.analytics import AnalyticsReport, DashboardStats

router = APIRouter()


@router.post("/api/surveys", response_model=SurveyOut, status_code=status.HTTP_201_CREATED)
def create_survey(
    payload: SurveyCreateIn,
    user_id: str = Depends(require_owner),
    service: SurveyService = Depends(get_survey_service),
):
    """Create a draft survey.

    Args:
        payload: Title, description, questions and collection policy.
        user_id: The owner, from the access token.
        service: The survey service.

    Returns:
        SurveyOut: The created draft (not published, no share token).
    """
    return SurveyOut.from_snapshot(service.create(user_id, payload), response_count=0)


@router.get("/api/surveys", response_model=List[SurveyOut])
def list_surveys(user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    """List the owner's surveys, newest first, with their response counts."""
    return [SurveyOut.from_snapshot(s, response_count=c) for s, c in service.list_owned(user_id)]


@router.get("/api/dashboard", response_model=DashboardStats)
def get_dashboard(
    user_id: str = Depends(require_owner),
    service: SurveyService = Depends(get_survey_service),
    now: datetime = Depends(get_now),
):
    return service.dashboard(user_id, now)


@router.get("/api/surveys/{survey_id}", response_model=SurveyOut)
def get_survey(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    survey = service.get_owned(survey_id, user_id)
    return SurveyOut.from_snapshot(survey, response_count=service.response_count(survey_id))


@router.patch("/api/surveys/{survey_id}", response_model=SurveyOut)
def update_survey(
    survey_id: str,
    payload: SurveyUpdateIn,
    user_id: str = Depends(require_owner),
    service: SurveyService = Depends(get_survey_service),
):
    """Edit title, description, questions or policy, in draft or published state.

    Errors:
        404: Survey not found or owned by someone else.
        422: Invalid payload (blank title, no questions, duplicate ids...).
    """
    return SurveyOut.from_snapshot(service.update(survey_id, user_id, payload))


@router.post("/api/surveys/{survey_id}/publish", response_model=SurveyOut)
def publish_survey(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    """Publish the survey; the share token is minted on first publish and kept after.

    Errors:
        404: Survey not found.
        503: No unique share token could be generated; retry.
    """
    return SurveyOut.from_snapshot(service.publish(survey_id, user_id))


@router.post("/api/surveys/{survey_id}/unpublish", response_model=SurveyOut)
def unpublish_survey(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    return SurveyOut.from_snapshot(service.unpublish(survey_id, user_id))


@router.delete("/api/surveys/{survey_id}")
def delete_survey(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    """Delete the survey and all of its responses. Irreversible."""
    service.delete(survey_id, user_id)
    return {"ok": True}


@router.get("/api/surveys/{survey_id}/responses", response_model=List[ResponseOut])
def list_responses(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    return [ResponseOut.from_snapshot(r) for r in service.responses(survey_id, user_id)]


@router.get("/api/surveys/{survey_id}/analytics", response_model=AnalyticsReport)
def get_analytics(
    survey_id: str,
    user_id: str = Depends(require_owner),
    service: SurveyService = Depends(get_survey_service),
    now: datetime = Depends(get_now),
):
    """Aggregate the survey's responses.

    Returns:
        AnalyticsReport: Summary counts, per-question distributions and a
        daily series over the last 30 UTC days.
    """
    return service.analytics(survey_id, user_id, now)


@router.get("/api/surveys/{survey_id}/export.csv")
def export_responses(survey_id: str, user_id: str = Depends(require_owner), service: SurveyService = Depends(get_survey_service)):
    filename, content = service.export_csv(survey_id, user_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
