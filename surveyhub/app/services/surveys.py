"""Survey lifecycle operations for owners and the public submission path.

`SurveyService` is built per request around a `SurveyStore`; nothing here
holds global state.
"""
# app/services/surveys.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple, Union

from fastapi import Depends
from sqlalchemy.orm import Session

from surveyhub.app.core.config import settings
from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.app.schemas.response import ResponseSubmitIn
from surveyhub.app.schemas.survey import SurveyCreateIn, SurveyUpdateIn
from surveyhub.app.services.export import export_filename, export_to_csv
from surveyhub.app.services.links import generate_share_token
from surveyhub.db.session import get_db
from surveyhub.db.store import SurveyStore
from surveyhub.survey.analytics import RECENT_DAYS, AnalyticsReport, DashboardStats, aggregate, dashboard_stats
from surveyhub.survey.errors import (
    NotFoundError,
    PermissionDenied,
    QuestionInUse,
    ShareTokenConflict,
    TokenGenerationFailed,
)
from surveyhub.survey.models import CollectionPolicy, ResponseSnapshot, SurveySnapshot, utcnow
from surveyhub.survey.resolver import Resolution, resolve_share_token
from surveyhub.survey.validator import Rejection, validate_response

logger = get_logs_writer_logger()


@dataclass(frozen=True)
class Stored:
    response_id: str


SubmissionResult = Union[Stored, Rejection]


def _policy_columns(policy: CollectionPolicy) -> dict:
    return {
        "allow_anonymous_responses": policy.allow_anonymous_responses,
        "require_email": policy.require_email,
        "max_responses": policy.max_responses,
        "expires_at": policy.expires_at,
    }


def _question_rows(questions) -> list:
    return [q.model_dump(mode="json") for q in questions]


class SurveyService:
    def __init__(
        self,
        store: SurveyStore,
        token_factory: Callable[[], str] = generate_share_token,
        max_token_attempts: Optional[int] = None,
    ):
        self.store = store
        self.token_factory = token_factory
        self.max_token_attempts = (
            settings.SHARE_TOKEN_MAX_ATTEMPTS if max_token_attempts is None else max_token_attempts
        )

    # -------------------------
    # Owner side
    # -------------------------
    def get_owned(self, survey_id: str, user_id: str) -> SurveySnapshot:
        survey = self.store.get_survey_by_id(survey_id)
        if survey is None:
            raise NotFoundError(f"survey {survey_id}")
        if survey.user_id != user_id:
            raise PermissionDenied(f"survey {survey_id}")
        return survey

    def create(self, user_id: str, payload: SurveyCreateIn) -> SurveySnapshot:
        survey = self.store.create_survey(
            user_id,
            title=payload.title,
            description=payload.description,
            questions=_question_rows(payload.questions),
            is_published=False,
            **_policy_columns(payload.policy),
        )
        logger.info("Survey %s created by %s", survey.survey_id, user_id)
        return survey

    def update(self, survey_id: str, user_id: str, payload: SurveyUpdateIn) -> SurveySnapshot:
        """Apply the fields the owner sent.

        Question ids are stable once answers reference them: a new question
        list must keep the id of every question that has stored answers, or
        the edit is refused with QuestionInUse.
        """
        self.get_owned(survey_id, user_id)
        data = payload.model_dump(exclude_unset=True)
        fields = {}
        if "title" in data and payload.title is not None:
            fields["title"] = payload.title
        if "description" in data:
            fields["description"] = payload.description
        if "questions" in data and payload.questions is not None:
            self._check_answered_questions_kept(survey_id, payload.questions)
            fields["questions"] = _question_rows(payload.questions)
        if "policy" in data and payload.policy is not None:
            fields.update(_policy_columns(payload.policy))
        if not fields:
            return self.get_owned(survey_id, user_id)
        return self.store.update_survey(survey_id, fields)

    def _check_answered_questions_kept(self, survey_id: str, questions) -> None:
        kept = {q.id for q in questions}
        answered = {qid for r in self.store.list_responses(survey_id) for qid in r.answers}
        dropped = sorted(answered - kept)
        if dropped:
            logger.info("Edit of survey %s refused, answered questions dropped: %s", survey_id, dropped)
            raise QuestionInUse(dropped)

    def publish(self, survey_id: str, user_id: str) -> SurveySnapshot:
        """Publish a survey, minting its share token the first time.

        An existing token is kept, so publishing is idempotent. A freshly
        minted token that collides is regenerated up to `max_token_attempts`
        times before giving up with TokenGenerationFailed.
        """
        survey = self.get_owned(survey_id, user_id)
        if survey.share_token:
            if survey.is_published:
                return survey
            survey = self.store.update_survey(survey_id, {"is_published": True})
            logger.info("Survey %s published", survey_id)
            return survey

        for attempt in range(1, self.max_token_attempts + 1):
            token = self.token_factory()
            try:
                survey = self.store.update_survey(survey_id, {"is_published": True, "share_token": token})
            except ShareTokenConflict:
                logger.warning("Share token collision for survey %s (attempt %d)", survey_id, attempt)
                continue
            logger.info("Survey %s published", survey_id)
            return survey

        logger.error("Could not mint a unique share token for survey %s", survey_id)
        raise TokenGenerationFailed(survey_id)

    def unpublish(self, survey_id: str, user_id: str) -> SurveySnapshot:
        survey = self.get_owned(survey_id, user_id)
        if not survey.is_published:
            return survey
        survey = self.store.update_survey(survey_id, {"is_published": False})
        logger.info("Survey %s unpublished", survey_id)
        return survey

    def delete(self, survey_id: str, user_id: str) -> None:
        self.get_owned(survey_id, user_id)
        self.store.delete_survey(survey_id)
        logger.info("Survey %s deleted with its responses", survey_id)

    def list_owned(self, user_id: str) -> List[Tuple[SurveySnapshot, int]]:
        surveys = self.store.list_surveys_for_owner(user_id)
        counts = self.store.response_counts(s.survey_id for s in surveys)
        return [(s, counts.get(s.survey_id, 0)) for s in surveys]

    def dashboard(self, user_id: str, now: datetime) -> DashboardStats:
        surveys = self.store.list_surveys_for_owner(user_id)
        ids = [s.survey_id for s in surveys]
        return dashboard_stats(
            surveys,
            self.store.response_counts(ids),
            self.store.response_counts(ids, since=now - timedelta(days=RECENT_DAYS)),
        )

    def response_count(self, survey_id: str) -> int:
        return self.store.count_responses(survey_id)

    def responses(self, survey_id: str, user_id: str) -> List[ResponseSnapshot]:
        self.get_owned(survey_id, user_id)
        return self.store.list_responses(survey_id)

    def analytics(self, survey_id: str, user_id: str, now: datetime) -> AnalyticsReport:
        survey = self.get_owned(survey_id, user_id)
        return aggregate(survey, self.store.list_responses(survey_id), now)

    def export_csv(self, survey_id: str, user_id: str) -> Tuple[str, str]:
        survey = self.get_owned(survey_id, user_id)
        return export_filename(survey), export_to_csv(survey, self.store.list_responses(survey_id))

    # -------------------------
    # Public side
    # -------------------------
    def resolve(self, token: str, now: datetime) -> Resolution:
        return resolve_share_token(self.store, token, now)

    def submit(self, token: str, payload: ResponseSubmitIn, now: datetime) -> SubmissionResult:
        """Resolve the token, validate the answers and store them if accepted.

        The capacity check and the insert are not atomic, so concurrent
        submissions can overshoot `max_responses` slightly.
        """
        resolution = self.resolve(token, now)
        survey = resolution.survey
        if payload.survey_id and payload.survey_id != survey.survey_id:
            raise NotFoundError("share token")

        result = validate_response(
            survey, now, payload.answers, payload.respondent_email, resolution.response_count
        )
        if isinstance(result, Rejection):
            logger.info("Response to survey %s rejected: %s", survey.survey_id, result.reason.value)
            return result

        response_id = self.store.insert_response(
            survey.survey_id,
            result.answers,
            submitted_at=now,
            respondent_email=result.respondent_email,
            user_agent=payload.user_agent,
        )
        logger.info("Response %s stored for survey %s", response_id, survey.survey_id)
        return Stored(response_id=response_id)


def get_now() -> datetime:
    return utcnow()


def get_store(db: Session = Depends(get_db)) -> SurveyStore:
    return SurveyStore(db)


def get_survey_service(store: SurveyStore = Depends(get_store)) -> SurveyService:
    return SurveyService(store)
