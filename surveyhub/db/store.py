"""Record storage for surveys and their responses.

`SurveyStore` wraps one SQLAlchemy session and hands out immutable snapshots.
Every database failure surfaces as `StorageError`; the underlying detail is
logged here and never leaves the store in the exception message shown to
respondents.
"""
# db/store.py
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.db.models import Survey, SurveyResponse, User
from surveyhub.survey.errors import NotFoundError, ShareTokenConflict, StorageError
from surveyhub.survey.models import ResponseSnapshot, SurveySnapshot

logger = get_logs_writer_logger()

UPDATABLE_FIELDS = {
    "title",
    "description",
    "questions",
    "is_published",
    "share_token",
    "allow_anonymous_responses",
    "require_email",
    "max_responses",
    "expires_at",
}


class SurveyStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            if "share_token" in str(e.orig):
                logger.warning("Share token collision during %s", action)
                raise ShareTokenConflict(action) from e
            logger.error("Integrity error during %s: %s", action, e)
            raise StorageError(action) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Storage failure during %s: %s", action, e)
            raise StorageError(action) from e

    # -------------------------
    # Users
    # -------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with self._guard("get_user"):
            return self.db.get(User, user_id)

    def create_user(self, email: str, full_name: Optional[str] = None) -> User:
        with self._guard("create_user"):
            user = User(email=email, full_name=full_name)
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user

    # -------------------------
    # Surveys
    # -------------------------
    def create_survey(self, user_id: str, **fields: Any) -> SurveySnapshot:
        with self._guard("create_survey"):
            survey = Survey(user_id=user_id, **fields)
            self.db.add(survey)
            self.db.commit()
            self.db.refresh(survey)
            return SurveySnapshot.from_record(survey)

    def get_survey_by_id(self, survey_id: str) -> Optional[SurveySnapshot]:
        with self._guard("get_survey_by_id"):
            survey = self.db.get(Survey, survey_id)
            return SurveySnapshot.from_record(survey) if survey else None

    def get_survey_by_token(self, token: str) -> Optional[SurveySnapshot]:
        """Find a published survey by its share token; drafts are invisible."""
        with self._guard("get_survey_by_token"):
            survey = self.db.execute(
                select(Survey).where(Survey.share_token == token, Survey.is_published.is_(True))
            ).scalar_one_or_none()
            return SurveySnapshot.from_record(survey) if survey else None

    def list_surveys_for_owner(self, user_id: str) -> List[SurveySnapshot]:
        with self._guard("list_surveys_for_owner"):
            rows = self.db.execute(
                select(Survey).where(Survey.user_id == user_id).order_by(Survey.created_at.desc())
            ).scalars().all()
            return [SurveySnapshot.from_record(r) for r in rows]

    def update_survey(self, survey_id: str, fields: Dict[str, Any]) -> SurveySnapshot:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")
        with self._guard("update_survey"):
            survey = self.db.get(Survey, survey_id)
            if not survey:
                raise NotFoundError(f"survey {survey_id}")
            for key, value in fields.items():
                setattr(survey, key, value)
            self.db.commit()
            self.db.refresh(survey)
            return SurveySnapshot.from_record(survey)

    def delete_survey(self, survey_id: str) -> None:
        """Delete a survey together with all of its responses."""
        with self._guard("delete_survey"):
            survey = self.db.get(Survey, survey_id)
            if not survey:
                raise NotFoundError(f"survey {survey_id}")
            self.db.delete(survey)
            self.db.commit()

    # -------------------------
    # Responses
    # -------------------------
    def count_responses(self, survey_id: str) -> int:
        with self._guard("count_responses"):
            return self.db.execute(
                select(func.count(SurveyResponse.response_id)).where(SurveyResponse.survey_id == survey_id)
            ).scalar_one()

    def response_counts(self, survey_ids: Iterable[str], since: Optional[datetime] = None) -> Dict[str, int]:
        survey_ids = list(survey_ids)
        if not survey_ids:
            return {}
        with self._guard("response_counts"):
            stmt = (
                select(SurveyResponse.survey_id, func.count(SurveyResponse.response_id))
                .where(SurveyResponse.survey_id.in_(survey_ids))
                .group_by(SurveyResponse.survey_id)
            )
            if since is not None:
                stmt = stmt.where(SurveyResponse.submitted_at >= since)
            return {survey_id: count for survey_id, count in self.db.execute(stmt).all()}

    def insert_response(
        self,
        survey_id: str,
        answers: Dict[str, str],
        submitted_at: datetime,
        respondent_email: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        with self._guard("insert_response"):
            response = SurveyResponse(
                survey_id=survey_id,
                answers=dict(answers),
                respondent_email=respondent_email,
                submitted_at=submitted_at,
                user_agent=user_agent,
            )
            self.db.add(response)
            self.db.commit()
            return response.response_id

    def list_responses(self, survey_id: str) -> List[ResponseSnapshot]:
        """All responses of a survey, newest first."""
        with self._guard("list_responses"):
            rows = self.db.execute(
                select(SurveyResponse)
                .where(SurveyResponse.survey_id == survey_id)
                .order_by(SurveyResponse.submitted_at.desc())
            ).scalars().all()
            return [ResponseSnapshot.from_record(r) for r in rows]
