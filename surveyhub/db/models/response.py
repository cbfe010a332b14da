# db/models/response.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import JSON, String, DateTime, ForeignKey
from surveyhub.db import Base
import uuid


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    response_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    survey_id: Mapped[str] = mapped_column(String, ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False, index=True)
    # question id -> normalized answer string
    answers: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    respondent_email: Mapped[str | None] = mapped_column(String, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    user_agent: Mapped[str | None] = mapped_column(String, nullable=True)

    survey = relationship("Survey", back_populates="responses")
