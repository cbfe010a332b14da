"""Reduce a survey's responses into per-question statistics and a daily series.

Everything here is a pure function of (survey, responses, now). Day buckets use
UTC calendar days.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from surveyhub.survey.models import ResponseSnapshot, SurveySnapshot, as_utc
from surveyhub.survey.questions import (
    RATING_VALUES,
    YES_NO_VALUES,
    MultipleChoiceQuestion,
    Question,
    RatingQuestion,
    YesNoQuestion,
    is_blank,
    parse_rating,
)

TIME_SERIES_DAYS = 30
RECENT_DAYS = 7


class OptionCount(BaseModel):
    option: str
    count: int
    percentage: int


class QuestionAnalytics(BaseModel):
    question_id: str
    label: str
    prompt: str
    type: str
    total: int
    average: Optional[float] = None
    distribution: List[OptionCount] = Field(default_factory=list)


class DailyCount(BaseModel):
    day: date
    responses: int


class ResponseSummary(BaseModel):
    total_responses: int
    responses_last_7_days: int
    responses_last_30_days: int
    first_response_at: Optional[datetime] = None
    last_response_at: Optional[datetime] = None


class AnalyticsReport(BaseModel):
    survey_id: str
    generated_at: datetime
    summary: ResponseSummary
    questions: List[QuestionAnalytics] = Field(default_factory=list)
    time_series: List[DailyCount] = Field(default_factory=list)


def percentage(count: int, total: int) -> int:
    """Share of `total` as a whole percent, ties rounded half up."""
    if total <= 0:
        return 0
    ratio = Decimal(count) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def mean_one_decimal(values: Sequence[int]) -> float:
    avg = Decimal(sum(values)) / Decimal(len(values))
    return float(avg.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _answered(question: Question, responses: Iterable[ResponseSnapshot]) -> List[str]:
    values = []
    for response in responses:
        value = response.answers.get(question.id)
        if not is_blank(value):
            values.append(value)
    return values


def _counts(values: Iterable[str]) -> Dict[str, int]:
    # dict keeps first-seen order
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def analyze_question(
    question: Question, label: str, responses: Sequence[ResponseSnapshot]
) -> Optional[QuestionAnalytics]:
    """Build the distribution for one question, or None when there is nothing to show."""
    values = _answered(question, responses)
    if not values:
        return None

    base = dict(question_id=question.id, label=label, prompt=question.prompt, type=question.type)

    if isinstance(question, MultipleChoiceQuestion):
        total = len(values)
        return QuestionAnalytics(
            **base,
            total=total,
            distribution=[
                OptionCount(option=option, count=count, percentage=percentage(count, total))
                for option, count in _counts(values).items()
            ],
        )

    if isinstance(question, RatingQuestion):
        ratings = [r for r in (parse_rating(v) for v in values) if r is not None]
        if not ratings:
            return None
        total = len(ratings)
        counts = _counts(str(r) for r in ratings)
        return QuestionAnalytics(
            **base,
            total=total,
            average=mean_one_decimal(ratings),
            distribution=[
                OptionCount(
                    option=str(value),
                    count=counts.get(str(value), 0),
                    percentage=percentage(counts.get(str(value), 0), total),
                )
                for value in RATING_VALUES
            ],
        )

    if isinstance(question, YesNoQuestion):
        total = len(values)
        counts = _counts(v.strip().lower() for v in values)
        return QuestionAnalytics(
            **base,
            total=total,
            distribution=[
                OptionCount(option=value, count=counts.get(value, 0), percentage=percentage(counts.get(value, 0), total))
                for value in YES_NO_VALUES
            ],
        )

    return None


def daily_series(responses: Iterable[ResponseSnapshot], now: datetime, days: int = TIME_SERIES_DAYS) -> List[DailyCount]:
    today = as_utc(now).date()
    first_day = today - timedelta(days=days - 1)
    buckets: Dict[date, int] = {first_day + timedelta(days=i): 0 for i in range(days)}
    for response in responses:
        day = as_utc(response.submitted_at).date()
        if day in buckets:
            buckets[day] += 1
    return [DailyCount(day=day, responses=count) for day, count in buckets.items()]


def summarize(responses: Sequence[ResponseSnapshot], now: datetime) -> ResponseSummary:
    now = as_utc(now)
    stamps = [as_utc(r.submitted_at) for r in responses]
    return ResponseSummary(
        total_responses=len(stamps),
        responses_last_7_days=sum(1 for ts in stamps if ts >= now - timedelta(days=RECENT_DAYS)),
        responses_last_30_days=sum(1 for ts in stamps if ts >= now - timedelta(days=TIME_SERIES_DAYS)),
        first_response_at=min(stamps) if stamps else None,
        last_response_at=max(stamps) if stamps else None,
    )


def aggregate(
    survey: SurveySnapshot,
    responses: Sequence[ResponseSnapshot],
    now: datetime,
) -> AnalyticsReport:
    labels = survey.question_labels()
    questions = []
    for question in survey.questions:
        analysis = analyze_question(question, labels[question.id], responses)
        if analysis is not None:
            questions.append(analysis)

    return AnalyticsReport(
        survey_id=survey.survey_id,
        generated_at=as_utc(now),
        summary=summarize(responses, now),
        questions=questions,
        time_series=daily_series(responses, now),
    )


class DashboardStats(BaseModel):
    total_surveys: int
    published_surveys: int
    draft_surveys: int
    total_responses: int
    responses_last_7_days: int
    avg_responses_per_survey: int


def dashboard_stats(
    surveys: Sequence[SurveySnapshot],
    total_counts: Dict[str, int],
    recent_counts: Dict[str, int],
) -> DashboardStats:
    """Owner-wide totals over all of their surveys.

    `total_counts` and `recent_counts` map survey ids to response counts (all
    time and last 7 days); surveys missing from a map count as zero.
    """
    published = sum(1 for s in surveys if s.is_published)
    total = sum(total_counts.get(s.survey_id, 0) for s in surveys)
    recent = sum(recent_counts.get(s.survey_id, 0) for s in surveys)
    avg = 0
    if surveys:
        avg = int((Decimal(total) / Decimal(len(surveys))).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return DashboardStats(
        total_surveys=len(surveys),
        published_surveys=published,
        draft_surveys=len(surveys) - published,
        total_responses=total,
        responses_last_7_days=recent,
        avg_responses_per_survey=avg,
    )
