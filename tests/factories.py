from datetime import datetime, timezone

from surveyhub.survey.models import CollectionPolicy, ResponseSnapshot, SurveySnapshot
from surveyhub.survey.questions import MultipleChoiceQuestion, RatingQuestion, TextQuestion, YesNoQuestion

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def sample_questions():
    return [
        MultipleChoiceQuestion(id="color", prompt="Favourite colour?", options=["Red", "Green", "Blue"], required=True),
        TextQuestion(id="comment", prompt="Anything else?"),
        RatingQuestion(id="score", prompt="Rate us", required=True),
        YesNoQuestion(id="again", prompt="Would you come back?"),
    ]


def make_survey(questions=None, **kwargs):
    policy = kwargs.pop("policy", None) or CollectionPolicy(**{
        k: kwargs.pop(k) for k in list(kwargs)
        if k in ("allow_anonymous_responses", "require_email", "max_responses", "expires_at")
    })
    data = dict(
        survey_id="s1",
        user_id="u1",
        title="Customer feedback",
        questions=sample_questions() if questions is None else questions,
        is_published=True,
        share_token="tok",
        policy=policy,
    )
    data.update(kwargs)
    return SurveySnapshot(**data)


_counter = 0


def make_response(answers, submitted_at=NOW, survey_id="s1", **kwargs):
    global _counter
    _counter += 1
    return ResponseSnapshot(
        response_id=kwargs.pop("response_id", f"r{_counter}"),
        survey_id=survey_id,
        answers=answers,
        submitted_at=submitted_at,
        **kwargs,
    )


VALID_ANSWERS = {"color": "Green", "score": "4"}
