import csv
import io
from datetime import timedelta

import pytest

from factories import NOW

SURVEY = {
    "title": "Lunch feedback",
    "description": "Tell us about lunch",
    "questions": [
        {"id": "meal", "type": "multiple-choice", "prompt": "Which meal?", "options": ["Pasta", "Salad"], "required": True},
        {"id": "stars", "type": "rating", "prompt": "How was it?", "required": True},
        {"id": "again", "type": "yes-no", "prompt": "Would you order again?"},
        {"id": "notes", "type": "text", "prompt": "Notes"},
    ],
}


def _create(client, owner, **overrides):
    payload = {**SURVEY, **overrides}
    r = client.post("/api/surveys", params={"t": owner["t"]}, json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def _publish(client, owner, survey_id):
    r = client.post(f"/api/surveys/{survey_id}/publish", params={"t": owner["t"]})
    assert r.status_code == 200, r.text
    return r.json()


def _submit(client, token, answers, **extra):
    return client.post(f"/api/s/{token}/responses", json={"answers": answers, **extra})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_owner_endpoints_require_a_valid_token(client, owner):
    assert client.get("/api/surveys", params={"t": "bogus"}).status_code == 401
    assert client.get("/api/surveys").status_code == 422


def test_create_returns_draft(client, owner):
    survey = _create(client, owner)
    assert survey["is_published"] is False
    assert survey["share_token"] is None
    assert survey["question_labels"] == {"meal": "Q1", "stars": "Q2", "again": "Q3", "notes": "Q4"}
    assert survey["policy"] == {
        "allow_anonymous_responses": True,
        "require_email": False,
        "max_responses": None,
        "expires_at": None,
    }


@pytest.mark.parametrize("patch", [
    {"title": "   "},
    {"questions": []},
    {"questions": [{"type": "rating", "prompt": "Rate", "options": ["1"]}]},
    {"questions": [{"id": "x", "type": "text", "prompt": "A"}, {"id": "x", "type": "text", "prompt": "B"}]},
    {"policy": {"max_responses": 0}},
])
def test_create_rejects_invalid_definitions(client, owner, patch):
    r = client.post("/api/surveys", params={"t": owner["t"]}, json={**SURVEY, **patch})
    assert r.status_code == 422


def test_publish_mints_stable_token(client, owner):
    survey = _create(client, owner)
    first = _publish(client, owner, survey["survey_id"])
    second = _publish(client, owner, survey["survey_id"])
    assert first["is_published"] is True
    assert len(first["share_token"]) >= 22
    assert first["share_url"].endswith("/s/" + first["share_token"])
    assert second["share_token"] == first["share_token"]


def test_public_flow_submit_and_review(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    token = survey["share_token"]

    public = client.get(f"/api/s/{token}")
    assert public.status_code == 200
    assert public.json()["title"] == "Lunch feedback"
    assert "share_token" not in public.json()

    r = _submit(client, token, {"meal": "Pasta", "stars": "5", "again": "YES", "notes": " great "},
                user_agent="pytest")
    assert r.status_code == 201, r.text
    response_id = r.json()["response_id"]

    listed = client.get(f"/api/surveys/{survey['survey_id']}/responses", params={"t": owner["t"]}).json()
    assert len(listed) == 1
    assert listed[0]["response_id"] == response_id
    assert listed[0]["answers"] == {"meal": "Pasta", "stars": "5", "again": "yes", "notes": "great"}
    assert listed[0]["respondent_email"] is None


def test_submission_rejections_are_structured(client, owner):
    survey = _publish(client, owner, _create(client, owner, policy={"require_email": True})["survey_id"])
    token = survey["share_token"]

    r = _submit(client, token, {"notes": "hi"})
    assert r.status_code == 422
    assert r.json()["detail"] == {
        "reason": "missing_required_answers",
        "message": "Please answer all required questions.",
        "question_ids": ["meal", "stars"],
    }

    r = _submit(client, token, {"meal": "Pasta", "stars": "4"})
    assert r.json()["detail"]["reason"] == "email_required"

    r = _submit(client, token, {"meal": "Soup", "stars": "4"}, respondent_email="a@example.com")
    assert r.status_code == 422
    assert r.json()["detail"]["reason"] == "invalid_answer_value"
    assert r.json()["detail"]["question_ids"] == ["meal"]


def test_capacity_reached_on_third_submission(client, owner):
    survey = _publish(client, owner, _create(client, owner, policy={"max_responses": 2})["survey_id"])
    token = survey["share_token"]
    answers = {"meal": "Salad", "stars": "3"}
    assert _submit(client, token, answers).status_code == 201
    assert _submit(client, token, answers).status_code == 201

    r = _submit(client, token, answers)
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "capacity_reached"

    r = client.get(f"/api/s/{token}")
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "capacity_reached"


def test_expired_survey_is_closed_not_missing(client, owner, clock):
    expires = (NOW + timedelta(hours=1)).isoformat()
    survey = _publish(client, owner, _create(client, owner, policy={"expires_at": expires})["survey_id"])
    token = survey["share_token"]
    assert client.get(f"/api/s/{token}").status_code == 200

    clock["now"] = NOW + timedelta(hours=2)
    r = client.get(f"/api/s/{token}")
    assert r.status_code == 410
    assert r.json()["detail"]["reason"] == "expired"
    assert _submit(client, token, {"meal": "Pasta", "stars": "1"}).status_code == 410


def test_unpublished_token_is_not_found(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    token = survey["share_token"]
    r = client.post(f"/api/surveys/{survey['survey_id']}/unpublish", params={"t": owner["t"]})
    assert r.json()["share_token"] == token

    assert client.get(f"/api/s/{token}").status_code == 404
    assert _submit(client, token, {"meal": "Pasta", "stars": "1"}).status_code == 404
    assert client.get("/api/s/does-not-exist").status_code == 404


def test_submission_with_mismatched_survey_id_is_not_found(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    r = _submit(client, survey["share_token"], {"meal": "Pasta", "stars": "2"}, survey_id="another")
    assert r.status_code == 404


def test_update_survey(client, owner):
    survey = _create(client, owner)
    r = client.patch(
        f"/api/surveys/{survey['survey_id']}",
        params={"t": owner["t"]},
        json={"title": "Dinner feedback", "policy": {"require_email": True, "max_responses": 10}},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Dinner feedback"
    assert body["description"] == "Tell us about lunch"
    assert body["policy"]["require_email"] is True
    assert body["policy"]["max_responses"] == 10
    assert [q["id"] for q in body["questions"]] == ["meal", "stars", "again", "notes"]


def test_surveys_of_other_owners_are_hidden(client, owner, other_owner):
    survey = _create(client, owner)
    path = f"/api/surveys/{survey['survey_id']}"
    assert client.get(path, params={"t": other_owner["t"]}).status_code == 404
    assert client.delete(path, params={"t": other_owner["t"]}).status_code == 404
    assert client.get("/api/surveys", params={"t": other_owner["t"]}).json() == []


def test_analytics_report(client, owner, clock):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    token = survey["share_token"]
    for stars in ["5", "5", "4", "3"]:
        assert _submit(client, token, {"meal": "Pasta", "stars": stars}).status_code == 201

    r = client.get(f"/api/surveys/{survey['survey_id']}/analytics", params={"t": owner["t"]})
    assert r.status_code == 200
    report = r.json()
    assert report["summary"]["total_responses"] == 4
    assert report["summary"]["responses_last_7_days"] == 4
    assert len(report["time_series"]) == 30
    assert report["time_series"][-1] == {"day": NOW.date().isoformat(), "responses": 4}

    by_id = {q["question_id"]: q for q in report["questions"]}
    assert set(by_id) == {"meal", "stars"}
    assert by_id["stars"]["average"] == 4.3
    assert [d["percentage"] for d in by_id["stars"]["distribution"]] == [0, 0, 25, 25, 50]
    assert by_id["meal"]["distribution"] == [{"option": "Pasta", "count": 4, "percentage": 100}]


def test_export_csv(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    _submit(client, survey["share_token"], {"meal": "Salad", "stars": "2"}, respondent_email="x@example.com")

    r = client.get(f"/api/surveys/{survey['survey_id']}/export.csv", params={"t": owner["t"]})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="Lunch_feedback_responses.csv"' in r.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0][3:] == ["Which meal?", "How was it?", "Would you order again?", "Notes"]
    assert rows[1][2:] == ["x@example.com", "Salad", "2", "", ""]


def test_delete_removes_survey_and_responses(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    _submit(client, survey["share_token"], {"meal": "Salad", "stars": "2"})
    path = f"/api/surveys/{survey['survey_id']}"
    assert client.delete(path, params={"t": owner["t"]}).json() == {"ok": True}
    assert client.get(path, params={"t": owner["t"]}).status_code == 404
    assert client.get(f"/api/s/{survey['share_token']}").status_code == 404


def test_list_and_dashboard(client, owner):
    a = _publish(client, owner, _create(client, owner, title="A")["survey_id"])
    _create(client, owner, title="B")
    _submit(client, a["share_token"], {"meal": "Pasta", "stars": "5"})

    listed = client.get("/api/surveys", params={"t": owner["t"]}).json()
    counts = {s["title"]: s["response_count"] for s in listed}
    assert counts == {"A": 1, "B": 0}

    stats = client.get("/api/dashboard", params={"t": owner["t"]}).json()
    assert stats == {
        "total_surveys": 2,
        "published_surveys": 1,
        "draft_surveys": 1,
        "total_responses": 1,
        "responses_last_7_days": 1,
        "avg_responses_per_survey": 1,
    }


def test_storage_failures_are_generic(client, owner, app):
    from surveyhub.app.services.surveys import get_store
    from surveyhub.survey.errors import StorageError

    class BrokenStore:
        def get_user(self, user_id):
            return object()

        def list_surveys_for_owner(self, user_id):
            raise StorageError("database is locked")

    app.dependency_overrides[get_store] = lambda: BrokenStore()
    r = client.get("/api/surveys", params={"t": owner["t"]})
    assert r.status_code == 503
    assert r.json() == {"detail": "Something went wrong. Please try again."}
    assert "locked" not in r.text


def test_editing_a_published_survey_keeps_answers_reachable(client, owner):
    survey = _publish(client, owner, _create(client, owner)["survey_id"])
    path = f"/api/surveys/{survey['survey_id']}"
    assert _submit(client, survey["share_token"], {"meal": "Pasta", "stars": "5"}).status_code == 201

    r = client.patch(path, params={"t": owner["t"]},
                     json={"questions": [{"type": "rating", "prompt": "Rate us", "required": True}]})
    assert r.status_code == 422
    assert r.json()["detail"]["question_ids"] == ["meal", "stars"]

    kept = [q for q in SURVEY["questions"] if q["id"] in ("meal", "stars")]
    kept[1] = {**kept[1], "prompt": "Rate us"}
    r = client.patch(path, params={"t": owner["t"]}, json={"questions": kept})
    assert r.status_code == 200, r.text

    report = client.get(f"{path}/analytics", params={"t": owner["t"]}).json()
    by_id = {q["question_id"]: q for q in report["questions"]}
    assert by_id["stars"]["prompt"] == "Rate us"
    assert by_id["stars"]["average"] == 5.0
    assert by_id["meal"]["total"] == 1
