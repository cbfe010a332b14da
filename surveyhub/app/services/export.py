# app/services/export.py
import csv
import io
import re
from typing import List, Sequence

from surveyhub.survey.models import ResponseSnapshot, SurveySnapshot

ANONYMOUS = "Anonymous"


def export_header(survey: SurveySnapshot) -> List[str]:
    return ["Response ID", "Submitted At", "Email", *[q.prompt for q in survey.questions]]


def export_rows(survey: SurveySnapshot, responses: Sequence[ResponseSnapshot]) -> List[List[str]]:
    """One row per response, columns matching `export_header`."""
    rows = []
    for response in responses:
        rows.append([
            response.response_id,
            response.submitted_at.isoformat(),
            response.respondent_email or ANONYMOUS,
            *[response.answers.get(q.id, "") for q in survey.questions],
        ])
    return rows


def export_to_csv(survey: SurveySnapshot, responses: Sequence[ResponseSnapshot]) -> str:
    """Render the responses of a survey as CSV with every cell double-quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(export_header(survey))
    writer.writerows(export_rows(survey, responses))
    return buffer.getvalue()


def export_filename(survey: SurveySnapshot) -> str:
    return re.sub(r"[^a-z0-9]", "_", survey.title, flags=re.IGNORECASE) + "_responses.csv"
