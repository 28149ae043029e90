"""Analytics API — the summary a dashboard loads before going live."""

from __future__ import annotations

from fastapi import APIRouter, Request
from sqlalchemy.orm import Session

from formpulse.aggregation.summary import summarize_responses
from formpulse.schema import Answer, parse_fields
from formpulse.server.models import FormRow, ResponseRow
from formpulse.server.routes.forms import check_id

router = APIRouter(prefix="/api")


def _get_db(request: Request) -> Session:
    """Get a DB session from the app state."""
    return request.app.state.db_factory()


@router.get("/analytics/{form_id}/summary")
def analytics_summary(form_id: str, request: Request) -> dict[str, dict[str, dict[str, int]]]:
    """Bucket counts per field over every stored response.

    Keys are produced by the same normalizer the live dashboard uses, so
    checkbox answers count once per selected option.
    """
    check_id(form_id, "formId")
    db = _get_db(request)
    try:
        form = db.get(FormRow, form_id)
        fields = parse_fields(form.fields or []) if form is not None else []
        rows = db.query(ResponseRow).filter(ResponseRow.form_id == form_id).all()
        responses = [
            [Answer.model_validate(a) for a in row.answers or []]
            for row in rows
        ]
    finally:
        db.close()
    return {"buckets": summarize_responses(fields, responses)}
