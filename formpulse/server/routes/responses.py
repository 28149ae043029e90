"""Responses API — accept a submission and notify live dashboards."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from formpulse.live.events import response_created
from formpulse.schema import Answer, parse_fields
from formpulse.server.models import FormRow, ResponseRow
from formpulse.server.routes.forms import check_id
from formpulse.validation import check_answers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _get_db(request: Request) -> Session:
    """Get a DB session from the app state."""
    return request.app.state.db_factory()


class SubmitBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: str = Field(alias="formId")
    answers: list[Answer] = Field(default_factory=list)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def _store_response(request: Request, form_id: str, body: SubmitBody) -> datetime:
    """Check *body* against the published form and insert it.  Returns ``submitted_at``."""
    db = _get_db(request)
    try:
        form = db.get(FormRow, form_id)
        if form is None or form.status != "published":
            raise HTTPException(status_code=404, detail="form not found or not published")

        fields = parse_fields(form.fields or [])
        # one answer at a time so a repeated fieldId is checked every time
        problems = [
            p for a in body.answers for p in check_answers(fields, {a.field_id: a.value})
        ]
        if problems:
            raise HTTPException(status_code=400, detail=problems[0].message)

        row = ResponseRow(
            form_id=form_id,
            answers=[a.model_dump(by_alias=True) for a in body.answers],
            meta={
                "ip": _client_ip(request),
                "ua": request.headers.get("user-agent", ""),
            },
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row.submitted_at
    finally:
        db.close()


@router.post("/responses", status_code=201)
async def submit_response(request: Request, body: SubmitBody) -> Response:
    """Store one response and broadcast ``response:created``.

    Answer shapes are checked against the form; required fields are not,
    so a submission that bypasses the form page's gate is still stored.
    """
    form_id = check_id(body.form_id, "formId")
    submitted_at = await run_in_threadpool(_store_response, request, form_id, body)

    delivered = await request.app.state.hub.broadcast(
        form_id, response_created(form_id, body.answers, submitted_at)
    )
    logger.debug("Response stored for form %s, pushed to %d dashboard(s)", form_id, delivered)
    return Response(status_code=201)
