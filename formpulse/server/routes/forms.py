"""Forms API — create, read, update, publish, CSV export."""

from __future__ import annotations

import csv
import io
import re
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from formpulse.aggregation.normalize import bucket_key
from formpulse.errors import SchemaError
from formpulse.schema import parse_fields
from formpulse.server.models import FormRow, ResponseRow

router = APIRouter(prefix="/api")

_ID_RE = re.compile(r"^[0-9a-f]{24}$")


class FormBody(BaseModel):
    """Authoring payload for create and update."""

    title: str = ""
    description: str = ""
    fields: list[dict[str, Any]] = Field(default_factory=list)


def _get_db(request: Request) -> Session:
    """Get a DB session from the app state."""
    return request.app.state.db_factory()


def check_id(raw: str, what: str = "id") -> str:
    """Reject ids that are not 24 hex characters with a 400."""
    if not _ID_RE.match(raw):
        raise HTTPException(status_code=400, detail=f"bad {what}")
    return raw


def form_document(form: FormRow) -> dict[str, Any]:
    """Wire shape of a form, as the web client reads it."""
    return {
        "_id": form.id,
        "title": form.title,
        "description": form.description,
        "status": form.status,
        "createdAt": form.created_at.isoformat(),
        "updatedAt": form.updated_at.isoformat(),
        "fields": form.fields or [],
    }


def _validated_fields(raw_fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    try:
        fields = parse_fields(raw_fields)
    except SchemaError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [f.model_dump(mode="json") for f in fields]


def _load_form(db: Session, form_id: str) -> FormRow:
    form = db.get(FormRow, form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return form


@router.post("/forms", status_code=201)
def create_form(request: Request, body: FormBody) -> dict[str, Any]:
    """Create a draft form."""
    fields = _validated_fields(body.fields)
    db = _get_db(request)
    try:
        form = FormRow(
            title=body.title or "Untitled Form",
            description=body.description,
            status="draft",
            fields=fields,
        )
        db.add(form)
        db.commit()
        db.refresh(form)
        return form_document(form)
    finally:
        db.close()


@router.get("/forms/{form_id}")
def get_form(form_id: str, request: Request) -> dict[str, Any]:
    check_id(form_id)
    db = _get_db(request)
    try:
        return form_document(_load_form(db, form_id))
    finally:
        db.close()


@router.put("/forms/{form_id}")
def update_form(form_id: str, request: Request, body: FormBody) -> dict[str, Any]:
    """Replace title, description and the whole field list."""
    check_id(form_id)
    fields = _validated_fields(body.fields)
    db = _get_db(request)
    try:
        form = _load_form(db, form_id)
        form.title = body.title
        form.description = body.description
        form.fields = fields
        form.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(form)
        return form_document(form)
    finally:
        db.close()


@router.post("/forms/{form_id}/publish")
def publish_form(form_id: str, request: Request) -> dict[str, Any]:
    """Open a form for responses."""
    check_id(form_id)
    db = _get_db(request)
    try:
        form = _load_form(db, form_id)
        form.status = "published"
        form.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(form)
        return form_document(form)
    finally:
        db.close()


def export_value(value: Any) -> str:
    """One CSV cell: selections joined with ``|``, scalars as bucket keys."""
    if isinstance(value, list):
        return "|".join(export_value(v) for v in value)
    return bucket_key(value)


@router.get("/forms/{form_id}/export")
def export_csv(form_id: str, request: Request) -> Response:
    """All answers of a form, one row per answer."""
    check_id(form_id)
    db = _get_db(request)
    try:
        rows = (
            db.query(ResponseRow)
            .filter(ResponseRow.form_id == form_id)
            .order_by(ResponseRow.submitted_at)
            .all()
        )
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["submittedAt", "fieldId", "value"])
        for row in rows:
            submitted = row.submitted_at.replace(microsecond=0).isoformat()
            for answer in row.answers or []:
                writer.writerow([submitted, answer.get("fieldId", ""), export_value(answer.get("value"))])
    finally:
        db.close()

    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="form_{form_id}_responses.csv"',
        },
    )
