"""SQLAlchemy ORM models — forms and their responses.

Fields and answers are stored as JSON documents: a form's field list is
always read and written whole, and responses are never updated.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formpulse.server.db import Base


def new_id() -> str:
    """24 hex characters, the id format the web client expects."""
    return secrets.token_hex(12)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormRow(Base):
    """An authored form.  ``status`` is ``draft`` until published."""

    __tablename__ = "forms"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(500), default="Untitled Form")
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default="draft")
    fields: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    responses: Mapped[list[ResponseRow]] = relationship(back_populates="form")


class ResponseRow(Base):
    """One submitted response.  Immutable once inserted."""

    __tablename__ = "responses"
    __table_args__ = (Index("ix_responses_form_id", "form_id"),)

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    form_id: Mapped[str] = mapped_column(ForeignKey("forms.id"))
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    meta: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)

    form: Mapped[FormRow] = relationship(back_populates="responses")
