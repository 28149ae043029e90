"""Push-channel message contract.

Every message is a JSON envelope ``{"type": ..., "payload": ...}``.  Only
``response:created`` carries data the dashboard acts on; other types are
accepted by the parser and ignored by the ingestion loop so that new event
kinds can be added server-side without breaking older dashboards.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from formpulse.errors import ParseError
from formpulse.schema import Answer

RESPONSE_CREATED = "response:created"


class Envelope(BaseModel):
    """Outer shape shared by all push-channel messages."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    form_id: str | None = Field(default=None, alias="formId")
    payload: Any = None


class ResponseCreated(BaseModel):
    """Payload of a ``response:created`` envelope."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    answers: list[Answer]
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")


def parse_envelope(message: str | bytes) -> Envelope:
    """Decode one raw channel message.

    Raises:
        ParseError: not JSON (or nested too deeply to decode), not an object,
            or no string ``type``.
    """
    try:
        data = json.loads(message)
    except (TypeError, ValueError, RecursionError) as exc:
        raise ParseError(f"message is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError("message is not a JSON object")
    try:
        return Envelope.model_validate(data)
    except PydanticValidationError as exc:
        raise ParseError(f"bad envelope: {exc.error_count()} error(s)") from exc


def parse_response_created(envelope: Envelope) -> ResponseCreated:
    """Extract the answers of a ``response:created`` envelope.

    Raises:
        ParseError: payload missing, or ``answers`` absent or malformed.
    """
    try:
        return ResponseCreated.model_validate(envelope.payload)
    except PydanticValidationError as exc:
        raise ParseError(f"bad {RESPONSE_CREATED} payload: {exc.error_count()} error(s)") from exc


def response_created(form_id: str, answers: list[Answer], submitted_at: datetime) -> dict[str, Any]:
    """Build the envelope broadcast when a response is stored."""
    return {
        "type": RESPONSE_CREATED,
        "formId": form_id,
        "payload": {
            "answers": [a.model_dump(by_alias=True) for a in answers],
            "submittedAt": submitted_at.isoformat(),
        },
    }
