"""Respondent-side answer checks.

``first_unfilled_required`` is the submission gate: the form page refuses to
submit while it returns a field.  ``check_answers`` reports shape problems
(wrong type, unknown option, rating out of range) for inline hints.

The required-field gate runs only on the respondent's side.  The server
repeats ``check_answers`` but not the gate, so a direct submission that skips
it is accepted.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from formpulse.errors import ValidationError
from formpulse.schema import (
    CheckboxField,
    FormField,
    McqField,
    RatingField,
    TextareaField,
    TextField,
)

_MULTI = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class AnswerProblem:
    """One advisory problem with a submitted answer."""

    field_id: str
    message: str


def is_unfilled(value: Any) -> bool:
    """Absent, empty string, or empty selection."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, _MULTI):
        return len(value) == 0
    return False


def first_unfilled_required(
    fields: Sequence[FormField],
    answers: Mapping[str, Any],
) -> FormField | None:
    """Return the first required field (in form order) without an answer."""
    for field in fields:
        if field.required and is_unfilled(answers.get(field.id)):
            return field
    return None


def require_complete(fields: Sequence[FormField], answers: Mapping[str, Any]) -> None:
    """Raise ``ValidationError`` naming the first unfilled required field."""
    missing = first_unfilled_required(fields, answers)
    if missing is not None:
        raise ValidationError(missing.id, missing.label or missing.id)


def check_answers(
    fields: Sequence[FormField],
    answers: Mapping[str, Any],
) -> list[AnswerProblem]:
    """List shape problems in *answers*.  Never raises."""
    by_id = {f.id: f for f in fields}
    problems: list[AnswerProblem] = []
    for field_id, value in answers.items():
        field = by_id.get(field_id)
        if field is None:
            problems.append(AnswerProblem(field_id, f"unknown field: {field_id}"))
            continue
        message = _check_value(field, value)
        if message:
            problems.append(AnswerProblem(field_id, message))
    return problems


def _check_value(field: FormField, value: Any) -> str | None:
    if isinstance(field, (TextField, TextareaField)):
        if not isinstance(value, str):
            return f"field {field.id} expects string"
        return None
    if isinstance(field, McqField):
        if not isinstance(value, str):
            return f"field {field.id} expects string"
        if value not in field.options:
            return f"field {field.id} invalid option"
        return None
    if isinstance(field, CheckboxField):
        if not isinstance(value, _MULTI):
            return f"field {field.id} expects array"
        if any(not isinstance(v, str) or v not in field.options for v in value):
            return f"field {field.id} invalid checkbox value"
        return None
    if isinstance(field, RatingField):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"field {field.id} expects number"
        if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
            return f"field {field.id} out of range"
        if not field.min <= value <= field.max:
            return f"field {field.id} out of range"
        return None
    raise TypeError(f"unhandled field variant: {type(field).__name__}")
