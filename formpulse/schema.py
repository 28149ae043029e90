"""Field schema model — the closed set of form field variants.

A form is an ordered list of fields.  Each field carries a ``type`` tag that
selects exactly one variant below; the variant holds only the configuration
that is meaningful for it.  The union is discriminated on ``type`` so that
``parse_field`` rejects unknown tags instead of silently falling back to a
generic shape.

Everything here is pure: construction either returns a frozen model or raises
``SchemaError``.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from formpulse.errors import SchemaError

FIELD_TYPES = ("text", "textarea", "mcq", "checkbox", "rating")

DEFAULT_RATING_MIN = 1
DEFAULT_RATING_MAX = 5
DEFAULT_OPTIONS = ("Option A", "Option B")

FormStatus = Literal["draft", "published"]


# ---------------------------------------------------------------------------
# Field variants
# ---------------------------------------------------------------------------


class _FieldBase(BaseModel):
    """Attributes shared by every variant."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    label: str = ""
    required: bool = False


class TextField(_FieldBase):
    """Single-line free text."""

    type: Literal["text"] = "text"
    placeholder: str = ""


class TextareaField(_FieldBase):
    """Multi-line free text."""

    type: Literal["textarea"] = "textarea"
    placeholder: str = ""


class _ChoiceField(_FieldBase):
    options: tuple[str, ...]

    @field_validator("options")
    @classmethod
    def _options_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("must list at least one option")
        return value


class McqField(_ChoiceField):
    """Pick exactly one of ``options``."""

    type: Literal["mcq"] = "mcq"


class CheckboxField(_ChoiceField):
    """Pick any subset of ``options`` (including none)."""

    type: Literal["checkbox"] = "checkbox"


class RatingField(_FieldBase):
    """An integer score in ``[min, max]``."""

    type: Literal["rating"] = "rating"
    min: int = DEFAULT_RATING_MIN
    max: int = DEFAULT_RATING_MAX

    @field_validator("min", mode="before")
    @classmethod
    def _default_min(cls, value: Any) -> Any:
        return DEFAULT_RATING_MIN if value is None else value

    @field_validator("max", mode="before")
    @classmethod
    def _default_max(cls, value: Any) -> Any:
        return DEFAULT_RATING_MAX if value is None else value

    @model_validator(mode="after")
    def _min_not_above_max(self) -> RatingField:
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


FormField = Annotated[
    Union[TextField, TextareaField, McqField, CheckboxField, RatingField],
    Field(discriminator="type"),
]

_FIELD_ADAPTER: TypeAdapter[FormField] = TypeAdapter(FormField)


# ---------------------------------------------------------------------------
# Forms and answers
# ---------------------------------------------------------------------------


class Form(BaseModel):
    """A form as served by the forms API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    title: str = "Untitled Form"
    description: str = ""
    status: FormStatus = "draft"
    fields: list[FormField] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def _null_fields(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _unique_ids(self) -> Form:
        _check_unique_ids(self.fields)
        return self

    def field_map(self) -> dict[str, FormField]:
        """Field id -> field, for resolving answers."""
        return {f.id: f for f in self.fields}


class Answer(BaseModel):
    """One ``(fieldId, value)`` pair of a response."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field_id: str = Field(alias="fieldId")
    value: Any = None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def parse_field(raw: Mapping[str, Any]) -> FormField:
    """Build a validated field from raw configuration.

    Raises:
        SchemaError: unknown ``type``, missing/empty ``options`` on a choice
            field, ``min > max`` on a rating, or any other malformed attribute.
    """
    if not isinstance(raw, Mapping):
        raise SchemaError("field configuration must be an object")
    field_id = raw.get("id")
    field_type = raw.get("type")
    if field_type not in FIELD_TYPES:
        raise SchemaError(f"unknown field type: {field_type!r}", field_id=field_id)
    try:
        return _FIELD_ADAPTER.validate_python(dict(raw))
    except PydanticValidationError as exc:
        raise SchemaError(
            f"field {field_id!r} ({field_type}): {_describe(exc)}", field_id=field_id
        ) from exc


def parse_fields(raw_fields: Iterable[Mapping[str, Any]]) -> list[FormField]:
    """Parse an ordered field list, rejecting duplicate ids."""
    fields = [parse_field(raw) for raw in raw_fields]
    _check_unique_ids(fields)
    return fields


def parse_form(raw: Mapping[str, Any]) -> Form:
    """Parse a form document, converting pydantic errors to ``SchemaError``."""
    if not isinstance(raw, Mapping):
        raise SchemaError("form document must be an object")
    data = dict(raw)
    data["fields"] = parse_fields(data.get("fields") or [])
    try:
        return Form.model_validate(data)
    except PydanticValidationError as exc:
        raise SchemaError(f"form: {_describe(exc)}") from exc


def new_field(field_type: str, field_id: str | None = None) -> FormField:
    """Create a fresh field of *field_type* with authoring defaults.

    Choice fields start with two placeholder options; ratings start at 1–5.
    """
    raw: dict[str, Any] = {
        "id": field_id or uuid.uuid4().hex[:8],
        "type": field_type,
        "label": f"{str(field_type).upper()} Field",
        "required": False,
    }
    if field_type in ("mcq", "checkbox"):
        raw["options"] = list(DEFAULT_OPTIONS)
    elif field_type == "rating":
        raw["min"] = DEFAULT_RATING_MIN
        raw["max"] = DEFAULT_RATING_MAX
    return parse_field(raw)


def parse_options_text(text: str) -> list[str]:
    """Split a comma-separated option list as typed by an author."""
    return [part.strip() for part in text.split(",") if part.strip()]


def move_field(fields: Sequence[FormField], from_index: int, to_index: int) -> list[FormField]:
    """Return a copy of *fields* with one entry moved to a new position."""
    reordered = list(fields)
    if from_index == to_index:
        return reordered
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return reordered


def _check_unique_ids(fields: Iterable[FormField]) -> None:
    seen: set[str] = set()
    for f in fields:
        if f.id in seen:
            raise SchemaError(f"duplicate field id: {f.id!r}", field_id=f.id)
        seen.add(f.id)


def _describe(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into ``"loc: message"`` fragments."""
    parts: list[str] = []
    for err in exc.errors():
        loc = [str(p) for p in err["loc"]]
        if loc and loc[0] in FIELD_TYPES:
            loc = loc[1:]  # drop the discriminator tag
        where = ".".join(loc) or "field"
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)
