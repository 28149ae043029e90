"""Turn raw answer values into countable bucket keys.

Normalization is total: it never raises, whatever the value looks like.
Responses recorded before a field was edited (an mcq turned into a checkbox,
a text field turned into a rating) must still be countable, so values whose
shape does not match the field variant fall back to the generic key rule
instead of being rejected.
"""

from __future__ import annotations

import json
from typing import Any

from formpulse.schema import (
    CheckboxField,
    FormField,
    McqField,
    RatingField,
    TextareaField,
    TextField,
)

_MULTI = (list, tuple, set, frozenset)


def bucket_key(value: Any) -> str:
    """Canonical string form of a single scalar answer value.

    Strings are kept verbatim.  Numbers use their shortest decimal form, so a
    rating that arrived as the JSON number ``4.0`` still lands in bucket ``"4"``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if value is None:
        return "null"
    return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)


def normalize_unknown(value: Any) -> frozenset[str]:
    """Bucket keys for a value whose field is not (or no longer) in the schema.

    Collections fan out to one key per element; anything else is one key.
    """
    if isinstance(value, _MULTI):
        return frozenset(bucket_key(v) for v in value)
    return frozenset({bucket_key(value)})


def normalize(field: FormField, value: Any) -> frozenset[str]:
    """Bucket keys contributed by one answer to *field*.

    - text / textarea: the submitted string, untouched (no trim, no truncation).
    - mcq: the chosen option as-is; membership in ``options`` is not checked.
    - checkbox: one key per selected option; an empty selection yields no keys.
    - rating: the decimal string of the score.
    """
    if isinstance(field, (TextField, TextareaField, McqField)):
        if isinstance(value, str):
            return frozenset({value})
        return normalize_unknown(value)
    if isinstance(field, CheckboxField):
        if isinstance(value, _MULTI):
            return frozenset(bucket_key(v) for v in value)
        return normalize_unknown(value)
    if isinstance(field, RatingField):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return frozenset({bucket_key(value)})
        return normalize_unknown(value)
    # New variants must get their own branch above.
    raise TypeError(f"unhandled field variant: {type(field).__name__}")
