"""Exception hierarchy shared by the schema, ingestion, validation and client layers."""

from __future__ import annotations


class FormpulseError(Exception):
    """Base class for all formpulse errors."""


class SchemaError(FormpulseError):
    """A field (or a form's field list) has an invalid configuration.

    Raised at authoring time; fatal to saving the offending field.
    """

    def __init__(self, message: str, field_id: str | None = None) -> None:
        super().__init__(message)
        self.field_id = field_id


class ParseError(FormpulseError):
    """An inbound push-channel message is not a well-formed envelope.

    Never surfaced to the user; the ingestion loop drops the message.
    """


class ValidationError(FormpulseError):
    """A required field is unfilled at submission time."""

    def __init__(self, field_id: str, label: str) -> None:
        super().__init__(f"Please fill: {label}")
        self.field_id = field_id
        self.label = label


class ApiError(FormpulseError):
    """The forms API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API {status_code}: {body}")
        self.status_code = status_code
        self.body = body
