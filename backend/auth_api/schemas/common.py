"""Common Marshmallow schemas and the payload validation helper."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ValidationResult(Generic[T]):
    """
    Outcome of :func:`validate_payload`: either a value or field errors.

    :param value: Deserialized payload when valid, else ``None``.
    :param errors: Field name to messages; empty when valid.
    """

    value: T | None = None
    errors: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_payload(schema: Schema, data: Mapping[str, Any] | None) -> ValidationResult[Any]:
    """
    Run ``schema.load`` and capture field errors instead of raising.

    ``None`` payloads (missing or non-JSON bodies) are validated as ``{}``
    so required-field messages are reported uniformly.
    """

    try:
        value = schema.load(data or {})
    except ValidationError as exc:
        messages = exc.normalized_messages()
        errors = messages if isinstance(messages, dict) else {"_schema": messages}
        return ValidationResult(errors=errors)
    return ValidationResult(value=value)


class PaginationQuerySchema(Schema):
    """Validate ``page``/``page_size`` query parameters with bounded size."""

    class Meta:
        unknown = EXCLUDE

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    page_size = fields.Integer(load_default=10, validate=validate.Range(min=1, max=20))


class MessageSchema(Schema):
    """Plain ``{message}`` acknowledgement."""

    message = fields.String(required=True)


class CommaSeparatedList(fields.Field):
    """Query-string field parsing ``"a,b"`` into ``["a", "b"]``."""

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> list[str]:
        if not isinstance(value, str):
            raise ValidationError("Must be a comma separated string.")
        return [segment.strip() for segment in value.split(",") if segment.strip()]


def strip_email(data: Any) -> Any:
    """Return ``data`` with a trimmed ``email`` (case is preserved)."""

    if isinstance(data, Mapping) and isinstance(data.get("email"), str):
        data = dict(data)
        data["email"] = data["email"].strip()
    return data


class EmailPayloadSchema(Schema):
    """Base for payloads carrying an ``email`` that is trimmed before validation."""

    @pre_load
    def _strip_email(self, data: Any, **_: Any) -> Any:
        return strip_email(data)
