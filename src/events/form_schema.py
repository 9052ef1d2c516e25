"""Custom registration form schema for NORMAL events.

The schema is stored as JSON on the event and parsed into a discriminated union
of typed fields. Responses submitted by participants are validated against it.
"""

import typing as t

from django.utils.translation import gettext as _
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from events.exceptions import FestValidationError

MEBIBYTE = 1024 * 1024
DEFAULT_MAX_FILE_SIZE_MB = 5


class BaseFormField(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_\-]+$")
    label: str = Field(..., min_length=1, max_length=255)
    required: bool = False
    order: int = 0

    def is_missing(self, value: t.Any) -> bool:
        """A value counts as missing when absent, null, an empty string or an empty list."""
        return value is None or value == "" or value == []

    def validate_value(self, value: t.Any) -> None:
        """Validate a present, non-null response value. Subclasses raise FestValidationError."""


class TextField(BaseFormField):
    type: t.Literal["text"]

    def validate_value(self, value: t.Any) -> None:
        """Text responses must be strings."""
        if not isinstance(value, str):
            raise FestValidationError(_("{label} must be text").format(label=self.label), field=self.id)


class OptionsMixin(BaseModel):
    options: list[str] = Field(..., min_length=1)

    @field_validator("options")
    @classmethod
    def options_are_unique(cls, options: list[str]) -> list[str]:
        """Options must be non-empty strings without duplicates."""
        if any(not option.strip() for option in options):
            raise ValueError("options must not be blank")
        if len(set(options)) != len(options):
            raise ValueError("options must be unique")
        return options


class DropdownField(OptionsMixin, BaseFormField):
    type: t.Literal["dropdown"]

    def validate_value(self, value: t.Any) -> None:
        """Dropdown responses must be exactly one of the options."""
        if not isinstance(value, str):
            raise FestValidationError(_("{label} must be a single option").format(label=self.label), field=self.id)
        if value not in self.options:
            raise FestValidationError(_("{label} has invalid option").format(label=self.label), field=self.id)


class CheckboxField(OptionsMixin, BaseFormField):
    type: t.Literal["checkbox"]

    def validate_value(self, value: t.Any) -> None:
        """Checkbox responses must be a list drawn from the options."""
        if not isinstance(value, list):
            raise FestValidationError(_("{label} must be a list of options").format(label=self.label), field=self.id)
        if any(option not in self.options for option in value):
            raise FestValidationError(_("{label} has invalid option").format(label=self.label), field=self.id)


class FileField(BaseFormField):
    type: t.Literal["file"]
    allowed_mime_types: list[str] = Field(default_factory=list)
    max_file_size_mb: int = Field(DEFAULT_MAX_FILE_SIZE_MB, ge=1, le=25)

    @property
    def max_bytes(self) -> int:
        return self.max_file_size_mb * MEBIBYTE

    def check_file(self, mime_type: str, size: int) -> None:
        """Check a file's type and size against this field's constraints."""
        allowed = [mime for mime in self.allowed_mime_types if mime]
        if allowed and mime_type not in allowed:
            raise FestValidationError(_("{label} file type is not allowed").format(label=self.label), field=self.id)
        if size > self.max_bytes:
            raise FestValidationError(
                _("{label} file exceeds max size limit").format(label=self.label), field=self.id
            )

    def validate_value(self, value: t.Any) -> None:
        """File responses are references to an uploaded blob."""
        if not isinstance(value, dict):
            raise FestValidationError(_("{label} must be a file").format(label=self.label), field=self.id)
        file_id = str(value.get("file_id") or "").strip()
        file_name = str(value.get("file_name") or "").strip()
        mime_type = str(value.get("mime_type") or "").strip()
        size = value.get("size")
        if not file_id or not file_name or not mime_type or not isinstance(size, int) or size < 1:
            raise FestValidationError(_("{label} file data is invalid").format(label=self.label), field=self.id)
        self.check_file(mime_type, size)


FormField = t.Annotated[TextField | DropdownField | CheckboxField | FileField, Field(discriminator="type")]

_form_schema_adapter: TypeAdapter[list[FormField]] = TypeAdapter(list[FormField])


def parse_form_schema(raw: t.Any) -> list[FormField]:
    """Parse and order a stored or submitted form schema.

    Raises:
        FestValidationError: if a field is malformed or two fields share an id.
    """
    try:
        fields = _form_schema_adapter.validate_python(raw or [])
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise FestValidationError(
            _("Invalid form schema at {location}: {message}").format(location=location, message=first["msg"]),
            field="custom_form_schema",
        ) from e
    ids = [field.id for field in fields]
    if len(set(ids)) != len(ids):
        raise FestValidationError(_("Form field ids must be unique."), field="custom_form_schema")
    return sorted(fields, key=lambda field: field.order)


def dump_form_schema(fields: list[FormField]) -> list[dict[str, t.Any]]:
    """Serialize parsed fields back to the JSON stored on the event."""
    return [field.model_dump(mode="json") for field in fields]


def validate_responses(fields: list[FormField], responses: dict[str, t.Any]) -> dict[str, t.Any]:
    """Validate responses against the form fields.

    Returns:
        The responses restricted to the known field ids.

    Raises:
        FestValidationError: on the first missing required field or invalid value.
    """
    cleaned: dict[str, t.Any] = {}
    for field in fields:
        value = responses.get(field.id)
        if field.required and field.is_missing(value):
            raise FestValidationError(_("{label} is required").format(label=field.label), field=field.id)
        if value is None:
            continue
        field.validate_value(value)
        cleaned[field.id] = value
    return cleaned
