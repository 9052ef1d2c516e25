import pytest

from events.exceptions import FestValidationError
from events.form_schema import (
    CheckboxField,
    DropdownField,
    FileField,
    TextField,
    dump_form_schema,
    parse_form_schema,
    validate_responses,
)
from events.tests.conftest import FORM_SCHEMA, VALID_RESPONSES


def test_parse_orders_fields_and_resolves_types() -> None:
    raw = list(reversed(FORM_SCHEMA))

    fields = parse_form_schema(raw)

    assert [field.id for field in fields] == ["college", "track", "tools"]
    assert isinstance(fields[0], TextField)
    assert isinstance(fields[1], DropdownField)
    assert isinstance(fields[2], CheckboxField)


def test_parse_empty_schema() -> None:
    assert parse_form_schema(None) == []
    assert parse_form_schema([]) == []


def test_dump_round_trips_stored_json() -> None:
    dumped = dump_form_schema(parse_form_schema(FORM_SCHEMA))

    assert dumped[1]["options"] == ["AI", "Web"]
    assert dumped[0]["required"] is True


@pytest.mark.parametrize(
    "raw",
    [
        [{"id": "a", "type": "slider", "label": "A"}],
        [{"id": "a", "type": "dropdown", "label": "A", "options": []}],
        [{"id": "a", "type": "dropdown", "label": "A", "options": ["x", "x"]}],
        [{"id": "has space", "type": "text", "label": "A"}],
        [{"id": "a", "type": "text", "label": "A", "unexpected": 1}],
        [{"id": "a", "type": "text", "label": "A"}, {"id": "a", "type": "text", "label": "B"}],
    ],
)
def test_parse_rejects_malformed_schema(raw: list[dict[str, object]]) -> None:
    with pytest.raises(FestValidationError) as exc_info:
        parse_form_schema(raw)

    assert exc_info.value.field == "custom_form_schema"


def test_validate_responses_keeps_known_fields_only() -> None:
    fields = parse_form_schema(FORM_SCHEMA)

    cleaned = validate_responses(fields, {**VALID_RESPONSES, "extra": "dropped"})

    assert cleaned == VALID_RESPONSES


@pytest.mark.parametrize(
    "responses,field,message",
    [
        ({"track": "AI"}, "college", "College is required"),
        ({"college": "X", "track": ""}, "track", "Track is required"),
        ({"college": "X", "track": "Mobile"}, "track", "Track has invalid option"),
        ({"college": "X", "track": ["AI"]}, "track", "Track must be a single option"),
        ({"college": "X", "track": "AI", "tools": "git"}, "tools", "Tools must be a list of options"),
        ({"college": "X", "track": "AI", "tools": ["svn"]}, "tools", "Tools has invalid option"),
        ({"college": 42, "track": "AI"}, "college", "College must be text"),
    ],
)
def test_validate_responses_errors(responses: dict[str, object], field: str, message: str) -> None:
    fields = parse_form_schema(FORM_SCHEMA)

    with pytest.raises(FestValidationError) as exc_info:
        validate_responses(fields, responses)

    assert exc_info.value.field == field
    assert exc_info.value.message == message


def test_file_field_checks_type_and_size() -> None:
    field = FileField(
        id="resume", type="file", label="Resume", allowed_mime_types=["application/pdf"], max_file_size_mb=1
    )

    field.check_file("application/pdf", 1024)
    with pytest.raises(FestValidationError, match="file type is not allowed"):
        field.check_file("image/png", 1024)
    with pytest.raises(FestValidationError, match="exceeds max size"):
        field.check_file("application/pdf", 2 * 1024 * 1024)


def test_file_response_must_reference_a_blob() -> None:
    field = FileField(id="resume", type="file", label="Resume", required=True)

    with pytest.raises(FestValidationError, match="file data is invalid"):
        validate_responses([field], {"resume": {"file_name": "cv.pdf"}})
    with pytest.raises(FestValidationError, match="must be a file"):
        validate_responses([field], {"resume": "cv.pdf"})
