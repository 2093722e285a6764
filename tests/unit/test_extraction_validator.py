import pytest

from idcheck.extraction.exceptions import ExtractionFailed
from idcheck.extraction.models import ExtractedFields
from idcheck.extraction.validator import validate_and_build


def _response(**fields: object) -> dict[str, object]:
    values: dict[str, object] = {
        "name": "John Smith",
        "document_number": "GB123456789",
        "date_of_birth": "1990-01-15",
        "nationality": "British",
        "expiry_date": "2030-12-31",
    }
    values.update(fields)
    return {"readable": True, "reason": None, "fields": values}


class TestValidateAndBuild:
    def test_builds_fields(self) -> None:
        result = validate_and_build(_response())
        assert result == ExtractedFields(
            name="John Smith",
            document_number="GB123456789",
            date_of_birth="1990-01-15",
            nationality="British",
            expiry_date="2030-12-31",
        )

    def test_strips_whitespace(self) -> None:
        assert validate_and_build(_response(name="  John Smith ")).name == "John Smith"

    def test_null_and_missing_fields_become_empty(self) -> None:
        data = _response(nationality=None)
        del data["fields"]["expiry_date"]  # type: ignore[attr-defined]
        result = validate_and_build(data)
        assert result.nationality == ""
        assert result.expiry_date == ""

    def test_unknown_fields_are_ignored(self) -> None:
        assert validate_and_build(_response(mrz="P<GBR")).name == "John Smith"

    def test_readable_must_be_boolean(self) -> None:
        with pytest.raises(ExtractionFailed, match="readable"):
            validate_and_build({"readable": "yes", "fields": {}})

    def test_unreadable_uses_reason(self) -> None:
        with pytest.raises(ExtractionFailed) as exc_info:
            validate_and_build({"readable": False, "reason": " Too dark ", "fields": None})
        assert exc_info.value.reason == "Too dark"

    def test_unreadable_without_reason_gets_default(self) -> None:
        with pytest.raises(ExtractionFailed) as exc_info:
            validate_and_build({"readable": False, "reason": None})
        assert exc_info.value.reason == "Document could not be read"

    def test_fields_must_be_object(self) -> None:
        with pytest.raises(ExtractionFailed, match="'fields'"):
            validate_and_build({"readable": True, "fields": ["John"]})

    def test_field_must_be_string(self) -> None:
        with pytest.raises(ExtractionFailed, match="'document_number'"):
            validate_and_build(_response(document_number=123456))

    def test_field_length_is_bounded(self) -> None:
        with pytest.raises(ExtractionFailed, match="exceeds"):
            validate_and_build(_response(name="x" * 201))


class TestExtractedFields:
    def test_repr_hides_values(self) -> None:
        assert "John" not in repr(validate_and_build(_response()))

    def test_from_dict_round_trips_to_dict(self) -> None:
        fields = validate_and_build(_response())
        assert ExtractedFields.from_dict(fields.to_dict()) == fields
