"""Tests for the right-to-rent compliance rules."""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from idcheck.extraction.models import ExtractedFields
from idcheck.policy.compliance import (
    DOCUMENT_EXPIRED,
    INVALID_EXPIRY,
    MISSING_INFORMATION,
    evaluate,
    extraction_failed_note,
)

_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

_VALID = ExtractedFields(
    name="John Smith",
    document_number="GB123456789",
    date_of_birth="1990-01-15",
    nationality="British",
    expiry_date="2030-12-31",
)


class TestAccept:
    def test_complete_unexpired_document_is_accepted(self) -> None:
        verdict = evaluate(_VALID, _NOW)
        assert verdict.accepted is True
        assert verdict.reason is None

    def test_document_expiring_today_is_accepted(self) -> None:
        verdict = evaluate(replace(_VALID, expiry_date="2024-01-01"), _NOW)
        assert verdict.accepted is True

    def test_time_of_day_is_ignored(self) -> None:
        late = datetime(2024, 1, 1, 23, 59, 59, tzinfo=timezone.utc)
        assert evaluate(replace(_VALID, expiry_date="2024-01-01"), late).accepted is True

    def test_accepts_plain_date_for_now(self) -> None:
        assert evaluate(_VALID, date(2024, 1, 1)).accepted is True

    def test_accepts_datetime_formatted_expiry(self) -> None:
        fields = replace(_VALID, expiry_date="2030-12-31T00:00:00")
        assert evaluate(fields, _NOW).accepted is True

    def test_nationality_is_not_required(self) -> None:
        assert evaluate(replace(_VALID, nationality=""), _NOW).accepted is True


class TestReject:
    def test_expired_document(self) -> None:
        fields = replace(_VALID, expiry_date="2020-01-01")
        verdict = evaluate(fields, datetime(2024, 6, 1, tzinfo=timezone.utc))
        assert verdict.accepted is False
        assert verdict.reason == DOCUMENT_EXPIRED == "Passport expired"

    def test_expired_yesterday(self) -> None:
        verdict = evaluate(replace(_VALID, expiry_date="2023-12-31"), _NOW)
        assert verdict.reason == DOCUMENT_EXPIRED

    @pytest.mark.parametrize("field_name", ["name", "document_number", "date_of_birth"])
    def test_missing_required_field(self, field_name: str) -> None:
        verdict = evaluate(replace(_VALID, **{field_name: ""}), _NOW)
        assert verdict.accepted is False
        assert verdict.reason == MISSING_INFORMATION == "Missing required information"

    def test_whitespace_only_counts_as_missing(self) -> None:
        verdict = evaluate(replace(_VALID, name="   "), _NOW)
        assert verdict.reason == MISSING_INFORMATION

    def test_missing_information_wins_over_expiry(self) -> None:
        fields = replace(_VALID, document_number="", expiry_date="2020-01-01")
        assert evaluate(fields, _NOW).reason == MISSING_INFORMATION

    @pytest.mark.parametrize("expiry", ["", "   ", "31/12/2030", "not a date", "2030-13-01"])
    def test_invalid_expiry(self, expiry: str) -> None:
        verdict = evaluate(replace(_VALID, expiry_date=expiry), _NOW)
        assert verdict.accepted is False
        assert verdict.reason == INVALID_EXPIRY


class TestDeterminism:
    def test_same_input_same_verdict(self) -> None:
        fields = replace(_VALID, expiry_date="2020-01-01")
        assert evaluate(fields, _NOW) == evaluate(fields, _NOW)


class TestExtractionFailedNote:
    def test_formats_reason(self) -> None:
        assert extraction_failed_note("Image too blurry") == "Extraction failed: Image too blurry"
