from __future__ import annotations

from datetime import date, datetime

import pytest

from youth_admin.common.datetime_utils import format_us_date, parse_datetime
from youth_admin.common.formatters import format_phone, normalize_email
from youth_admin.common.public_id import generate_public_id
from youth_admin.common.validators import positive_int
from youth_admin.core.constants import PUBLIC_ID_ALPHABET
from youth_admin.core.exceptions import InvalidEmail, InvalidPhone, ValidationError


def test_format_phone_accepts_punctuation():
    assert format_phone("5551234567") == "(555)123-4567"
    assert format_phone("(555) 123-4567") == "(555)123-4567"


def test_format_phone_rejects_wrong_digit_count():
    with pytest.raises(InvalidPhone):
        format_phone("555-123-456")
    with pytest.raises(InvalidPhone):
        format_phone("1-555-123-4567")


def test_normalize_email_trims_and_validates():
    assert normalize_email("  kid@example.com ") == "kid@example.com"
    with pytest.raises(InvalidEmail):
        normalize_email("not-an-email")


def test_positive_int():
    assert positive_int(3) == 3
    assert positive_int("12") == 12
    assert positive_int(2.9) == 2
    assert positive_int(0) is None
    assert positive_int(-4) is None
    assert positive_int("abc") is None
    assert positive_int(True) is None
    assert positive_int(None) is None


def test_parse_datetime():
    assert parse_datetime("", "due date") is None
    assert parse_datetime("2026-03-01", "due date") == datetime(2026, 3, 1)
    assert parse_datetime("2026-03-01T10:30:00", "due date") == datetime(2026, 3, 1, 10, 30)
    with pytest.raises(ValidationError):
        parse_datetime("next tuesday", "due date")


def test_format_us_date():
    assert format_us_date(date(2010, 4, 2)) == "04/02/2010"
    assert format_us_date(None) == ""


def test_public_id_shape():
    public_id = generate_public_id("T")
    prefix, _, body = public_id.partition("-")

    assert prefix == "T"
    assert len(body) == 6
    assert all(ch in PUBLIC_ID_ALPHABET for ch in body)
