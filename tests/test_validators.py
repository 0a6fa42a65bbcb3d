"""
Tests for input validators: phone numbers, email, DOB.
"""

from datetime import date, timedelta

import pytest

from switchboard.validators import (
    validate_dob,
    validate_email,
    validate_phone_number,
)


class TestPhoneNumber:

    @pytest.mark.parametrize("phone", ["+1234567890", "+447700900001", "+123456789012345"])
    def test_valid(self, phone):
        assert validate_phone_number(phone)

    @pytest.mark.parametrize("phone", ["1234567890", "+123", "+1234567890123456", "+12345abcde", ""])
    def test_invalid(self, phone):
        assert not validate_phone_number(phone)


class TestEmail:

    def test_valid(self):
        assert validate_email("a@b.com")
        assert validate_email("first.last+tag@example.co.uk")

    def test_invalid(self):
        assert not validate_email("not-an-email")
        assert not validate_email("a@b.c")


class TestDOB:

    def test_valid_iso_date(self):
        assert validate_dob("1990-05-17")

    def test_valid_iso_datetime(self):
        assert validate_dob("1990-05-17T00:00:00")

    def test_future_date_rejected(self):
        future = (date.today() + timedelta(days=3)).isoformat()
        assert not validate_dob(future)

    def test_garbage_rejected(self):
        assert not validate_dob("17/05/1990")
