"""
Input validators for customer contact details.

Phone numbers are E.164: ``+`` followed by 10-15 digits.
"""

from __future__ import annotations

import re
from datetime import date, datetime

PHONE_PATTERN = re.compile(r"^\+\d{10,15}$")


def validate_phone_number(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone or ""))


def validate_email(email: str) -> bool:
    """
    Validate an email address format.

    Checks basic structure and TLD length >= 2.
    """
    pattern = r"^[\w.+-]+@[\w-]+\.[\w.]+$"
    if not re.match(pattern, email.strip()):
        return False

    tld = email.strip().rsplit(".", 1)[-1]
    if len(tld) < 2:
        return False

    return True


def validate_dob(dob_str: str) -> bool:
    """ISO-8601 date (YYYY-MM-DD, optionally with a time part), in the past."""
    try:
        parsed = datetime.fromisoformat(dob_str.strip()).date()
    except ValueError:
        return False

    return parsed < date.today()
