"""Phone number helpers."""

import re

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str) -> str:
    """Strip everything except digits."""
    return _NON_DIGITS.sub("", value)


def clean_phone_number(phone: str) -> str:
    """Reduce a phone number to its digits."""
    return digits_only(phone)


def format_phone_number(phone: str) -> str:
    """Format a US phone number as ``(XXX) XXX-XXXX``.

    Numbers that do not reduce to exactly 10 digits are returned unchanged.
    """
    digits = digits_only(phone)
    if len(digits) != 10:
        return phone
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
