from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_NON_DIGITS = re.compile(r"\D")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive_id(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def normalize_national_id(value: str) -> str:
    """Strip punctuation/whitespace so '123.456.789-09' == '12345678909'."""
    return _NON_DIGITS.sub("", value or "")
