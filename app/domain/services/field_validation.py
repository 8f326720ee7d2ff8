# app/domain/services/field_validation.py
"""
Validation + normalisation of a single personal-details answer.

``validate(field, raw)`` never raises for bad user input; it returns
``Accepted(value)`` with the normalised value or ``Rejected(message)`` with a
correction prompt to send back.  An unknown field name is a programming error
and raises ``UnknownFieldError``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Union

from app.domain.services.conversation_text import t

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# ASCII decimal only, optionally signed
NUMBER_REGEX = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)", re.ASCII)
MIN_PHONE_DIGITS = 8

TEXT_FIELDS = frozenset({"name", "city", "country", "education"})
NUMERIC_FIELDS = frozenset({"age", "experience"})


class UnknownFieldError(ValueError):
    """Raised when a field outside the personal-details form is validated."""


@dataclass(frozen=True)
class Accepted:
    value: Any


@dataclass(frozen=True)
class Rejected:
    message: str


ValidationResult = Union[Accepted, Rejected]


def _validate_phone(value: str) -> ValidationResult:
    digits = re.sub(r"[^0-9]", "", value)
    if len(digits) < MIN_PHONE_DIGITS:
        return Rejected(t("INVALID_PHONE"))
    return Accepted(digits)


def _validate_email(value: str) -> ValidationResult:
    if value.lower() == "n/a":
        return Accepted("")
    if EMAIL_REGEX.match(value):
        return Accepted(value)
    return Rejected(t("INVALID_EMAIL"))


def parse_number(value: str) -> int | float | None:
    """Parse a non-negative finite number; integral values come back as ``int``."""
    if not NUMBER_REGEX.fullmatch(value):
        return None
    try:
        n = float(value)
    except ValueError:
        return None
    if not math.isfinite(n) or n < 0:
        return None
    return int(n) if n.is_integer() else n


def _validate_number(field: str, value: str) -> ValidationResult:
    n = parse_number(value)
    if n is None:
        return Rejected(t("INVALID_NUMBER", field=field))
    return Accepted(n)


def validate(field: str, raw: str) -> ValidationResult:
    value = (raw or "").strip()

    if field == "phone":
        return _validate_phone(value)
    if field == "email":
        return _validate_email(value)
    if field in NUMERIC_FIELDS:
        return _validate_number(field, value)
    if field in TEXT_FIELDS:
        if not value:
            return Rejected(t("EMPTY_FIELD", field=field))
        return Accepted(value)

    raise UnknownFieldError(f"No validation rule for field {field!r}")
