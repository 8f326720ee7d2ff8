# app/domain/services/personal_details.py
"""
Resumable personal-details form shared by every menu option.

Each call to ``advance`` consumes one answer for the field at the session's
cursor.  The session is only touched when the answer validates, so a crash or
a bad answer never leaves a half-written field behind.  Saving is left to the
caller, which commits once per inbound message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.domain.models.session import (
    PERSONAL_FIELDS,
    ConversationSession,
    PersonalDetails,
)
from app.domain.services.conversation_text import t
from app.domain.services.field_validation import Rejected, validate

logger = logging.getLogger("personal_details")


@dataclass(frozen=True)
class CollectorResult:
    complete: bool
    next_prompt: Optional[str] = None


def question_for(field: str) -> str:
    return t(f"ASK_{field.upper()}")


def current_prompt(session: ConversationSession) -> Optional[str]:
    """Question for the field at the cursor, or None once the form is complete."""
    field = session.current_field
    return question_for(field) if field else None


def advance(session: ConversationSession, raw: str) -> CollectorResult:
    if session.personal_complete:
        return CollectorResult(complete=True)

    field = PERSONAL_FIELDS[session.personal_index]
    result = validate(field, raw)

    if isinstance(result, Rejected):
        logger.info("Rejected %s answer at index %d", field, session.personal_index)
        return CollectorResult(complete=False, next_prompt=result.message)

    session.personal.set_field(field, result.value)
    session.personal_index += 1

    if session.personal_complete:
        return CollectorResult(complete=True)

    return CollectorResult(complete=False, next_prompt=current_prompt(session))


def personal_summary(personal: PersonalDetails) -> str:
    values = {
        f: ("-" if getattr(personal, f) is None else getattr(personal, f))
        for f in PERSONAL_FIELDS
    }
    if values["email"] == "":
        values["email"] = "N/A"
    return t("PERSONAL_SUMMARY", **values)
