# tests/test_personal_details.py
"""Tests for the resumable personal-details collector."""

from app.domain.models.session import PERSONAL_FIELDS, ConversationSession, Flow
from app.domain.services.conversation_text import t
from app.domain.services.personal_details import (
    advance,
    current_prompt,
    personal_summary,
)


def _collecting_session() -> ConversationSession:
    session = ConversationSession(greeted=True)
    session.start_flow(Flow.STUDENT_VISA)
    return session


def test_valid_answer_moves_cursor_and_asks_next():
    session = _collecting_session()

    result = advance(session, "Priya Sharma")

    assert result.complete is False
    assert result.next_prompt == t("ASK_PHONE")
    assert session.personal.name == "Priya Sharma"
    assert session.personal_index == 1


def test_invalid_answer_leaves_session_unchanged():
    session = _collecting_session()
    advance(session, "Priya Sharma")
    before = session.model_copy(deep=True)

    result = advance(session, "123")

    assert result.complete is False
    assert result.next_prompt == t("INVALID_PHONE")
    assert session == before
    assert session.personal.phone is None


def test_full_form_completes_on_last_field(valid_answers):
    session = _collecting_session()

    results = [advance(session, answer) for answer in valid_answers]

    assert [r.complete for r in results] == [False] * 7 + [True]
    assert results[-1].next_prompt is None
    assert session.personal_index == len(PERSONAL_FIELDS)
    assert session.personal.phone == "919876543210"
    assert session.personal.age == 30
    assert session.personal.experience == 5


def test_complete_form_is_idempotent(valid_answers):
    session = _collecting_session()
    for answer in valid_answers:
        advance(session, answer)
    snapshot = session.personal.model_copy()

    result = advance(session, "something else entirely")

    assert result.complete is True
    assert session.personal == snapshot
    assert session.personal_index == len(PERSONAL_FIELDS)


def test_resumes_from_persisted_cursor():
    """A session reloaded mid-form continues at the saved field."""
    session = ConversationSession.model_validate({
        "flow": "WORK_PERMIT",
        "step": "collect_personal",
        "personal": {"name": "Ana", "phone": "12345678", "email": ""},
        "personal_index": 3,
        "greeted": True,
    })

    assert current_prompt(session) == t("ASK_AGE")
    result = advance(session, "41")
    assert session.personal.age == 41
    assert result.next_prompt == t("ASK_CITY")


def test_current_prompt_none_when_complete(valid_answers):
    session = _collecting_session()
    for answer in valid_answers:
        advance(session, answer)
    assert current_prompt(session) is None


def test_summary_lists_every_field(complete_personal):
    summary = personal_summary(complete_personal)

    assert "Name: Priya Sharma" in summary
    assert "Phone: 919876543210" in summary
    assert "Experience: 5 years" in summary


def test_summary_shows_skipped_email_as_na(complete_personal):
    complete_personal.email = ""
    assert "Email: N/A" in personal_summary(complete_personal)
