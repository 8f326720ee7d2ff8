# tests/test_session_model.py
"""Tests for the session record: defaults, resets and legacy records."""

import pytest
from pydantic import ValidationError

from app.domain.models.session import (
    MAX_PROCESSED_IDS,
    MENU_OPTIONS,
    PERSONAL_FIELDS,
    ConversationSession,
    Flow,
    PersonalDetails,
    Step,
)


class TestDefaultSession:
    def test_returns_fresh_objects(self):
        s1 = ConversationSession()
        s2 = ConversationSession()
        s1.data["x"] = 1
        assert s2.data == {}
        assert s1.personal is not s2.personal

    def test_starts_at_menu_ungreeted(self):
        s = ConversationSession()
        assert s.flow is None
        assert s.step is None
        assert s.personal.is_empty()
        assert s.personal_index == 0
        assert s.greeted is False


class TestTransitions:
    def test_start_flow_opens_fresh_form(self):
        s = ConversationSession(greeted=True, personal_index=3, data={"ielts": 7})
        s.personal.name = "Old"
        s.start_flow(Flow.ELIGIBILITY)
        assert s.flow is Flow.ELIGIBILITY
        assert s.step is Step.COLLECT_PERSONAL
        assert s.personal.is_empty()
        assert s.personal_index == 0
        assert s.data == {}

    def test_reset_to_menu_keeps_greeted(self):
        s = ConversationSession(greeted=True)
        s.start_flow(Flow.CANADA_PR)
        s.personal.name = "Ana"
        s.personal_index = 1
        s.reset_to_menu()
        assert (s.flow, s.step, s.personal_index) == (None, None, 0)
        assert s.personal.is_empty()
        assert s.greeted is True

    def test_restart_forces_greeted_true(self):
        s = ConversationSession(greeted=False, data={"eligibility": {"score": 3}})
        s.start_flow(Flow.HANDOFF)
        s.restart()
        assert s.greeted is True
        assert s.data == {}
        assert s.flow is None

    def test_menu_digits_cover_all_flows(self):
        assert list(MENU_OPTIONS) == ["1", "2", "3", "4", "5", "6", "7"]
        assert set(MENU_OPTIONS.values()) == set(Flow)


class TestPersonalDetails:
    def test_set_field_rejects_unknown(self):
        with pytest.raises(ValueError):
            PersonalDetails().set_field("passport", "X1")

    def test_field_order_is_fixed(self):
        assert PERSONAL_FIELDS == (
            "name", "phone", "email", "age", "city", "country", "education", "experience",
        )


class TestSerialisation:
    def test_json_roundtrip_preserves_state(self):
        s = ConversationSession(greeted=True)
        s.start_flow(Flow.TOURIST_VISA)
        s.personal.set_field("name", "Ana")
        s.personal_index = 1

        restored = ConversationSession.model_validate(s.model_dump(mode="json"))
        assert restored == s

    def test_legacy_camel_case_record_loads(self):
        legacy = {
            "flow": "CANADA_PR",
            "step": "collect_personal",
            "data": {},
            "personal": {"name": "Ravi", "phone": "919812345678"},
            "personalIndex": 2,
            "greeted": True,
        }
        s = ConversationSession.model_validate(legacy)
        assert s.flow is Flow.CANADA_PR
        assert s.step is Step.COLLECT_PERSONAL
        assert s.personal_index == 2
        assert s.current_field == "email"

    def test_unknown_flow_is_invalid(self):
        with pytest.raises(ValidationError):
            ConversationSession.model_validate({"flow": "MARS_VISA"})

    @pytest.mark.parametrize("index", [-1, len(PERSONAL_FIELDS) + 1])
    def test_cursor_bounds_enforced(self, index):
        with pytest.raises(ValidationError):
            ConversationSession.model_validate({"personal_index": index})


class TestProcessedMessages:
    def test_blank_id_is_never_recorded(self):
        s = ConversationSession()
        s.mark_processed("")
        assert s.processed_message_ids == []
        assert not s.already_processed("")

    def test_only_recent_ids_are_kept(self):
        s = ConversationSession()
        for i in range(MAX_PROCESSED_IDS + 5):
            s.mark_processed(f"wamid.{i}")

        assert len(s.processed_message_ids) == MAX_PROCESSED_IDS
        assert not s.already_processed("wamid.0")
        assert s.already_processed(f"wamid.{MAX_PROCESSED_IDS + 4}")

    def test_restart_keeps_processed_ids(self):
        s = ConversationSession()
        s.mark_processed("wamid.1")
        s.restart()
        assert s.already_processed("wamid.1")
