"""Shared test fixtures for the Immigration Help Bot test suite."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.models.session import ConversationSession, PersonalDetails
from app.domain.services.conversation_service import ConversationController
from app.infrastructure.cache.session_cache import JsonFileSessionStore
from app.infrastructure.leads.lead_log import CsvLeadLog


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def gateway():
    """Outbound gateway double: every send succeeds."""
    gw = MagicMock()
    gw.send_text = AsyncMock(return_value=True)
    gw.send_file = AsyncMock(return_value=True)
    return gw


@pytest.fixture
def store(tmp_path):
    return JsonFileSessionStore(tmp_path / "sessions.json")


@pytest.fixture
def lead_log(tmp_path):
    return CsvLeadLog(tmp_path / "leads.csv")


@pytest.fixture
def controller(store, gateway, lead_log):
    return ConversationController(
        store=store,
        gateway=gateway,
        lead_log=lead_log,
        admin_wa_id="910000000000",
    )


@pytest.fixture
def valid_answers() -> list:
    """One valid answer per personal field, in form order."""
    return [
        "Priya Sharma",
        "+91 98765-43210",
        "priya@example.com",
        "30",
        "Pune",
        "India",
        "Master's in Computer Science",
        "5",
    ]


@pytest.fixture
def complete_personal() -> PersonalDetails:
    return PersonalDetails(
        name="Priya Sharma",
        phone="919876543210",
        email="priya@example.com",
        age=30,
        city="Pune",
        country="India",
        education="Master's in Computer Science",
        experience=5,
    )


@pytest.fixture
def fresh_session() -> ConversationSession:
    return ConversationSession()
