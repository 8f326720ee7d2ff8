# app/api/deps.py
"""
Shared FastAPI dependencies.

The conversation controller (and the store, gateway client and lead log it
owns) is built once per process from ``settings``.  Tests swap it out through
``app.dependency_overrides[get_controller]``.
"""

import logging
from functools import lru_cache

from app.core.config import settings
from app.domain.services.conversation_service import ConversationController
from app.infrastructure.cache.session_cache import (
    JsonFileSessionStore,
    RedisSessionStore,
    SessionStore,
)
from app.infrastructure.external.whatsapp_client import WhatsAppClient
from app.infrastructure.leads.lead_log import CsvLeadLog

logger = logging.getLogger("api.deps")


def build_session_store() -> SessionStore:
    backend = settings.SESSION_BACKEND.strip().lower()
    if backend == "redis":
        logger.info("Using Redis session store at %s", settings.REDIS_URL)
        return RedisSessionStore(settings.REDIS_URL)
    if backend == "json":
        logger.info("Using JSON session store at %s", settings.SESSIONS_FILE)
        return JsonFileSessionStore(settings.SESSIONS_FILE)
    raise RuntimeError(f"Unknown SESSION_BACKEND {settings.SESSION_BACKEND!r} (expected json or redis)")


@lru_cache(maxsize=1)
def get_controller() -> ConversationController:
    return ConversationController(
        store=build_session_store(),
        gateway=WhatsAppClient(
            access_token=settings.WHATSAPP_ACCESS_TOKEN,
            phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID,
        ),
        lead_log=CsvLeadLog(settings.LEADS_CSV),
        welcome_image=settings.WELCOME_IMAGE,
        admin_wa_id=settings.ADMIN_WA_ID,
        home_country=settings.HOME_COUNTRY,
    )
