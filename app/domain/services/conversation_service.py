# app/domain/services/conversation_service.py
"""
Conversation controller: the per-chat state machine.

States (derived from the session):
    MENU                 flow is None
    COLLECTING_PERSONAL  step == collect_personal
    FLOW_ACTIVE          step == await_language_score (eligibility follow-up)
    DONE                 step == done

Each inbound message runs one cycle under that conversation's lock:

    load session → handler chain mutates it → save (commit) → leads → send

Nothing is sent before the save succeeds, so a user never sees a reply that
was based on state the store did not keep.
"""

from __future__ import annotations

import asyncio
import logging
import re
import weakref
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from app.domain.models.session import (
    MENU_OPTIONS,
    VISA_FLOWS,
    ConversationSession,
    Flow,
    Step,
)
from app.domain.services.conversation_text import SERVICE_LABELS, t
from app.domain.services.eligibility import evaluate_eligibility
from app.domain.services.field_validation import parse_number
from app.domain.services.personal_details import (
    advance,
    personal_summary,
    question_for,
)
from app.infrastructure.cache.session_cache import SessionStore
from app.infrastructure.external.whatsapp_client import MessagingGateway
from app.infrastructure.leads.lead_log import CsvLeadLog, LeadRecord

logger = logging.getLogger("conversation_service")

GREETING_RE = re.compile(r"^(hi|hello|hey)$", re.IGNORECASE)
MENU_COMMAND = "menu"
RESTART_COMMAND = "restart"
SKIP_COMMAND = "skip"
MAX_LANGUAGE_SCORE = 9


@dataclass(frozen=True)
class InboundMessage:
    conversation_id: str
    text: str
    sender_name: str = "User"
    is_group: bool = False
    # Gateway message id; empty when the transport has none
    message_id: str = ""


@dataclass(frozen=True)
class Reply:
    text: str
    # Send the welcome image with ``text`` as its caption (text-only fallback)
    attach_welcome: bool = False
    # Recipient override; None means the conversation being handled
    to: Optional[str] = None


@dataclass
class TurnContext:
    message: InboundMessage
    session: ConversationSession
    text: str
    home_country: str = "India"
    admin_wa_id: str = ""
    leads: List[LeadRecord] = field(default_factory=list)


Handler = Callable[[TurnContext], Optional[List[Reply]]]


class ConversationLocks:
    """One ``asyncio.Lock`` per conversation id, dropped once nobody holds it."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock


# ──────────────────────────────────────────────────────────
# Handlers: each returns replies if it owns the message, else None
# ──────────────────────────────────────────────────────────

def _greeting(ctx: TurnContext) -> Reply:
    return Reply(t("GREETING", name=ctx.message.sender_name), attach_welcome=True)


def _handle_first_contact(ctx: TurnContext) -> Optional[List[Reply]]:
    if ctx.session.greeted:
        return None
    ctx.session.greeted = True
    return [_greeting(ctx)]


def _handle_greeting_word(ctx: TurnContext) -> Optional[List[Reply]]:
    if not GREETING_RE.match(ctx.text):
        return None
    return [_greeting(ctx)]


def _handle_global_commands(ctx: TurnContext) -> Optional[List[Reply]]:
    command = ctx.text.lower()
    if command == MENU_COMMAND:
        ctx.session.reset_to_menu()
        return [Reply(t("MAIN_MENU"))]
    if command == RESTART_COMMAND:
        ctx.session.restart()
        return [Reply(t("RESTARTED"))]
    return None


def _start_flow(ctx: TurnContext, flow: Flow) -> List[Reply]:
    ctx.session.start_flow(flow)
    logger.info("Conversation %s selected %s", ctx.message.conversation_id, flow.value)
    return [Reply(question_for("name"))]


def _handle_menu_selection(ctx: TurnContext) -> Optional[List[Reply]]:
    if ctx.session.flow is not None:
        return None
    flow = MENU_OPTIONS.get(ctx.text)
    if flow is None:
        return [Reply(t("NOT_UNDERSTOOD"))]
    return _start_flow(ctx, flow)


def _complete_flow(ctx: TurnContext) -> List[Reply]:
    session = ctx.session
    flow = session.flow
    replies = [Reply(personal_summary(session.personal))]
    lead_data = {"personal": session.personal.model_dump(mode="json")}

    if flow in VISA_FLOWS:
        replies.append(Reply(t("VISA_ACK", service=SERVICE_LABELS[flow.value])))
        session.step = Step.DONE

    elif flow is Flow.ELIGIBILITY:
        outcome = evaluate_eligibility(
            session.personal,
            language_score=session.data.get("ielts"),
            home_country=ctx.home_country,
        )
        session.data["eligibility"] = outcome.to_dict()
        lead_data["eligibility"] = outcome.to_dict()
        replies.append(Reply(t("ELIGIBILITY_RESULT", result=outcome.result, score=outcome.score)))
        replies.append(Reply(t("ASK_LANGUAGE_SCORE")))
        session.step = Step.AWAIT_LANGUAGE_SCORE

    elif flow is Flow.HANDOFF:
        replies.append(Reply(t("HANDOFF_ACK")))
        if ctx.admin_wa_id:
            replies.append(Reply(
                t(
                    "ADMIN_HANDOFF_ALERT",
                    sender=ctx.message.sender_name,
                    chat_id=ctx.message.conversation_id,
                    summary=replies[0].text,
                ),
                to=ctx.admin_wa_id,
            ))
        session.step = Step.DONE

    else:
        raise ValueError(f"No completion handler for flow {flow!r}")

    ctx.leads.append(LeadRecord(
        chat_id=ctx.message.conversation_id,
        name=ctx.message.sender_name,
        flow=flow.value,
        data=lead_data,
    ))
    logger.info("Conversation %s completed %s", ctx.message.conversation_id, flow.value)
    return replies


def _handle_personal_details(ctx: TurnContext) -> Optional[List[Reply]]:
    if ctx.session.step is not Step.COLLECT_PERSONAL:
        return None
    result = advance(ctx.session, ctx.text)
    if not result.complete:
        return [Reply(result.next_prompt)]
    return _complete_flow(ctx)


def _handle_language_score(ctx: TurnContext) -> Optional[List[Reply]]:
    session = ctx.session
    if session.step is not Step.AWAIT_LANGUAGE_SCORE:
        return None

    if ctx.text.lower() == SKIP_COMMAND:
        session.step = Step.DONE
        return [Reply(t("FLOW_FINISHED"))]

    score = parse_number(ctx.text)
    if score is None:
        # Not an answer to the score question; treat as out-of-flow input
        return None
    if score > MAX_LANGUAGE_SCORE:
        return [Reply(t("INVALID_LANGUAGE_SCORE"))]

    session.data["ielts"] = score
    outcome = evaluate_eligibility(
        session.personal,
        language_score=score,
        home_country=ctx.home_country,
    )
    session.data["eligibility"] = outcome.to_dict()
    session.step = Step.DONE
    return [
        Reply(t("ELIGIBILITY_RESULT", result=outcome.result, score=outcome.score)),
        Reply(t("FLOW_FINISHED")),
    ]


def _handle_idle(ctx: TurnContext) -> List[Reply]:
    """Input after a flow finished: back to the menu, honouring a menu digit."""
    ctx.session.reset_to_menu()
    flow = MENU_OPTIONS.get(ctx.text)
    if flow is not None:
        return _start_flow(ctx, flow)
    return [Reply(t("FLOW_FINISHED"))]


# Ordered: session-level concerns first, then the state-specific handlers.
HANDLER_CHAIN: tuple[Handler, ...] = (
    _handle_first_contact,
    _handle_greeting_word,
    _handle_global_commands,
    _handle_menu_selection,
    _handle_personal_details,
    _handle_language_score,
    _handle_idle,
)


def dispatch(ctx: TurnContext) -> List[Reply]:
    for handler in HANDLER_CHAIN:
        replies = handler(ctx)
        if replies is not None:
            return replies
    raise RuntimeError("Handler chain produced no reply")


class ConversationController:
    def __init__(
        self,
        store: SessionStore,
        gateway: MessagingGateway,
        lead_log: CsvLeadLog | None = None,
        *,
        welcome_image: str | Path | None = None,
        admin_wa_id: str = "",
        home_country: str = "India",
    ):
        self.store = store
        self.gateway = gateway
        self.lead_log = lead_log
        self.welcome_image = Path(welcome_image) if welcome_image else None
        self.admin_wa_id = admin_wa_id
        self.home_country = home_country
        self.locks = ConversationLocks()

    async def handle_message(self, message: InboundMessage) -> List[Reply]:
        """Run one full cycle for ``message`` and return the replies sent.

        A message id already recorded on the session is a gateway redelivery
        and is skipped without a reply.  Raises ``SessionPersistenceError``
        (before sending anything) when the session cannot be loaded or saved.
        """
        if message.is_group:
            logger.debug("Ignoring group message in %s", message.conversation_id)
            return []

        cid = message.conversation_id
        async with self.locks.lock_for(cid):
            session = await self.store.get(cid)
            if session.already_processed(message.message_id):
                logger.info("Skipping redelivered message %s for %s", message.message_id, cid)
                return []
            ctx = TurnContext(
                message=message,
                session=session,
                text=(message.text or "").strip(),
                home_country=self.home_country,
                admin_wa_id=self.admin_wa_id,
            )
            replies = dispatch(ctx)
            session.mark_processed(message.message_id)

            await self.store.put(cid, session)

            for lead in ctx.leads:
                self._record_lead(lead)
            for reply in replies:
                await self._deliver(cid, reply)

        return replies

    def _record_lead(self, lead: LeadRecord) -> None:
        if self.lead_log is None:
            return
        try:
            self.lead_log.append(lead)
        except OSError:
            logger.exception("Could not write lead for %s", lead.chat_id)

    async def _deliver(self, conversation_id: str, reply: Reply) -> None:
        to = reply.to or conversation_id

        if reply.attach_welcome and self.welcome_image and self.welcome_image.exists():
            sent = await self.gateway.send_file(
                to, self.welcome_image, self.welcome_image.name, reply.text
            )
            if sent:
                return
            logger.warning("Greeting image to %s failed; falling back to text", to)

        if not await self.gateway.send_text(to, reply.text):
            logger.warning("Reply to %s was not delivered", to)
