# app/domain/models/session.py
"""
Per-conversation session state.

One ``ConversationSession`` exists per WhatsApp counterpart.  It is loaded
from the session store at the start of every inbound message, mutated by the
conversation controller, and saved once at the end of the cycle.

Older session files stored ``personalIndex`` in camelCase and ``personal`` as
a loose dict; both shapes still validate.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field

Number = Union[int, float]

# How many recent message ids a session remembers for de-duplication
MAX_PROCESSED_IDS = 50


class Flow(str, Enum):
    CANADA_PR = "CANADA_PR"
    STUDENT_VISA = "STUDENT_VISA"
    WORK_PERMIT = "WORK_PERMIT"
    TOURIST_VISA = "TOURIST_VISA"
    BUSINESS_VISA = "BUSINESS_VISA"
    ELIGIBILITY = "ELIGIBILITY"
    HANDOFF = "HANDOFF"


# Main menu digit → flow
MENU_OPTIONS: Dict[str, Flow] = {
    "1": Flow.CANADA_PR,
    "2": Flow.STUDENT_VISA,
    "3": Flow.WORK_PERMIT,
    "4": Flow.TOURIST_VISA,
    "5": Flow.BUSINESS_VISA,
    "6": Flow.ELIGIBILITY,
    "7": Flow.HANDOFF,
}

VISA_FLOWS = frozenset({
    Flow.CANADA_PR,
    Flow.STUDENT_VISA,
    Flow.WORK_PERMIT,
    Flow.TOURIST_VISA,
    Flow.BUSINESS_VISA,
})


class Step(str, Enum):
    COLLECT_PERSONAL = "collect_personal"
    AWAIT_LANGUAGE_SCORE = "await_language_score"
    DONE = "done"


# Fixed question order, shared by every flow
PERSONAL_FIELDS = (
    "name",
    "phone",
    "email",
    "age",
    "city",
    "country",
    "education",
    "experience",
)


class PersonalDetails(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    age: Optional[Number] = None
    city: Optional[str] = None
    country: Optional[str] = None
    education: Optional[str] = None
    experience: Optional[Number] = None

    def set_field(self, field: str, value: Any) -> None:
        if field not in PERSONAL_FIELDS:
            raise ValueError(f"Unknown personal field: {field!r}")
        setattr(self, field, value)

    def is_empty(self) -> bool:
        return all(getattr(self, f) is None for f in PERSONAL_FIELDS)


class ConversationSession(BaseModel):
    flow: Optional[Flow] = None
    step: Optional[Step] = None
    personal: PersonalDetails = Field(default_factory=PersonalDetails)
    personal_index: int = Field(
        default=0,
        ge=0,
        le=len(PERSONAL_FIELDS),
        validation_alias=AliasChoices("personal_index", "personalIndex"),
    )
    greeted: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)
    # Recent gateway message ids, oldest first; redeliveries are skipped
    processed_message_ids: List[str] = Field(default_factory=list)

    def already_processed(self, message_id: str) -> bool:
        return bool(message_id) and message_id in self.processed_message_ids

    def mark_processed(self, message_id: str) -> None:
        if not message_id:
            return
        self.processed_message_ids.append(message_id)
        del self.processed_message_ids[:-MAX_PROCESSED_IDS]

    @property
    def personal_complete(self) -> bool:
        return self.personal_index == len(PERSONAL_FIELDS)

    @property
    def current_field(self) -> Optional[str]:
        if self.personal_complete:
            return None
        return PERSONAL_FIELDS[self.personal_index]

    def start_flow(self, flow: Flow) -> None:
        """Select a menu option and start a fresh personal-details form."""
        self.flow = flow
        self.step = Step.COLLECT_PERSONAL
        self.personal = PersonalDetails()
        self.personal_index = 0
        self.data = {}

    def reset_to_menu(self) -> None:
        """Drop the selected flow and any half-filled form; ``greeted`` survives."""
        self.flow = None
        self.step = None
        self.personal = PersonalDetails()
        self.personal_index = 0

    def restart(self) -> None:
        """Full reset to defaults.  The user has already seen the welcome."""
        self.reset_to_menu()
        self.data = {}
        self.greeted = True
