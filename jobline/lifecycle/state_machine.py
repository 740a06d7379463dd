"""Transition tables for the secondary status fields (surveys, bookings, proposals, documents)."""

from __future__ import annotations

import enum
from collections.abc import Mapping

from jobline.core.exceptions import InvalidTransitionError
from jobline.models.enums import BookingStatus, DocumentStatus, ProposalStatus, SurveyStatus


def _key(value: enum.Enum | str | None) -> str | None:
    if isinstance(value, enum.Enum):
        return value.value
    return value


class StateMachine:
    """Whitelist of ``current -> {targets}`` moves for one status field."""

    def __init__(self, name: str, transitions: Mapping[enum.Enum | str | None, set]) -> None:
        self.name = name
        self._transitions = {_key(state): {_key(t) for t in targets} for state, targets in transitions.items()}

    def allowed_targets(self, current: enum.Enum | str | None) -> set[str]:
        return set(self._transitions.get(_key(current), set()))

    def can_transition(self, current: enum.Enum | str | None, target: enum.Enum | str) -> bool:
        return _key(target) in self._transitions.get(_key(current), set())

    def assert_transition(self, current: enum.Enum | str | None, target: enum.Enum | str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(
                f"{self.name} transition not allowed: {_key(current)} -> {_key(target)}"
            )


SURVEY_STATUS = StateMachine(
    "survey status",
    {
        SurveyStatus.REQUESTED: {SurveyStatus.ACCEPTED, SurveyStatus.DECLINED},
        SurveyStatus.ACCEPTED: {SurveyStatus.SCHEDULED, SurveyStatus.DECLINED},
        SurveyStatus.SCHEDULED: {SurveyStatus.COMPLETED},
        SurveyStatus.DECLINED: set(),
        SurveyStatus.COMPLETED: set(),
    },
)

# ``None`` is a survey whose partner has not proposed a date yet.
SURVEY_BOOKING = StateMachine(
    "survey booking",
    {
        None: {BookingStatus.PENDING_CLIENT},
        BookingStatus.PENDING_CLIENT: {
            BookingStatus.CLIENT_ACCEPTED,
            BookingStatus.CLIENT_DECLINED,
            BookingStatus.CLIENT_COUNTER,
        },
        BookingStatus.CLIENT_ACCEPTED: {BookingStatus.CONFIRMED},
        BookingStatus.CLIENT_COUNTER: {BookingStatus.CONFIRMED, BookingStatus.PENDING_CLIENT},
        BookingStatus.CLIENT_DECLINED: {BookingStatus.PENDING_CLIENT},
        BookingStatus.CONFIRMED: set(),
    },
)

SCHEDULE_PROPOSAL = StateMachine(
    "schedule proposal",
    {
        ProposalStatus.PENDING_CLIENT: {
            ProposalStatus.SCHEDULED,
            ProposalStatus.CLIENT_COUNTERED,
            ProposalStatus.DECLINED,
        },
        ProposalStatus.SCHEDULED: {ProposalStatus.CONFIRMED},
        ProposalStatus.CLIENT_COUNTERED: {ProposalStatus.CONFIRMED, ProposalStatus.DECLINED},
        ProposalStatus.DECLINED: set(),
        ProposalStatus.CONFIRMED: set(),
    },
)

DOCUMENT_STATUS = StateMachine(
    "document status",
    {
        DocumentStatus.DRAFT: {DocumentStatus.SENT, DocumentStatus.VOID},
        DocumentStatus.SENT: {
            DocumentStatus.ACCEPTED,
            DocumentStatus.DECLINED,
            DocumentStatus.PAID,
            DocumentStatus.VOID,
        },
        DocumentStatus.ACCEPTED: {DocumentStatus.PAID, DocumentStatus.VOID},
        DocumentStatus.DECLINED: {DocumentStatus.VOID},
        DocumentStatus.PAID: set(),
        DocumentStatus.VOID: set(),
    },
)
