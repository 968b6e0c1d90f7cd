"""Inquiry status enum and transition policy.

Pure domain logic with no external dependencies.
"""
from enum import Enum


class InquiryStatus(str, Enum):
    """Inquiry lifecycle states."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    REFUTED = "REFUTED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


# Legal successors for every status. Keyed by every member (checked below).
TRANSITIONS: dict[InquiryStatus, frozenset[InquiryStatus]] = {
    InquiryStatus.PENDING: frozenset(
        {InquiryStatus.ASSIGNED, InquiryStatus.REJECTED, InquiryStatus.CANCELLED}
    ),
    InquiryStatus.ASSIGNED: frozenset(
        {InquiryStatus.IN_PROGRESS, InquiryStatus.ON_HOLD, InquiryStatus.CANCELLED}
    ),
    InquiryStatus.IN_PROGRESS: frozenset(
        {
            InquiryStatus.COMPLETED,
            InquiryStatus.ON_HOLD,
            InquiryStatus.REFUTED,
            InquiryStatus.CANCELLED,
        }
    ),
    InquiryStatus.COMPLETED: frozenset(),  # Terminal state
    InquiryStatus.REJECTED: frozenset(),  # Terminal state
    InquiryStatus.REFUTED: frozenset({InquiryStatus.ASSIGNED, InquiryStatus.CANCELLED}),
    InquiryStatus.ON_HOLD: frozenset(
        {InquiryStatus.ASSIGNED, InquiryStatus.IN_PROGRESS, InquiryStatus.CANCELLED}
    ),
    InquiryStatus.CANCELLED: frozenset(),  # Terminal state
}

STATUSES_REQUIRING_REASON: frozenset[InquiryStatus] = frozenset(
    {
        InquiryStatus.REJECTED,
        InquiryStatus.REFUTED,
        InquiryStatus.ON_HOLD,
        InquiryStatus.CANCELLED,
    }
)

_missing = set(InquiryStatus) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Transition table is missing statuses: {sorted(s.value for s in _missing)}")


def parse_status(value: "InquiryStatus | str") -> InquiryStatus | None:
    """Coerce an external status value; None if it names no known status."""
    if isinstance(value, InquiryStatus):
        return value
    try:
        return InquiryStatus(value)
    except ValueError:
        return None


def legal_successors(status: InquiryStatus) -> frozenset[InquiryStatus]:
    return TRANSITIONS[status]


def is_terminal(status: InquiryStatus) -> bool:
    return not TRANSITIONS[status]


def is_valid_transition(current: InquiryStatus, requested: InquiryStatus) -> bool:
    """Return True iff ``requested`` is a legal successor of ``current``.

    Pure function -- no side effects, no DB access. Self-transitions are
    never valid.
    """
    if current == requested:
        return False
    return requested in TRANSITIONS[current]


def requires_reason(status: InquiryStatus) -> bool:
    """Return True if moving into ``status`` needs a justification."""
    return status in STATUSES_REQUIRING_REASON
