"""Typed outcomes of status operations.

Business-rule failures are values, not exceptions, so bulk processing and
the HTTP boundary can branch on ``kind`` directly.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from tutordesk.domain.statuses import InquiryStatus

if TYPE_CHECKING:
    from tutordesk.db.models.inquiry import Inquiry


class StatusErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    MISSING_REASON = "missing_reason"
    UNKNOWN_ACTOR = "unknown_actor"
    PERSISTENCE_FAILURE = "persistence_failure"  # bulk items only; single calls raise


@dataclass(frozen=True)
class StatusUpdateError:
    kind: StatusErrorKind
    message: str


@dataclass
class StatusUpdateResult:
    """Result of a single ``update_status`` call.

    On success ``inquiry`` is the refreshed aggregate and ``old_status`` /
    ``new_status`` / ``changed_by`` / ``changed_at`` describe the transition,
    which is everything needed for the status-update event, the audit entry
    and the email decision. ``reason`` is the justification as recorded.
    """

    inquiry_id: str
    requested_status: str
    inquiry: "Inquiry | None" = None
    old_status: InquiryStatus | None = None
    new_status: InquiryStatus | None = None
    changed_by: str | None = None
    changed_at: datetime | None = None
    reason: str | None = None
    error: StatusUpdateError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls, inquiry_id: str, requested_status: str, kind: StatusErrorKind, message: str
    ) -> "StatusUpdateResult":
        return cls(
            inquiry_id=inquiry_id,
            requested_status=requested_status,
            error=StatusUpdateError(kind=kind, message=message),
        )


@dataclass
class BulkStatusUpdateResult:
    successful: list[dict] = field(default_factory=list)  # {"inquiry_id", "new_status"}
    failed: list[dict] = field(default_factory=list)  # {"inquiry_id", "error", "kind"}
    # Engine results of the successful items, in request order
    applied: list[StatusUpdateResult] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"Bulk update completed: {len(self.successful)} successful, {len(self.failed)} failed"


@dataclass(frozen=True)
class StatusTransitionMetric:
    """Aggregate of history records sharing a (from, to) pair."""

    from_status: InquiryStatus
    to_status: InquiryStatus
    count: int
    avg_dwell_seconds: float  # mean time spent in from_status before the move
