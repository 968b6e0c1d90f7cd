"""Read-side queries over inquiry status history."""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from tutordesk.db.models.inquiry import Inquiry
from tutordesk.db.models.status_change import InquiryStatusChange
from tutordesk.domain.results import StatusTransitionMetric
from tutordesk.domain.statuses import InquiryStatus
from tutordesk.services.lookups import find_inquiry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """A history record with the actor's display identity resolved."""

    sequence: int
    from_status: InquiryStatus
    status: InquiryStatus
    changed_at: datetime
    changed_by: uuid.UUID
    changed_by_username: str | None
    changed_by_role: str | None
    reason: str | None
    notes: str | None


@dataclass(frozen=True)
class InquiryWithHistory:
    inquiry: Inquiry
    history: list[HistoryEntry]  # newest first


def to_history_entry(record: InquiryStatusChange) -> HistoryEntry:
    actor = record.actor
    return HistoryEntry(
        sequence=record.sequence,
        from_status=InquiryStatus(record.from_status),
        status=InquiryStatus(record.status),
        changed_at=record.changed_at,
        changed_by=record.changed_by,
        changed_by_username=actor.username if actor else None,
        changed_by_role=actor.role if actor else None,
        reason=record.reason,
        notes=record.notes,
    )


class InquiryHistoryService:
    """History and transition metrics. Never writes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_inquiry_with_history(self, inquiry_id: uuid.UUID | str) -> InquiryWithHistory | None:
        """Return the inquiry with its full history, newest transition first.

        Args:
            inquiry_id: Primary key UUID or business key

        Returns:
            InquiryWithHistory, or None if the inquiry does not exist
        """
        async with self.session_factory() as session:
            inquiry = await find_inquiry(session, inquiry_id, populate_existing=True)
            if inquiry is None:
                return None
            history = [to_history_entry(r) for r in reversed(inquiry.status_history)]
        return InquiryWithHistory(inquiry=inquiry, history=history)

    async def get_status_metrics(self, start: datetime, end: datetime) -> list[StatusTransitionMetric]:
        """Aggregate transitions with ``changed_at`` in ``[start, end]``.

        Groups by (from_status, to_status), sorted by count descending. Dwell
        time is measured from the previous transition of the same inquiry, or
        from its creation for the first transition.

        Raises:
            ValueError: start is after end
        """
        if start > end:
            raise ValueError("start must not be after end")

        change = InquiryStatusChange
        previous = aliased(InquiryStatusChange)
        stmt = (
            select(
                change.from_status,
                change.status,
                change.changed_at,
                previous.changed_at,
                Inquiry.created_at,
            )
            .join(Inquiry, Inquiry.id == change.inquiry_id)
            .outerjoin(
                previous,
                and_(
                    previous.inquiry_id == change.inquiry_id,
                    previous.sequence == change.sequence - 1,
                ),
            )
            .where(change.changed_at >= start, change.changed_at <= end)
        )

        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()

        counts: dict[tuple[str, str], int] = defaultdict(int)
        dwell_totals: dict[tuple[str, str], float] = defaultdict(float)
        for from_status, to_status, changed_at, previous_at, created_at in rows:
            key = (from_status, to_status)
            entered_at = previous_at or created_at
            counts[key] += 1
            dwell_totals[key] += max((changed_at - entered_at).total_seconds(), 0.0)

        metrics = [
            StatusTransitionMetric(
                from_status=InquiryStatus(from_status),
                to_status=InquiryStatus(to_status),
                count=count,
                avg_dwell_seconds=dwell_totals[(from_status, to_status)] / count,
            )
            for (from_status, to_status), count in counts.items()
        ]
        metrics.sort(key=lambda m: (-m.count, m.from_status.value, m.to_status.value))

        logger.debug("status_metrics_computed", groups=len(metrics), transitions=len(rows))
        return metrics
