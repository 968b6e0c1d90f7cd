"""InquiryStatusService: the inquiry status lifecycle engine.

Every transition goes through ``update_status``: load, check the transition
policy, then write the new status and append the history record in a single
database transaction. Notification, audit and email are left to the caller;
the returned ``StatusUpdateResult`` carries what they need.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutordesk.core.config import get_settings
from tutordesk.core.exceptions import ConcurrentUpdateError, PersistenceFailure
from tutordesk.db.models.inquiry import Inquiry
from tutordesk.db.models.status_change import InquiryStatusChange
from tutordesk.domain.results import (
    BulkStatusUpdateResult,
    StatusErrorKind,
    StatusUpdateResult,
)
from tutordesk.domain.statuses import InquiryStatus, is_valid_transition, parse_status, requires_reason
from tutordesk.services.lookups import find_admin, find_inquiry

logger = structlog.get_logger(__name__)

# Marker returned by a single attempt when another writer got there first
_CONFLICT = object()


@dataclass
class StatusUpdateItem:
    """One entry of a bulk status update."""

    inquiry_id: str
    new_status: str
    reason: str | None = None
    notes: str | None = None


class InquiryStatusService:
    """Status transition engine and bulk coordinator.

    Concurrent transitions on one inquiry are serialized optimistically: the
    UPDATE only matches the status and version that were validated, so a
    losing writer sees zero rows, re-reads and re-validates.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_retries: int | None = None,
    ):
        """Initialize with dependency injection.

        Args:
            session_factory: SQLAlchemy async session factory
            max_retries: Attempts per call before giving up on a contended inquiry
        """
        self.session_factory = session_factory
        self.max_retries = (
            get_settings().status_update_max_retries if max_retries is None else max_retries
        )

    async def update_status(
        self,
        inquiry_id: uuid.UUID | str,
        new_status: InquiryStatus | str,
        actor_id: uuid.UUID | str,
        reason: str | None = None,
        notes: str | None = None,
    ) -> StatusUpdateResult:
        """Move an inquiry to ``new_status`` on behalf of ``actor_id``.

        Args:
            inquiry_id: Primary key UUID or business key of the inquiry
            new_status: Requested status
            actor_id: UUID of the admin performing the transition
            reason: Justification; mandatory for REJECTED, REFUTED, ON_HOLD, CANCELLED
            notes: Optional free-text notes

        Returns:
            StatusUpdateResult; ``error`` is set for NOT_FOUND, INVALID_TRANSITION,
            MISSING_REASON and UNKNOWN_ACTOR

        Raises:
            PersistenceFailure: Storage failed before commit; nothing was written
            ConcurrentUpdateError: Retries exhausted under contention
        """
        ref = str(inquiry_id)
        requested = new_status.value if isinstance(new_status, InquiryStatus) else str(new_status)

        for attempt in range(1, self.max_retries + 1):
            outcome = await self._attempt(ref, requested, actor_id, reason, notes)
            if outcome is not _CONFLICT:
                return outcome
            logger.info("inquiry_status_conflict", inquiry_id=ref, requested_status=requested, attempt=attempt)

        logger.error("inquiry_status_conflict_exhausted", inquiry_id=ref, attempts=self.max_retries)
        raise ConcurrentUpdateError(ref, self.max_retries)

    async def _attempt(
        self,
        ref: str,
        requested: str,
        actor_id: uuid.UUID | str,
        reason: str | None,
        notes: str | None,
    ):
        async with self.session_factory() as session:
            try:
                inquiry = await find_inquiry(session, ref)
                if inquiry is None:
                    return self._reject(ref, requested, StatusErrorKind.NOT_FOUND, "Inquiry not found")

                current = InquiryStatus(inquiry.status)
                target = parse_status(requested)
                if target is None or not is_valid_transition(current, target):
                    return self._reject(
                        ref,
                        requested,
                        StatusErrorKind.INVALID_TRANSITION,
                        f"Invalid status transition from {current.value} to {requested}",
                    )

                if requires_reason(target) and not (reason and reason.strip()):
                    return self._reject(
                        ref,
                        requested,
                        StatusErrorKind.MISSING_REASON,
                        f"Reason is required for status {target.value}",
                    )

                actor = await find_admin(session, actor_id)
                if actor is None:
                    return self._reject(
                        ref, requested, StatusErrorKind.UNKNOWN_ACTOR, f"Unknown admin {actor_id}"
                    )

                expected_version = inquiry.status_version
                pk = inquiry.id
                now = datetime.now(timezone.utc)

                result = await session.execute(
                    update(Inquiry)
                    .where(
                        Inquiry.id == pk,
                        Inquiry.status == current.value,
                        Inquiry.status_version == expected_version,
                    )
                    .values(status=target.value, status_version=expected_version + 1, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    await session.rollback()
                    return _CONFLICT

                await session.execute(
                    insert(InquiryStatusChange).values(
                        inquiry_id=pk,
                        sequence=expected_version + 1,
                        from_status=current.value,
                        status=target.value,
                        changed_at=now,
                        changed_by=actor.id,
                        reason=reason or None,
                        notes=notes or None,
                    )
                )

                # Read back inside the write transaction so nothing fails after commit
                refreshed = await find_inquiry(session, pk, populate_existing=True)
                if refreshed is None:
                    await session.rollback()
                    return _CONFLICT
                await session.commit()
            except IntegrityError:
                # Sequence already taken (or actor vanished): another writer won
                await session.rollback()
                return _CONFLICT
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("inquiry_status_persist_failed", inquiry_id=ref, error=str(exc), error_type=type(exc).__name__)
                raise PersistenceFailure(f"Failed to persist status change for inquiry {ref}") from exc

        logger.info(
            "inquiry_status_updated",
            inquiry_id=refreshed.inquiry_id,
            old_status=current.value,
            new_status=target.value,
            changed_by=str(actor.id),
        )
        return StatusUpdateResult(
            inquiry_id=ref,
            requested_status=requested,
            inquiry=refreshed,
            old_status=current,
            new_status=target,
            changed_by=actor.username,
            changed_at=now,
            reason=reason or None,
        )

    @staticmethod
    def _reject(ref: str, requested: str, kind: StatusErrorKind, message: str) -> StatusUpdateResult:
        logger.info("inquiry_status_update_rejected", inquiry_id=ref, requested_status=requested, kind=kind.value, message=message)
        return StatusUpdateResult.failure(ref, requested, kind, message)

    async def bulk_update_status(
        self, updates: Iterable[StatusUpdateItem], actor_id: uuid.UUID | str
    ) -> BulkStatusUpdateResult:
        """Apply ``update_status`` to each item in order.

        A failing item never stops the batch; each item is its own transaction.

        Args:
            updates: Items with inquiry_id, new_status and optional reason/notes
            actor_id: UUID of the admin performing the changes

        Returns:
            BulkStatusUpdateResult with successful and failed entries
        """
        results = BulkStatusUpdateResult()

        for item in updates:
            try:
                outcome = await self.update_status(
                    item.inquiry_id, item.new_status, actor_id, item.reason, item.notes
                )
            except PersistenceFailure as exc:
                logger.error("bulk_status_item_failed", inquiry_id=str(item.inquiry_id), error=str(exc))
                results.failed.append(
                    {
                        "inquiry_id": str(item.inquiry_id),
                        "error": str(exc),
                        "kind": StatusErrorKind.PERSISTENCE_FAILURE.value,
                    }
                )
                continue

            if outcome.ok:
                results.successful.append(
                    {"inquiry_id": str(item.inquiry_id), "new_status": outcome.new_status.value}
                )
                results.applied.append(outcome)
            else:
                results.failed.append(
                    {
                        "inquiry_id": str(item.inquiry_id),
                        "error": outcome.error.message,
                        "kind": outcome.error.kind.value,
                    }
                )

        logger.info(
            "bulk_status_update_completed",
            successful=len(results.successful),
            failed=len(results.failed),
        )
        return results
