"""InquiryStatusChange model: append-only status history."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid, event
from sqlalchemy.orm import relationship

from tutordesk.core.exceptions import AppendOnlyViolationError
from tutordesk.db.base import Base


class InquiryStatusChange(Base):
    __tablename__ = "inquiry_status_changes"
    __table_args__ = (UniqueConstraint("inquiry_id", "sequence", name="uq_status_change_sequence"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    inquiry_id = Column(Uuid, ForeignKey("inquiries.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)  # 1-based position in the inquiry's history

    from_status = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    changed_by = Column(Uuid, ForeignKey("admins.id"), nullable=False)
    reason = Column(String(500), nullable=True)
    notes = Column(String(1000), nullable=True)
    # NO updated_at -- records are immutable

    actor = relationship("Admin", lazy="selectin")


@event.listens_for(InquiryStatusChange, "before_update")
def _reject_update(mapper, connection, target):
    raise AppendOnlyViolationError(f"Status history record {target.id} cannot be modified")


@event.listens_for(InquiryStatusChange, "before_delete")
def _reject_delete(mapper, connection, target):
    raise AppendOnlyViolationError(f"Status history record {target.id} cannot be deleted")
