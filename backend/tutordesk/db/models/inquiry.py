"""Inquiry model: the aggregate root for a customer's service request."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from tutordesk.db.base import Base


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    inquiry_id = Column(String(40), nullable=False, unique=True, index=True)  # business key, e.g. TG-1718000000000-AB12CD34E

    course_name = Column(String(200), nullable=False)
    assignment_details = Column(String(2000), nullable=False)
    service_type = Column(String(20), nullable=False)  # quiz, exam, class, assignment, project
    urgency = Column(String(20), nullable=False, default="normal")  # urgent, normal, flexible
    contact_email = Column(String(254), nullable=False, index=True)
    name = Column(String(100), nullable=False, default="")
    phone_number = Column(String(20), nullable=False)
    client_type = Column(String(20), nullable=False)  # first-time, repeat

    # Lifecycle: only the status engine writes these two columns
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    status_version = Column(Integer, nullable=False, default=0)  # == number of history rows

    # Business fields outside the lifecycle
    quote_amount = Column(Numeric(10, 2), nullable=True)
    quote_email_sent = Column(Boolean, nullable=False, default=False)
    quote_email_sent_at = Column(DateTime(timezone=True), nullable=True)
    payment_received = Column(Boolean, nullable=False, default=False)
    payment_received_at = Column(DateTime(timezone=True), nullable=True)
    assigned_tutor = Column(String(100), nullable=True)
    internal_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    attachments = relationship(
        "InquiryAttachment",
        order_by="InquiryAttachment.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    # Read-only: history rows are inserted by the status engine only
    _status_history = relationship(
        "InquiryStatusChange",
        order_by="InquiryStatusChange.sequence",
        viewonly=True,
        lazy="selectin",
    )

    @property
    def status_history(self) -> tuple:
        """Transition records in chronological order."""
        return tuple(self._status_history)

    def __repr__(self) -> str:
        return f"<Inquiry {self.inquiry_id} status={self.status}>"


class InquiryAttachment(Base):
    __tablename__ = "inquiry_attachments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    inquiry_id = Column(Uuid, ForeignKey("inquiries.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    original_name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
