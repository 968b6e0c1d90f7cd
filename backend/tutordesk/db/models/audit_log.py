"""AuditLog model: record of admin actions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid

from tutordesk.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_admin_timestamp", "admin_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id = Column(Uuid, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    admin_username = Column(String(254), nullable=False)

    action = Column(String(50), nullable=False)  # AuditAction values
    resource = Column(String(50), nullable=False)  # "inquiries", "inquiry", "authentication"
    resource_id = Column(String(100), nullable=True)
    details = Column(JSON, nullable=False, default=dict)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    success = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text, nullable=True)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
