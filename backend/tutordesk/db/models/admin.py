"""Admin model: staff identities that act on inquiries."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from tutordesk.db.base import Base
from tutordesk.domain.choices import AdminRole


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(30), nullable=False, unique=True)
    email = Column(String(254), nullable=False, unique=True)
    role = Column(String(20), nullable=False, default=AdminRole.AGENT.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Permissions
    can_view_inquiries = Column(Boolean, nullable=False, default=True)
    can_edit_inquiries = Column(Boolean, nullable=False, default=True)
    can_delete_inquiries = Column(Boolean, nullable=False, default=False)
    can_view_analytics = Column(Boolean, nullable=False, default=True)

    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def has_permission(self, permission: str) -> bool:
        return bool(getattr(self, permission, False))
