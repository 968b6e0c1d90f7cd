"""Audit log Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from tutordesk.db.models.audit_log import AuditLog
from tutordesk.schemas.inquiries import Pagination


class AuditLogResponse(BaseModel):
    id: str
    admin_id: str | None = None
    admin_username: str
    action: str
    resource: str
    resource_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    error_message: str | None = None
    timestamp: datetime

    @classmethod
    def from_model(cls, entry: AuditLog) -> "AuditLogResponse":
        return cls(
            id=str(entry.id),
            admin_id=str(entry.admin_id) if entry.admin_id else None,
            admin_username=entry.admin_username,
            action=entry.action,
            resource=entry.resource,
            resource_id=entry.resource_id,
            details=entry.details or {},
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            success=entry.success,
            error_message=entry.error_message,
            timestamp=entry.timestamp,
        )


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogResponse] = Field(default_factory=list)
    pagination: Pagination
