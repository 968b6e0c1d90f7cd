"""AuditService: persists admin actions to the audit log."""

import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutordesk.db.models.audit_log import AuditLog
from tutordesk.domain.choices import AuditAction

logger = structlog.get_logger(__name__)


@dataclass
class AuditLogFilters:
    admin_id: uuid.UUID | None = None
    action: str | None = None
    resource: str | None = None
    success: bool | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class AuditService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def log_action(
        self,
        *,
        admin_id: uuid.UUID | None,
        admin_username: str,
        action: AuditAction | str,
        resource: str,
        resource_id: str | None = None,
        details: dict | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> AuditLog | None:
        """Write one audit entry.

        Never raises on storage errors: a failed audit write is logged and
        the calling flow continues. Returns None in that case.
        """
        entry = AuditLog(
            admin_id=admin_id,
            admin_username=admin_username,
            action=action.value if isinstance(action, AuditAction) else action,
            resource=resource,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            error_message=error_message,
        )
        try:
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError:
            logger.warning(
                "audit_log_write_failed",
                action=entry.action,
                resource=resource,
                resource_id=resource_id,
                exc_info=True,
            )
            return None
        return entry

    async def get_logs(
        self, filters: AuditLogFilters | None = None, page: int = 1, limit: int = 50
    ) -> tuple[list[AuditLog], int]:
        """Newest-first audit entries matching ``filters`` and the total count."""
        filters = filters or AuditLogFilters()
        conditions = []
        if filters.admin_id:
            conditions.append(AuditLog.admin_id == filters.admin_id)
        if filters.action:
            conditions.append(AuditLog.action == filters.action)
        if filters.resource:
            conditions.append(AuditLog.resource == filters.resource)
        if filters.success is not None:
            conditions.append(AuditLog.success == filters.success)
        if filters.date_from:
            conditions.append(AuditLog.timestamp >= filters.date_from)
        if filters.date_to:
            conditions.append(AuditLog.timestamp <= filters.date_to)

        page = max(page, 1)
        async with self.session_factory() as session:
            result = await session.execute(
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.timestamp.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            logs = list(result.scalars().all())
            total = await session.scalar(select(func.count()).select_from(AuditLog).where(*conditions))
        return logs, total or 0
