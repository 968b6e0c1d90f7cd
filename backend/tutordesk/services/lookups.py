"""Shared inquiry/admin lookups used by the service layer."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.db.models.admin import Admin
from tutordesk.db.models.inquiry import Inquiry


def parse_uuid(value: uuid.UUID | str | None) -> uuid.UUID | None:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def find_inquiry(
    session: AsyncSession, ref: uuid.UUID | str, populate_existing: bool = False
) -> Inquiry | None:
    """Load an inquiry by primary key or by business key (``TG-...``)."""
    pk = parse_uuid(ref)
    if pk is not None:
        stmt = select(Inquiry).where(Inquiry.id == pk)
    else:
        stmt = select(Inquiry).where(Inquiry.inquiry_id == str(ref))
    if populate_existing:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_admin(session: AsyncSession, ref: uuid.UUID | str | None) -> Admin | None:
    pk = parse_uuid(ref)
    if pk is None:
        return None
    return await session.get(Admin, pk)
