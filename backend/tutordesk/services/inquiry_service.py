"""InquiryService: intake, non-lifecycle inquiry fields and dashboard analytics.

Status is never written here; see InquiryStatusService.
"""

import secrets
import string
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutordesk.db.models.inquiry import Inquiry, InquiryAttachment
from tutordesk.services.lookups import find_inquiry

logger = structlog.get_logger(__name__)

_ID_ALPHABET = string.ascii_uppercase + string.digits

SORTABLE_FIELDS = {
    "created_at": Inquiry.created_at,
    "quote_amount": Inquiry.quote_amount,
    "course_name": Inquiry.course_name,
    "status": Inquiry.status,
    "urgency": Inquiry.urgency,
}

EDITABLE_DETAIL_FIELDS = frozenset({"internal_notes", "assigned_tutor"})

DASHBOARD_PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_DASHBOARD_PERIOD = "30d"
RECENT_INQUIRY_COUNT = 5


def generate_inquiry_id() -> str:
    """Business key: ``TG-<epoch millis>-<9 uppercase alphanumerics>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"TG-{int(time.time() * 1000)}-{suffix}"


@dataclass
class InquiryFilters:
    status: str | None = None
    service_type: str | None = None
    urgency: str | None = None
    assigned_tutor: str | None = None
    search: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_quote: Decimal | None = None
    max_quote: Decimal | None = None


@dataclass
class InquiryPage:
    items: list[Inquiry]
    total: int
    page: int
    limit: int
    status_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class DashboardSummary:
    """Intake analytics for inquiries created since ``since``."""

    period: str
    since: datetime
    total_inquiries: int
    status_counts: dict[str, int]
    service_type_counts: dict[str, int]
    urgency_counts: dict[str, int]
    recent_inquiries: list[Inquiry]
    total_revenue: Decimal  # quoted amounts of COMPLETED inquiries


class InquiryService:
    """Service layer for inquiry intake and field updates."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_inquiry(self, data: dict, attachments: list[dict] | None = None) -> Inquiry:
        """Create a PENDING inquiry from a validated public submission.

        Args:
            data: Inquiry fields (course_name, assignment_details, contact_email, ...)
            attachments: Stored file metadata dicts (original_name, file_name,
                file_path, file_size, mime_type), in upload order

        Returns:
            The persisted inquiry. No history record is written for the
            initial PENDING state.
        """
        async with self.session_factory() as session:
            inquiry = Inquiry(
                inquiry_id=generate_inquiry_id(),
                course_name=data["course_name"].strip(),
                assignment_details=data["assignment_details"].strip(),
                service_type=data["service_type"],
                urgency=data.get("urgency") or "normal",
                contact_email=data["contact_email"].strip().lower(),
                name=(data.get("name") or "").strip(),
                phone_number=data["phone_number"].strip(),
                client_type=data["client_type"],
                status="PENDING",
                status_version=0,
            )
            inquiry.attachments = [
                InquiryAttachment(position=position, **attachment)
                for position, attachment in enumerate(attachments or [])
            ]
            session.add(inquiry)
            await session.commit()
            pk = inquiry.id

            created = await find_inquiry(session, pk, populate_existing=True)

        logger.info("inquiry_created", inquiry_id=created.inquiry_id, service_type=created.service_type)
        return created

    async def get_inquiry(self, inquiry_id: uuid.UUID | str) -> Inquiry | None:
        async with self.session_factory() as session:
            return await find_inquiry(session, inquiry_id)

    async def get_public_status(self, inquiry_id: str) -> Inquiry | None:
        """Look up an inquiry by business key only (public endpoint)."""
        async with self.session_factory() as session:
            result = await session.execute(select(Inquiry).where(Inquiry.inquiry_id == inquiry_id))
            return result.scalar_one_or_none()

    async def update_details(self, inquiry_id: uuid.UUID | str, fields: dict) -> Inquiry | None:
        """Update internal notes and/or assigned tutor.

        Raises:
            ValueError: A field outside EDITABLE_DETAIL_FIELDS was given
        """
        unknown = set(fields) - EDITABLE_DETAIL_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable here: {sorted(unknown)}")

        async with self.session_factory() as session:
            inquiry = await find_inquiry(session, inquiry_id)
            if inquiry is None:
                return None
            for name, value in fields.items():
                setattr(inquiry, name, value)
            inquiry.updated_at = datetime.now(timezone.utc)
            await session.commit()
            return await find_inquiry(session, inquiry.id, populate_existing=True)

    async def set_quote(self, inquiry_id: uuid.UUID | str, amount: Decimal) -> Inquiry | None:
        """Record a quote amount. Does not change status.

        Raises:
            ValueError: amount is negative
        """
        if amount < 0:
            raise ValueError("Quote amount must not be negative")

        async with self.session_factory() as session:
            inquiry = await find_inquiry(session, inquiry_id)
            if inquiry is None:
                return None
            inquiry.quote_amount = amount
            inquiry.updated_at = datetime.now(timezone.utc)
            await session.commit()
            logger.info("inquiry_quote_set", inquiry_id=inquiry.inquiry_id, amount=str(amount))
            return await find_inquiry(session, inquiry.id, populate_existing=True)

    async def mark_quote_email_sent(self, inquiry_id: uuid.UUID | str) -> None:
        async with self.session_factory() as session:
            inquiry = await find_inquiry(session, inquiry_id)
            if inquiry is None:
                return
            now = datetime.now(timezone.utc)
            inquiry.quote_email_sent = True
            inquiry.quote_email_sent_at = now
            inquiry.updated_at = now
            await session.commit()

    async def record_payment(self, inquiry_id: uuid.UUID | str) -> Inquiry | None:
        async with self.session_factory() as session:
            inquiry = await find_inquiry(session, inquiry_id)
            if inquiry is None:
                return None
            now = datetime.now(timezone.utc)
            inquiry.payment_received = True
            inquiry.payment_received_at = now
            inquiry.updated_at = now
            await session.commit()
            logger.info("inquiry_payment_recorded", inquiry_id=inquiry.inquiry_id)
            return await find_inquiry(session, inquiry.id, populate_existing=True)

    async def list_inquiries(
        self,
        filters: InquiryFilters | None = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> InquiryPage:
        """Filtered, sorted, paginated listing plus per-status counts.

        Unknown sort fields fall back to created_at.
        """
        filters = filters or InquiryFilters()
        conditions = []
        if filters.status:
            conditions.append(Inquiry.status == filters.status)
        if filters.service_type:
            conditions.append(Inquiry.service_type == filters.service_type)
        if filters.urgency:
            conditions.append(Inquiry.urgency == filters.urgency)
        if filters.assigned_tutor:
            conditions.append(Inquiry.assigned_tutor == filters.assigned_tutor)
        if filters.date_from:
            conditions.append(Inquiry.created_at >= filters.date_from)
        if filters.date_to:
            conditions.append(Inquiry.created_at <= filters.date_to)
        if filters.min_quote is not None:
            conditions.append(Inquiry.quote_amount >= filters.min_quote)
        if filters.max_quote is not None:
            conditions.append(Inquiry.quote_amount <= filters.max_quote)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(
                    Inquiry.course_name.ilike(pattern),
                    Inquiry.contact_email.ilike(pattern),
                    Inquiry.name.ilike(pattern),
                    Inquiry.inquiry_id.ilike(pattern),
                    Inquiry.assigned_tutor.ilike(pattern),
                )
            )

        column = SORTABLE_FIELDS.get(sort_by, Inquiry.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        page = max(page, 1)

        async with self.session_factory() as session:
            items_result = await session.execute(
                select(Inquiry).where(*conditions).order_by(order).offset((page - 1) * limit).limit(limit)
            )
            items = list(items_result.scalars().all())

            total = await session.scalar(select(func.count()).select_from(Inquiry).where(*conditions))

            counts_result = await session.execute(
                select(Inquiry.status, func.count()).group_by(Inquiry.status)
            )
            status_counts = {status: count for status, count in counts_result.all()}

        return InquiryPage(items=items, total=total or 0, page=page, limit=limit, status_counts=status_counts)

    async def get_dashboard(self, period: str = DEFAULT_DASHBOARD_PERIOD) -> DashboardSummary:
        """Analytics over inquiries created in the last 7, 30 or 90 days.

        Unknown periods fall back to 30 days.
        """
        if period not in DASHBOARD_PERIODS:
            period = DEFAULT_DASHBOARD_PERIOD
        since = datetime.now(timezone.utc) - DASHBOARD_PERIODS[period]
        in_window = Inquiry.created_at >= since

        async def _counts(session: AsyncSession, column) -> dict[str, int]:
            result = await session.execute(select(column, func.count()).where(in_window).group_by(column))
            return {key: count for key, count in result.all()}

        async with self.session_factory() as session:
            total = await session.scalar(select(func.count()).select_from(Inquiry).where(in_window))
            status_counts = await _counts(session, Inquiry.status)
            service_type_counts = await _counts(session, Inquiry.service_type)
            urgency_counts = await _counts(session, Inquiry.urgency)

            recent_result = await session.execute(
                select(Inquiry).where(in_window).order_by(Inquiry.created_at.desc()).limit(RECENT_INQUIRY_COUNT)
            )
            recent = list(recent_result.scalars().all())

            revenue = await session.scalar(
                select(func.sum(Inquiry.quote_amount)).where(in_window, Inquiry.status == "COMPLETED")
            )

        return DashboardSummary(
            period=period,
            since=since,
            total_inquiries=total or 0,
            status_counts=status_counts,
            service_type_counts=service_type_counts,
            urgency_counts=urgency_counts,
            recent_inquiries=recent,
            total_revenue=Decimal(str(revenue)) if revenue is not None else Decimal("0"),
        )
