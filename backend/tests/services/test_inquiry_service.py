"""Tests for InquiryService: intake, quote/payment fields and dashboard listing."""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from tutordesk.db.models.inquiry import Inquiry
from tutordesk.services.inquiry_service import InquiryFilters, InquiryService, generate_inquiry_id
from tutordesk.services.status_service import InquiryStatusService

pytestmark = pytest.mark.unit


@pytest.fixture
def service(session_factory):
    return InquiryService(session_factory)


def test_generate_inquiry_id_format():
    inquiry_id = generate_inquiry_id()

    assert re.fullmatch(r"TG-\d{13}-[A-Z0-9]{9}", inquiry_id)
    assert generate_inquiry_id() != inquiry_id


async def test_create_inquiry_starts_pending_without_history(make_inquiry):
    inquiry = await make_inquiry(contact_email="  Mixed.Case@Example.COM ")

    assert inquiry.status == "PENDING"
    assert inquiry.status_version == 0
    assert inquiry.status_history == ()
    assert inquiry.contact_email == "mixed.case@example.com"
    assert inquiry.quote_amount is None
    assert inquiry.payment_received is False


async def test_create_inquiry_keeps_attachment_order(service):
    attachments = [
        {
            "original_name": f"part{n}.pdf",
            "file_name": f"stored-{n}.pdf",
            "file_path": f"uploads/stored-{n}.pdf",
            "file_size": 1024 * n,
            "mime_type": "application/pdf",
        }
        for n in (1, 2, 3)
    ]

    inquiry = await service.create_inquiry(
        {
            "course_name": "Thermodynamics",
            "assignment_details": "Lab report on heat engines and entropy.",
            "service_type": "project",
            "contact_email": "lab@example.com",
            "phone_number": "5559876543",
            "client_type": "repeat",
        },
        attachments=attachments,
    )

    assert [a.original_name for a in inquiry.attachments] == ["part1.pdf", "part2.pdf", "part3.pdf"]
    assert inquiry.urgency == "normal"
    assert inquiry.name == ""


async def test_public_status_by_business_key_only(service, inquiry):
    assert (await service.get_public_status(inquiry.inquiry_id)).id == inquiry.id
    assert await service.get_public_status(str(inquiry.id)) is None


async def test_set_quote_does_not_change_status(service, inquiry):
    updated = await service.set_quote(inquiry.inquiry_id, Decimal("149.99"))

    assert updated.quote_amount == Decimal("149.99")
    assert updated.status == "PENDING"
    assert updated.status_version == 0


async def test_set_quote_rejects_negative_amount(service, inquiry):
    with pytest.raises(ValueError):
        await service.set_quote(inquiry.id, Decimal("-1"))


async def test_set_quote_unknown_inquiry(service):
    assert await service.set_quote("TG-unknown", Decimal("10")) is None


async def test_mark_quote_email_sent(service, inquiry):
    await service.mark_quote_email_sent(inquiry.id)

    stored = await service.get_inquiry(inquiry.id)
    assert stored.quote_email_sent is True
    assert stored.quote_email_sent_at is not None


async def test_record_payment(service, inquiry):
    updated = await service.record_payment(inquiry.inquiry_id)

    assert updated.payment_received is True
    assert updated.payment_received_at is not None
    assert updated.status == "PENDING"


async def test_update_details(service, inquiry):
    updated = await service.update_details(
        inquiry.id, {"assigned_tutor": "Dr. Okafor", "internal_notes": "Prefers evening sessions"}
    )

    assert updated.assigned_tutor == "Dr. Okafor"
    assert updated.internal_notes == "Prefers evening sessions"
    assert updated.updated_at >= updated.created_at


async def test_update_details_refuses_lifecycle_fields(service, inquiry):
    with pytest.raises(ValueError):
        await service.update_details(inquiry.id, {"status": "COMPLETED"})

    assert (await service.get_inquiry(inquiry.id)).status == "PENDING"


async def test_list_inquiries_filters_paginates_and_counts(service, session_factory, make_inquiry, admin):
    calculus = await make_inquiry(course_name="Calculus I", urgency="urgent")
    await make_inquiry(course_name="Calculus II")
    await make_inquiry(course_name="World History", service_type="exam")
    await InquiryStatusService(session_factory).update_status(calculus.id, "ASSIGNED", admin.id)

    page = await service.list_inquiries(InquiryFilters(search="calculus"), page=1, limit=1, sort_by="course_name", sort_order="asc")

    assert page.total == 2
    assert page.total_pages == 2
    assert [i.course_name for i in page.items] == ["Calculus I"]
    assert page.status_counts == {"PENDING": 2, "ASSIGNED": 1}

    assigned = await service.list_inquiries(InquiryFilters(status="ASSIGNED"))
    assert [i.id for i in assigned.items] == [calculus.id]

    exams = await service.list_inquiries(InquiryFilters(service_type="exam"))
    assert [i.course_name for i in exams.items] == ["World History"]


async def test_list_inquiries_unknown_sort_field_falls_back(service, make_inquiry):
    await make_inquiry()

    page = await service.list_inquiries(sort_by="contact_email; DROP TABLE inquiries")

    assert page.total == 1


async def _backdate(session_factory, pk, days: int) -> None:
    async with session_factory() as session:
        await session.execute(
            update(Inquiry)
            .where(Inquiry.id == pk)
            .values(created_at=datetime.now(timezone.utc) - timedelta(days=days))
        )
        await session.commit()


async def test_dashboard_counts_only_the_period(service, session_factory, make_inquiry, admin):
    recent = await make_inquiry(course_name="Calculus I", urgency="urgent")
    older = await make_inquiry(course_name="Calculus II", service_type="exam")
    ancient = await make_inquiry(course_name="World History", service_type="project")
    await _backdate(session_factory, older.id, 20)
    await _backdate(session_factory, ancient.id, 120)

    status_service = InquiryStatusService(session_factory)
    for status in ("ASSIGNED", "IN_PROGRESS", "COMPLETED"):
        await status_service.update_status(recent.id, status, admin.id)
    await service.set_quote(recent.id, Decimal("150.00"))
    await service.set_quote(older.id, Decimal("99.00"))

    week = await service.get_dashboard("7d")
    assert week.total_inquiries == 1
    assert week.status_counts == {"COMPLETED": 1}
    assert week.urgency_counts == {"urgent": 1}
    assert [i.id for i in week.recent_inquiries] == [recent.id]
    assert week.total_revenue == Decimal("150.00")

    month = await service.get_dashboard("30d")
    assert month.total_inquiries == 2
    assert month.service_type_counts == {"assignment": 1, "exam": 1}
    assert [i.id for i in month.recent_inquiries] == [recent.id, older.id]
    # Quotes on inquiries that are not COMPLETED are not revenue
    assert month.total_revenue == Decimal("150.00")

    quarter = await service.get_dashboard("90d")
    assert quarter.total_inquiries == 2


async def test_dashboard_recent_list_is_capped(service, make_inquiry):
    for n in range(7):
        await make_inquiry(course_name=f"Course {n}")

    summary = await service.get_dashboard()

    assert summary.period == "30d"
    assert summary.total_inquiries == 7
    assert len(summary.recent_inquiries) == 5
    assert summary.total_revenue == Decimal("0")


async def test_dashboard_unknown_period_uses_default(service):
    summary = await service.get_dashboard("forever")

    assert summary.period == "30d"
    assert summary.total_inquiries == 0
    assert summary.status_counts == {}
    assert summary.recent_inquiries == []
