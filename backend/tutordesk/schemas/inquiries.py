"""Inquiry Pydantic schemas for API requests and responses."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from tutordesk.db.models.inquiry import Inquiry
from tutordesk.domain.choices import ClientType, ServiceType, Urgency
from tutordesk.services.history_service import HistoryEntry, InquiryWithHistory
from tutordesk.services.inquiry_service import DashboardSummary

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$"

AllowedMimeType = Literal[
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
]


# ──────────────────────────────────────────────────────────────────────────────
# Public intake
# ──────────────────────────────────────────────────────────────────────────────


class AttachmentIn(BaseModel):
    """Metadata of a file already stored by the upload handler."""

    original_name: str = Field(..., max_length=255)
    file_name: str = Field(..., max_length=255)
    file_path: str = Field(..., max_length=500)
    file_size: int = Field(..., ge=0, le=10 * 1024 * 1024)
    mime_type: AllowedMimeType


class InquiryCreateRequest(BaseModel):
    course_name: str = Field(..., min_length=2, max_length=200)
    assignment_details: str = Field(..., min_length=10, max_length=2000)
    contact_email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    client_type: ClientType
    phone_number: str = Field(..., min_length=10, max_length=20)
    name: str | None = Field(None, max_length=100)
    service_type: ServiceType
    urgency: Urgency = Urgency.NORMAL
    attachments: list[AttachmentIn] = Field(default_factory=list, max_length=5)


class InquiryCreatedResponse(BaseModel):
    inquiry_id: str
    message: str = "Inquiry submitted successfully! We will send you a quote within 24 hours."


class PublicInquiryStatusResponse(BaseModel):
    inquiry_id: str
    status: str
    quote_amount: Decimal | None = None
    quote_email_sent: bool
    payment_received: bool
    created_at: datetime


# ──────────────────────────────────────────────────────────────────────────────
# Admin views
# ──────────────────────────────────────────────────────────────────────────────


class AttachmentResponse(BaseModel):
    original_name: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str


class HistoryEntryResponse(BaseModel):
    sequence: int
    from_status: str
    status: str
    changed_at: datetime
    changed_by: str
    changed_by_username: str | None = None
    changed_by_role: str | None = None
    reason: str | None = None
    notes: str | None = None

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntryResponse":
        return cls(
            sequence=entry.sequence,
            from_status=entry.from_status.value,
            status=entry.status.value,
            changed_at=entry.changed_at,
            changed_by=str(entry.changed_by),
            changed_by_username=entry.changed_by_username,
            changed_by_role=entry.changed_by_role,
            reason=entry.reason,
            notes=entry.notes,
        )


class InquiryResponse(BaseModel):
    id: str
    inquiry_id: str
    course_name: str
    assignment_details: str
    service_type: str
    urgency: str
    contact_email: str
    name: str
    phone_number: str
    client_type: str
    status: str
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    quote_amount: Decimal | None = None
    quote_email_sent: bool = False
    quote_email_sent_at: datetime | None = None
    payment_received: bool = False
    payment_received_at: datetime | None = None
    assigned_tutor: str | None = None
    internal_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, inquiry: Inquiry) -> "InquiryResponse":
        return cls(
            id=str(inquiry.id),
            inquiry_id=inquiry.inquiry_id,
            course_name=inquiry.course_name,
            assignment_details=inquiry.assignment_details,
            service_type=inquiry.service_type,
            urgency=inquiry.urgency,
            contact_email=inquiry.contact_email,
            name=inquiry.name,
            phone_number=inquiry.phone_number,
            client_type=inquiry.client_type,
            status=inquiry.status,
            attachments=[
                AttachmentResponse(
                    original_name=a.original_name,
                    file_name=a.file_name,
                    file_path=a.file_path,
                    file_size=a.file_size,
                    mime_type=a.mime_type,
                )
                for a in inquiry.attachments
            ],
            quote_amount=inquiry.quote_amount,
            quote_email_sent=inquiry.quote_email_sent,
            quote_email_sent_at=inquiry.quote_email_sent_at,
            payment_received=inquiry.payment_received,
            payment_received_at=inquiry.payment_received_at,
            assigned_tutor=inquiry.assigned_tutor,
            internal_notes=inquiry.internal_notes,
            created_at=inquiry.created_at,
            updated_at=inquiry.updated_at,
        )


class InquiryDetailResponse(BaseModel):
    """Inquiry plus status history, newest transition first."""

    inquiry: InquiryResponse
    history: list[HistoryEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: InquiryWithHistory) -> "InquiryDetailResponse":
        return cls(
            inquiry=InquiryResponse.from_model(view.inquiry),
            history=[HistoryEntryResponse.from_entry(e) for e in view.history],
        )


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class InquiryListResponse(BaseModel):
    inquiries: list[InquiryResponse] = Field(default_factory=list)
    pagination: Pagination
    status_counts: dict[str, int] = Field(default_factory=dict)


# ──────────────────────────────────────────────────────────────────────────────
# Status lifecycle
# ──────────────────────────────────────────────────────────────────────────────


class StatusUpdateRequest(BaseModel):
    status: str
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)
    # Non-lifecycle fields that may ride along with a transition
    internal_notes: str | None = Field(None, max_length=1000)
    assigned_tutor: str | None = Field(None, max_length=100)


class StatusUpdateResponse(BaseModel):
    message: str = "Status updated successfully"
    old_status: str
    new_status: str
    inquiry: InquiryDetailResponse


class BulkStatusItem(BaseModel):
    inquiry_id: str
    new_status: str
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)


class BulkStatusUpdateRequest(BaseModel):
    updates: list[BulkStatusItem] = Field(..., min_length=1)


class BulkSuccess(BaseModel):
    inquiry_id: str
    new_status: str


class BulkFailure(BaseModel):
    inquiry_id: str
    error: str
    kind: str


class BulkStatusUpdateResponse(BaseModel):
    message: str
    successful_count: int
    failed_count: int
    successful: list[BulkSuccess] = Field(default_factory=list)
    failed: list[BulkFailure] = Field(default_factory=list)


class StatusMetricResponse(BaseModel):
    from_status: str
    to_status: str
    count: int
    avg_dwell_seconds: float


class StatusMetricsResponse(BaseModel):
    start_date: datetime
    end_date: datetime
    metrics: list[StatusMetricResponse] = Field(default_factory=list)


class QuoteUpdateRequest(BaseModel):
    quote_amount: Decimal = Field(..., ge=0)
    send_email: bool = False


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard
# ──────────────────────────────────────────────────────────────────────────────


class RecentInquiryResponse(BaseModel):
    inquiry_id: str
    course_name: str
    status: str
    contact_email: str
    created_at: datetime


class DashboardResponse(BaseModel):
    period: str
    since: datetime
    total_inquiries: int
    status_counts: dict[str, int] = Field(default_factory=dict)
    service_type_counts: dict[str, int] = Field(default_factory=dict)
    urgency_counts: dict[str, int] = Field(default_factory=dict)
    recent_inquiries: list[RecentInquiryResponse] = Field(default_factory=list)
    total_revenue: Decimal

    @classmethod
    def from_summary(cls, summary: DashboardSummary) -> "DashboardResponse":
        return cls(
            period=summary.period,
            since=summary.since,
            total_inquiries=summary.total_inquiries,
            status_counts=summary.status_counts,
            service_type_counts=summary.service_type_counts,
            urgency_counts=summary.urgency_counts,
            recent_inquiries=[
                RecentInquiryResponse(
                    inquiry_id=i.inquiry_id,
                    course_name=i.course_name,
                    status=i.status,
                    contact_email=i.contact_email,
                    created_at=i.created_at,
                )
                for i in summary.recent_inquiries
            ],
            total_revenue=summary.total_revenue,
        )
