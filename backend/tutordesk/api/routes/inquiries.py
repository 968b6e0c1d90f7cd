"""Public inquiry endpoints.

POST /api/inquiries              - Submit a new inquiry
GET  /api/inquiries/{inquiry_id} - Public status view by business key
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from tutordesk.api.deps import get_event_publisher
from tutordesk.db.base import get_session_factory
from tutordesk.schemas.inquiries import (
    InquiryCreatedResponse,
    InquiryCreateRequest,
    PublicInquiryStatusResponse,
)
from tutordesk.services.inquiry_service import InquiryService
from tutordesk.services.notifications import InquiryEventPublisher

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("", response_model=InquiryCreatedResponse, status_code=201)
async def submit_inquiry(
    request: InquiryCreateRequest,
    publisher: InquiryEventPublisher = Depends(get_event_publisher),
) -> InquiryCreatedResponse:
    """Create a PENDING inquiry and announce it to connected admins."""
    service = InquiryService(get_session_factory())
    data = request.model_dump(mode="json", exclude={"attachments"})
    inquiry = await service.create_inquiry(
        data, attachments=[a.model_dump() for a in request.attachments]
    )

    await publisher.publish_new_inquiry(inquiry)

    return InquiryCreatedResponse(inquiry_id=inquiry.inquiry_id)


@router.get("/{inquiry_id}", response_model=PublicInquiryStatusResponse)
async def get_inquiry_status(inquiry_id: str) -> PublicInquiryStatusResponse:
    service = InquiryService(get_session_factory())
    inquiry = await service.get_public_status(inquiry_id)
    if inquiry is None:
        raise HTTPException(status_code=404, detail="Inquiry not found")

    return PublicInquiryStatusResponse(
        inquiry_id=inquiry.inquiry_id,
        status=inquiry.status,
        quote_amount=inquiry.quote_amount,
        quote_email_sent=inquiry.quote_email_sent,
        payment_received=inquiry.payment_received,
        created_at=inquiry.created_at,
    )
