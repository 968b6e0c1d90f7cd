"""Public contact form.

POST /api/contact - Forward a message to support and acknowledge the sender
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from tutordesk.api.deps import get_contact_mailer
from tutordesk.schemas.contact import ContactRequest, ContactResponse
from tutordesk.services.email_service import ContactMailer, ContactMessage

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("", response_model=ContactResponse)
async def submit_contact(
    request: ContactRequest,
    mailer: ContactMailer = Depends(get_contact_mailer),
) -> ContactResponse:
    contact = ContactMessage(
        name=request.name,
        email=request.email.lower(),
        subject=request.subject,
        message=request.message,
    )
    try:
        await mailer.send(contact)
    except Exception:
        logger.error("contact_message_failed", sender_email=contact.email, exc_info=True)
        raise HTTPException(status_code=502, detail="Failed to send message. Please try again later.")

    return ContactResponse()
