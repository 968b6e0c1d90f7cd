"""Outgoing email: status changes, quotes and contact-form messages.

Delivery is pluggable through ``EmailTransport``; the default transport only
logs the message. Rendering uses Jinja2 templates under ``templates/email``.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog
from jinja2 import Environment, FileSystemLoader

from tutordesk.core.config import get_settings
from tutordesk.db.models.inquiry import Inquiry
from tutordesk.domain.statuses import InquiryStatus

logger = structlog.get_logger(__name__)

EMAIL_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

# Transitions into these statuses are reported to the submitter.
# ASSIGNED is the point where work (and the quote) is confirmed.
NOTIFY_ON_STATUSES = frozenset(
    {
        InquiryStatus.ASSIGNED,
        InquiryStatus.COMPLETED,
        InquiryStatus.REJECTED,
        InquiryStatus.CANCELLED,
    }
)

STATUS_LABELS: dict[InquiryStatus, str] = {
    InquiryStatus.PENDING: "Pending review",
    InquiryStatus.ASSIGNED: "Assigned to a tutor",
    InquiryStatus.IN_PROGRESS: "In progress",
    InquiryStatus.COMPLETED: "Completed",
    InquiryStatus.REJECTED: "Rejected",
    InquiryStatus.REFUTED: "Under review",
    InquiryStatus.ON_HOLD: "On hold",
    InquiryStatus.CANCELLED: "Cancelled",
}


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    sender: str


@runtime_checkable
class EmailTransport(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class LoggingEmailTransport:
    """Transport that records messages in the log instead of sending them."""

    async def send(self, message: EmailMessage) -> None:
        logger.info("email_sent", to=message.to, subject=message.subject, sender=message.sender)


class StatusEmailNotifier:
    """Decides whether the submitter hears about a change and sends the email."""

    def __init__(self, transport: EmailTransport | None = None, enabled: bool | None = None):
        settings = get_settings()
        self.transport = transport or LoggingEmailTransport()
        self.enabled = settings.notify_status_emails if enabled is None else enabled
        self.sender = settings.email_from
        self.support_email = settings.support_email
        self.env = Environment(
            loader=FileSystemLoader(str(EMAIL_TEMPLATE_DIR)),
            autoescape=False,  # plain-text bodies
            keep_trailing_newline=True,
        )

    def should_notify(self, old_status: InquiryStatus | None, new_status: InquiryStatus | None) -> bool:
        if not self.enabled or new_status is None or old_status == new_status:
            return False
        return new_status in NOTIFY_ON_STATUSES

    def render_status_change(
        self,
        inquiry: Inquiry,
        old_status: InquiryStatus,
        new_status: InquiryStatus,
        reason: str | None = None,
    ) -> EmailMessage:
        body = self.env.get_template("status_update.txt.j2").render(
            name=inquiry.name,
            inquiry_id=inquiry.inquiry_id,
            course_name=inquiry.course_name,
            old_status_label=STATUS_LABELS[old_status],
            new_status_label=STATUS_LABELS[new_status],
            new_status=new_status.value,
            reason=reason,
            support_email=self.support_email,
        )
        return EmailMessage(
            to=inquiry.contact_email,
            subject=f"Inquiry Status Update - {inquiry.inquiry_id}",
            body=body,
            sender=self.sender,
        )

    async def notify_status_change(
        self,
        inquiry: Inquiry,
        old_status: InquiryStatus,
        new_status: InquiryStatus,
        reason: str | None = None,
    ) -> bool:
        """Send the status email if this transition warrants one.

        Returns:
            True if a message was handed to the transport
        """
        if not self.should_notify(old_status, new_status):
            return False
        await self.transport.send(self.render_status_change(inquiry, old_status, new_status, reason))
        return True

    async def notify_quote(self, inquiry: Inquiry) -> bool:
        if not self.enabled or inquiry.quote_amount is None:
            return False
        body = self.env.get_template("quote.txt.j2").render(
            name=inquiry.name,
            inquiry_id=inquiry.inquiry_id,
            course_name=inquiry.course_name,
            service_type=inquiry.service_type,
            quote_amount=inquiry.quote_amount,
            support_email=self.support_email,
        )
        await self.transport.send(
            EmailMessage(
                to=inquiry.contact_email,
                subject=f"Your Quote - {inquiry.inquiry_id}",
                body=body,
                sender=self.sender,
            )
        )
        return True


@dataclass(frozen=True)
class ContactMessage:
    name: str
    email: str
    subject: str
    message: str


class ContactMailer:
    """Forwards contact-form messages to support and acknowledges the sender.

    Not gated by ``notify_status_emails``; transport errors propagate.
    """

    def __init__(self, transport: EmailTransport | None = None):
        settings = get_settings()
        self.transport = transport or LoggingEmailTransport()
        self.sender = settings.email_from
        self.support_email = settings.support_email
        self.env = Environment(
            loader=FileSystemLoader(str(EMAIL_TEMPLATE_DIR)),
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render(self, contact: ContactMessage) -> tuple[EmailMessage, EmailMessage]:
        """Return the support notification and the sender acknowledgement."""
        context = {
            "name": contact.name,
            "email": contact.email,
            "subject": contact.subject,
            "message": contact.message,
            "support_email": self.support_email,
            "submitted_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        to_support = EmailMessage(
            to=self.support_email,
            subject=f"Contact Form: {contact.subject}",
            body=self.env.get_template("contact_support.txt.j2").render(**context),
            sender=self.sender,
        )
        acknowledgement = EmailMessage(
            to=contact.email,
            subject="Thank you for contacting us",
            body=self.env.get_template("contact_ack.txt.j2").render(**context),
            sender=self.sender,
        )
        return to_support, acknowledgement

    async def send(self, contact: ContactMessage) -> None:
        to_support, acknowledgement = self.render(contact)
        await self.transport.send(to_support)
        await self.transport.send(acknowledgement)
        logger.info("contact_message_forwarded", sender_email=contact.email, subject=contact.subject)
