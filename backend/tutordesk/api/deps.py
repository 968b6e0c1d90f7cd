"""Route-level dependencies shared by the admin and public routers."""

from fastapi import Depends, Request
from redis.asyncio import Redis

from tutordesk.core.config import get_settings
from tutordesk.db.redis import get_redis
from tutordesk.services.email_service import ContactMailer, StatusEmailNotifier
from tutordesk.services.notifications import InquiryEventPublisher


def get_event_publisher(redis: Redis = Depends(get_redis)) -> InquiryEventPublisher:
    return InquiryEventPublisher(redis, get_settings().events_channel)


def get_email_notifier() -> StatusEmailNotifier:
    return StatusEmailNotifier()


def get_contact_mailer() -> ContactMailer:
    return ContactMailer()


def client_meta(request: Request) -> dict:
    """IP and user agent recorded on audit entries."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
