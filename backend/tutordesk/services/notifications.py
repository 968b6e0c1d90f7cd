"""Real-time admin notifications over Redis Pub/Sub.

Events are published to a single channel (``settings.events_channel``) that
the websocket/SSE layer fans out to connected admin clients. Flat envelope
with a ``type`` discriminator.
"""

import json
from datetime import datetime, timezone

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from tutordesk.db.models.inquiry import Inquiry
from tutordesk.domain.results import StatusUpdateResult

logger = structlog.get_logger(__name__)


class InquiryEventType:
    """Event type constants for the admin inquiries channel."""

    STATUS_UPDATE = "status-update"
    NEW_INQUIRY = "new-inquiry"


def build_status_update_event(result: StatusUpdateResult) -> dict:
    """Build the status-update event from a successful engine result."""
    if not result.ok:
        raise ValueError("Cannot build a status-update event from a failed transition")
    changed_at = result.changed_at or datetime.now(timezone.utc)
    return {
        "type": InquiryEventType.STATUS_UPDATE,
        "inquiry_id": result.inquiry.inquiry_id,
        "new_status": result.new_status.value,
        "updated_by": result.changed_by,
        "timestamp": changed_at.isoformat(),
    }


def build_new_inquiry_event(inquiry: Inquiry) -> dict:
    return {
        "type": InquiryEventType.NEW_INQUIRY,
        "inquiry_id": inquiry.inquiry_id,
        "course_name": inquiry.course_name,
        "contact_email": inquiry.contact_email,
        "status": inquiry.status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class InquiryEventPublisher:
    """Publishes inquiry events; publication failures are logged, not raised."""

    def __init__(self, redis: Redis, channel: str):
        self.redis = redis
        self.channel = channel

    async def publish(self, event: dict) -> bool:
        try:
            await self.redis.publish(self.channel, json.dumps(event))
        except RedisError:
            logger.warning("inquiry_event_publish_failed", event_type=event.get("type"), exc_info=True)
            return False
        return True

    async def publish_status_update(self, result: StatusUpdateResult) -> dict:
        event = build_status_update_event(result)
        await self.publish(event)
        return event

    async def publish_new_inquiry(self, inquiry: Inquiry) -> dict:
        event = build_new_inquiry_event(inquiry)
        await self.publish(event)
        return event
