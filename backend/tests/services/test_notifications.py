"""Tests for inquiry event publishing over Redis Pub/Sub."""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fakeredis import FakeAsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from tutordesk.domain.results import StatusErrorKind, StatusUpdateResult
from tutordesk.domain.statuses import InquiryStatus
from tutordesk.services.notifications import (
    InquiryEventPublisher,
    InquiryEventType,
    build_status_update_event,
)
from tutordesk.services.status_service import InquiryStatusService

pytestmark = pytest.mark.unit

CHANNEL = "admin:inquiries:events"


@pytest.fixture
async def redis():
    fake_redis = FakeAsyncRedis(decode_responses=True)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
def publisher(redis):
    return InquiryEventPublisher(redis, CHANNEL)


async def _next_message(pubsub, timeout: float = 1.0) -> dict:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=0.1)
        if message is not None:
            return json.loads(message["data"])
    raise AssertionError("no message published")


async def test_status_update_event_reaches_subscribers(publisher, redis, session_factory, inquiry, admin):
    result = await InquiryStatusService(session_factory).update_status(inquiry.id, "ASSIGNED", admin.id)
    pubsub = redis.pubsub()
    await pubsub.subscribe(CHANNEL)

    await publisher.publish_status_update(result)

    event = await _next_message(pubsub)
    assert event["type"] == InquiryEventType.STATUS_UPDATE
    assert event["inquiry_id"] == inquiry.inquiry_id
    assert event["new_status"] == "ASSIGNED"
    assert event["updated_by"] == admin.username
    assert "T" in event["timestamp"]
    await pubsub.aclose()


async def test_new_inquiry_event_payload(publisher, redis, inquiry):
    redis.publish = AsyncMock()

    event = await publisher.publish_new_inquiry(inquiry)

    redis.publish.assert_called_once()
    channel, raw = redis.publish.call_args[0]
    assert channel == CHANNEL
    assert json.loads(raw) == event
    assert event["type"] == InquiryEventType.NEW_INQUIRY
    assert event["status"] == "PENDING"


def test_event_cannot_be_built_from_failed_result():
    failed = StatusUpdateResult.failure("TG-1", "ASSIGNED", StatusErrorKind.NOT_FOUND, "Inquiry not found")

    with pytest.raises(ValueError):
        build_status_update_event(failed)


def test_event_uses_transition_timestamp():
    changed_at = datetime(2026, 5, 4, 12, 30, tzinfo=timezone.utc)

    class _Inquiry:
        inquiry_id = "TG-1-ABCDEFGHI"

    result = StatusUpdateResult(
        inquiry_id="TG-1-ABCDEFGHI",
        requested_status="IN_PROGRESS",
        inquiry=_Inquiry(),
        old_status=InquiryStatus.ASSIGNED,
        new_status=InquiryStatus.IN_PROGRESS,
        changed_by="agent_a",
        changed_at=changed_at,
    )

    assert build_status_update_event(result) == {
        "type": "status-update",
        "inquiry_id": "TG-1-ABCDEFGHI",
        "new_status": "IN_PROGRESS",
        "updated_by": "agent_a",
        "timestamp": "2026-05-04T12:30:00+00:00",
    }


async def test_publish_failure_is_swallowed(publisher, redis):
    redis.publish = AsyncMock(side_effect=RedisConnectionError("connection refused"))

    delivered = await publisher.publish({"type": InquiryEventType.NEW_INQUIRY})

    assert delivered is False
