"""Tests for the public contact form endpoint."""

import pytest

from tutordesk.api.deps import get_contact_mailer
from tutordesk.core.config import get_settings
from tutordesk.services.email_service import ContactMailer

pytestmark = pytest.mark.integration


def contact_payload(**overrides) -> dict:
    payload = {
        "name": "Priya Natarajan",
        "email": "Priya.N@Example.com",
        "subject": "Group tutoring rates",
        "message": "Do you offer discounts for study groups of four students?",
    }
    payload.update(overrides)
    return payload


def test_contact_forwards_to_support_and_acknowledges_sender(client, email_transport):
    response = client.post("/api/contact", json=contact_payload())

    assert response.status_code == 200
    assert "24 hours" in response.json()["message"]

    to_support, acknowledgement = email_transport.sent
    assert to_support.to == get_settings().support_email
    assert to_support.subject == "Contact Form: Group tutoring rates"
    assert "Do you offer discounts for study groups" in to_support.body
    assert "priya.n@example.com" in to_support.body
    assert acknowledgement.to == "priya.n@example.com"
    assert "Hello Priya Natarajan" in acknowledgement.body


@pytest.mark.parametrize(
    "field, value",
    [
        ("name", "P"),
        ("email", "not-an-email"),
        ("subject", "Hi"),
        ("message", "Too short"),
        ("message", "x" * 2001),
    ],
)
def test_contact_validation(client, email_transport, field, value):
    response = client.post("/api/contact", json=contact_payload(**{field: value}))

    assert response.status_code == 422
    assert email_transport.sent == []


def test_contact_strips_whitespace_before_validating(client, email_transport):
    response = client.post("/api/contact", json=contact_payload(subject="   Hi   "))

    assert response.status_code == 422


def test_contact_transport_failure(app, client):
    class BrokenTransport:
        async def send(self, message):
            raise ConnectionError("SMTP unavailable")

    app.dependency_overrides[get_contact_mailer] = lambda: ContactMailer(transport=BrokenTransport())

    response = client.post("/api/contact", json=contact_payload())

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to send message. Please try again later."
