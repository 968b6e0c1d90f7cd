"""Tests for the public inquiry endpoints."""

import pytest

pytestmark = pytest.mark.integration


def inquiry_payload(**overrides) -> dict:
    payload = {
        "course_name": "Intro to Statistics",
        "assignment_details": "Hypothesis testing homework, 8 questions with R output.",
        "contact_email": "learner@example.com",
        "client_type": "first-time",
        "phone_number": "5551112222",
        "name": "Sam Lee",
        "service_type": "assignment",
        "urgency": "urgent",
    }
    payload.update(overrides)
    return payload


def test_submit_inquiry_returns_business_key(client, publisher):
    response = client.post("/api/inquiries", json=inquiry_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["inquiry_id"].startswith("TG-")
    assert "quote" in body["message"]

    assert [e["type"] for e in publisher.events] == ["new-inquiry"]
    assert publisher.events[0]["inquiry_id"] == body["inquiry_id"]


def test_submit_inquiry_with_attachment_metadata(client):
    payload = inquiry_payload(
        attachments=[
            {
                "original_name": "rubric.pdf",
                "file_name": "1718000000-rubric.pdf",
                "file_path": "uploads/1718000000-rubric.pdf",
                "file_size": 20480,
                "mime_type": "application/pdf",
            }
        ]
    )

    response = client.post("/api/inquiries", json=payload)

    assert response.status_code == 201


@pytest.mark.parametrize(
    "overrides",
    [
        {"course_name": "X"},
        {"assignment_details": "too short"},
        {"contact_email": "not-an-email"},
        {"service_type": "essay"},
        {"client_type": "vip"},
        {"phone_number": "123"},
    ],
)
def test_submit_inquiry_validation_errors(client, overrides):
    response = client.post("/api/inquiries", json=inquiry_payload(**overrides))

    assert response.status_code == 422


def test_submit_inquiry_rejects_unsupported_attachment_type(client):
    payload = inquiry_payload(
        attachments=[
            {
                "original_name": "run.exe",
                "file_name": "run.exe",
                "file_path": "uploads/run.exe",
                "file_size": 10,
                "mime_type": "application/x-msdownload",
            }
        ]
    )

    assert client.post("/api/inquiries", json=payload).status_code == 422


def test_public_status_view(client):
    inquiry_id = client.post("/api/inquiries", json=inquiry_payload()).json()["inquiry_id"]

    response = client.get(f"/api/inquiries/{inquiry_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["inquiry_id"] == inquiry_id
    assert body["status"] == "PENDING"
    assert body["quote_amount"] is None
    assert body["payment_received"] is False
    # Internal fields stay private
    assert "contact_email" not in body
    assert "internal_notes" not in body


def test_public_status_unknown_inquiry(client):
    response = client.get("/api/inquiries/TG-0-UNKNOWN00")

    assert response.status_code == 404
    assert response.json()["detail"] == "Inquiry not found"
    assert "debug_id" in response.json()
