"""Tests for admin JWT verification."""

import time
import uuid

import jwt as pyjwt
import pytest
from fastapi import HTTPException

from tutordesk.core.auth import AdminPrincipal, decode_admin_jwt
from tutordesk.core.config import get_settings

pytestmark = pytest.mark.unit


def _token(claims: dict, secret: str | None = None) -> str:
    settings = get_settings()
    return pyjwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


def test_valid_token_yields_admin_id():
    admin_id = uuid.uuid4()

    assert decode_admin_jwt(_token({"sub": str(admin_id), "exp": int(time.time()) + 60})) == admin_id


@pytest.mark.parametrize(
    ("claims", "secret", "detail_prefix"),
    [
        ({"sub": str(uuid.uuid4()), "exp": int(time.time()) - 60}, None, "Token expired"),
        ({"sub": str(uuid.uuid4())}, None, "Missing required claim"),
        ({"sub": str(uuid.uuid4()), "exp": int(time.time()) + 60}, "wrong-secret-value-for-tests", "Invalid token"),
        ({"sub": "admin-42", "exp": int(time.time()) + 60}, None, "Token sub is not an admin id"),
    ],
)
def test_rejected_tokens(claims, secret, detail_prefix):
    with pytest.raises(HTTPException) as exc_info:
        decode_admin_jwt(_token(claims, secret))

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail.startswith(detail_prefix)


def test_principal_permission_check():
    principal = AdminPrincipal(
        admin_id=uuid.uuid4(),
        username="viewer",
        role="READONLY",
        permissions=frozenset({"can_view_inquiries"}),
    )

    assert principal.can("can_view_inquiries")
    assert not principal.can("can_edit_inquiries")
