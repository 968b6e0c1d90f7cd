"""Admin bearer-token authentication for FastAPI.

Tokens are issued by the login service; here we only verify them and
resolve the admin they name.
"""

import uuid
from dataclasses import dataclass

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tutordesk.core.config import get_settings
from tutordesk.db.base import get_session_factory
from tutordesk.services.lookups import find_admin

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminPrincipal:
    """Authenticated admin, passed explicitly into service calls."""

    admin_id: uuid.UUID
    username: str
    role: str
    permissions: frozenset[str]

    def can(self, permission: str) -> bool:
        return permission in self.permissions


PERMISSION_FLAGS = (
    "can_view_inquiries",
    "can_edit_inquiries",
    "can_delete_inquiries",
    "can_view_analytics",
)


def decode_admin_jwt(token: str) -> uuid.UUID:
    """Verify an admin JWT and return the admin id from ``sub``.

    Raises ``HTTPException(401)`` on any validation failure.
    """
    settings = get_settings()
    try:
        payload = pyjwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True, "require": ["sub", "exp"]},
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.MissingRequiredClaimError as exc:
        raise HTTPException(status_code=401, detail=f"Missing required claim: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")

    try:
        return uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise HTTPException(status_code=401, detail="Token sub is not an admin id")


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AdminPrincipal:
    """FastAPI dependency that validates the bearer token and loads the admin.

    Usage::

        @router.get("/protected")
        async def protected(admin: AdminPrincipal = Depends(require_admin)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    admin_id = decode_admin_jwt(credentials.credentials)

    async with get_session_factory()() as session:
        admin = await find_admin(session, admin_id)

    if admin is None or not admin.is_active:
        raise HTTPException(status_code=401, detail="Admin account not found or inactive")

    request.state.user_id = str(admin.id)
    return AdminPrincipal(
        admin_id=admin.id,
        username=admin.username,
        role=admin.role,
        permissions=frozenset(flag for flag in PERMISSION_FLAGS if admin.has_permission(flag)),
    )


def require_permission(permission: str):
    """Dependency factory: authenticated admin holding ``permission``."""

    async def _dependency(admin: AdminPrincipal = Depends(require_admin)) -> AdminPrincipal:
        if not admin.can(permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return admin

    return _dependency
