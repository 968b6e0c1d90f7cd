"""Request correlation IDs.

Every response carries ``X-Request-ID``; a client-supplied value is echoed
back, otherwise a UUID is generated. The same value is attached to every
structlog entry emitted while handling the request.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"


def setup_correlation_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        generator=lambda: str(uuid.uuid4()),
        validator=None,  # accept any client format
        transformer=lambda a: a,
    )


def get_correlation_id() -> str | None:
    """Correlation ID of the current request, or None outside a request."""
    try:
        return correlation_id.get()
    except LookupError:
        return None


__all__ = ["REQUEST_ID_HEADER", "setup_correlation_middleware", "get_correlation_id"]
