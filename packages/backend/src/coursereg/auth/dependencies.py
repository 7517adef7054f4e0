"""FastAPI auth dependencies.

Learn: token validation runs on every request, public or protected,
so it must never reject a request on its own. A missing, malformed,
forged or expired token resolves to None ("unauthenticated") and the
guard in the service layer decides whether that is acceptable.

The resolved identity is request-scoped: returned to the handler,
stored on request.state, and bound into structlog's contextvars so
every log line for the request carries it.
"""

from typing import Optional

import structlog
from fastapi import Header, Request

from coursereg.auth.identity import Identity
from coursereg.auth.jwt import TokenError, verify_token

logger = structlog.get_logger()

_BEARER_SCHEME = "bearer"


def resolve_identity(authorization: Optional[str]) -> Optional[Identity]:
    """Turn a raw Authorization header value into an Identity or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != _BEARER_SCHEME or not token:
        return None
    try:
        return verify_token(token)
    except TokenError as e:
        logger.debug("auth.token_rejected", error=str(e))
        return None


async def get_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[Identity]:
    """Resolve the current request's identity (None if unauthenticated)."""
    identity = resolve_identity(authorization)
    request.state.identity = identity
    if identity is not None:
        structlog.contextvars.bind_contextvars(
            username=identity.username, role=identity.role.value
        )
    return identity
