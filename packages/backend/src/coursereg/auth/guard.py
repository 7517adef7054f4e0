"""Authorization guard: role-gate and ownership-gate.

Learn: both gates are plain functions called at the top of each service
operation, in a fixed order:

1. require_role(identity, Role.X)   → Unauthenticated / InsufficientRole
2. load the target record          → NotFound
3. require_owner(identity, owner)   → NotOwner

Nothing is cached; every call re-checks the identity it is handed.
"""

from typing import Optional

import structlog

from coursereg.auth.identity import Identity, Role
from coursereg.errors import InsufficientRole, NotOwner, Unauthenticated

logger = structlog.get_logger()


def require_authenticated(identity: Optional[Identity]) -> Identity:
    """Deny when the request carried no valid token."""
    if identity is None:
        logger.info("request.denied", reason="unauthenticated")
        raise Unauthenticated()
    return identity


def require_role(identity: Optional[Identity], role: Role) -> Identity:
    """Deny unless the identity holds exactly `role`."""
    identity = require_authenticated(identity)
    if not identity.has_role(role):
        logger.info(
            "request.denied",
            reason="insufficient_role",
            required=role.value,
            actual=identity.role.value,
        )
        raise InsufficientRole(f"Requires role {role.value}")
    return identity


def require_owner(identity: Identity, owner_username: str, resource: str = "resource") -> None:
    """Deny unless the identity is the owner/subject of the loaded record."""
    if identity.username != owner_username:
        logger.info("request.denied", reason="not_owner", resource=resource)
        raise NotOwner(f"Not your {resource}")
