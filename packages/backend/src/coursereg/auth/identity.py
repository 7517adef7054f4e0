"""Identity value and the closed role set.

Learn: Identity is an immutable value built from verified token claims.
It is passed explicitly into every service call rather than read from a
global, so concurrent requests cannot see each other's identity. "No
identity" is represented by None, never by a low-privilege Identity.
"""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    """Closed role set. Compared by identity, never by string prefix."""

    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


@dataclass(frozen=True)
class Identity:
    """The (subject, role) pair resolved for the current request."""

    username: str
    role: Role

    def has_role(self, role: Role) -> bool:
        return self.role is role
