"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting, and checkpw compares in constant time. The work factor
comes from settings (12 by default, ~250ms per hash); tests lower it.

dummy_verify() burns the same bcrypt cost when the username does not
exist, so response timing does not reveal which half of a login failed.
"""

from functools import lru_cache

import bcrypt

from coursereg.config import settings

# bcrypt only looks at the first 72 bytes.
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its stored hash."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("coursereg-timing-equaliser")


def dummy_verify(password: str) -> bool:
    """Run a full bcrypt check that always fails."""
    verify_password(password, _dummy_hash())
    return False
