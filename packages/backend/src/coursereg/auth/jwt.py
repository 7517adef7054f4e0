"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A token is three dot-separated base64url segments: header, claims,
and an HMAC-SHA256 signature over the first two. Claims are readable
by anyone holding the token, so they carry only {sub, role, iat, exp}.

There is a single access token with a fixed TTL and no refresh token.
Expiry is checked here against an injectable clock so the exact
boundary (now <= exp) is testable.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from coursereg.auth.identity import Identity, Role
from coursereg.config import settings

TOKEN_TYPE = "Bearer"
REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


class TokenError(Exception):
    """Raised when token verification fails."""


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_in: int
    token_type: str = TOKEN_TYPE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    username: str,
    role: Role,
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> IssuedToken:
    """Sign {sub, role, iat, exp} for a verified account."""
    ttl = ttl_seconds if ttl_seconds is not None else settings.token_ttl_seconds
    if ttl <= 0:
        raise ValueError("ttl_seconds must be positive")
    issued_at = (now or _utcnow()).replace(microsecond=0)
    payload = {
        "sub": username,
        "role": role.value,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return IssuedToken(access_token=token, expires_in=ttl)


def verify_token(token: str, now: Optional[datetime] = None) -> Identity:
    """Verify a token and decode it into an Identity.

    Raises TokenError on a bad signature, malformed token, missing or
    invalid claims, or when the token has expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={
                "require": REQUIRED_CLAIMS,
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    exp = payload["exp"]
    if not isinstance(exp, int):
        raise TokenError("Invalid token: exp must be an integer")
    if (now or _utcnow()).timestamp() > exp:
        raise TokenError("Token has expired")

    subject = payload["sub"]
    if not isinstance(subject, str) or not subject:
        raise TokenError("Invalid token: empty subject")
    try:
        role = Role(payload["role"])
    except ValueError:
        raise TokenError("Invalid token: unknown role")

    return Identity(username=subject, role=role)
