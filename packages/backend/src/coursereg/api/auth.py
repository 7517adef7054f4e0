"""Auth API: registration, login, current identity.

Learn: Routes for the stateless auth flow:
- POST /auth/register → create an account (TEACHER or STUDENT)
- POST /auth/login → username/password → bearer token
- GET /auth/me → the identity decoded from the presented token

There is no logout or refresh: a token stays valid until it expires.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.dependencies import get_identity
from coursereg.auth.guard import require_authenticated
from coursereg.auth.identity import Identity
from coursereg.db.engine import get_db
from coursereg.schemas.auth import (
    AccountRead,
    IdentityRead,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from coursereg.services.account_service import AccountService

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


@router.post("/register", response_model=AccountRead, status_code=201)
async def register(body: RegisterRequest, svc: AccountService = Depends(_svc)):
    """Create a new account."""
    return await svc.register(body.username, body.password, body.role)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AccountService = Depends(_svc)):
    """Login with username and password → bearer token."""
    issued = await svc.login(body.username, body.password)
    return TokenResponse(
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_in=issued.expires_in,
    )


@router.get("/me", response_model=IdentityRead)
async def get_me(identity: Optional[Identity] = Depends(get_identity)):
    """Return the identity carried by the bearer token."""
    identity = require_authenticated(identity)
    return IdentityRead(username=identity.username, role=identity.role)
