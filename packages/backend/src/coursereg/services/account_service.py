"""Account service: registration and credential verification.

Learn: authenticate() is the Credential Verifier. It fails with the same
AuthenticationFailure whether the username is unknown or the password is
wrong, and does the same amount of bcrypt work in both cases. It has no
side effects and is never retried.

login() chains authenticate() into the token issuer.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.identity import Identity, Role
from coursereg.auth.jwt import IssuedToken, create_access_token
from coursereg.auth.password import dummy_verify, hash_password, verify_password
from coursereg.db.engine import is_unique_violation
from coursereg.db.models import Account
from coursereg.errors import AuthenticationFailure, DuplicateConstraint, Unauthenticated

logger = structlog.get_logger()

USERNAME_TAKEN = "Username already exists"


class AccountService:
    """Business logic for accounts and login."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_username(self, username: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(Account.username == username)
        )
        return result.scalars().first()

    async def require_account(self, identity: Identity) -> Account:
        """Load the account behind a verified identity.

        A valid token whose account no longer exists is treated as
        unauthenticated.
        """
        account = await self.get_by_username(identity.username)
        if account is None:
            raise Unauthenticated()
        return account

    # ─── Registration ───────────────────────────────────

    async def register(self, username: str, password: str, role: Role) -> Account:
        if await self.get_by_username(username) is not None:
            raise DuplicateConstraint(USERNAME_TAKEN)

        account = Account(
            username=username,
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_unique_violation(e):
                raise
            raise DuplicateConstraint(USERNAME_TAKEN)

        logger.info("auth.registered", username=username, role=role.value)
        return account

    # ─── Credentials ────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> Account:
        account = await self.get_by_username(username)
        if account is None:
            dummy_verify(password)
            logger.info("auth.login_failed")
            raise AuthenticationFailure()

        if not verify_password(password, account.password_hash):
            logger.info("auth.login_failed")
            raise AuthenticationFailure()

        return account

    async def login(self, username: str, password: str) -> IssuedToken:
        account = await self.authenticate(username, password)
        issued = create_access_token(account.username, account.role)
        logger.info("auth.login_succeeded", username=account.username)
        return issued
