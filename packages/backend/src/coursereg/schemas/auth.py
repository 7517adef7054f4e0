"""Pydantic schemas for registration, login, and identity.

Learn: Pydantic v2 models validate request/response data. Separate
request schemas (input) from read schemas (output) for clean APIs.
"""

from pydantic import BaseModel, Field

from coursereg.auth.identity import Role


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=64)
    role: Role


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class AccountRead(BaseModel):
    id: int
    username: str
    role: Role

    model_config = {"from_attributes": True}


class IdentityRead(BaseModel):
    username: str
    role: Role
