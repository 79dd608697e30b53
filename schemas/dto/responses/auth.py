"""
Response DTOs for authentication endpoints.

UserResponse        - sanitized user view (never carries the password hash)
SignupResponse      - POST /auth/signup  (201)
UserMessageResponse - GET /auth/verify/{token}  (200)
TokenPairResponse   - POST /auth/login, POST /auth/refresh  (200)
VerifyOtpResponse   - POST /auth/verify-otp  (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class UserResponse(BaseModel):
    """Sanitized user view returned by signup, verification and /user routes."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    full_name: str
    is_verified: bool

    @classmethod
    def from_doc(cls, user: UserDoc) -> "UserResponse":
        return cls(
            id=user.user_id,
            email=user.email,
            full_name=user.full_name,
            is_verified=user.is_verified,
        )


class SignupResponse(BaseModel):
    """Response body for POST /auth/signup (201)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    user: UserResponse
    verification_sent: bool


class UserMessageResponse(BaseModel):
    """A message plus the affected user."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    user: UserResponse


class TokenPairResponse(BaseModel):
    """Response body for POST /auth/login and POST /auth/refresh (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class VerifyOtpResponse(BaseModel):
    """Response body for POST /auth/verify-otp (200)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    reset_token: str
