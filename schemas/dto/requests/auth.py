"""
Request DTOs for authentication endpoints.

LoginRequest            - POST /auth/login
SignupRequest           - POST /auth/signup
EmailRequest            - POST /auth/resend, POST /auth/forgot-password
RefreshTokenRequest     - POST /auth/refresh
VerifyOtpRequest        - POST /auth/verify-otp
ResetPasswordRequest    - POST /auth/reset-password?token=...

Field names are snake_case; the camelCase spellings used by existing clients
(fullName, refreshToken, confirmPassword) are accepted as aliases.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=1)


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    Same credential fields as LoginRequest, declared flat rather than inherited.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    full_name: str = Field(alias="fullName", min_length=1, max_length=200)


class EmailRequest(BaseModel):
    """Request body carrying just an email address."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class RefreshTokenRequest(BaseModel):
    """Request body for POST /auth/refresh."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(alias="refreshToken", min_length=1)


class VerifyOtpRequest(BaseModel):
    """Request body for POST /auth/verify-otp.

    ``email`` is optional; when present the OTP is checked against that
    address only and failed attempts count against it.
    """

    model_config = ConfigDict(populate_by_name=True)

    otp: str = Field(min_length=1, max_length=16)
    email: Optional[EmailStr] = None


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password (token in the query string)."""

    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(min_length=1, max_length=128)
    confirm_password: str = Field(alias="confirmPassword", min_length=1)
