"""
Authentication and account-recovery endpoints.

POST /auth/signup            - create an unverified account, mail the link
GET  /auth/verify/{token}    - confirm the email address
POST /auth/resend            - mail a new verification link
POST /auth/login             - exchange credentials for an access/refresh pair
POST /auth/refresh           - rotate the pair
POST /auth/forgot-password   - mail a password-reset OTP
POST /auth/verify-otp        - exchange the OTP for a reset token
POST /auth/reset-password    - set a new password with the reset token

Handlers only translate between DTOs and the services; all rules live in
IdentityService and RecoveryFlow.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dependencies import get_identity_service, get_recovery_flow
from schemas.dto.requests.auth import (
    EmailRequest,
    LoginRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyOtpRequest,
)
from schemas.dto.responses.auth import (
    SignupResponse,
    TokenPairResponse,
    UserMessageResponse,
    VerifyOtpResponse,
)
from schemas.dto.responses.common import MessageResponse
from services.auth.identity_service import IdentityService
from services.auth.recovery_flow import MSG_OTP_VERIFIED, RecoveryFlow

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201, response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> SignupResponse:
    result = await identity.sign_up(body.email, body.password, body.full_name)
    return SignupResponse(
        message="Verification email sent"
        if result.verification_sent
        else "Account created, but the verification email could not be sent",
        user=result.user,
        verification_sent=result.verification_sent,
    )


@router.get("/verify/{token}", response_model=UserMessageResponse)
async def verify_email(
    token: str,
    identity: IdentityService = Depends(get_identity_service),
) -> UserMessageResponse:
    user = await identity.verify_email(token)
    return UserMessageResponse(message="Email successfully verified", user=user)


@router.post("/resend", response_model=MessageResponse)
async def resend_verification(
    body: EmailRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    sent = await identity.resend_verification_email(body.email)
    return MessageResponse(
        message="Verification email sent"
        if sent
        else "Verification email could not be sent, try again later"
    )


@router.post("/login", response_model=TokenPairResponse)
async def login(
    body: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> TokenPairResponse:
    pair = await identity.login(body.email, body.password)
    return TokenPairResponse(
        access_token=pair.access_token, refresh_token=pair.refresh_token
    )


@router.post("/refresh", response_model=TokenPairResponse)
async def refresh(
    body: RefreshTokenRequest,
    identity: IdentityService = Depends(get_identity_service),
) -> TokenPairResponse:
    pair = await identity.refresh(body.refresh_token)
    return TokenPairResponse(
        access_token=pair.access_token, refresh_token=pair.refresh_token
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: EmailRequest,
    recovery: RecoveryFlow = Depends(get_recovery_flow),
) -> MessageResponse:
    return MessageResponse(message=await recovery.forgot_password(body.email))


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    body: VerifyOtpRequest,
    recovery: RecoveryFlow = Depends(get_recovery_flow),
) -> VerifyOtpResponse:
    reset_token = await recovery.verify_otp(body.otp, email=body.email)
    return VerifyOtpResponse(message=MSG_OTP_VERIFIED, reset_token=reset_token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    token: str = Query(default=""),
    recovery: RecoveryFlow = Depends(get_recovery_flow),
) -> MessageResponse:
    message = await recovery.reset_password(body.password, body.confirm_password, token)
    return MessageResponse(message=message)
