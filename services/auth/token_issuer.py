"""
JWT issuing and verification for the three token classes.

access        - short-lived bearer for API calls
refresh       - long-lived, exchanged for a new pair (rotation)
verification  - embedded in the signup email link

Each class is signed (HS256) under its own secret with its own lifetime, and
carries its class in the ``type`` claim, so a token of one class never
verifies as another even if two secrets were accidentally equal.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from config import JWTSettings
from errors import AppError, AuthenticationError
from shared.logging import get_logger

log = get_logger(__name__)

ALGORITHM = "HS256"


class TokenClass(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    VERIFICATION = "verification"


@dataclass(frozen=True)
class TokenPayload:
    subject: str
    email: str
    token_class: TokenClass
    issued_at: int
    expires_at: int
    token_id: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    def __init__(self, settings: JWTSettings) -> None:
        secrets_by_class = {
            TokenClass.ACCESS: settings.jwt_access_secret,
            TokenClass.REFRESH: settings.jwt_refresh_secret,
            TokenClass.VERIFICATION: settings.jwt_verification_secret,
        }
        missing = [cls.value for cls, secret in secrets_by_class.items() if not secret]
        if missing:
            raise RuntimeError(
                f"JWT secrets must be set for token classes: {', '.join(missing)}"
            )
        if len(set(secrets_by_class.values())) < len(secrets_by_class):
            log.warning("jwt_secrets_shared", reason="token classes share a secret")

        self._secrets = secrets_by_class
        self._ttls = {
            TokenClass.ACCESS: settings.access_token_ttl_seconds,
            TokenClass.REFRESH: settings.refresh_token_ttl_seconds,
            TokenClass.VERIFICATION: settings.verification_token_ttl_seconds,
        }
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience

    def ttl_seconds(self, token_class: TokenClass) -> int:
        return self._ttls[token_class]

    def issue(self, token_class: TokenClass, subject: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "email": email,
            "type": token_class.value,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self._ttls[token_class])).timestamp()),
            # Unique per token, so two tokens minted in the same second differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self._secrets[token_class], algorithm=ALGORITHM)

    def issue_pair(self, subject: str, email: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue(TokenClass.ACCESS, subject, email),
            refresh_token=self.issue(TokenClass.REFRESH, subject, email),
        )

    def verify(
        self,
        token_class: TokenClass,
        token: str,
        error: type[AppError] = AuthenticationError,
        message: Optional[str] = None,
    ) -> TokenPayload:
        """Decode *token* as *token_class* or raise *error*.

        Signature, expiry, issuer, audience and the ``type`` claim are all
        checked; any failure raises the caller's error class.
        """
        message = message or f"Invalid or expired {token_class.value} token"
        if not token:
            raise error(message)
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_class],
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            log.info("token_rejected", kind=token_class.value, reason="expired")
            raise error(message) from e
        except jwt.InvalidTokenError as e:
            log.info(
                "token_rejected",
                kind=token_class.value,
                reason=type(e).__name__,
            )
            raise error(message) from e

        if claims.get("type") != token_class.value:
            log.info("token_rejected", kind=token_class.value, reason="wrong_type")
            raise error(message)

        return TokenPayload(
            subject=claims["sub"],
            email=claims.get("email", ""),
            token_class=token_class,
            issued_at=claims["iat"],
            expires_at=claims["exp"],
            token_id=claims.get("jti", ""),
        )
