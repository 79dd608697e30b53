"""
Password-reset OTP record.

Stored as JSON text under `otp:<email>` in the ephemeral store.
hashed_otp is argon2(otp); the plain code is never stored.
`id` identifies one issuance: the failed-attempt counter lives under a key
derived from it, so re-issuing an OTP starts a fresh count.
`attempts` is filled from that counter when the record is read.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class OtpRecord(BaseModel):
    id: str
    hashed_otp: str
    attempts: int = Field(default=0, ge=0)
    verified: bool = False
    created_at: datetime
