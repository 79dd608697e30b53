"""Notifier protocol: services depend on this, not the concrete implementation.

Every method returns True when the provider accepted the message and False
otherwise; delivery failures never raise into the calling flow.
"""

from typing import Optional, Protocol


class Notifier(Protocol):
    async def send_verification_email(
        self, email: str, full_name: Optional[str], verification_link: str
    ) -> bool: ...

    async def send_otp_email(
        self,
        email: str,
        full_name: Optional[str],
        otp_code: str,
        expires_in_minutes: int,
    ) -> bool: ...

    async def send_notification(self, email: str, subject: str, message: str) -> bool: ...
