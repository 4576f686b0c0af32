"""
Report Come Play Backend — Transactional Email Service
========================================================

What:  Sends the 6-digit email verification code through the Resend REST API.
Who:   AuthService.register() and AuthService.resend_verification().

Failure policy:
    Email is a side effect, never a reason to fail registration. Every
    failure (no API key, upstream down, circuit open) is logged and reported
    as False; callers carry on.
"""

import logging
from typing import Optional

import httpx

from reportcomeplay.config import settings
from reportcomeplay.exceptions import CircuitBreakerOpenError
from reportcomeplay.services.resilience import build_circuit_breaker, outbound_retry

logger = logging.getLogger(__name__)


VERIFICATION_SUBJECT = "Verify your email for Report Come Play"

VERIFICATION_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 480px; margin: 0 auto;">
  <h2>Welcome to Report Come Play, {name}!</h2>
  <p>Use the code below to verify your email address:</p>
  <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px;">{code}</p>
  <p>If you did not create an account, you can ignore this email.</p>
</div>
"""


class EmailService:
    """Resend client with retry + circuit breaker around each send."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        from_email: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.resend_api_key if api_key is None else api_key
        self.api_base = (api_base or settings.resend_api_base).rstrip("/")
        self.from_email = from_email or settings.from_email
        self.transport = transport
        self.circuit_breaker = build_circuit_breaker("email service")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send_verification_email(self, to: str, name: str, code: str) -> bool:
        if not self.configured:
            logger.warning("Email delivery disabled (no RESEND_API_KEY); skipping mail to %s", to)
            logger.debug("Verification code for %s: %s", to, code)
            return False

        try:
            self.circuit_breaker.can_execute()
        except CircuitBreakerOpenError as e:
            logger.warning("Email circuit open, not sending to %s: %s", to, e.message)
            return False

        try:
            await self._send_with_retry(
                to=to,
                subject=VERIFICATION_SUBJECT,
                html=VERIFICATION_TEMPLATE.format(name=name, code=code),
            )
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error("Failed to send verification email to %s: %s", to, str(e))
            return False

        self.circuit_breaker.record_success()
        logger.info("Verification email sent to %s", to)
        return True

    @outbound_retry()
    async def _send_with_retry(self, to: str, subject: str, html: str) -> None:
        async with httpx.AsyncClient(transport=self.transport, timeout=15.0) as client:
            response = await client.post(
                f"{self.api_base}/emails",
                json={
                    "from": self.from_email,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()


# ── Singleton Instance ────────────────────────────────────────────────────
email_service = EmailService()
