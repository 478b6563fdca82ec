"""
Faxon Portal API — Brevo Transactional E-mail
==============================================

What:  Delivers login OTP codes to team members.
How:   POST {api}/smtp/email with the `api-key` header.
Who:   AuthService.check_username (the first step of the OTP login) and
       AuthService.resend_otp.

The code itself is generated and later checked by the browser; this client
only carries it to the member's mailbox.
"""

import html
import logging
from typing import Optional

import httpx

from faxon_api.config import settings
from faxon_api.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your Faxon login code"
OTP_RESEND_SUBJECT = "Your new Faxon login code"

_OTP_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; background: #f8fafc; margin: 0; padding: 40px 0;">
  <div style="max-width: 520px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 32px;">
    <h2 style="color: #13294b; margin-top: 0;">Hello {name},</h2>
    <p style="color: #2d3748;">Use the code below to finish signing in to the Faxon portal.</p>
    <p style="font-size: 32px; letter-spacing: 8px; font-weight: 700; color: #13294b; text-align: center;">{otp}</p>
    <p style="color: #718096; font-size: 13px;">The code expires in 10 minutes. If you did not try to sign in, you can ignore this e-mail.</p>
  </div>
</body>
</html>
"""


class BrevoMailer:
    """Sends OTP e-mails through Brevo's transactional API."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        sender_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = (api_base or settings.brevo_api_base).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.brevo_api_key
        self.sender_email = sender_email or settings.brevo_sender_email
        self.sender_name = sender_name or settings.brevo_sender_name
        self.timeout = timeout or settings.provider_timeout
        self._transport = transport

    async def send_otp(self, email: str, name: str, otp: str, resend: bool = False) -> None:
        """
        Send `otp` to `email`; `resend` only changes the subject line.

        Raises:
            EmailDeliveryError: not configured, transport failure or non-2xx
        """
        if not self.api_key:
            raise EmailDeliveryError(context={"reason": "BREVO_API_KEY not set"})

        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": email, "name": name}],
            "subject": OTP_RESEND_SUBJECT if resend else OTP_SUBJECT,
            "htmlContent": _OTP_TEMPLATE.format(name=html.escape(name), otp=html.escape(otp)),
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                timeout=self.timeout,
                transport=self._transport,
                headers={"api-key": self.api_key, "accept": "application/json"},
            ) as client:
                resp = await client.post("/smtp/email", json=payload)
        except httpx.HTTPError as e:
            logger.error("Brevo request failed: %s", str(e))
            raise EmailDeliveryError(context={"error": str(e)}) from e

        if resp.status_code >= 400:
            logger.error("Brevo rejected OTP e-mail: %d %s", resp.status_code, resp.text[:500])
            raise EmailDeliveryError(context={"status": resp.status_code})

        logger.info("OTP e-mail accepted by Brevo")


mailer = BrevoMailer()
