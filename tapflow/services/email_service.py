import logging
from dataclasses import dataclass
from typing import Optional

import requests

from tapflow.core.config import settings

logger = logging.getLogger(__name__)

# Provider replies that mean the address will never accept mail
BOUNCE_MARKERS = ("550", "user unknown", "does not exist", "no such user", "mailbox unavailable")

# ZeptoMail: EM_104 = "Email request received"
ACCEPTED_CODES = {"EM_104"}


@dataclass
class DeliveryResult:
    """Outcome of handing one outreach message to the provider."""
    sent: bool
    bounced: bool = False
    error: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return not self.sent and not self.bounced


def render_html(body: str) -> str:
    return (body or "").replace("\n", "<br/>")


class EmailService:
    def __init__(self):
        self.api_url = settings.EMAIL_API_URL
        self.api_key = settings.EMAIL_API_KEY
        self.from_address = settings.EMAIL_FROM_ADDRESS

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_address)

    def deliver(self, message, contact) -> DeliveryResult:
        """Sends an outreach message to its contact through the HTTP mail API."""
        payload = {
            "from": {"address": self.from_address},
            "to": [{"email_address": {"address": contact.email, "name": contact.name or ""}}],
            "subject": message.subject,
            "htmlbody": render_html(message.body),
            "client_reference": f"outreach-{message.id}",
        }

        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers={"accept": "application/json", "authorization": self.api_key},
                timeout=30,
            )
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"🔌 Mail API unreachable for message {message.id}: {e}")
            return DeliveryResult(sent=False, error=f"{type(e).__name__}: {e}")
        except ValueError as e:
            # Non-JSON body
            return DeliveryResult(sent=False, error=f"Unreadable mail API response: {e}")

        codes = {d.get("code") for d in data.get("data") or [] if isinstance(d, dict)}
        if response.ok or codes & ACCEPTED_CODES:
            logger.info(f"✅ Message {message.id} accepted for {contact.email}")
            return DeliveryResult(sent=True)

        reply = str(data).lower()
        if response.status_code in (400, 422) or any(m in reply for m in BOUNCE_MARKERS):
            logger.warning(f"📭 Message {message.id} bounced for {contact.email}: {data}")
            return DeliveryResult(sent=False, bounced=True, error=str(data))

        logger.error(f"❌ Mail API error for message {message.id}: {data}")
        return DeliveryResult(sent=False, error=str(data))
