"""WhatsApp deep-link generation for alert recipients.

Nothing is delivered from here: the result is an ``api.whatsapp.com/send`` link
with the phone number and message pre-filled. The link is what gets stored as
``whatsapp_message_id`` when an alert is marked sent.
"""

from __future__ import annotations

import re
from urllib.parse import quote

WHATSAPP_SEND_URL = "https://api.whatsapp.com/send"
ALERT_BANNER = "🚨 *Alerta EstagioPro UFVJM*"
ALERT_FOOTER = "Por favor, tome as medidas necessárias."

_NON_DIGITS = re.compile(r"\D")
# Characters left alone by JavaScript's encodeURIComponent besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


class InvalidPhoneError(ValueError):
    """Raised when a phone number has no digits left after normalization."""


class WhatsAppLinkNotifier:
    """Builds pre-filled WhatsApp links for a national phone prefix."""

    def __init__(self, country_code: str = "55") -> None:
        self.country_code = country_code

    def normalize_phone(self, raw: str) -> str:
        """Strip everything but digits and prepend the country code if missing.

        "(38) 99999-1234" -> "5538999991234"; "5538999991234" is returned as is.
        """
        digits = _NON_DIGITS.sub("", raw or "")
        if not digits:
            raise InvalidPhoneError(f"Phone number has no digits: {raw!r}")
        if not digits.startswith(self.country_code):
            digits = self.country_code + digits
        return digits

    def build_message(self, title: str, message: str) -> str:
        return f"{ALERT_BANNER}\n\n{title}\n\n{message}\n\n{ALERT_FOOTER}"

    def build_link(self, phone: str, title: str, message: str) -> str:
        number = self.normalize_phone(phone)
        body = quote(self.build_message(title, message), safe=_URI_COMPONENT_SAFE)
        return f"{WHATSAPP_SEND_URL}?phone={number}&text={body}"
