"""
SMTP email sender adapter - Implements EmailSender protocol.

Delivers messages through an SMTP relay with STARTTLS and optional
login, or over implicit TLS (port 465) when ``use_ssl`` is set. Each
message carries the plain-text body with an HTML alternative. One connection per message; the handshake is rare enough
(one per code request) that pooling is not worth the state.

Any ``smtplib.SMTPException`` or socket error is translated into
``EmailDeliveryFailed`` so the domain can revoke the undelivered code.
"""

import html
import logging
import smtplib
from email.message import EmailMessage

from src.domain.exceptions import EmailDeliveryFailed

logger = logging.getLogger(__name__)

_HTML_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">{subject}</h2>
  <p>{body}</p>
  <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
  <p style="color: #666; font-size: 12px;">
    This is an automated message, please do not reply to this email.
  </p>
</div>
"""


def _render_html(subject: str, body: str) -> str:
    return _HTML_TEMPLATE.format(subject=html.escape(subject), body=html.escape(body))


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        from_address: str = "no-reply@localhost",
        use_tls: bool = True,
        use_ssl: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_address = from_address
        self._use_tls = use_tls
        self._use_ssl = use_ssl
        self._timeout = timeout

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        message.add_alternative(_render_html(subject, body), subtype="html")
        return message

    def _connect(self) -> smtplib.SMTP:
        if self._use_ssl:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        return smtplib.SMTP(self._host, self._port, timeout=self._timeout)

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Deliver one message.

        Raises:
            EmailDeliveryFailed: If the relay is unreachable or rejects the message
        """
        message = self._build_message(to, subject, body)
        try:
            with self._connect() as server:
                if self._use_tls and not self._use_ssl:
                    server.starttls()
                if self._username:
                    server.login(self._username, self._password or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", to, e)
            raise EmailDeliveryFailed("Email delivery failed") from e

        logger.info("Email '%s' sent to %s", subject, to)
