"""
Console email sender adapter - Implements EmailSender protocol.

Development stand-in for SMTP delivery. Every message is written to the
application log, so one-time codes can be read from the service output
(``docker-compose logs``) instead of an inbox. Never fails.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Stateless, so a single instance is shared across requests.
    """

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Log one message as a single INFO record.

        Args:
            to: Recipient address, already normalized by the domain layer
            subject: Message subject
            body: Plain-text body
        """
        logger.info("[EMAIL] To: %s Subject: %s Body: %s", to, subject, body)
