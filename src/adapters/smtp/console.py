"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging outgoing mails for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints mails to stdout.
    """

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Log an email to console (simulates email delivery).

        In production, this would be replaced with an SMTP adapter.
        The mail is logged at INFO level to be visible in container logs.

        Args:
            to: Recipient email address
            subject: Mail subject line
            body: Mail body
        """
        logger.info("[EMAIL] To: %s Subject: %s Body: %s", to, subject, body)
