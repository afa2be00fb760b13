"""SMTP adapter implementing NotifierPort.

Connection settings come from the environment:
EMAIL_HOST, EMAIL_PORT (default 587), EMAIL_USER, EMAIL_PASS and EMAIL_FROM
(defaults to EMAIL_USER). STARTTLS is negotiated on port 587.
"""

import logging
import os
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 10.0
STARTTLS_PORT = 587


class SmtpNotifier:
    """Sends plain-text mail through a single SMTP relay."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
    ):
        self.host = host or os.getenv('EMAIL_HOST', '')
        self.port = port or int(os.getenv('EMAIL_PORT', str(STARTTLS_PORT)))
        self.username = username if username is not None else os.getenv('EMAIL_USER', '')
        self.password = password if password is not None else os.getenv('EMAIL_PASS', '')
        self.sender = sender or os.getenv('EMAIL_FROM') or self.username

    def send(self, to_address: str, subject: str, body: str) -> bool:
        if not self.host:
            logger.error("EMAIL_HOST not configured, cannot send email")
            return False

        msg = EmailMessage()
        msg['From'] = self.sender
        msg['To'] = to_address
        msg['Subject'] = subject
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                if self.port == STARTTLS_PORT:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", extra={"to": to_address, "error": str(e)})
            return False

        logger.info("Email sent", extra={"to": to_address, "subject": subject})
        return True
