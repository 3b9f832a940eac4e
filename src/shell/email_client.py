"""SMTP Email Client - Imperative Shell.

This module sends notification digests over SMTP using stdlib smtplib
and email.mime. All I/O is contained here; formatting is in the core
module.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid

from src.core.config import SmtpSettings


logger = logging.getLogger(__name__)


@dataclass
class EmailResponse:
    """Outcome of sending a digest.

    Attributes:
        success: Whether the email was accepted by the SMTP server
        recipients: Number of recipients addressed
        error: Error message if failed
    """
    success: bool
    recipients: int = 0
    error: str | None = None


class EmailClient:
    """Client for sending HTML email digests via SMTP.

    This is part of the imperative shell - it handles SMTP I/O.
    """

    def __init__(self, settings: SmtpSettings) -> None:
        """Initialize email client.

        Args:
            settings: SMTP host, credentials and sender details
        """
        self.settings = settings

    def build_message(
        self,
        subject: str,
        html_body: str,
        text_body: str,
        recipients: list[str],
    ) -> MIMEMultipart:
        """Build a multipart/alternative message.

        Every recipient is blind-copied; the To header is left unset.
        """
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.settings.from_name, self.settings.from_address))
        msg["Bcc"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=False)
        msg["Message-ID"] = make_msgid()

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.settings.use_ssl:
            return smtplib.SMTP_SSL(
                self.settings.host,
                self.settings.port,
                timeout=self.settings.timeout_seconds,
            )

        return smtplib.SMTP(
            self.settings.host,
            self.settings.port,
            timeout=self.settings.timeout_seconds,
        )

    def send_digest(
        self,
        subject: str,
        html_body: str,
        text_body: str,
        recipients: list[str] | None = None,
    ) -> EmailResponse:
        """Send a digest email to all recipients.

        This method performs SMTP I/O. Failures are logged and returned,
        never raised.

        Args:
            subject: Email subject line
            html_body: HTML body (from formatter)
            text_body: Plain-text alternative (from formatter)
            recipients: Override for the configured recipients

        Returns:
            EmailResponse indicating success or failure
        """
        to_addrs = recipients if recipients is not None else self.settings.recipients
        to_addrs = [a.strip() for a in to_addrs if a and a.strip()]

        if not to_addrs:
            logger.warning("No recipients configured, not sending email")
            return EmailResponse(success=False, error="No recipients configured")

        msg = self.build_message(subject, html_body, text_body, to_addrs)

        logger.info(
            "Sending notification email to %d recipients via %s:%d",
            len(to_addrs),
            self.settings.host,
            self.settings.port,
        )

        try:
            with self._connect() as server:
                if not self.settings.use_ssl:
                    server.starttls()
                if self.settings.username:
                    server.login(self.settings.username, self.settings.password)
                server.send_message(msg, to_addrs=to_addrs)
        except smtplib.SMTPException as e:
            logger.error("Failed to send notification email: %s", str(e))
            return EmailResponse(success=False, recipients=len(to_addrs), error=str(e))
        except OSError as e:
            logger.error("SMTP connection failed: %s", str(e))
            return EmailResponse(success=False, recipients=len(to_addrs), error=str(e))

        logger.info("Notification email sent")
        return EmailResponse(success=True, recipients=len(to_addrs))
