"""
Digest Delivery

SMTP email delivery for digest emails.
"""
import logging
import re
import smtplib
from collections.abc import Sequence
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from typing import Any

from tvnotifier.config import Settings
from tvnotifier.services.fetch_types import DeliveryConfigError, DeliveryError


logger = logging.getLogger(__name__)


class DigestDelivery:
    """Sends rendered digests over SMTP"""

    def __init__(
        self,
        smtp_host: str | None,
        smtp_user: str | None,
        smtp_password: str | None,
        from_email: str | None,
        smtp_port: int = 465,
        starttls: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize SMTP delivery

        Raises:
            DeliveryConfigError: If host, credentials or sender are missing
        """
        missing = [
            name
            for name, value in (
                ("smtp_host", smtp_host),
                ("smtp_user", smtp_user),
                ("smtp_password", smtp_password),
                ("from_email", from_email),
            )
            if not value
        ]
        if missing:
            raise DeliveryConfigError(f"SMTP not fully configured, missing: {', '.join(missing)}")

        self.smtp_host: str = smtp_host  # type: ignore[assignment]
        self.smtp_user: str = smtp_user  # type: ignore[assignment]
        self.smtp_password: str = smtp_password  # type: ignore[assignment]
        self.from_email: str = from_email  # type: ignore[assignment]
        self.smtp_port = smtp_port
        self.starttls = starttls
        self.timeout = timeout

        logger.info(
            "SMTP delivery configured: %s@%s:%s",
            self.smtp_user,
            self.smtp_host,
            self.smtp_port,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DigestDelivery":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            from_email=settings.from_email,
            smtp_port=settings.smtp_port,
            starttls=settings.smtp_starttls,
            timeout=settings.http_timeout_sec,
        )

    def build_message(self, recipients: Sequence[str], subject: str, html_body: str) -> MIMEMultipart:
        """Build a multipart message with a plain-text fallback"""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(recipients)
        msg["Date"] = formatdate(localtime=True)
        msg.attach(MIMEText(html_to_plaintext(html_body), "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _open_connection(self) -> smtplib.SMTP:
        if self.starttls:
            server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout)
            server.starttls()
            return server
        return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout)

    def send_digest(self, recipients: Sequence[str], subject: str, html_body: str) -> int:
        """
        Send one digest email to all recipients

        Args:
            recipients: Email addresses
            subject: Email subject
            html_body: Rendered HTML digest

        Returns:
            Number of recipients the message was addressed to

        Raises:
            DeliveryError: If the SMTP exchange fails
        """
        if not recipients:
            logger.warning("No recipients configured - digest not sent")
            return 0

        msg = self.build_message(recipients, subject, html_body)
        logger.info("Connecting to %s:%s", self.smtp_host, self.smtp_port)

        try:
            with self._open_connection() as server:
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg, from_addr=self.from_email, to_addrs=list(recipients))
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Failed to send digest: {e}") from e

        logger.info("Digest '%s' sent to %s recipient(s)", subject, len(recipients))
        return len(recipients)

    def get_config_status(self) -> dict[str, Any]:
        """Get SMTP configuration status"""
        return {
            "smtp_host": self.smtp_host,
            "smtp_port": self.smtp_port,
            "smtp_user": self.smtp_user,
            "smtp_password_set": bool(self.smtp_password),
            "starttls": self.starttls,
            "from_email": self.from_email,
        }


def html_to_plaintext(html: str) -> str:
    """Simple HTML to plaintext conversion for the digest markup"""
    text = re.sub(r"<br\s*/?>", "\n", html)
    text = re.sub(r"<[^>]+>", "", text)

    text = text.replace("&nbsp;", " ")
    text = text.replace("&lt;", "<")
    text = text.replace("&gt;", ">")
    text = text.replace("&quot;", '"')
    text = text.replace("&#x27;", "'")
    text = text.replace("&#39;", "'")
    text = text.replace("&amp;", "&")

    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip() + "\n"
