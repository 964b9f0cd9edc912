"""ABOUTME: Email adapter implementations for sending account emails
ABOUTME: Supports SMTP and console logging, chosen from configuration"""

import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

import structlog

from openidp.config import InvalidConfig, SmtpCfg

logger = structlog.get_logger(__name__)


class EmailAdapter(ABC):
    """Abstract base class for email sending adapters."""

    @abstractmethod
    def send_email(self, to: list[str], subject: str, text_body: str, html_body: str | None = None) -> bool:
        """Send an email to one or more recipients.

        Args:
            to: Recipient email addresses
            subject: Email subject line
            text_body: Plain text version of the email body
            html_body: Optional HTML version of the email body

        Returns:
            True if email sent successfully, False otherwise
        """


class ConsoleEmailAdapter(EmailAdapter):
    """Logs emails instead of sending them. Used in development and tests."""

    def send_email(self, to: list[str], subject: str, text_body: str, html_body: str | None = None) -> bool:
        preview = text_body[:400] + ("..." if len(text_body) > 400 else "")
        logger.info("email (console)", to=to, subject=subject, has_html=html_body is not None, body_preview=preview)
        return True


class SMTPEmailAdapter(EmailAdapter):
    """Email adapter that sends emails via SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_email: str = "",
        from_name: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email
        self.from_name = from_name

    def build_message(self, to: list[str], subject: str, text_body: str, html_body: str | None = None) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_email)) if self.from_name else self.from_email
        msg["To"] = ", ".join(to)
        msg.set_content(text_body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")
        return msg

    def send_email(self, to: list[str], subject: str, text_body: str, html_body: str | None = None) -> bool:
        msg = self.build_message(to, subject, text_body, html_body)
        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("smtp error sending email", subject=subject, error=str(e))
            return False

        logger.info("email sent", recipients=len(to), subject=subject)
        return True


def get_email_adapter(backend: str) -> EmailAdapter:
    """Build the email adapter for the configured EMAIL_BACKEND."""
    if backend == "console":
        return ConsoleEmailAdapter()
    if backend == "smtp":
        smtp_cfg = SmtpCfg.from_env()
        return SMTPEmailAdapter(
            host=smtp_cfg.host,
            port=smtp_cfg.port,
            username=smtp_cfg.username,
            password=smtp_cfg.password,
            use_tls=smtp_cfg.use_tls,
            from_email=smtp_cfg.from_email,
            from_name=smtp_cfg.from_name,
        )
    raise InvalidConfig(f"Unknown EMAIL_BACKEND: {backend}")
