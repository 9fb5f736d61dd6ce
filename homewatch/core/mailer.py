"""Outbound email over SMTP."""
import logging
import smtplib
import socket
from dataclasses import dataclass, field
from email.message import EmailMessage

from homewatch.core.config import Settings, settings

logger = logging.getLogger(__name__)


class MailSendError(Exception):
    """Raised when the SMTP server refuses or drops a message."""


@dataclass
class MailAttachment:
    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class OutboundEmail:
    sender: str
    recipient: str
    subject: str
    text: str
    attachments: list[MailAttachment] = field(default_factory=list)


def build_message(email: OutboundEmail) -> EmailMessage:
    """Compose a MIME message with the plain-text body and attachments."""
    msg = EmailMessage()
    msg["Subject"] = email.subject
    msg["From"] = email.sender
    msg["To"] = email.recipient
    msg.set_content(email.text)

    for attachment in email.attachments:
        content_type = attachment.content_type or "application/octet-stream"
        maintype, _, subtype = content_type.partition("/")
        msg.add_attachment(
            attachment.content,
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return msg


class SmtpMailer:
    """Sends OutboundEmail through an authenticated SMTP server."""

    def __init__(
        self,
        host: str,
        port: int | None,
        user: str,
        password: str,
        sender: str,
        secure: bool | None = None,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.secure = secure
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SmtpMailer":
        return cls(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_pass,
            sender=config.email_from,
            secure=config.smtp_secure,
            timeout=config.smtp_timeout_seconds,
        )

    @property
    def use_ssl(self) -> bool:
        if self.secure is not None:
            return self.secure
        return self.port == 465

    def missing_settings(self) -> list[str]:
        """Environment variable names that still need a value."""
        required = {
            "SMTP_HOST": self.host,
            "SMTP_PORT": self.port,
            "SMTP_USER": self.user,
            "SMTP_PASS": self.password,
            "EMAIL_FROM": self.sender,
        }
        return [name for name, value in required.items() if not value]

    def send(self, email: OutboundEmail) -> None:
        msg = build_message(email)
        try:
            if self.use_ssl:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as s:
                    s.login(self.user, self.password)
                    s.send_message(msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
                    s.ehlo()
                    s.starttls()
                    s.login(self.user, self.password)
                    s.send_message(msg)
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            raise MailSendError(str(e) or e.__class__.__name__) from e
        logger.debug(f"SMTP accepted message for {email.recipient}")


def get_mailer() -> SmtpMailer:
    """Dependency returning a mailer configured from settings."""
    return SmtpMailer.from_settings(settings)
