"""Sign-in link delivery.

Backends:
- LogLinkSender: records links in an in-memory outbox and logs the
  delivery (development and tests)
- SmtpLinkSender: sends an email through an SMTP server
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Protocol

import structlog

from edunotes.config.app_config import MailConfig
from edunotes.core.errors import UpstreamError

logger = structlog.get_logger(__name__)

MAIL_BACKENDS = ("log", "smtp")

SUBJECT_LINE = "Your EduNotes sign-in link"

BODY_TEMPLATE = """Hello,

Use the link below to sign in to EduNotes:

{link}

The link can be used once and expires in {ttl_minutes} minutes.
If you did not request it, you can ignore this email.
"""


class LinkSender(Protocol):
    """Delivers a one-time sign-in link out-of-band."""

    def send_sign_in_link(self, email: str, link: str, ttl_minutes: int) -> None:
        ...


@dataclass
class SentLink:
    """A link recorded by LogLinkSender."""

    email: str
    link: str


@dataclass
class LogLinkSender:
    """Keeps sent links in memory instead of emailing them."""

    outbox: list[SentLink] = field(default_factory=list)

    def send_sign_in_link(self, email: str, link: str, ttl_minutes: int) -> None:
        self.outbox.append(SentLink(email=email, link=link))
        # The link itself is a credential: only its presence is logged
        logger.info("mail.link_recorded", email=email, ttl_minutes=ttl_minutes)

    def last_link_for(self, email: str) -> str | None:
        """Most recent link sent to email, if any."""
        for sent in reversed(self.outbox):
            if sent.email == email:
                return sent.link
        return None


class SmtpLinkSender:
    """Sends sign-in links by email over SMTP with STARTTLS."""

    def __init__(self, config: MailConfig):
        self.config = config

    def send_sign_in_link(self, email: str, link: str, ttl_minutes: int) -> None:
        """Send the link.

        Raises:
            UpstreamError: If SMTP is not configured or delivery fails
        """
        cfg = self.config
        if not cfg.smtp_host:
            raise UpstreamError("mail_not_configured", "SMTP host is not configured")

        msg = EmailMessage()
        msg["Subject"] = SUBJECT_LINE
        msg["From"] = cfg.sender
        msg["To"] = email
        msg.set_content(BODY_TEMPLATE.format(link=link, ttl_minutes=ttl_minutes))

        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout) as server:
                server.starttls()
                if cfg.smtp_user and cfg.smtp_password:
                    server.login(cfg.smtp_user, cfg.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("mail.send_failed", email=email, error=str(e))
            raise UpstreamError("mail_unavailable", f"Email send failed: {e}") from e

        logger.info("mail.link_sent", email=email)


def build_link_sender(config: MailConfig) -> LinkSender:
    """Create the sender selected by mail.backend.

    Raises:
        ValueError: If mail.backend is not one of MAIL_BACKENDS
    """
    if config.backend == "smtp":
        return SmtpLinkSender(config)
    if config.backend == "log":
        return LogLinkSender()
    logger.error("mail.unknown_backend", backend=config.backend)
    raise ValueError(
        f"Unknown mail.backend '{config.backend}' (expected one of: {', '.join(MAIL_BACKENDS)})"
    )
