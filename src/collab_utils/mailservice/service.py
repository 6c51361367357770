"""Send notification emails and check the outbound SMTP configuration.

Each call opens its own SMTP session and closes it before returning.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import BinaryIO

import structlog

from collab_utils.exceptions import MailError, MailPhase
from collab_utils.mailservice.config import SMTPConfig
from collab_utils.mailservice.models import EmbeddedFile, MailAddress, MailData
from collab_utils.mailservice.smtp import SMTPConnector

logger = structlog.get_logger()


def test_connection(config: SMTPConfig) -> None:
    """Run the connection handshake and authentication without sending mail.

    Raises:
        MailError: If notifications are disabled or any handshake phase fails.
    """
    if not config.send_email_notifications:
        raise MailError(MailPhase.CONFIG, "email notifications are disabled")

    with SMTPConnector(config.connection_info(), hostname=config.hostname) as connector:
        logger.info(
            "SMTP connection test succeeded",
            server=config.server,
            port=config.port,
            encrypted=connector.encrypted,
        )


def send_mail_advanced(mail: MailData, config: SMTPConfig, date: datetime | None = None) -> None:
    """Send a message whose MIME and envelope recipients may differ.

    Does nothing when no SMTP server is configured.

    Raises:
        MailError: If any phase of the SMTP session fails.
        ValueError: If a header value contains injection characters.
    """
    if not config.server:
        logger.debug("No SMTP server configured, skipping mail", subject=mail.subject)
        return

    with SMTPConnector(config.connection_info(), hostname=config.hostname) as connector:
        connector.send_mail(mail, date or datetime.now(timezone.utc))


def _read_embedded(name: str, stream: bytes | BinaryIO) -> EmbeddedFile:
    content = stream if isinstance(stream, bytes) else stream.read()
    return EmbeddedFile(name=name, content=content)


def send_mail_with_embedded_files_using_config(
    to: str,
    subject: str,
    html_body: str,
    embedded_files: Mapping[str, bytes | BinaryIO] | None,
    config: SMTPConfig,
    cc: str = "",
) -> None:
    """Send an HTML email from the configured feedback address.

    Args:
        to: Recipient, used for both the To header and the envelope.
        subject: Subject line.
        html_body: HTML body; a plain-text alternative is derived from it.
        embedded_files: Inline files by name (referenced as ``cid:<name>``).
        config: Outbound email settings.
        cc: Optional CC header value.
    """
    mail = MailData(
        mime_to=to,
        smtp_to=to,
        sender=MailAddress(name=config.feedback_name, address=config.feedback_email),
        cc=cc,
        reply_to=MailAddress(name=config.feedback_name, address=config.reply_to_address),
        subject=subject,
        html_body=html_body,
        embedded_files=[
            _read_embedded(name, stream) for name, stream in (embedded_files or {}).items()
        ],
    )
    send_mail_advanced(mail, config)


def send_mail_using_config(
    to: str,
    subject: str,
    html_body: str,
    config: SMTPConfig,
    cc: str = "",
) -> None:
    """Send an HTML email from the configured feedback address."""
    send_mail_with_embedded_files_using_config(to, subject, html_body, None, config, cc)
