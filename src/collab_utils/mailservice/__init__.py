"""Outbound notification email over SMTP."""

from collab_utils.mailservice.auth import LoginAuth, PlainAuth, ServerInfo, SMTPAuth, choose_auth
from collab_utils.mailservice.config import ConnectionSecurity, SMTPConfig, SMTPConnectionInfo
from collab_utils.mailservice.message import build_message, encode_rfc2047_word, html_to_text
from collab_utils.mailservice.models import EmbeddedFile, MailAddress, MailData
from collab_utils.mailservice.service import (
    send_mail_advanced,
    send_mail_using_config,
    send_mail_with_embedded_files_using_config,
    test_connection,
)
from collab_utils.mailservice.smtp import SMTPConnector

__all__ = [
    "ConnectionSecurity",
    "EmbeddedFile",
    "LoginAuth",
    "MailAddress",
    "MailData",
    "PlainAuth",
    "SMTPAuth",
    "SMTPConfig",
    "SMTPConnectionInfo",
    "SMTPConnector",
    "ServerInfo",
    "build_message",
    "choose_auth",
    "encode_rfc2047_word",
    "html_to_text",
    "send_mail_advanced",
    "send_mail_using_config",
    "send_mail_with_embedded_files_using_config",
    "test_connection",
]
