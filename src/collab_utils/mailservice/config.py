"""SMTP configuration models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from collab_utils.defaults import DEFAULT_SMTP_PORT, DEFAULT_SMTP_SERVER, DEFAULT_SMTP_TIMEOUT


class ConnectionSecurity(str, Enum):
    """How the SMTP session is secured."""

    NONE = ""
    TLS = "TLS"  # TLS handshake right after connecting
    STARTTLS = "STARTTLS"  # plaintext connection upgraded in place


class SMTPConnectionInfo(BaseModel):
    """Parameters for a single SMTP session, built fresh for every send."""

    server_name: str
    server_host: str
    port: int = Field(default=DEFAULT_SMTP_PORT, ge=1, le=65535)
    timeout: int = Field(default=DEFAULT_SMTP_TIMEOUT, gt=0)
    username: str = ""
    password: SecretStr = SecretStr("")
    skip_cert_verification: bool = False
    connection_security: ConnectionSecurity = ConnectionSecurity.NONE
    auth: bool = False

    @property
    def address(self) -> str:
        """Server name and port, as expected by the authentication host check."""
        return f"{self.server_name}:{self.port}"


class SMTPConfig(BaseModel):
    """Outbound email settings.

    Attributes:
        connection_security: "TLS", "STARTTLS", or anything else for plaintext.
        skip_server_certificate_verification: Accept any server certificate.
        hostname: Local host name sent in EHLO/HELO (default: the machine FQDN).
        server: SMTP server host. When empty, sending is silently skipped.
        port: SMTP server port.
        server_timeout: Seconds allowed for connecting and each server reply.
        username: SMTP username (only used with enable_smtp_auth).
        password: SMTP password (only used with enable_smtp_auth).
        enable_smtp_auth: Authenticate after connecting.
        send_email_notifications: Master switch checked by the connection self-test.
        feedback_name: Display name used for From and Reply-To.
        feedback_email: Sender address.
        reply_to_address: Reply-To address (omitted when empty).
    """

    connection_security: ConnectionSecurity = ConnectionSecurity.NONE
    skip_server_certificate_verification: bool = False
    hostname: str = ""
    server: str = DEFAULT_SMTP_SERVER
    port: int = Field(default=DEFAULT_SMTP_PORT, ge=1, le=65535)
    server_timeout: int = Field(default=DEFAULT_SMTP_TIMEOUT, gt=0)
    username: str = ""
    password: SecretStr = SecretStr("")
    enable_smtp_auth: bool = False
    send_email_notifications: bool = True
    feedback_name: str = ""
    feedback_email: str = ""
    reply_to_address: str = ""

    @field_validator("connection_security", mode="before")
    @classmethod
    def _parse_connection_security(cls, v: Any) -> Any:
        # Unknown values mean a plaintext connection
        if isinstance(v, ConnectionSecurity):
            return v
        if isinstance(v, str):
            try:
                return ConnectionSecurity(v.strip().upper())
            except ValueError:
                return ConnectionSecurity.NONE
        return v

    def connection_info(self) -> SMTPConnectionInfo:
        """Build the parameters for one SMTP session from this configuration."""
        return SMTPConnectionInfo(
            server_name=self.server,
            server_host=self.server,
            port=self.port,
            timeout=self.server_timeout,
            username=self.username,
            password=self.password,
            skip_cert_verification=self.skip_server_certificate_verification,
            connection_security=self.connection_security,
            auth=self.enable_smtp_auth,
        )
