"""Tests for SMTP configuration models."""

import pytest
from pydantic import SecretStr, ValidationError

from collab_utils.mailservice.config import ConnectionSecurity, SMTPConfig
from collab_utils.mailservice.models import MailAddress


class TestSMTPConfig:
    def test_defaults(self) -> None:
        config = SMTPConfig()
        assert config.server == "localhost"
        assert config.port == 10025
        assert config.server_timeout == 10
        assert config.connection_security is ConnectionSecurity.NONE
        assert config.send_email_notifications is True
        assert config.enable_smtp_auth is False

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("TLS", ConnectionSecurity.TLS),
            ("starttls", ConnectionSecurity.STARTTLS),
            ("", ConnectionSecurity.NONE),
            ("PLAIN", ConnectionSecurity.NONE),
        ],
    )
    def test_connection_security_parsing(self, value: str, expected: ConnectionSecurity) -> None:
        assert SMTPConfig(connection_security=value).connection_security is expected

    def test_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            SMTPConfig(port=70000)

    def test_password_hidden(self) -> None:
        config = SMTPConfig(password=SecretStr("hunter2"))
        assert "hunter2" not in repr(config)

    def test_connection_info(self) -> None:
        config = SMTPConfig(
            connection_security="STARTTLS",
            skip_server_certificate_verification=True,
            server="smtp.example.com",
            port=587,
            server_timeout=30,
            username="bot",
            password=SecretStr("pw"),
            enable_smtp_auth=True,
        )

        info = config.connection_info()

        assert info.server_name == "smtp.example.com"
        assert info.server_host == "smtp.example.com"
        assert info.address == "smtp.example.com:587"
        assert info.timeout == 30
        assert info.username == "bot"
        assert info.password.get_secret_value() == "pw"
        assert info.skip_cert_verification is True
        assert info.connection_security is ConnectionSecurity.STARTTLS
        assert info.auth is True

    def test_connection_info_is_fresh(self) -> None:
        config = SMTPConfig(server="smtp.example.com")
        assert config.connection_info() is not config.connection_info()


class TestMailAddress:
    def test_with_name(self) -> None:
        assert str(MailAddress(name="Team Chat", address="a@example.com")) == "Team Chat <a@example.com>"

    def test_without_name(self) -> None:
        assert str(MailAddress(address="a@example.com")) == "a@example.com"

    def test_name_with_specials_quoted(self) -> None:
        address = MailAddress(name="Chat, Team", address="a@example.com")
        assert str(address) == '"Chat, Team" <a@example.com>'

    def test_non_ascii_name_encoded(self) -> None:
        assert str(MailAddress(name="Zoé", address="z@example.com")).startswith("=?utf-8?")
