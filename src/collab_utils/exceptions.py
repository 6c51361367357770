"""Custom exceptions for collab-utils."""

from enum import Enum


class CollabError(Exception):
    """Base exception for collab-utils."""


class ConfigError(CollabError):
    """Raised when there is a configuration error.

    Carries the file location when the error comes from a config file.
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        line: int | None = None,
        col: int | None = None,
    ) -> None:
        self.file_path = file_path
        self.line = line
        self.col = col
        full_message = message
        if file_path:
            location = f" in {file_path}"
            if line is not None:
                location += f" at line {line}"
                if col is not None:
                    location += f", column {col}"
            full_message = f"Configuration error{location}: {message}"
        super().__init__(full_message)


class MailPhase(str, Enum):
    """Step of an outbound mail session in which a failure happened."""

    CONFIG = "config"
    CONNECT = "connect"
    GREETING = "greeting"
    STARTTLS = "starttls"
    AUTH = "auth"
    ENVELOPE = "envelope"
    BODY = "body"
    CLOSE = "close"


class MailError(CollabError):
    """Raised when sending mail or testing the SMTP connection fails.

    The underlying library error, if any, is available as ``__cause__``.
    """

    def __init__(self, phase: MailPhase, message: str) -> None:
        self.phase = phase
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"{self.message}: {self.__cause__}"
        return self.message


class SMTPAuthError(CollabError):
    """Raised when an authentication strategy refuses to run or gets an unexpected challenge."""


class InvalidBookmarkError(CollabError):
    """Raised when a channel bookmark fails validation."""

    def __init__(self, field: str, error_id: str, details: str = "") -> None:
        self.field = field
        self.error_id = error_id
        self.details = details
        message = f"Invalid channel bookmark field '{field}' ({error_id})"
        if details:
            message += f": {details}"
        super().__init__(message)
