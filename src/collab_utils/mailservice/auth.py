"""SMTP authentication strategies.

Authentication is one of a closed set of mechanisms. choose_auth() picks the
mechanism from what the server advertises; the chosen strategy first checks
the session is safe to send credentials over (start()), then acts as the
authobject passed to smtplib.SMTP.auth() to answer server challenges.
"""

from abc import ABC, abstractmethod
from typing import ClassVar

from pydantic import BaseModel

from collab_utils.exceptions import SMTPAuthError

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class ServerInfo(BaseModel):
    """What the client knows about the server at authentication time.

    Attributes:
        name: Server name and port the session was opened for.
        tls: Whether the session is encrypted.
        auth: Mechanisms advertised in the EHLO AUTH extension.
    """

    name: str
    tls: bool
    auth: list[str] = []


class SMTPAuth(ABC):
    """Base class for SMTP authentication strategies."""

    mechanism: ClassVar[str]
    # Whether the first response can be sent along with the AUTH command
    initial_response_ok: ClassVar[bool] = True

    def __init__(self, username: str, password: str, host: str) -> None:
        self.username = username
        self.password = password
        self.host = host

    @abstractmethod
    def start(self, server: ServerInfo) -> None:
        """Check the session before any credentials are sent.

        Raises:
            SMTPAuthError: If credentials must not be sent over this session.
        """

    @abstractmethod
    def __call__(self, challenge: bytes | None = None) -> str:
        """Answer a server challenge (``None`` for the initial response)."""


class PlainAuth(SMTPAuth):
    """AUTH PLAIN: credentials sent in a single response."""

    mechanism = "PLAIN"

    def __init__(self, username: str, password: str, host: str, identity: str = "") -> None:
        super().__init__(username, password, host)
        self.identity = identity

    def start(self, server: ServerInfo) -> None:
        if not server.tls and server.name.rsplit(":", 1)[0] not in _LOCAL_HOSTS:
            raise SMTPAuthError("unencrypted connection")
        if server.name != self.host:
            raise SMTPAuthError("wrong host name")

    def __call__(self, challenge: bytes | None = None) -> str:
        return f"{self.identity}\0{self.username}\0{self.password}"


class LoginAuth(SMTPAuth):
    """AUTH LOGIN: username and password sent in answer to server prompts."""

    mechanism = "LOGIN"
    initial_response_ok = False

    def start(self, server: ServerInfo) -> None:
        if not server.tls:
            raise SMTPAuthError("unencrypted connection")
        if server.name != self.host:
            raise SMTPAuthError("wrong host name")

    def __call__(self, challenge: bytes | None = None) -> str:
        prompt = (challenge or b"").decode("ascii", errors="replace").strip().lower()
        if prompt == "username:":
            return self.username
        if prompt == "password:":
            return self.password
        raise SMTPAuthError("unknown challenge from server")


def choose_auth(username: str, password: str, host: str, server: ServerInfo) -> SMTPAuth:
    """Pick PLAIN when the server advertises it, LOGIN otherwise."""
    advertised = {mechanism.upper() for mechanism in server.auth}
    if PlainAuth.mechanism in advertised:
        return PlainAuth(username, password, host)
    return LoginAuth(username, password, host)
