"""In-process SMTP server for end-to-end mail tests."""

import base64
import socket
import socketserver
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest


@dataclass
class ReceivedMail:
    mail_from: str
    rcpt_to: list[str]
    data: bytes


@dataclass
class ServerOptions:
    require_auth: bool = False
    starttls: bool = False
    banner: str = "220 localhost ESMTP test server"
    username: str = "bot@example.com"
    password: str = "s3cret"
    messages: list[ReceivedMail] = field(default_factory=list)


def _address(argument: str) -> str:
    start, end = argument.find("<"), argument.find(">")
    return argument[start + 1 : end]


class _SMTPHandler(socketserver.StreamRequestHandler):
    """Just enough SMTP for smtplib: EHLO/HELO, STARTTLS, AUTH PLAIN, MAIL, RCPT, DATA, QUIT.

    STARTTLS is accepted but the server hangs up instead of negotiating TLS.
    """

    def _reply(self, *lines: str) -> None:
        for line in lines:
            self.wfile.write(line.encode() + b"\r\n")
        self.wfile.flush()

    def handle(self) -> None:
        options: ServerOptions = self.server.options  # type: ignore[attr-defined]
        authenticated = False
        mail_from: str | None = None
        rcpt_to: list[str] = []

        self._reply(options.banner)
        if not options.banner.startswith("220"):
            return
        while True:
            raw = self.rfile.readline()
            if not raw:
                return
            command = raw.decode(errors="replace").rstrip("\r\n")
            verb, _, argument = command.partition(" ")
            verb = verb.upper()

            if verb == "EHLO":
                lines = ["localhost greets you"]
                if options.starttls:
                    lines.append("STARTTLS")
                if options.require_auth:
                    lines.append("AUTH PLAIN")
                lines.append("8BITMIME")
                self._reply(*(f"250-{line}" for line in lines[:-1]), f"250 {lines[-1]}")
            elif verb == "HELO":
                self._reply("250 localhost")
            elif verb == "STARTTLS" and options.starttls:
                self._reply("220 2.0.0 Ready to start TLS")
                return
            elif verb == "AUTH":
                mechanism, _, initial = argument.partition(" ")
                expected = f"\0{options.username}\0{options.password}".encode()
                if mechanism.upper() == "PLAIN" and base64.b64decode(initial) == expected:
                    authenticated = True
                    self._reply("235 2.7.0 Authentication successful")
                else:
                    self._reply("535 5.7.8 Authentication credentials invalid")
            elif verb == "MAIL":
                if options.require_auth and not authenticated:
                    self._reply("530 5.7.0 Authentication required")
                    continue
                mail_from = _address(argument)
                rcpt_to = []
                self._reply("250 OK")
            elif verb == "RCPT":
                rcpt_to.append(_address(argument))
                self._reply("250 OK")
            elif verb == "DATA":
                self._reply("354 End data with <CR><LF>.<CR><LF>")
                chunks = []
                while True:
                    line = self.rfile.readline()
                    if not line or line == b".\r\n":
                        break
                    chunks.append(line)
                options.messages.append(
                    ReceivedMail(mail_from=mail_from or "", rcpt_to=rcpt_to, data=b"".join(chunks))
                )
                self._reply("250 OK queued")
            elif verb == "QUIT":
                self._reply("221 Bye")
                return
            elif verb in ("RSET", "NOOP"):
                self._reply("250 OK")
            else:
                self._reply("502 Command not implemented")


class _SMTPServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def smtp_server() -> Iterator[tuple[_SMTPServer, ServerOptions]]:
    """Plaintext SMTP server on a free localhost port."""
    server = _SMTPServer(("127.0.0.1", 0), _SMTPHandler)
    options = ServerOptions()
    server.options = options  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server, options
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def silent_server() -> Iterator[int]:
    """Port of a listener that completes the TCP handshake but never greets."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        yield listener.getsockname()[1]
