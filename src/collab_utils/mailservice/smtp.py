"""SMTP connector for sending notification emails using smtplib."""

import logging
import re
import smtplib
import ssl
from datetime import datetime, timezone

from collab_utils.exceptions import MailError, MailPhase, SMTPAuthError
from collab_utils.mailservice.auth import ServerInfo, choose_auth
from collab_utils.mailservice.config import ConnectionSecurity, SMTPConnectionInfo
from collab_utils.mailservice.message import build_message
from collab_utils.mailservice.models import MailData

logger = logging.getLogger(__name__)

_AUTH_REQUIRED = 530
_LEADING_DOT_RE = re.compile(rb"^\.", re.MULTILINE)


def _tls_context(info: SMTPConnectionInfo) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if info.skip_cert_verification:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _root_cause(error: Exception) -> BaseException:
    """Unwrap a socket timeout that smtplib reported as a disconnect."""
    context = error.__context__
    if isinstance(error, smtplib.SMTPServerDisconnected) and isinstance(context, TimeoutError):
        return context
    return error


def _dot_stuff(payload: bytes) -> bytes:
    """Escape leading dots and terminate the DATA payload."""
    payload = _LEADING_DOT_RE.sub(b"..", payload)
    if not payload.endswith(b"\r\n"):
        payload += b"\r\n"
    return payload + b".\r\n"


class SMTPConnector:
    """One SMTP session: connect, greet, secure, authenticate, send.

    Every failure is raised as a MailError naming the phase that failed,
    with the library error chained as its cause. Nothing is retried.
    """

    def __init__(self, info: SMTPConnectionInfo, hostname: str = "") -> None:
        """Initialize SMTP connector.

        Args:
            info: Parameters for this session.
            hostname: Local host name announced in EHLO/HELO (default: FQDN).
        """
        self.info = info
        self.hostname = hostname
        self._connection: smtplib.SMTP | smtplib.SMTP_SSL | None = None
        self._encrypted = False

    @property
    def encrypted(self) -> bool:
        return self._encrypted

    def connect(self) -> None:
        """Open the session and run every phase up to authentication."""
        logger.debug(
            "Connecting to SMTP server (host=%s, port=%s, security=%r)",
            self.info.server_host,
            self.info.port,
            self.info.connection_security.value,
        )
        try:
            self._dial()
            self._hello()
            if self.info.connection_security is ConnectionSecurity.STARTTLS:
                self._start_tls()
            if self.info.auth:
                self._authenticate()
        except MailError:
            self._abort()
            raise
        logger.info(
            "SMTP connection established (host=%s, encrypted=%s)",
            self.info.server_host,
            self._encrypted,
        )

    def _dial(self) -> None:
        tls = self.info.connection_security is ConnectionSecurity.TLS
        local_hostname = self.hostname or None
        # The constructor connects and checks for the 220 banner. The host it
        # is given is also the TLS server name for SNI and certificate checks.
        # TCP connect, TLS handshake and the banner are bounded by the timeout.
        try:
            if tls:
                connection: smtplib.SMTP = smtplib.SMTP_SSL(
                    self.info.server_host,
                    self.info.port,
                    local_hostname=local_hostname,
                    timeout=self.info.timeout,
                    context=_tls_context(self.info),
                )
            else:
                connection = smtplib.SMTP(
                    self.info.server_host,
                    self.info.port,
                    local_hostname=local_hostname,
                    timeout=self.info.timeout,
                )
        except (OSError, ValueError, smtplib.SMTPException) as e:
            message = "unable to connect to the SMTP server"
            if tls:
                message += " through TLS"
            raise MailError(MailPhase.CONNECT, message) from _root_cause(e)
        self._connection = connection
        self._encrypted = tls

    def _hello(self) -> None:
        assert self._connection is not None
        try:
            self._connection.ehlo_or_helo_if_needed()
        except (OSError, smtplib.SMTPException) as e:
            raise MailError(
                MailPhase.GREETING, "unable to send hello message"
            ) from _root_cause(e)

    def _start_tls(self) -> None:
        assert self._connection is not None
        try:
            self._connection.starttls(context=_tls_context(self.info))
        except (OSError, ValueError, smtplib.SMTPException) as e:
            raise MailError(
                MailPhase.STARTTLS, "unable to upgrade the connection to TLS"
            ) from _root_cause(e)
        self._encrypted = True
        # The server forgets the earlier EHLO once TLS is up
        self._hello()

    def _advertised_auth(self) -> list[str]:
        assert self._connection is not None
        if not self._connection.has_extn("auth"):
            return []
        return self._connection.esmtp_features["auth"].upper().split()

    def _authenticate(self) -> None:
        assert self._connection is not None
        mechanisms = self._advertised_auth()
        if not mechanisms:
            raise MailError(MailPhase.AUTH, "authentication failed: server doesn't support AUTH")

        server = ServerInfo(name=self.info.address, tls=self._encrypted, auth=mechanisms)
        strategy = choose_auth(
            self.info.username,
            self.info.password.get_secret_value(),
            self.info.address,
            server,
        )
        logger.debug("Authenticating with SMTP server (mechanism=%s)", strategy.mechanism)
        try:
            strategy.start(server)
            self._connection.auth(
                strategy.mechanism,
                strategy,
                initial_response_ok=strategy.initial_response_ok,
            )
        except (SMTPAuthError, OSError, ValueError, smtplib.SMTPException) as e:
            raise MailError(MailPhase.AUTH, "authentication failed") from e

    def _abort(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        self._encrypted = False

    def disconnect(self) -> None:
        """Close connection to SMTP server."""
        if self._connection is None:
            return
        try:
            self._connection.quit()
        except (OSError, smtplib.SMTPException) as e:
            logger.warning("Error while closing SMTP connection: %s", e)
            self._connection.close()
        self._connection = None
        self._encrypted = False
        logger.info("SMTP connection closed")

    def __enter__(self) -> "SMTPConnector":
        """Enter context manager, connecting to the server."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context manager, disconnecting from the server."""
        self.disconnect()

    def _envelope_command(self, reply: tuple[int, bytes], accepted: tuple[int, ...], message: str) -> None:
        code, resp = reply
        if code in accepted:
            return
        error = smtplib.SMTPResponseException(code, resp)
        if code == _AUTH_REQUIRED:
            raise MailError(MailPhase.AUTH, "authentication required by the SMTP server") from error
        raise MailError(MailPhase.ENVELOPE, message) from error

    def send_mail(self, mail: MailData, date: datetime | None = None) -> None:
        """Send one message over the open session.

        Args:
            mail: Message to send; the envelope uses sender.address and smtp_to.
            date: Date header value (default: now).

        Raises:
            RuntimeError: If not connected to SMTP server.
            ValueError: If a header value contains injection characters.
            MailError: If the server rejects the message or the connection fails.
        """
        if self._connection is None:
            raise RuntimeError("Not connected. Call connect() first.")

        logger.debug("Sending mail (to=%s, subject=%r)", mail.smtp_to, mail.subject)
        msg = build_message(mail, date or datetime.now(timezone.utc))
        payload = _dot_stuff(msg.as_bytes(policy=msg.policy.clone(linesep="\r\n")))

        connection = self._connection
        try:
            self._envelope_command(
                connection.mail(mail.sender.address), (250,), "failed to set the from address"
            )
            self._envelope_command(
                connection.rcpt(mail.smtp_to), (250, 251), "failed to set the to address"
            )
        except (OSError, smtplib.SMTPException) as e:
            raise MailError(MailPhase.ENVELOPE, "failed to send envelope commands") from e

        try:
            code, resp = connection.docmd("DATA")
        except (OSError, smtplib.SMTPException) as e:
            raise MailError(MailPhase.BODY, "failed to add email message data") from e
        if code != 354:
            raise MailError(MailPhase.BODY, "failed to add email message data") from (
                smtplib.SMTPDataError(code, resp)
            )

        try:
            connection.send(payload)
        except (OSError, smtplib.SMTPException) as e:
            raise MailError(MailPhase.BODY, "failed to write the email message") from e

        try:
            code, resp = connection.getreply()
        except (OSError, smtplib.SMTPException) as e:
            raise MailError(MailPhase.CLOSE, "failed to close connection to the SMTP server") from e
        if code != 250:
            raise MailError(MailPhase.CLOSE, "failed to close connection to the SMTP server") from (
                smtplib.SMTPDataError(code, resp)
            )

        logger.info("Mail sent (subject=%r)", mail.subject)
