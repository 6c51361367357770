"""MIME composition for outgoing notification emails."""

import logging
import re
from datetime import datetime
from email import encoders
from email.charset import BASE64, QP, Charset
from email.header import Header
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import format_datetime

from bs4 import BeautifulSoup

from collab_utils.mailservice.models import MailData

logger = logging.getLogger(__name__)

_HEADER_INJECTION_RE = re.compile(r"[\r\n\0]")

_UTF8_QP = Charset("utf-8")
_UTF8_QP.body_encoding = QP

_UTF8_B64 = Charset("utf-8")
_UTF8_B64.header_encoding = BASE64


def _validate_header_value(value: str) -> None:
    """Validate a string is safe from SMTP header injection.

    Raises:
        ValueError: If the value contains newline, carriage return, or null characters.
    """
    if _HEADER_INJECTION_RE.search(value):
        # SECURITY: Do not log the value, it may contain injection payloads
        logger.warning("Header injection attempt detected")
        raise ValueError("Value contains invalid characters (newline, carriage return, or null)")


def encode_rfc2047_word(value: str) -> str:
    """Encode a header value as an RFC 2047 B-encoded word when needed.

    Printable ASCII is returned unchanged.
    """
    if all(" " <= ch <= "~" or ch == "\t" for ch in value):
        return value
    return Header(value, _UTF8_B64).encode(maxlinelen=0)


def html_to_text(html: str) -> str:
    """Derive a plain-text alternative from an HTML body.

    Links keep their target as ``text ( href )``.
    """
    soup = BeautifulSoup(html, "html.parser")

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for block in soup.find_all(["p", "div", "tr", "h1", "h2", "h3", "h4", "h5", "h6"]):
        block.insert_after("\n\n")

    for li in soup.find_all("li"):
        li.insert_before("* ")
        li.insert_after("\n")

    for link in soup.find_all("a", href=True):
        link_text = link.get_text()
        href = link["href"]
        if href and href != link_text:
            link.replace_with(f"{link_text} ( {href} )")

    text = soup.get_text()
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _build_body(mail: MailData) -> MIMEMultipart:
    html_message = "\r\n<html><body>" + mail.html_body + "</body></html>"

    try:
        txt_body = html_to_text(mail.html_body)
    except Exception:
        logger.warning("Unable to convert html body to text", exc_info=True)
        txt_body = ""

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText(txt_body, "plain", _UTF8_QP))
    alternative.attach(MIMEText(html_message, "html", _UTF8_QP))

    if not mail.embedded_files:
        return alternative

    related = MIMEMultipart("related")
    related.attach(alternative)
    for embedded in mail.embedded_files:
        _validate_header_value(embedded.name)
        maintype, subtype = embedded.content_type().split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(embedded.get_content())
        encoders.encode_base64(part)
        part.add_header("Content-ID", f"<{embedded.name}>")
        part.add_header("Content-Disposition", "inline", filename=embedded.name)
        related.attach(part)
    return related


def build_message(mail: MailData, date: datetime) -> MIMEMultipart:
    """Build the MIME document for a mail.

    Args:
        mail: Message to compose.
        date: Value of the Date header.

    Returns:
        The composed message: multipart/alternative (text/plain, text/html),
        wrapped in multipart/related when files are embedded.

    Raises:
        ValueError: If an address or header contains injection characters.
    """
    _validate_header_value(mail.sender.name)
    _validate_header_value(mail.sender.address)
    _validate_header_value(mail.mime_to)
    _validate_header_value(mail.smtp_to)
    _validate_header_value(mail.cc)
    _validate_header_value(mail.reply_to.name)
    _validate_header_value(mail.reply_to.address)
    for name, value in mail.mime_headers.items():
        _validate_header_value(name)
        _validate_header_value(value)

    msg = _build_body(mail)

    msg["From"] = str(mail.sender)
    msg["To"] = mail.mime_to
    msg["Subject"] = encode_rfc2047_word(mail.subject)
    msg["Content-Transfer-Encoding"] = "8bit"
    msg["Auto-Submitted"] = "auto-generated"
    msg["Precedence"] = "bulk"
    msg["Date"] = format_datetime(date)

    if mail.reply_to.address:
        msg["Reply-To"] = str(mail.reply_to)

    if mail.cc:
        msg["CC"] = mail.cc

    for name, value in mail.mime_headers.items():
        # Caller headers replace the defaults above
        del msg[name]
        msg[name] = encode_rfc2047_word(value)

    return msg
