"""Outgoing mail data models."""

import mimetypes
from email.utils import formataddr
from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class MailAddress(BaseModel):
    """Email address with optional display name."""

    name: str = ""
    address: str = ""

    def __str__(self) -> str:
        # Non-ASCII display names are RFC 2047 encoded
        return formataddr((self.name, self.address), charset="utf-8")


class EmbeddedFile(BaseModel):
    """File embedded inline in an HTML email, referenced as ``cid:<name>``.

    Supports two modes:
    - In-memory: Provide content bytes directly
    - File-based: Provide path to read from (content will be loaded)

    At least one of content or path must be provided.
    """

    name: str
    content: bytes | None = None
    path: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def _require_content_or_path(self) -> "EmbeddedFile":
        if self.content is None and self.path is None:
            raise ValueError("Either content or path must be provided")
        return self

    def get_content(self) -> bytes:
        """Get file content, loading from path if needed.

        Raises:
            FileNotFoundError: If path is provided but file doesn't exist.
        """
        if self.content is not None:
            return self.content
        assert self.path is not None
        return Path(self.path).read_bytes()

    def content_type(self) -> str:
        """MIME type, guessed from the name when not given."""
        if self.mime_type:
            return self.mime_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or "application/octet-stream"


class MailData(BaseModel):
    """A composed outgoing message.

    ``mime_to`` is what recipients see in the To header while ``smtp_to`` is
    the envelope recipient the server delivers to. They are usually the same,
    and differ on purpose for blind delivery.
    """

    mime_to: str
    smtp_to: str
    sender: MailAddress
    cc: str = ""
    reply_to: MailAddress = Field(default_factory=MailAddress)
    subject: str = ""
    html_body: str = ""
    embedded_files: list[EmbeddedFile] = []
    mime_headers: dict[str, str] = {}
