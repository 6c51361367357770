"""Identifier, time and URL helpers shared by the record models."""

import base64
import time
import uuid

from pydantic import HttpUrl, TypeAdapter, ValidationError

from collab_utils.defaults import CURRENT_VERSION

ID_LENGTH = 26

# z-base-32 alphabet, keeps ids lowercase and free of easily confused characters
_ENCODING = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567",
    "ybndrfg8ejkmcpqxot1uwisza345h769",
)

_http_url_adapter: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


def new_id() -> str:
    """Generate a new 26 character identifier from a random UUID."""
    encoded = base64.b32encode(uuid.uuid4().bytes).decode("ascii")
    return encoded.rstrip("=").translate(_ENCODING)


def is_valid_id(value: str) -> bool:
    """Check that a value looks like an identifier produced by new_id()."""
    return len(value) == ID_LENGTH and value.isascii() and value.isalnum()


def get_millis() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def is_valid_http_url(raw_url: str) -> bool:
    """Check that a string is an absolute http(s) URL with a host."""
    if not raw_url.startswith(("http://", "https://")):
        return False
    try:
        url = _http_url_adapter.validate_python(raw_url)
    except ValidationError:
        return False
    return bool(url.host)


def etag(*parts: object) -> str:
    """Build a cache fingerprint from the current version and the given parts."""
    return ".".join([CURRENT_VERSION, *(str(part) for part in parts)])
