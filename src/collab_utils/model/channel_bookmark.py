"""Channel bookmark record: a named link or file pinned to a channel."""

from enum import Enum

from pydantic import BaseModel

from collab_utils.exceptions import InvalidBookmarkError
from collab_utils.model.utils import etag, get_millis, is_valid_http_url, is_valid_id, new_id


class BookmarkType(str, Enum):
    """Kind of resource a bookmark points at."""

    LINK = "link"
    FILE = "file"


_BOOKMARK_TYPES = tuple(t.value for t in BookmarkType)


def _error_id(field: str) -> str:
    return f"model.channel_bookmark.is_valid.{field}.app_error"


class ChannelBookmark(BaseModel):
    """A bookmark attached to a channel.

    Timestamps are epoch milliseconds; zero means "not set". A non-zero
    ``delete_at`` marks the bookmark as soft-deleted.

    The model accepts any values on construction so records can be loaded
    before they are checked; call validate_record() or is_valid() before storing one.
    """

    id: str = ""
    create_at: int = 0
    update_at: int = 0
    delete_at: int = 0
    channel_id: str = ""
    owner_id: str = ""
    file_id: str = ""
    display_name: str = ""
    sort_order: int = 0
    link_url: str = ""
    image_url: str = ""
    emoji: str = ""
    type: str = ""
    original_id: str = ""
    parent_id: str = ""

    @property
    def is_deleted(self) -> bool:
        return self.delete_at != 0

    def validate_record(self) -> None:
        """Check the record, raising on the first invalid field.

        Fields are checked in a fixed order: id, timestamps, channel and owner
        references, display name, type, the type-specific fields, then the
        optional original and parent references.

        Raises:
            InvalidBookmarkError: For the first field that fails its check.
        """
        if not is_valid_id(self.id):
            raise InvalidBookmarkError("id", _error_id("id"))
        if self.create_at == 0:
            raise InvalidBookmarkError("create_at", _error_id("create_at"))
        if self.update_at == 0:
            raise InvalidBookmarkError("update_at", _error_id("update_at"))
        if not is_valid_id(self.channel_id):
            raise InvalidBookmarkError("channel_id", _error_id("channel_id"))
        if not is_valid_id(self.owner_id):
            raise InvalidBookmarkError("owner_id", _error_id("owner_id"))
        if not self.display_name:
            raise InvalidBookmarkError("display_name", _error_id("display_name"))
        if self.type not in _BOOKMARK_TYPES:
            raise InvalidBookmarkError(
                "type", _error_id("type"), f"must be one of {list(_BOOKMARK_TYPES)}"
            )

        if self.type == BookmarkType.LINK:
            if not self.link_url or not is_valid_http_url(self.link_url):
                raise InvalidBookmarkError("link_url", _error_id("link_url.missing_or_invalid"))
            # Only the URL shape is checked, clients handle non-image targets.
            if self.image_url and not is_valid_http_url(self.image_url):
                raise InvalidBookmarkError("image_url", _error_id("image_url.missing_or_invalid"))

        if self.type == BookmarkType.FILE:
            if not self.file_id or not is_valid_id(self.file_id):
                raise InvalidBookmarkError("file_id", _error_id("file_id.missing_or_invalid"))

        if self.original_id and not is_valid_id(self.original_id):
            raise InvalidBookmarkError("original_id", _error_id("original_id"))
        if self.parent_id and not is_valid_id(self.parent_id):
            raise InvalidBookmarkError("parent_id", _error_id("parent_id"))

    def is_valid(self) -> bool:
        try:
            self.validate_record()
        except InvalidBookmarkError:
            return False
        return True

    def pre_save(self) -> None:
        """Stamp a new bookmark before its first save."""
        if not self.id:
            self.id = new_id()
        if self.create_at == 0:
            self.create_at = get_millis()
        self.update_at = self.create_at

    def pre_update(self) -> None:
        """Advance update_at, always moving it forward even within one millisecond."""
        self.update_at = max(get_millis(), self.update_at + 1)

    def soft_delete(self) -> None:
        """Mark the bookmark deleted without removing it."""
        now = max(get_millis(), self.update_at + 1)
        self.delete_at = now
        self.update_at = now

    def etag(self) -> str:
        """Fingerprint that changes whenever id or update_at changes."""
        return etag(self.id, self.update_at)


class ChannelBookmarkPatch(BaseModel):
    """Partial update for a bookmark; ``None`` fields are left untouched."""

    file_id: str | None = None
    display_name: str | None = None
    sort_order: int | None = None
    link_url: str | None = None
    image_url: str | None = None
    emoji: str | None = None

    def apply(self, bookmark: ChannelBookmark) -> None:
        for field, value in self.model_dump(exclude_none=True).items():
            setattr(bookmark, field, value)
