"""Record models."""

from collab_utils.model.channel_bookmark import (
    BookmarkType,
    ChannelBookmark,
    ChannelBookmarkPatch,
)
from collab_utils.model.utils import etag, get_millis, is_valid_http_url, is_valid_id, new_id

__all__ = [
    "BookmarkType",
    "ChannelBookmark",
    "ChannelBookmarkPatch",
    "etag",
    "get_millis",
    "is_valid_http_url",
    "is_valid_id",
    "new_id",
]
