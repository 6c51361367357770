"""Outbound notification email and channel bookmark records for a collaboration server."""

from collab_utils.config import Settings
from collab_utils.defaults import CURRENT_VERSION
from collab_utils.exceptions import (
    CollabError,
    ConfigError,
    InvalidBookmarkError,
    MailError,
    MailPhase,
    SMTPAuthError,
)
from collab_utils.mailservice import MailData, SMTPConfig, SMTPConnector
from collab_utils.model import BookmarkType, ChannelBookmark, ChannelBookmarkPatch

__version__ = CURRENT_VERSION

__all__ = [
    "BookmarkType",
    "ChannelBookmark",
    "ChannelBookmarkPatch",
    "CollabError",
    "ConfigError",
    "InvalidBookmarkError",
    "MailData",
    "MailError",
    "MailPhase",
    "SMTPAuthError",
    "SMTPConfig",
    "SMTPConnector",
    "Settings",
]
