"""Tests for identifier and URL helpers."""

import pytest

from collab_utils.defaults import CURRENT_VERSION
from collab_utils.model.utils import etag, get_millis, is_valid_http_url, is_valid_id, new_id


class TestIds:
    def test_new_id_shape(self) -> None:
        value = new_id()
        assert len(value) == 26
        assert value == value.lower()
        assert value.isalnum()
        assert is_valid_id(value)

    def test_new_id_unique(self) -> None:
        assert len({new_id() for _ in range(1000)}) == 1000

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "invalid",
            "a" * 25,
            "a" * 27,
            "abcdefghijklmnopqrstuvwxy-",
            "abcdefghijklmnopqrstuvwx z",
            "\u00e9" * 26,
            "abcdefghijklmnopqrstuvwxy\u0663",
        ],
    )
    def test_invalid_ids(self, value: str) -> None:
        assert not is_valid_id(value)


class TestHttpUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://mattermost.com",
            "http://localhost:8065/team/channels/town-square",
            "https://example.com/some-image-without-extension?size=2",
        ],
    )
    def test_valid(self, url: str) -> None:
        assert is_valid_http_url(url)

    @pytest.mark.parametrize(
        "url",
        ["", "invalid", "mattermost.com", "ftp://mattermost.com", "https://", "javascript:alert(1)"],
    )
    def test_invalid(self, url: str) -> None:
        assert not is_valid_http_url(url)


def test_get_millis_is_epoch_milliseconds() -> None:
    # 2020-01-01 in ms; guards against seconds or nanoseconds
    assert 1_577_836_800_000 < get_millis() < 1_577_836_800_000 * 100


def test_etag_format() -> None:
    assert etag("abc", 42) == f"{CURRENT_VERSION}.abc.42"
