"""Unit tests for key builders and normalization (rediscache/cache/keys.py)."""

import pytest

from rediscache.cache.keys import build_key, normalize, staging_key, staging_pattern


@pytest.mark.unit
def test_build_key_joins_prefix_and_parts():
    """Test prefix and parts are colon-joined in order."""
    assert build_key("svc", "course", "by_id") == "svc:course:by_id"


@pytest.mark.unit
def test_build_key_prefix_only():
    """Test a key with no parts is the bare prefix."""
    assert build_key("svc") == "svc"


@pytest.mark.unit
def test_build_key_does_not_escape_separator():
    """Test segments are joined verbatim (separator is the caller's problem)."""
    assert build_key("svc", "a:b", "c") == build_key("svc", "a", "b", "c")


@pytest.mark.unit
def test_cache_key_uses_configured_prefix(cache):
    """Test Cache.key() prepends the handle's prefix."""
    assert cache.key("course", "by_id") == "test:course:by_id"


@pytest.mark.unit
def test_staging_key_format():
    """Test staging keys append the tmp tag and token to the destination."""
    assert staging_key("app:group:by_id", "abc") == "app:group:by_id:tmp:abc"
    assert staging_pattern("app:group:by_id") == "app:group:by_id:tmp:*"


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("  Hello   World ", "hello world"),
        ("  Hello   WORLD  ", "hello world"),
        ("\tGo\tLang\n", "go lang"),
        ("", ""),
        ("   ", ""),
        ("Đ ấ y  ", "đ ấ y"),
        ("a  b", "a b"),
    ],
)
def test_normalize(text, expected):
    """Test normalize lower-cases, trims and collapses whitespace."""
    assert normalize(text) == expected
