"""
Unit tests for url_utils module.

Tests origin extraction, re-targeting and redirect resolution.
"""

import httpx

from llm_bot_proxy.utils.url_utils import (
    build_target_url,
    host_of,
    origin_of,
    resolve_location,
)


class TestOriginOf:
    """Tests for origin_of function."""

    def test_strips_path_and_query(self):
        assert origin_of("https://example.com/blog/post?x=1") == "https://example.com"

    def test_keeps_port(self):
        assert origin_of("http://localhost:8080/") == "http://localhost:8080"

    def test_lowercases(self):
        assert origin_of("HTTPS://Example.COM/a") == "https://example.com"


class TestHostOf:
    """Tests for host_of function."""

    def test_plain_origin(self):
        assert host_of("https://www.example.com") == "www.example.com"

    def test_with_port(self):
        assert host_of("http://backend:8000") == "backend:8000"


class TestBuildTargetUrl:
    """Tests for build_target_url function."""

    def test_path_and_query_copied(self):
        url = httpx.URL("https://site.example/blog/post?a=1&b=2")
        assert build_target_url("https://other.example", url) == (
            "https://other.example/blog/post?a=1&b=2"
        )

    def test_origin_path_prefix_kept(self):
        url = httpx.URL("https://site.example/pricing")
        assert build_target_url("https://bucket.example/org-1", url) == (
            "https://bucket.example/org-1/pricing"
        )

    def test_trailing_slash_on_origin(self):
        url = httpx.URL("https://site.example/")
        assert build_target_url("https://other.example/", url) == "https://other.example/"

    def test_encoded_path_kept_encoded(self):
        url = httpx.URL("https://site.example/a%20b")
        assert build_target_url("https://o.example", url) == "https://o.example/a%20b"


class TestResolveLocation:
    """Tests for resolve_location function."""

    def test_absolute_path(self):
        assert resolve_location("/new-path", "https://example.com") == (
            "https://example.com/new-path"
        )

    def test_relative_path(self):
        assert resolve_location("new-path", "https://example.com") == (
            "https://example.com/new-path"
        )

    def test_absolute_url(self):
        assert resolve_location("https://www.example.com/x", "https://example.com") == (
            "https://www.example.com/x"
        )

    def test_protocol_relative(self):
        assert resolve_location("//cdn.example.com/x", "https://example.com") == (
            "https://cdn.example.com/x"
        )
