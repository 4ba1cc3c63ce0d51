"""Tests for upstream path resolution."""

import pytest

from core.exceptions import MissingPathError
from core.router import PathResolver


@pytest.fixture
def resolver():
    return PathResolver("/api", "path")


class TestResolve:
    """Tests for PathResolver.resolve."""

    def test_joins_segment_sequence(self, resolver):
        assert resolver.resolve(["admin", "usuarios", "42"], "/api/whatever") == "admin/usuarios/42"

    def test_accepts_single_string_segment(self, resolver):
        assert resolver.resolve("auth/login", "/api/auth/login") == "auth/login"

    def test_falls_back_to_raw_url(self, resolver):
        assert resolver.resolve(None, "/api/auth/login?foo=bar") == "auth/login"

    def test_fallback_without_leading_slash(self, resolver):
        assert resolver.resolve(None, "api/admin/preguntas") == "admin/preguntas"

    def test_empty_segments_fall_back_to_url(self, resolver):
        assert resolver.resolve("", "/api/admin/usuarios") == "admin/usuarios"
        assert resolver.resolve([], "/api/admin/usuarios") == "admin/usuarios"

    def test_url_outside_prefix_keeps_its_path(self, resolver):
        assert resolver.resolve(None, "/other/thing") == "other/thing"

    def test_similar_prefix_is_not_stripped(self, resolver):
        assert resolver.resolve(None, "/apix/thing") == "apix/thing"

    @pytest.mark.parametrize("raw_url", ["/api/", "/api", "/api/?foo=bar", "", "/?x=1"])
    def test_missing_path_raises(self, resolver, raw_url):
        with pytest.raises(MissingPathError) as exc_info:
            resolver.resolve(None, raw_url, {"foo": "bar"})

        assert exc_info.value.raw_url == raw_url
        assert exc_info.value.query == {"foo": "bar"}
        assert exc_info.value.status_code == 400

    def test_custom_prefix(self):
        resolver = PathResolver("/proxy/v1/")
        assert resolver.resolve(None, "/proxy/v1/auth/login") == "auth/login"

    def test_same_path_regardless_of_query_order(self, resolver):
        first = resolver.resolve(None, "/api/admin/preguntas?nivel=mid&q=java")
        second = resolver.resolve(None, "/api/admin/preguntas?q=java&nivel=mid")
        assert first == second == "admin/preguntas"


class TestForwardedParams:
    """Tests for routing key removal."""

    def test_routing_key_removed(self, resolver):
        items = [("path", "admin"), ("path", "usuarios"), ("page", "2")]
        assert resolver.forwarded_params(items) == [("page", "2")]

    def test_multi_valued_params_preserved(self, resolver):
        items = [("tag", "a"), ("tag", "b"), ("q", "x")]
        assert resolver.forwarded_params(items) == items

    def test_order_independent_as_set(self, resolver):
        first = resolver.forwarded_params([("q", "java"), ("nivel", "mid"), ("path", "x")])
        second = resolver.forwarded_params([("path", "x"), ("nivel", "mid"), ("q", "java")])
        assert set(first) == set(second) == {("q", "java"), ("nivel", "mid")}

    def test_custom_routing_key(self):
        resolver = PathResolver("/api", "slug")
        assert resolver.forwarded_params([("slug", "a"), ("path", "b")]) == [("path", "b")]
