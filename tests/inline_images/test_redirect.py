"""Tests for manual redirect following.

Tests cover:
- Relative and absolute Location targets
- Redirect loops (self and cycles) without hanging
- Hop budget exhaustion
- Missing Location header
- Audit trail formatting
"""

import pytest

from InlineImages.errors import MissingLocationHeader, RedirectLoop, TooManyRedirects
from InlineImages.network.deadline import Deadline
from InlineImages.network.fetch import RemoteFetcher
from InlineImages.network.redirect import format_audit_trail, stream_with_redirects
from tests.fixtures.http_mocking import MockResponseBuilder

CDN = "https://cdn.example"


def _chain(image_server, length: int) -> None:
    for index in range(length):
        image_server.redirect(f"{CDN}/{index}", f"{CDN}/{index + 1}")
    image_server.image(f"{CDN}/{length}", b"end")


class TestStreamWithRedirects:
    def test_relative_location_resolved_against_current_url(self, image_server, mock_client):
        image_server.redirect(f"{CDN}/a/b/start.png", "../img/end.png", status=307)
        image_server.image(f"{CDN}/a/img/end.png", b"ok")

        with stream_with_redirects(
            mock_client, f"{CDN}/a/b/start.png", max_redirects=5, deadline=Deadline(30)
        ) as (response, trail):
            assert response.status_code == 200
            assert response.read() == b"ok"

        assert trail == [(f"{CDN}/a/b/start.png", 307), (f"{CDN}/a/img/end.png", 200)]

    def test_cross_host_redirect(self, image_server, mock_client):
        image_server.redirect(f"{CDN}/x.png", "https://mirror.example/x.png", status=308)
        image_server.image("https://mirror.example/x.png", b"mirror")

        payload = RemoteFetcher(mock_client, max_bytes=1024).fetch(f"{CDN}/x.png")

        assert payload.final_url == "https://mirror.example/x.png"

    def test_self_redirect_is_a_loop(self, image_server, mock_client):
        image_server.redirect(f"{CDN}/self.png", f"{CDN}/self.png")

        with pytest.raises(RedirectLoop):
            RemoteFetcher(mock_client, max_bytes=1024, max_redirects=50).fetch(f"{CDN}/self.png")

        assert image_server.hits[f"{CDN}/self.png"] == 1

    def test_cycle_is_a_loop(self, image_server, mock_client):
        image_server.redirect(f"{CDN}/a", f"{CDN}/b")
        image_server.redirect(f"{CDN}/b", f"{CDN}/a")

        with pytest.raises(RedirectLoop) as excinfo:
            RemoteFetcher(mock_client, max_bytes=1024, max_redirects=50).fetch(f"{CDN}/a")

        assert excinfo.value.chain == [f"{CDN}/a", f"{CDN}/b"]
        assert image_server.total_requests() == 2

    def test_budget_allows_exact_number_of_hops(self, image_server, mock_client):
        _chain(image_server, 2)

        payload = RemoteFetcher(mock_client, max_bytes=1024, max_redirects=2).fetch(f"{CDN}/0")

        assert payload.data == b"end"

    def test_budget_exhausted(self, image_server, mock_client):
        _chain(image_server, 3)

        with pytest.raises(TooManyRedirects):
            RemoteFetcher(mock_client, max_bytes=1024, max_redirects=2).fetch(f"{CDN}/0")

        assert image_server.hits[f"{CDN}/3"] == 0

    def test_zero_budget_rejects_any_redirect(self, image_server, mock_client):
        _chain(image_server, 1)

        with pytest.raises(TooManyRedirects):
            RemoteFetcher(mock_client, max_bytes=1024, max_redirects=0).fetch(f"{CDN}/0")

    def test_missing_location(self, image_server, mock_client):
        image_server.route(f"{CDN}/lost.png", MockResponseBuilder(302))

        with pytest.raises(MissingLocationHeader) as excinfo:
            RemoteFetcher(mock_client, max_bytes=1024).fetch(f"{CDN}/lost.png")

        assert excinfo.value.status == 302

    def test_redirect_body_is_discarded(self, image_server, mock_client):
        image_server.route(
            f"{CDN}/moved.png",
            MockResponseBuilder(301, b"<html>moved</html>").with_header("Location", f"{CDN}/img.png"),
        )
        image_server.image(f"{CDN}/img.png", b"IMG")

        payload = RemoteFetcher(mock_client, max_bytes=1024).fetch(f"{CDN}/moved.png")

        assert payload.data == b"IMG"


def test_format_audit_trail():
    trail = [("http://a", 301), ("http://b", 200)]
    assert format_audit_trail(trail) == "http://a (301) → http://b (200)"
