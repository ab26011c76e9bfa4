"""Tests for MIME classification, data URL encoding and the outcome types."""

import base64

import pytest

from InlineImages.core import (
    DEFAULT_MIME_TYPE,
    Failure,
    ReasonCode,
    Success,
    classify_mime,
    encode_data_url,
    parse_size,
)


class TestClassifyMime:
    def test_declared_image_type_beats_extension(self):
        assert classify_mime("image/webp", "/photos/cat.png") == "image/webp"

    def test_declared_type_parameters_are_dropped(self):
        assert classify_mime("image/svg+xml; charset=utf-8", None) == "image/svg+xml"

    def test_declared_type_is_case_insensitive_and_verbatim(self):
        assert classify_mime("IMAGE/PNG", None) == "IMAGE/PNG"

    def test_non_image_content_type_falls_back_to_extension(self):
        assert classify_mime("text/html", "banner.gif") == "image/gif"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("a.png", "image/png"),
            ("a.JPG", "image/jpeg"),
            ("a.jpeg", "image/jpeg"),
            ("a.gif", "image/gif"),
            ("a.webp", "image/webp"),
            ("a.bmp", "image/bmp"),
            ("favicon.ico", "image/x-icon"),
            ("icon.svg", "image/svg+xml"),
            ("a.avif", "image/avif"),
            ("archive.tar.PNG", "image/png"),
        ],
    )
    def test_extension_table(self, name, expected):
        assert classify_mime(None, name) == expected

    def test_hint_without_dot_is_its_own_extension(self):
        assert classify_mime(None, "png") == "image/png"

    @pytest.mark.parametrize("name", [None, "", "file.tiff", "/download"])
    def test_unknown_is_octet_stream(self, name):
        assert classify_mime(None, name) == DEFAULT_MIME_TYPE


def test_encode_data_url():
    data = b"\x00\x01binary"
    encoded = encode_data_url(data, "image/png")

    prefix, payload = encoded.split(",", 1)
    assert prefix == "data:image/png;base64"
    assert base64.b64decode(payload) == data


def test_encode_empty_payload():
    assert encode_data_url(b"", "image/gif") == "data:image/gif;base64,"


class TestFailureDescribe:
    @pytest.mark.parametrize(
        "failure, message",
        [
            (Failure(ReasonCode.REMOTE_TIMEOUT), "Request timed out"),
            (Failure(ReasonCode.REMOTE_REDIRECT_LOOP), "Redirect loop"),
            (
                Failure(ReasonCode.REMOTE_REDIRECT_NO_LOCATION),
                "Redirect without Location header",
            ),
            (Failure(ReasonCode.REMOTE_TOO_MANY_REDIRECTS), "Too many redirects"),
            (Failure(ReasonCode.REMOTE_HTTP_ERROR, status_code=404), "HTTP 404"),
            (
                Failure(ReasonCode.REMOTE_ERROR, error=ConnectionError("refused")),
                "Request failed: refused",
            ),
            (Failure(ReasonCode.READ_ERROR), "Read error: unknown"),
        ],
    )
    def test_messages(self, failure, message):
        assert failure.describe() == message

    def test_ok_flags(self):
        assert Success("data:image/png;base64,").ok is True
        assert Failure(ReasonCode.NOT_FOUND).ok is False


@pytest.mark.parametrize(
    "text, expected",
    [("512", 512), ("2kb", 2048), ("10MB", 10 * 1024 * 1024), ("1.5 mb", 1572864)],
)
def test_parse_size(text, expected):
    assert parse_size(text) == expected


@pytest.mark.parametrize("text", ["", "ten", "5tb"])
def test_parse_size_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_size(text)
