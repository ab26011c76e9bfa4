"""Tests for size-capped local file loading."""

import os

import pytest

from InlineImages.core import Failure, Payload, ReasonCode
from InlineImages.local import load_local_file


def test_file_at_exact_limit_succeeds(write_image):
    path = write_image("exact.png", b"x" * 64)

    result = load_local_file(path, 64)

    assert isinstance(result, Payload)
    assert result.data == b"x" * 64
    assert result.name_hint == str(path)


def test_file_one_byte_over_limit_reports_actual_size(write_image):
    path = write_image("big.png", b"x" * 65)

    result = load_local_file(path, 64)

    assert isinstance(result, Failure)
    assert result.reason is ReasonCode.TOO_LARGE
    assert result.size == 65
    assert result.describe() == "File too large (65 bytes)"


def test_missing_file(tmp_path):
    result = load_local_file(tmp_path / "nope.png", 1024)

    assert isinstance(result, Failure)
    assert result.reason is ReasonCode.NOT_FOUND
    assert result.describe() == "File not found"


def test_missing_parent_is_not_found(write_image):
    path = write_image("file.png")

    result = load_local_file(path / "child.png", 1024)

    assert result.reason is ReasonCode.NOT_FOUND


def test_directory_is_not_a_file(tmp_path):
    result = load_local_file(tmp_path, 1024)

    assert isinstance(result, Failure)
    assert result.reason is ReasonCode.NOT_FILE
    assert result.describe() == "Not a file"


def test_empty_file_is_loaded(write_image):
    path = write_image("empty.png", b"")

    result = load_local_file(path, 1024)

    assert isinstance(result, Payload)
    assert result.size == 0


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions")
def test_unreadable_file_is_read_error(write_image):
    path = write_image("locked.png")
    path.chmod(0)
    try:
        result = load_local_file(path, 1024)
    finally:
        path.chmod(0o644)

    assert isinstance(result, Failure)
    assert result.reason is ReasonCode.READ_ERROR
    assert isinstance(result.error, PermissionError)
    assert result.describe().startswith("Read error: ")


def test_open_failure_is_read_error(write_image, monkeypatch):
    path = write_image("flaky.png")

    def _boom(self, *args, **kwargs):
        raise OSError("disk on fire")

    monkeypatch.setattr(type(path), "open", _boom)
    result = load_local_file(path, 1024)

    assert result.reason is ReasonCode.READ_ERROR
    assert result.describe() == "Read error: disk on fire"


@pytest.mark.parametrize("name", ["a\x00.png", "x" * 300 + ".png"])
def test_unrepresentable_path_is_not_found(tmp_path, name):
    result = load_local_file(tmp_path / name, 1024)

    assert isinstance(result, Failure)
    assert result.reason is ReasonCode.NOT_FOUND


def test_open_value_error_is_read_error(write_image, monkeypatch):
    path = write_image("odd.png")

    def _boom(self, *args, **kwargs):
        raise ValueError("embedded null byte")

    monkeypatch.setattr(type(path), "open", _boom)
    result = load_local_file(path, 1024)

    assert result.reason is ReasonCode.READ_ERROR
    assert result.describe() == "Read error: embedded null byte"
