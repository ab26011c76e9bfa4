"""Tests for configuration models and file/env/CLI composition."""

import json

import pytest

from InlineImages.core import DEFAULT_MAX_BYTES
from InlineImages.errors import ConfigError
from InlineImages.settings import InlineConfig, load_config


class TestDefaults:
    def test_defaults(self):
        cfg = load_config(environ={})

        assert cfg.max_bytes == DEFAULT_MAX_BYTES
        assert cfg.fetch_remote is True
        assert cfg.workers == 4
        assert cfg.root is None
        assert cfg.http.timeout_s == 30
        assert cfg.http.max_redirects == 5
        assert cfg.http.user_agent.startswith("InlineImages/")
        assert cfg.logging.level == "INFO"

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigError):
            load_config(cli_overrides={"bogus": 1}, environ={})

    @pytest.mark.parametrize(
        "overrides",
        [{"max_bytes": 0}, {"workers": 0}, {"http": {"timeout_s": 0}}, {"http": {"max_redirects": -1}}],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigError):
            load_config(cli_overrides=overrides, environ={})


class TestFileLoading:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "inline.yaml"
        path.write_text(
            "max_bytes: 2mb\nworkers: 2\nhttp:\n  timeout_s: 5\nlogging:\n  level: debug\n",
            encoding="utf-8",
        )

        cfg = load_config(path, environ={})

        assert cfg.max_bytes == 2 * 1024 * 1024
        assert cfg.workers == 2
        assert cfg.http.timeout_s == 5
        assert cfg.logging.level == "DEBUG"

    def test_json_file(self, tmp_path):
        path = tmp_path / "inline.json"
        path.write_text(json.dumps({"fetch_remote": False}), encoding="utf-8")

        assert load_config(path, environ={}).fetch_remote is False

    def test_empty_yaml_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")

        assert load_config(path, environ={}) == InlineConfig()

    @pytest.mark.parametrize(
        "name, content",
        [
            ("broken.yaml", "max_bytes: [unclosed"),
            ("broken.json", "{not json"),
            ("list.yaml", "- a\n- b\n"),
            ("config.toml", "max_bytes = 1"),
        ],
    )
    def test_bad_files(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "absent.yaml", environ={})


class TestPrecedence:
    def test_env_overrides_file_and_cli_overrides_env(self, tmp_path):
        path = tmp_path / "inline.yaml"
        path.write_text("workers: 2\nhttp:\n  timeout_s: 5\n  max_redirects: 1\n", encoding="utf-8")
        environ = {
            "INLINE_IMAGES_WORKERS": "6",
            "INLINE_IMAGES_HTTP__TIMEOUT_S": "7.5",
            "INLINE_IMAGES_FETCH_REMOTE": "false",
            "UNRELATED": "1",
        }

        cfg = load_config(path, cli_overrides={"workers": 8, "http": {"max_redirects": None}}, environ=environ)

        assert cfg.workers == 8
        assert cfg.http.timeout_s == 7.5
        assert cfg.http.max_redirects == 1
        assert cfg.fetch_remote is False

    def test_env_size_string(self):
        cfg = load_config(environ={"INLINE_IMAGES_MAX_BYTES": "512kb"})

        assert cfg.max_bytes == 512 * 1024

    def test_custom_prefix(self):
        cfg = load_config(env_prefix="IMGS_", environ={"IMGS_WORKERS": "3", "INLINE_IMAGES_WORKERS": "9"})

        assert cfg.workers == 3

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("INLINE_IMAGES_HTTP__MAX_REDIRECTS", "9")

        assert load_config().http.max_redirects == 9


def test_config_hash_is_stable():
    assert InlineConfig().config_hash() == InlineConfig().config_hash()
    assert InlineConfig().config_hash() != InlineConfig(workers=2).config_hash()
