from __future__ import annotations

import json
from pathlib import Path

import pytest

from iquiz.config import (
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_SOURCE_URL,
    AppConfig,
    ConfigError,
)
from iquiz.session import UnansweredPolicy
from iquiz.settings import SettingsStore


@pytest.fixture
def no_toml(tmp_path: Path) -> Path:
    return tmp_path / "missing.toml"


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.source_url == DEFAULT_SOURCE_URL
        assert cfg.refresh_interval == DEFAULT_REFRESH_INTERVAL == 60
        assert cfg.unanswered_policy is UnansweredPolicy.REJECT

    def test_load_without_sources_uses_defaults(self, no_toml: Path) -> None:
        assert AppConfig.load(toml_path=no_toml, environ={}) == AppConfig()

    def test_layering(self, tmp_path: Path) -> None:
        toml_path = tmp_path / "config.toml"
        toml_path.write_text(
            "[app]\n"
            'source_url = "https://toml.example/q.json"\n'
            "refresh_interval = 30\n"
            'unanswered_policy = "first_answer"\n'
            'theme = "dark"\n',
            encoding="utf-8",
        )
        environ = {"IQUIZ_REFRESH_INTERVAL": "45"}
        settings = {"source_url": "https://saved.example/q.json"}

        cfg = AppConfig.load(toml_path=toml_path, settings=settings, environ=environ)

        assert cfg.source_url == "https://saved.example/q.json"
        assert cfg.refresh_interval == 45
        assert cfg.unanswered_policy is UnansweredPolicy.FIRST_ANSWER
        assert cfg.theme == "dark"

    def test_broken_toml(self, tmp_path: Path) -> None:
        toml_path = tmp_path / "config.toml"
        toml_path.write_text("[app\nsource_url = ", encoding="utf-8")
        with pytest.raises(ConfigError):
            AppConfig.load(toml_path=toml_path, environ={})

    @pytest.mark.parametrize("url", ["", "ftp://example.com/q.json", "not a url", "http://"])
    def test_rejects_bad_url(self, url: str) -> None:
        with pytest.raises(ConfigError):
            AppConfig(source_url=url)

    @pytest.mark.parametrize("interval", [0, -1, "soon", None])
    def test_rejects_bad_interval(self, interval) -> None:
        with pytest.raises(ConfigError):
            AppConfig.from_dict({"refresh_interval": interval})

    def test_unknown_policy(self) -> None:
        with pytest.raises(ConfigError):
            AppConfig.from_dict({"unanswered_policy": "guess"})

    @pytest.mark.parametrize("timeout", ["slow", 0, -2.5, float("nan"), None])
    def test_rejects_bad_request_timeout(self, timeout) -> None:
        with pytest.raises(ConfigError, match="request timeout"):
            AppConfig.from_dict({"request_timeout": timeout})

    def test_request_timeout_from_toml(self, tmp_path: Path) -> None:
        toml_path = tmp_path / "config.toml"
        toml_path.write_text('[app]\nrequest_timeout = "3.5"\n', encoding="utf-8")
        assert AppConfig.load(toml_path=toml_path, environ={}).request_timeout == 3.5

    def test_bad_key_falls_back_to_lower_layer(self, tmp_path: Path) -> None:
        toml_path = tmp_path / "config.toml"
        toml_path.write_text("[app]\nrefresh_interval = 30\n", encoding="utf-8")
        environ = {"IQUIZ_REFRESH_INTERVAL": "abc"}
        settings = {"source_url": "https://saved.example/q.json"}
        errors: list = []

        cfg = AppConfig.load(
            toml_path=toml_path, settings=settings, environ=environ, errors=errors
        )

        assert cfg.source_url == "https://saved.example/q.json"
        assert cfg.refresh_interval == 30
        assert len(errors) == 1
        assert errors[0].startswith("refresh_interval:")

    def test_bad_key_without_error_list_raises(self, no_toml: Path) -> None:
        with pytest.raises(ConfigError):
            AppConfig.load(toml_path=no_toml, environ={"IQUIZ_REFRESH_INTERVAL": "abc"})

    def test_broken_toml_collected_and_other_layers_kept(self, tmp_path: Path) -> None:
        toml_path = tmp_path / "config.toml"
        toml_path.write_text("[app\nsource_url = ", encoding="utf-8")
        errors: list = []

        cfg = AppConfig.load(
            toml_path=toml_path,
            settings={"refresh_interval": 15},
            environ={"IQUIZ_AUTO_REFRESH": "off"},
            errors=errors,
        )

        assert cfg.refresh_interval == 15
        assert cfg.auto_refresh is False
        assert cfg.source_url == DEFAULT_SOURCE_URL
        assert len(errors) == 1

    def test_with_settings_returns_new_config(self) -> None:
        cfg = AppConfig()
        new = cfg.with_settings(" https://new.example/q.json ", "90")
        assert new.source_url == "https://new.example/q.json"
        assert new.refresh_interval == 90
        assert cfg.source_url == DEFAULT_SOURCE_URL


class TestSettingsStore:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert SettingsStore(tmp_path / "settings.json").load() == {}

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "data" / "settings.json")
        store.save("https://example.com/q.json", 120)

        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw["version"] == 1
        assert "updated_at" in raw
        assert store.load() == {"source_url": "https://example.com/q.json", "refresh_interval": 120}

    def test_save_validates(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "settings.json")
        with pytest.raises(ConfigError):
            store.save("https://example.com/q.json", 0)
        assert not store.path.exists()

    def test_corrupt_file_is_ignored(self, tmp_path: Path, caplog) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsStore(path).load() == {}
        assert "ignoring unreadable settings file" in caplog.text

    def test_unknown_keys_dropped(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"refresh_interval": 5, "theme": "dark"}), encoding="utf-8")
        assert SettingsStore(path).load() == {"refresh_interval": 5}

    def test_feeds_app_config(self, tmp_path: Path, no_toml: Path) -> None:
        store = SettingsStore(tmp_path / "settings.json")
        store.save("https://example.com/q.json", 15)
        cfg = AppConfig.load(toml_path=no_toml, settings=store.load(), environ={})
        assert cfg.refresh_interval == 15
        assert cfg.source_url == "https://example.com/q.json"
