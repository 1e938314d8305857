from __future__ import annotations

import json

import pytest

import check_catalog
from iquiz.catalog import CatalogError, parse_catalog
from iquiz.settings import SettingsStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("IQUIZ_SOURCE_URL", raising=False)
    monkeypatch.delenv("IQUIZ_REFRESH_INTERVAL", raising=False)
    # keep a local data/settings.json out of the test
    monkeypatch.setattr(
        check_catalog, "SettingsStore", lambda: SettingsStore(tmp_path / "settings.json")
    )


def test_prints_summary(monkeypatch, capsys, catalog_payload) -> None:
    seen = {}

    def fake_fetch(url, timeout):
        seen["url"] = url
        seen["timeout"] = timeout
        return parse_catalog(catalog_payload)

    monkeypatch.setattr(check_catalog, "fetch_catalog", fake_fetch)

    code = check_catalog.main(["--url", "https://example.com/q.json", "--timeout", "2"])

    out = capsys.readouterr().out
    assert code == 0
    assert seen == {"url": "https://example.com/q.json", "timeout": 2.0}
    assert "3 topics from https://example.com/q.json" in out
    assert "Marvel Super Heroes [star.circle]: 2 questions" in out
    assert "History [book.circle]: 1 questions (1 without a valid answer)" in out


def test_json_output(monkeypatch, capsys, catalog_payload) -> None:
    monkeypatch.setattr(
        check_catalog, "fetch_catalog", lambda url, timeout: parse_catalog(catalog_payload)
    )

    assert check_catalog.main(["--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["url"] == "http://tednewardsandbox.site44.com/questions.json"
    assert data["topics"][0] == {
        "title": "Science!",
        "icon": "leaf.arrow.circlepath",
        "questions": 1,
        "indeterminate": 0,
    }


def test_fetch_failure_exit_code(monkeypatch, capsys) -> None:
    def failing(url, timeout):
        raise CatalogError("could not fetch catalog")

    monkeypatch.setattr(check_catalog, "fetch_catalog", failing)

    assert check_catalog.main([]) == 1
    assert "catalog check failed" in capsys.readouterr().err


def test_bad_url_exit_code(capsys) -> None:
    assert check_catalog.main(["--url", "ftp://nope"]) == 2
    assert "invalid configuration" in capsys.readouterr().err
