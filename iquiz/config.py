"""
config.py
=========

アプリ全体で利用する設定値を一元管理する。
カタログの取得元 URL、自動更新間隔、タイムアウト、未選択 submit の扱いなど
すべてこのクラスを通じて取得する。

設定の優先順位（後勝ち）:
1. AppConfig の既定値
2. ルートの config.toml の [app] テーブル
3. 環境変数 IQUIZ_SOURCE_URL / IQUIZ_REFRESH_INTERVAL / IQUIZ_AUTO_REFRESH
4. 設定画面で保存した値 (data/settings.json, SettingsStore)

本ファイルは app.py と tools/check_catalog.py の共通設定でもある。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import toml

from .session import UnansweredPolicy

# ------------------------------------------------------------
# 基本パス定義
# ------------------------------------------------------------

ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
CONFIG_TOML_PATH = ROOT_DIR / "config.toml"

DEFAULT_SOURCE_URL = "http://tednewardsandbox.site44.com/questions.json"
DEFAULT_REFRESH_INTERVAL = 60

# 設定画面から保存される（data/settings.json に永続化される）キー
PERSISTED_KEYS = ("source_url", "refresh_interval")


class ConfigError(ValueError):
    """設定値が不正"""


def validate_source_url(url: str) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"source URL must be an http(s) URL, got {url!r}")
    return url


def validate_refresh_interval(value: Any) -> int:
    try:
        interval = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"refresh interval must be an integer, got {value!r}") from e
    if interval < 1:
        raise ConfigError(f"refresh interval must be >= 1 second, got {interval}")
    return interval


def validate_request_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"request timeout must be a number, got {value!r}") from e
    if not timeout > 0:
        raise ConfigError(f"request timeout must be > 0 seconds, got {value!r}")
    return timeout


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"expected a boolean, got {value!r}")


def _parse_policy(value: Any) -> UnansweredPolicy:
    try:
        return UnansweredPolicy(value)
    except ValueError as e:
        raise ConfigError(f"unknown unanswered_policy {value!r}") from e


# キーごとの検証関数。不正な値は ConfigError
_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "source_url": lambda v: validate_source_url(str(v)),
    "refresh_interval": validate_refresh_interval,
    "request_timeout": validate_request_timeout,
    "auto_refresh": _parse_bool,
    "unanswered_policy": _parse_policy,
    "theme": str,
}


# ------------------------------------------------------------
# AppConfig
# ------------------------------------------------------------

@dataclass(frozen=True)
class AppConfig:
    """
    アプリ設定クラス。

    - カタログ取得元 URL と自動更新間隔（永続化されるのはこの 2 つだけ）
    - HTTP タイムアウト
    - 未選択のまま submit したときのポリシー
    - UI テーマ
    """

    # ---------- 永続化される設定 ----------
    source_url: str = DEFAULT_SOURCE_URL
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL

    # ---------- 動作設定 ----------
    request_timeout: float = 10.0
    auto_refresh: bool = True
    unanswered_policy: UnansweredPolicy = UnansweredPolicy.REJECT
    theme: str = "light"

    def __post_init__(self):
        validate_source_url(self.source_url)
        validate_refresh_interval(self.refresh_interval)

    # ============================================================
    # 読み込み
    # ============================================================

    @classmethod
    def load(
        cls,
        toml_path: Optional[Path] = None,
        settings: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
        errors: Optional[List[str]] = None,
    ) -> "AppConfig":
        """
        既定値 → config.toml → 環境変数 → 保存済み設定 の順に重ねて AppConfig を作る。

        errors にリストを渡すと、不正な値があってもそのキーだけ無視し
        （下の層の値が残る）、メッセージを errors に追加する。
        errors を省略した場合は最初の不正な値で ConfigError。
        """
        layers: List[Dict[str, Any]] = []
        try:
            layers.append(_read_toml_app_table(toml_path or CONFIG_TOML_PATH))
        except ConfigError as e:
            if errors is None:
                raise
            errors.append(str(e))
        layers.append(_read_environ(os.environ if environ is None else environ))
        if settings:
            layers.append({k: settings[k] for k in PERSISTED_KEYS if k in settings})

        kwargs: Dict[str, Any] = {}
        for layer in layers:
            kwargs.update(_parse_values(layer, errors))
        return cls(**kwargs)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "AppConfig":
        return cls(**_parse_values(values, None))

    def with_settings(self, source_url: str, refresh_interval: Any) -> "AppConfig":
        """設定画面で変更された 2 項目を反映した新しい AppConfig を返す。"""
        return replace(
            self,
            source_url=validate_source_url(source_url),
            refresh_interval=validate_refresh_interval(refresh_interval),
        )


# ============================================================
# 内部関数
# ============================================================

def _parse_values(values: Dict[str, Any], errors: Optional[List[str]]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    for key, value in values.items():
        parse = _PARSERS.get(key)
        if parse is None:
            continue
        try:
            parsed[key] = parse(value)
        except ConfigError as e:
            if errors is None:
                raise
            errors.append(f"{key}: {e}")
    return parsed


def _read_toml_app_table(path: Path) -> Dict[str, Any]:
    """
    config.toml の [app] テーブルを読む。
    ファイルが無い場合は空 dict。壊れている場合は ConfigError。
    """
    if not path.exists():
        return {}
    try:
        cfg = toml.load(str(path))
    except toml.TomlDecodeError as e:
        raise ConfigError(f"could not parse {path}: {e}") from e
    app = cfg.get("app")
    return dict(app) if isinstance(app, dict) else {}


def _read_environ(environ: Dict[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    url = environ.get("IQUIZ_SOURCE_URL")
    if url:
        values["source_url"] = url
    interval = environ.get("IQUIZ_REFRESH_INTERVAL")
    if interval:
        values["refresh_interval"] = interval
    auto = environ.get("IQUIZ_AUTO_REFRESH")
    if auto:
        values["auto_refresh"] = auto
    return values
