"""
settings.py
======================

data/settings.json の読み書きを担当するモジュール。

永続化するのは次の 2 つだけ:

{
  "version": 1,
  "updated_at": "1970-01-01T00:00:00Z",
  "source_url": "http://tednewardsandbox.site44.com/questions.json",
  "refresh_interval": 60
}

AppConfig.load(settings=store.load()) のように渡して使う。
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import (
    DATA_DIR,
    PERSISTED_KEYS,
    validate_refresh_interval,
    validate_source_url,
)

logger = logging.getLogger(__name__)


class SettingsStore:
    """
    設定ファイルのロード／セーブを行うクラス。

    - load(): 保存済みの設定を dict で返す（無ければ空 dict）
    - save(): 2 つの設定値を検証してから保存する
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        # 省略時は環境変数 IQUIZ_SETTINGS_PATH、それも無ければ data/settings.json
        if path is None:
            path = os.getenv("IQUIZ_SETTINGS_PATH") or DATA_DIR / "settings.json"
        self.path = Path(path)

    # ------------------------------------------------------------------
    # ロード / セーブ
    # ------------------------------------------------------------------
    def load(self) -> Dict[str, Any]:
        """
        settings.json を読み込む。

        - ファイルが無い → 空 dict
        - JSON が壊れている → 警告を出して空 dict（既定値で起動する）
        - 未知のキーは無視する
        """
        if not self.path.exists():
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable settings file %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("ignoring settings file %s: not a JSON object", self.path)
            return {}

        return {k: data[k] for k in PERSISTED_KEYS if k in data}

    def save(self, source_url: str, refresh_interval: int) -> Dict[str, Any]:
        """設定を保存する。更新日時を自動で進める。"""
        data = {
            "version": 1,
            "updated_at": _now_iso(),
            "source_url": validate_source_url(source_url),
            "refresh_interval": validate_refresh_interval(refresh_interval),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info("saved settings to %s", self.path)
        return data


# ----------------------------------------------------------------------
# ユーティリティ
# ----------------------------------------------------------------------
def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
