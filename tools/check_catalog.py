"""
tools/check_catalog.py
===========================

クイズカタログの取得元 URL を確認するスクリプト。
設定画面の「Check Now」と同じ取得・デコードを行い、結果を標準出力に表示する。

主な役割:
- AppConfig から取得元 URL を決める（--url で上書き可）
- fetch_catalog() でカタログを取得・検証
- トピックごとにアイコン・問題数・正解マーカーが不正な問題数を表示

終了コード:
- 0: 取得・デコード成功
- 1: 取得・デコード失敗（CatalogError）
- 2: 設定が不正（ConfigError）
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from iquiz.catalog import CatalogError, fetch_catalog  # noqa: E402
from iquiz.config import AppConfig, ConfigError  # noqa: E402
from iquiz.logging_config import setup_logger  # noqa: E402
from iquiz.models import Topic  # noqa: E402
from iquiz.settings import SettingsStore  # noqa: E402

logger = logging.getLogger("iquiz.tools.check_catalog")


# -------------------------------------------------------------
#  表示
# -------------------------------------------------------------
def summarize(topics: List[Topic]) -> List[dict]:
    """トピックごとの要約（--json 出力と表形式出力の共通データ）"""
    return [
        {
            "title": t.title,
            "icon": t.icon_name,
            "questions": t.question_count,
            "indeterminate": t.indeterminate_count,
        }
        for t in topics
    ]


def print_summary(url: str, rows: List[dict]) -> None:
    print(f"{len(rows)} topics from {url}")
    for row in rows:
        line = f"  - {row['title']} [{row['icon']}]: {row['questions']} questions"
        if row["indeterminate"]:
            line += f" ({row['indeterminate']} without a valid answer)"
        if row["questions"] == 0:
            line += " (EMPTY: cannot be played)"
        print(line)


# -------------------------------------------------------------
#  CLI エントリーポイント
# -------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="iQuiz のカタログ取得元を確認するスクリプト",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="確認する URL（省略時は設定済みの取得元）",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP タイムアウト秒数（省略時は設定値）",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="結果を JSON で出力する",
    )
    args = parser.parse_args(argv)

    setup_logger(level="WARNING")

    try:
        cfg = AppConfig.load(settings=SettingsStore().load())
        if args.url:
            cfg = cfg.with_settings(args.url, cfg.refresh_interval)
    except ConfigError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 2

    timeout = args.timeout if args.timeout is not None else cfg.request_timeout

    try:
        topics = fetch_catalog(cfg.source_url, timeout=timeout)
    except CatalogError as e:
        logger.error("%s", e)
        print(f"catalog check failed: {e}", file=sys.stderr)
        return 1

    rows = summarize(topics)
    if args.json:
        print(json.dumps({"url": cfg.source_url, "topics": rows}, ensure_ascii=False, indent=2))
    else:
        print_summary(cfg.source_url, rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
