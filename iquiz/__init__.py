"""
iquiz パッケージ
======================

このパッケージは、iQuiz クイズアプリの内部ロジックを提供する。

主な役割:
- データモデル（models）
- カタログ取得・アイコン決定・取得済みカタログの保持（catalog）
- クイズ進行の状態機械とスコア計算（session）
- カタログの定期再取得（refresh）
- 設定管理と永続化（config, settings）
- ロガー初期化（logging_config）
- UI コンポーネント（ui）

app.py は Streamlit UI のみを担当し、内部ロジックはすべて本パッケージから呼ぶ。
ui は streamlit / pandas を読み込むため、ここでは再エクスポートしない。
"""

from .catalog import (
    CatalogError,
    CatalogStore,
    RefreshInProgressError,
    fetch_catalog,
    icon_for,
    parse_catalog,
    scheduled_refresh,
)
from .config import AppConfig, ConfigError
from .models import Question, Topic
from .refresh import RefreshScheduler
from .session import (
    AnswerOutOfRangeError,
    Correctness,
    EmptyTopicError,
    FinalScore,
    InvalidStateError,
    NoSelectionError,
    Phase,
    QuizError,
    QuizSession,
    UnansweredPolicy,
)
from .settings import SettingsStore

__all__ = [
    "AppConfig",
    "ConfigError",
    "Question",
    "Topic",
    "CatalogError",
    "CatalogStore",
    "RefreshInProgressError",
    "scheduled_refresh",
    "fetch_catalog",
    "icon_for",
    "parse_catalog",
    "RefreshScheduler",
    "QuizSession",
    "QuizError",
    "EmptyTopicError",
    "InvalidStateError",
    "AnswerOutOfRangeError",
    "NoSelectionError",
    "Phase",
    "Correctness",
    "UnansweredPolicy",
    "FinalScore",
    "SettingsStore",
]
