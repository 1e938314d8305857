"""
app.py
======================

iQuiz（Streamlit）エントリーポイント。

特徴:
- トピック一覧 → 問題 → 解答 → 完了 の画面遷移
- カタログはリモート JSON から取得し、一定間隔で自動更新（同時取得は 1 つまで）
- 設定画面で取得元 URL と更新間隔を変更・保存、Check Now で即時取得
- 取得失敗時は前のカタログを残したまま画面にエラーを表示

CatalogStore と RefreshScheduler はサーバープロセスに 1 組だけ作り、
全ブラウザセッションで共有する（st.cache_resource）。
QuizSession と AppConfig はブラウザセッションごと（st.session_state）。

前提:
- config.toml / 環境変数 / data/settings.json は無くても既定値で動く
- 起動: streamlit run app.py
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import streamlit as st

from iquiz.catalog import (
    CatalogError,
    CatalogStore,
    RefreshInProgressError,
    scheduled_refresh,
)
from iquiz.config import AppConfig, ConfigError
from iquiz.logging_config import setup_logger
from iquiz.refresh import RefreshScheduler
from iquiz.session import (
    EmptyTopicError,
    NoSelectionError,
    Phase,
    QuizError,
    QuizSession,
)
from iquiz.settings import SettingsStore
from iquiz.ui import (
    apply_theme,
    render_answer_view,
    render_finished_view,
    render_question_view,
    render_settings_form,
    render_topic_list,
)

logger = logging.getLogger("iquiz.app")


# ----------------------------------------------------------------------
#  アプリ設定読み込み
# ----------------------------------------------------------------------
def get_settings_store() -> SettingsStore:
    if "settings_store" not in st.session_state:
        st.session_state["settings_store"] = SettingsStore()
    return st.session_state["settings_store"]  # type: ignore[return-value]


def load_app_config() -> AppConfig:
    """
    AppConfig をセッションに保持して返す。
    不正な設定値はその項目だけ下の層の値（最終的には既定値）で起動し、画面に警告を出す。
    """
    if "app_config" in st.session_state:
        return st.session_state["app_config"]

    errors: List[str] = []
    cfg = AppConfig.load(settings=get_settings_store().load(), errors=errors)
    if errors:
        logger.error("invalid configuration values ignored: %s", "; ".join(errors))
        st.session_state["config_warning"] = "; ".join(errors)

    st.session_state["app_config"] = cfg
    return cfg


# ----------------------------------------------------------------------
#  共有ランタイム（CatalogStore + RefreshScheduler）
# ----------------------------------------------------------------------
@st.cache_resource
def get_catalog_runtime() -> Tuple[CatalogStore, RefreshScheduler]:
    """
    プロセス全体で 1 組だけの CatalogStore と RefreshScheduler を返す。

    設定画面の変更は作り直さずに store.set_source_url() / scheduler.reschedule() で反映する。
    """
    # 不正な値の警告は load_app_config() がセッションごとに出す
    cfg = AppConfig.load(settings=SettingsStore().load(), errors=[])
    store = CatalogStore(source_url=cfg.source_url, timeout=cfg.request_timeout)
    scheduler = RefreshScheduler(
        lambda: scheduled_refresh(store),
        interval_seconds=cfg.refresh_interval,
    )
    if cfg.auto_refresh:
        scheduler.start()
    logger.info("catalog runtime created for %s", cfg.source_url)
    return store, scheduler


def get_catalog_store() -> CatalogStore:
    return get_catalog_runtime()[0]


def refresh_catalog(store: CatalogStore, report_success: bool = False) -> bool:
    """
    今すぐ 1 回取得する。取得できたら True。

    - 別の取得が実行中 → st.info
    - 取得失敗 → st.error（store.last_error にも記録済み）
    """
    try:
        with st.spinner("Fetching quizzes..."):
            topics = store.refresh()
    except RefreshInProgressError:
        st.info("A refresh is already in progress.")
        return False
    except CatalogError as e:
        st.error(f"Update failed: {e}")
        return False

    if report_success:
        st.success(f"Data fetched from the new source ({len(topics)} quizzes).")
    return True


# ----------------------------------------------------------------------
#  QuizSession / ページ遷移
# ----------------------------------------------------------------------
def get_quiz_session() -> Optional[QuizSession]:
    return st.session_state.get("quiz_session")


def end_quiz_session() -> None:
    st.session_state.pop("quiz_session", None)


def set_page(page: str) -> None:
    st.session_state["page"] = page


def get_page() -> str:
    return st.session_state.get("page", "home")


# ----------------------------------------------------------------------
#  ページ: トピック一覧
# ----------------------------------------------------------------------
def render_home_page() -> None:
    store = get_catalog_store()

    # まだ 1 度も取得していなければ同期的に取得する（失敗は下の一覧で表示）
    if store.last_updated is None and store.last_error is None:
        try:
            with st.spinner("Loading quizzes..."):
                store.refresh()
        except RefreshInProgressError:
            st.info("Quizzes are being loaded, try again in a moment.")
        except CatalogError:
            logger.warning("initial catalog load failed; showing last error")

    ui_result = render_topic_list(
        store.topics,
        last_error=store.last_error,
        last_updated=store.last_updated,
    )

    if ui_result["clicked_settings"]:
        set_page("settings")
        st.rerun()

    if ui_result["clicked_refresh"]:
        if refresh_catalog(store):
            st.rerun()

    topic_id = ui_result["selected_topic_id"]
    if topic_id is not None:
        topic = store.find_topic(topic_id)
        if topic is None:
            st.warning("That quiz is no longer available.")
            return
        try:
            session = QuizSession(topic, load_app_config().unanswered_policy)
        except EmptyTopicError as e:
            logger.warning("cannot start quiz: %s", e)
            st.warning(f"“{topic.title}” has no questions yet.")
            return
        st.session_state["quiz_session"] = session
        set_page("quiz")
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: クイズ
# ----------------------------------------------------------------------
def _back_to_list() -> None:
    end_quiz_session()
    set_page("home")
    st.rerun()


def render_quiz_main_page() -> None:
    session = get_quiz_session()
    if session is None:
        set_page("home")
        st.rerun()
        return

    try:
        if session.phase is Phase.ANSWERING:
            ui_result = render_question_view(session)
            if ui_result["selected_choice"] is not None:
                session.select_answer(ui_result["selected_choice"])
                st.rerun()
            if ui_result["clicked_submit"]:
                try:
                    session.submit()
                except NoSelectionError:
                    st.warning("Pick an answer first.")
                else:
                    st.rerun()
            if ui_result["clicked_back"]:
                _back_to_list()

        elif session.phase is Phase.REVIEWING:
            ui_result = render_answer_view(session)
            if ui_result["clicked_next"]:
                session.advance()
                st.rerun()
            if ui_result["clicked_back"]:
                _back_to_list()

        else:
            ui_result = render_finished_view(session)
            if ui_result["clicked_retry"]:
                st.session_state["quiz_session"] = QuizSession(
                    session.topic, session.unanswered_policy
                )
                st.rerun()
            if ui_result["clicked_back"]:
                _back_to_list()

    except QuizError as e:
        # 契約違反。セッションは修復せず破棄して一覧へ戻す
        logger.error("quiz session error in phase %s: %s", session.phase.name, e)
        end_quiz_session()
        st.error(f"Something went wrong with this quiz: {e}")
        if st.button("Back to Quiz List", key="iq_back_err", use_container_width=True):
            set_page("home")
            st.rerun()


# ----------------------------------------------------------------------
#  ページ: 設定
# ----------------------------------------------------------------------
def apply_settings(cfg: AppConfig, new_cfg: AppConfig) -> None:
    """保存済み設定を共有ランタイムへ反映する。"""
    store, scheduler = get_catalog_runtime()
    if new_cfg.refresh_interval != cfg.refresh_interval:
        scheduler.reschedule(new_cfg.refresh_interval)
    if new_cfg.source_url != cfg.source_url:
        store.set_source_url(new_cfg.source_url)


def render_settings_page() -> None:
    cfg = load_app_config()
    ui_result = render_settings_form(cfg.source_url, cfg.refresh_interval)

    if ui_result["clicked_save"] or ui_result["clicked_check_now"]:
        try:
            new_cfg = cfg.with_settings(ui_result["source_url"], ui_result["refresh_interval"])
        except ConfigError as e:
            st.error(str(e))
            return

        if (new_cfg.source_url, new_cfg.refresh_interval) != (cfg.source_url, cfg.refresh_interval):
            get_settings_store().save(new_cfg.source_url, new_cfg.refresh_interval)
            st.session_state["app_config"] = new_cfg
            apply_settings(cfg, new_cfg)

        if ui_result["clicked_save"]:
            st.success("Settings saved.")

        if ui_result["clicked_check_now"]:
            refresh_catalog(get_catalog_store(), report_success=True)

    if ui_result["clicked_back"]:
        set_page("home")
        st.rerun()


# ----------------------------------------------------------------------
#  メイン
# ----------------------------------------------------------------------
def main() -> None:
    st.set_page_config(
        page_title="iQuiz",
        page_icon="❓",
        layout="centered",
    )
    setup_logger()

    cfg = load_app_config()
    apply_theme(cfg.theme)

    warning = st.session_state.pop("config_warning", None)
    if warning:
        st.warning(f"Invalid configuration values ignored: {warning}")

    page = get_page()

    if page == "quiz":
        render_quiz_main_page()
    elif page == "settings":
        render_settings_page()
    else:
        # デフォルトはトピック一覧
        set_page("home")
        render_home_page()


if __name__ == "__main__":
    main()
