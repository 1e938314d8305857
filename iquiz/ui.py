"""
ui.py
======================

Streamlit ベースの UI コンポーネントをまとめたモジュール。

責務:
- iPhone Safari を主ターゲットとしたレイアウトとスタイル
- トピック一覧の描画
- 問題画面（問題文・選択肢・Submit）
- 解答画面（自分の解答・正解・正誤バッジ・Next）
- 完了画面（スコア・問題ごとの結果表）
- 設定フォーム（取得元 URL・更新間隔・Check Now）

ここでは「見た目」と「ユーザー操作の入力」だけを扱い、
セッションの状態遷移やカタログ取得は app.py 側に任せる。

各関数は「何が押されたか」を dict で返す。
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from .models import Topic
from .session import Correctness, QuizSession, UnansweredPolicy

# ----------------------------------------------------------------------
#  テーマ定義（iPhone Safari 向け）
# ----------------------------------------------------------------------


THEMES: Dict[str, Dict[str, str]] = {
    "light": {
        "bg": "#ffffff",
        "text": "#1c1c1e",
        "surface": "#f2f2f7",
        "surface_alt": "#ffffff",
        "border": "#d1d1d6",
        "primary": "#007aff",  # iOS ブルー
        "correct": "#34c759",
        "incorrect": "#ff3b30",
        "unknown": "#ff9500",
    },
    "dark": {
        "bg": "#000000",
        "text": "#f5f5f7",
        "surface": "#1c1c1e",
        "surface_alt": "#2c2c2e",
        "border": "#3a3a3c",
        "primary": "#0a84ff",
        "correct": "#30d158",
        "incorrect": "#ff453a",
        "unknown": "#ff9f0a",
    },
}

# SF Symbols 名 → 画面表示用の絵文字
ICON_EMOJI: Dict[str, str] = {
    "function": "➗",
    "leaf.arrow.circlepath": "🔬",
    "star.circle": "⭐",
    "questionmark.circle": "❓",
}

CORRECTNESS_LABELS: Dict[Correctness, str] = {
    Correctness.CORRECT: "Correct!",
    Correctness.INCORRECT: "Incorrect",
    Correctness.INDETERMINATE: "Correct answer unknown",
}


def icon_emoji(icon_name: str) -> str:
    return ICON_EMOJI.get(icon_name, ICON_EMOJI["questionmark.circle"])


# ----------------------------------------------------------------------
#  CSS 生成
# ----------------------------------------------------------------------
def _generate_css(theme: Dict[str, str]) -> str:
    """テーマに応じたグローバル CSS を生成する。"""

    return f"""
    <style>
    html, body {{
        background: {theme['bg']};
        color: {theme['text']};
        -webkit-text-size-adjust: 100%;
        touch-action: manipulation;
        font-family: -apple-system, BlinkMacSystemFont, "SF Pro Text",
                     "Helvetica Neue", Arial, sans-serif;
    }}

    .iq-topic-row {{
        display: flex;
        align-items: center;
        gap: 0.75rem;
        padding: 0.6rem 0.2rem;
    }}

    .iq-topic-icon {{
        font-size: 1.6rem;
        color: {theme['primary']};
    }}

    .iq-topic-title {{
        font-weight: 600;
        font-size: 1.05rem;
    }}

    .iq-topic-desc {{
        font-size: 0.9rem;
        color: {theme['text']}99;
    }}

    .iq-question-box {{
        background: {theme['surface_alt']};
        padding: 1rem;
        border-radius: 12px;
        border: 1px solid {theme['border']};
        font-size: 1.3rem;
        line-height: 1.5;
        margin: 0.5rem 0 0.75rem 0;
    }}

    .iq-badge {{
        display: inline-block;
        padding: 0.2rem 0.7rem;
        border-radius: 999px;
        font-weight: 600;
        font-size: 0.9rem;
    }}

    .iq-badge-correct {{
        background: {theme['correct']}22;
        border: 1px solid {theme['correct']};
    }}

    .iq-badge-incorrect {{
        background: {theme['incorrect']}22;
        border: 1px solid {theme['incorrect']};
    }}

    .iq-badge-indeterminate {{
        background: {theme['unknown']}22;
        border: 1px dashed {theme['unknown']};
    }}

    .iq-progress {{
        font-size: 0.8rem;
        color: {theme['text']}aa;
    }}

    .iq-safe-bottom {{
        height: 80px; /* iPhone Safari 下部 UI に埋もれないための余白 */
    }}
    </style>
    """


# ----------------------------------------------------------------------
#  テーマ関連
# ----------------------------------------------------------------------
def apply_theme(default: str = "light") -> str:
    """セッションに theme キーを用意して CSS を注入し、テーマキーを返す。"""
    if "theme" not in st.session_state:
        st.session_state["theme"] = default
    theme_key = st.session_state.get("theme", default)
    if theme_key not in THEMES:
        theme_key = "light"
        st.session_state["theme"] = "light"
    st.markdown(_generate_css(THEMES[theme_key]), unsafe_allow_html=True)
    return theme_key


# ----------------------------------------------------------------------
#  トピック一覧
# ----------------------------------------------------------------------
def render_topic_list(
    topics: List[Topic],
    *,
    last_error: Optional[str] = None,
    last_updated: Optional[float] = None,
) -> Dict[str, Any]:
    """
    トピック一覧を描画する。

    戻り値:
        {
          "selected_topic_id": Optional[str],  # 押されたトピック
          "clicked_settings": bool,
          "clicked_refresh": bool,
        }
    """
    selected_topic_id: Optional[str] = None

    col_title, col_settings = st.columns([3, 1])
    with col_title:
        st.markdown("## iQuiz")
    with col_settings:
        clicked_settings = st.button("Settings", key="iq_settings", use_container_width=True)

    if last_error:
        st.error(f"Could not update quizzes: {last_error}")

    if not topics:
        st.info("No quizzes loaded yet.")

    for topic in topics:
        col_icon, col_body = st.columns([1, 5])
        with col_icon:
            st.markdown(
                f"<div class='iq-topic-icon'>{icon_emoji(topic.icon_name)}</div>",
                unsafe_allow_html=True,
            )
        with col_body:
            st.markdown(
                "<div>"
                f"<div class='iq-topic-title'>{html.escape(topic.title)}</div>"
                f"<div class='iq-topic-desc'>{html.escape(topic.description)}</div>"
                "</div>",
                unsafe_allow_html=True,
            )
            label = f"Start ({topic.question_count} questions)"
            if st.button(label, key=f"iq_topic_{topic.id}", use_container_width=True):
                selected_topic_id = topic.id

    st.write("")
    clicked_refresh = st.button("Reload quizzes", key="iq_reload", use_container_width=True)

    if last_updated is not None:
        stamp = datetime.fromtimestamp(last_updated).strftime("%H:%M:%S")
        st.caption(f"Last updated {stamp}")

    return {
        "selected_topic_id": selected_topic_id,
        "clicked_settings": clicked_settings,
        "clicked_refresh": clicked_refresh,
    }


# ----------------------------------------------------------------------
#  問題画面
# ----------------------------------------------------------------------
def _render_progress(session: QuizSession) -> None:
    st.markdown(
        f"<div class='iq-progress'>{html.escape(session.topic.title)} · "
        f"Question {session.position + 1} of {session.total}</div>",
        unsafe_allow_html=True,
    )
    st.progress(session.progress_ratio())


def render_question_view(session: QuizSession) -> Dict[str, Any]:
    """
    ANSWERING フェーズの画面。

    戻り値:
        {
          "selected_choice": Optional[int],  # 押された選択肢
          "clicked_submit": bool,
          "clicked_back": bool,              # 一覧へ戻る
        }
    """
    q = session.current_question()
    selected_choice: Optional[int] = None

    _render_progress(session)
    st.markdown(
        f"<div class='iq-question-box'>{html.escape(q.text)}</div>",
        unsafe_allow_html=True,
    )

    for idx, choice_text in enumerate(q.answers):
        # 選択中の選択肢だけ primary で強調する
        kind = "primary" if session.selection == idx else "secondary"
        if st.button(
            choice_text,
            key=f"iq_choice_{session.position}_{idx}",
            type=kind,
            use_container_width=True,
        ):
            selected_choice = idx

    # REJECT ポリシーでは未選択のまま Submit させない
    submit_disabled = (
        session.selection is None
        and session.unanswered_policy is UnansweredPolicy.REJECT
    )
    clicked_submit = st.button(
        "Submit",
        key=f"iq_submit_{session.position}",
        disabled=submit_disabled,
        use_container_width=True,
    )
    clicked_back = st.button("Back to Quiz List", key="iq_back_q", use_container_width=True)

    st.markdown("<div class='iq-safe-bottom'></div>", unsafe_allow_html=True)
    return {
        "selected_choice": selected_choice,
        "clicked_submit": clicked_submit,
        "clicked_back": clicked_back,
    }


# ----------------------------------------------------------------------
#  解答画面
# ----------------------------------------------------------------------
def render_answer_view(session: QuizSession) -> Dict[str, Any]:
    """
    REVIEWING フェーズの画面。判定不能 (INDETERMINATE) は正解・不正解と別の見た目にする。

    戻り値:
        { "clicked_next": bool, "clicked_back": bool }
    """
    q = session.current_question()
    result = session.is_correct()

    _render_progress(session)
    st.markdown(
        f"<div class='iq-question-box'>{html.escape(q.text)}</div>",
        unsafe_allow_html=True,
    )

    st.markdown(
        f"<span class='iq-badge iq-badge-{result.value}'>"
        f"{CORRECTNESS_LABELS[result]}</span>",
        unsafe_allow_html=True,
    )

    if session.selection is not None:
        st.write(f"Your answer: **{q.answers[session.selection]}**")

    correct_text = q.correct_answer_text
    if correct_text is not None:
        st.write(f"Correct answer: **{correct_text}**")
    else:
        st.warning("This question has no valid correct answer, so it is not scored.")

    st.caption(f"Score so far: {session.score} / {session.total}")

    is_last = session.position + 1 >= session.total
    clicked_next = st.button(
        "Finish" if is_last else "Next",
        key=f"iq_next_{session.position}",
        type="primary",
        use_container_width=True,
    )
    clicked_back = st.button("Back to Quiz List", key="iq_back_a", use_container_width=True)

    st.markdown("<div class='iq-safe-bottom'></div>", unsafe_allow_html=True)
    return {"clicked_next": clicked_next, "clicked_back": clicked_back}


# ----------------------------------------------------------------------
#  完了画面
# ----------------------------------------------------------------------
def results_frame(session: QuizSession) -> pd.DataFrame:
    """問題ごとの結果を DataFrame にする（完了画面の表）。"""
    questions = session.topic.questions
    rows = []
    for r in session.results:
        q = questions[r.position]
        rows.append(
            {
                "#": r.position + 1,
                "Question": q.text,
                "Your answer": q.answers[r.selection],
                "Correct answer": q.correct_answer_text or "-",
                "Result": CORRECTNESS_LABELS[r.correctness],
            }
        )
    return pd.DataFrame(rows, columns=["#", "Question", "Your answer", "Correct answer", "Result"])


def render_finished_view(session: QuizSession) -> Dict[str, Any]:
    """
    FINISHED フェーズの画面。

    戻り値:
        { "clicked_back": bool, "clicked_retry": bool }
    """
    final = session.final_score()

    st.markdown("## Finished!")
    st.markdown(f"### Your score: {final.score} out of {final.total}")

    df = results_frame(session)
    if not df.empty:
        st.dataframe(df, hide_index=True, use_container_width=True)

    col_back, col_retry = st.columns(2)
    with col_back:
        clicked_back = st.button("Back to Quiz List", key="iq_back_f", use_container_width=True)
    with col_retry:
        clicked_retry = st.button("Try Again", key="iq_retry", use_container_width=True)

    return {"clicked_back": clicked_back, "clicked_retry": clicked_retry}


# ----------------------------------------------------------------------
#  設定フォーム
# ----------------------------------------------------------------------
def render_settings_form(source_url: str, refresh_interval: int) -> Dict[str, Any]:
    """
    設定画面のフォーム。

    戻り値:
        {
          "source_url": str,
          "refresh_interval": int,
          "clicked_save": bool,
          "clicked_check_now": bool,
          "clicked_back": bool,
          "theme": str,
        }
    """
    st.markdown("## Settings")

    with st.form("iq_settings_form"):
        new_url = st.text_input("Source URL", value=source_url)
        new_interval = st.number_input(
            "Refresh interval (seconds)",
            min_value=1,
            value=int(refresh_interval),
            step=1,
        )
        col_save, col_check = st.columns(2)
        with col_save:
            clicked_save = st.form_submit_button("Save", use_container_width=True)
        with col_check:
            clicked_check_now = st.form_submit_button("Check Now", use_container_width=True)

    theme_options = list(THEMES.keys())
    current = st.session_state.get("theme", "light")
    selected_theme = st.radio(
        "Theme",
        theme_options,
        index=theme_options.index(current) if current in theme_options else 0,
        horizontal=True,
        format_func=lambda k: k.capitalize(),
    )
    st.session_state["theme"] = selected_theme

    clicked_back = st.button("Back to Quiz List", key="iq_back_s", use_container_width=True)

    return {
        "source_url": new_url.strip(),
        "refresh_interval": int(new_interval),
        "clicked_save": clicked_save,
        "clicked_check_now": clicked_check_now,
        "clicked_back": clicked_back,
        "theme": selected_theme,
    }
