from __future__ import annotations

from conftest import make_topic
from iquiz.session import QuizSession
from iquiz.ui import ICON_EMOJI, icon_emoji, results_frame


def test_results_frame_lists_answered_questions() -> None:
    topic = make_topic(["1", "abc"])
    session = QuizSession(topic)
    session.select_answer(1)
    session.submit()
    session.advance()
    session.select_answer(2)
    session.submit()

    df = results_frame(session)

    assert list(df.columns) == ["#", "Question", "Your answer", "Correct answer", "Result"]
    assert df["#"].tolist() == [1, 2]
    assert df["Your answer"].tolist() == ["A1", "A2"]
    assert df["Correct answer"].tolist() == ["A1", "-"]
    assert df["Result"].tolist() == ["Correct!", "Correct answer unknown"]


def test_results_frame_empty_before_first_submit() -> None:
    df = results_frame(QuizSession(make_topic(["0"])))
    assert df.empty


def test_icon_emoji_falls_back_to_placeholder() -> None:
    assert icon_emoji("function") == ICON_EMOJI["function"]
    assert icon_emoji("book.circle") == ICON_EMOJI["questionmark.circle"]
