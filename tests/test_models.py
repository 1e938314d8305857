from __future__ import annotations

import pytest

from iquiz.models import DEFAULT_ICON, Question, Topic


def test_question_from_dict_keeps_marker_as_string() -> None:
    q = Question.from_dict({"text": "2+2?", "answer": "1", "answers": ["3", "4", "5"]})
    assert q.answer == "1"
    assert q.answers == ("3", "4", "5")
    assert q.correct_index == 1
    assert q.correct_answer_text == "4"


def test_question_accepts_numeric_marker() -> None:
    q = Question.from_dict({"text": "2+2?", "answer": 2, "answers": ["3", "4", "5"]})
    assert q.answer == "2"
    assert q.correct_index == 2


@pytest.mark.parametrize("marker", ["abc", "", "1.5", "3", "-1"])
def test_unresolvable_marker_has_no_correct_index(marker: str) -> None:
    q = Question(text="?", answers=("a", "b", "c"), answer=marker)
    assert q.correct_index is None
    assert q.correct_answer_text is None


def test_marker_with_whitespace_parses() -> None:
    q = Question(text="?", answers=("a", "b"), answer=" 1 ")
    assert q.correct_index == 1


@pytest.mark.parametrize(
    "data",
    [
        {"answer": "0", "answers": ["a"]},
        {"text": "?", "answer": "0"},
        {"text": "?", "answer": "0", "answers": "a,b"},
        {"text": "?", "answers": ["a"]},
        {"text": "?", "answer": True, "answers": ["a"]},
    ],
)
def test_malformed_question_raises(data) -> None:
    with pytest.raises(ValueError):
        Question.from_dict(data)


def test_question_from_non_dict_raises_type_error() -> None:
    with pytest.raises(TypeError):
        Question.from_dict(["text", "answer"])


def test_topic_from_dict_maps_desc_and_defaults_icon(catalog_payload) -> None:
    topic = Topic.from_dict(catalog_payload[0])
    assert topic.title == "Science!"
    assert topic.description == "Because SCIENCE!"
    assert topic.icon_name == DEFAULT_ICON
    assert topic.question_count == 1


def test_topic_keeps_server_icon(catalog_payload) -> None:
    topic = Topic.from_dict(catalog_payload[2])
    assert topic.icon_name == "book.circle"
    assert topic.indeterminate_count == 1


def test_generated_ids_are_unique(catalog_payload) -> None:
    a = Topic.from_dict(catalog_payload[1])
    b = Topic.from_dict(catalog_payload[1])
    assert a.id != b.id
    assert len({q.id for q in a.questions}) == 2


def test_topic_to_dict_uses_wire_keys(catalog_payload) -> None:
    topic = Topic.from_dict(catalog_payload[1])
    data = topic.to_dict()
    assert data["desc"] == "Avengers, Assemble!"
    assert data["iconName"] == DEFAULT_ICON
    assert data["questions"][1] == catalog_payload[1]["questions"][1]


def test_topic_missing_questions_raises() -> None:
    with pytest.raises(ValueError):
        Topic.from_dict({"title": "x", "desc": "y"})


def test_topic_is_immutable(two_question_topic) -> None:
    with pytest.raises(AttributeError):
        two_question_topic.title = "changed"
