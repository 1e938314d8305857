from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from iquiz.models import Question, Topic


# ====================
# Catalog Fixtures
# ====================

@pytest.fixture
def catalog_payload() -> List[Dict[str, Any]]:
    """Catalog in the wire format served by the quiz endpoint."""
    return [
        {
            "title": "Science!",
            "desc": "Because SCIENCE!",
            "questions": [
                {
                    "text": "What is fire?",
                    "answer": "1",
                    "answers": [
                        "One of the four classical elements",
                        "A magical reaction given to us by God",
                        "A band that hasn't yet been discovered",
                        "Fire! Fire! Fire! heh-heh",
                    ],
                }
            ],
        },
        {
            "title": "Marvel Super Heroes",
            "desc": "Avengers, Assemble!",
            "questions": [
                {
                    "text": "Who is Iron Man?",
                    "answer": "1",
                    "answers": ["Tony Stark", "Obadiah Stane", "A rock hit by Megadeth", "Nobody knows"],
                },
                {
                    "text": "Who founded the X-Men?",
                    "answer": "2",
                    "answers": ["Tony Stark", "Professor X", "The X-Institute", "Erik Lensherr"],
                },
            ],
        },
        {
            "title": "History",
            "desc": "Things that happened",
            "iconName": "book.circle",
            "questions": [
                {"text": "When?", "answer": "abc", "answers": ["Then", "Now"]},
            ],
        },
    ]


def make_topic(markers: List[str], answers_per_question: int = 3, title: str = "Test") -> Topic:
    """Topic whose questions use the given correct-answer markers."""
    questions = tuple(
        Question(
            text=f"Q{i + 1}",
            answers=tuple(f"A{j}" for j in range(answers_per_question)),
            answer=marker,
        )
        for i, marker in enumerate(markers)
    )
    return Topic(title=title, description="desc", questions=questions)


@pytest.fixture
def two_question_topic() -> Topic:
    # Q1 correct index 1, Q2 correct index 0
    return make_topic(["1", "0"])


# ====================
# HTTP Fakes
# ====================

class FakeResponse:
    def __init__(self, body: Any = None, status: int = 200, text: Optional[str] = None):
        self.status_code = status
        self._body = body
        self._text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class FakeHTTP:
    """Stands in for requests.Session: returns queued responses or raises queued errors."""

    def __init__(self, *results: Any):
        self.results = list(results)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, timeout: float = None) -> FakeResponse:
        self.calls.append({"url": url, "timeout": timeout})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_http():
    return FakeHTTP
