"""
models.py
======================

クイズカタログのデータモデル。

- Topic    : クイズのトピック（タイトル・説明・アイコン・問題リスト）
- Question : 1 問分（問題文・選択肢・正解マーカー）

カタログ JSON のキーとの対応:

{
  "title": "Mathematics",
  "desc": "Did you pass the third grade?",
  "iconName": "function",            # 任意
  "questions": [
    { "text": "What is 2+2?", "answer": "1", "answers": ["4", "22", "An irrational number", "Nobody knows"] }
  ]
}

デコード後はイミュータブルな値として扱い、Session からは読むだけ。
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

DEFAULT_ICON = "questionmark.circle"


def _new_id() -> str:
    return uuid.uuid4().hex


# ----------------------------------------------------------------------
#  Question
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Question:
    """
    1 問分のデータ。

    answer は元データのまま文字列で保持する。
    正解の選択肢番号は correct_index で解釈し、解釈できない場合は None。
    """

    text: str
    answers: Tuple[str, ...]
    answer: str
    id: str = field(default_factory=_new_id)

    @property
    def correct_index(self) -> Optional[int]:
        """
        正解マーカーを整数に変換した値。

        - 数値として読めない ("abc" など) → None
        - 選択肢の範囲外 → None
        0 に黙って丸めることはしない。
        """
        try:
            idx = int(self.answer.strip())
        except ValueError:
            return None
        if 0 <= idx < len(self.answers):
            return idx
        return None

    @property
    def correct_answer_text(self) -> Optional[str]:
        idx = self.correct_index
        if idx is None:
            return None
        return self.answers[idx]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        """カタログ JSON の 1 問分から Question を作る。"""
        if not isinstance(data, dict):
            raise TypeError(f"question must be an object, got {type(data).__name__}")

        text = data.get("text")
        answers = data.get("answers")
        marker = data.get("answer")

        if not isinstance(text, str):
            raise ValueError("question is missing 'text'")
        if not isinstance(answers, list) or not all(isinstance(a, str) for a in answers):
            raise ValueError(f"question {text!r} has no valid 'answers' list")
        # 数値で来た場合も文字列として保持する（bool は除外）
        if isinstance(marker, int) and not isinstance(marker, bool):
            marker = str(marker)
        if not isinstance(marker, str):
            raise ValueError(f"question {text!r} is missing 'answer'")

        kwargs: Dict[str, Any] = {
            "text": text,
            "answers": tuple(answers),
            "answer": marker,
        }
        if isinstance(data.get("id"), str):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "answer": self.answer,
            "answers": list(self.answers),
        }


# ----------------------------------------------------------------------
#  Topic
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Topic:
    """クイズのトピック。questions はカタログ上の順番を保持する。"""

    title: str
    description: str
    questions: Tuple[Question, ...]
    icon_name: str = DEFAULT_ICON
    id: str = field(default_factory=_new_id)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def indeterminate_count(self) -> int:
        """正解マーカーが解釈できない問題の数"""
        return sum(1 for q in self.questions if q.correct_index is None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Topic":
        """
        カタログ JSON の 1 要素から Topic を作る。

        iconName が無い場合はプレースホルダーのアイコンになる。
        必須キーが欠けている・型が違う場合は ValueError / TypeError。
        """
        if not isinstance(data, dict):
            raise TypeError(f"topic must be an object, got {type(data).__name__}")

        title = data.get("title")
        desc = data.get("desc")
        raw_questions = data.get("questions")

        if not isinstance(title, str):
            raise ValueError("topic is missing 'title'")
        if not isinstance(desc, str):
            raise ValueError(f"topic {title!r} is missing 'desc'")
        if not isinstance(raw_questions, list):
            raise ValueError(f"topic {title!r} has no 'questions' list")

        icon = data.get("iconName")
        kwargs: Dict[str, Any] = {
            "title": title,
            "description": desc,
            "questions": tuple(Question.from_dict(q) for q in raw_questions),
            "icon_name": icon if isinstance(icon, str) and icon else DEFAULT_ICON,
        }
        if isinstance(data.get("id"), str):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "desc": self.description,
            "iconName": self.icon_name,
            "questions": [q.to_dict() for q in self.questions],
        }
