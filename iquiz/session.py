"""
session.py
======================

1 つのトピックを解き進めるクイズセッション（状態機械）。

状態遷移:

    ANSWERING --select_answer(i)--> ANSWERING   [selection := i]
    ANSWERING --submit()----------> REVIEWING   [正解なら score += 1]
    REVIEWING --advance()---------> ANSWERING   [次の問題がある場合]
    REVIEWING --advance()---------> FINISHED    [最後の問題だった場合]
    FINISHED  --(操作)------------> InvalidStateError

- 前の問題へ戻る遷移は存在しない
- score の加算は ANSWERING → REVIEWING の遷移時に 1 問につき 1 回だけ
- フェーズ違いの呼び出しは UI 側でも防ぐが、ここでも必ず拒否する

UI (app.py / ui.py) は phase / position / selection / score を描画し、
ユーザー操作をこのクラスのメソッドに渡すだけにする。
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from .models import Question, Topic

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
#  例外
# ----------------------------------------------------------------------
class QuizError(Exception):
    """クイズセッションの例外の基底クラス"""


class EmptyTopicError(QuizError):
    """問題が 1 問も無いトピックでセッションを開始しようとした"""


class InvalidStateError(QuizError):
    """現在のフェーズでは許可されていない操作"""


class AnswerOutOfRangeError(QuizError, IndexError):
    """選択肢の範囲外の index が指定された"""


class NoSelectionError(QuizError):
    """選択肢を選ばずに submit した（REJECT ポリシー時）"""


# ----------------------------------------------------------------------
#  値オブジェクト
# ----------------------------------------------------------------------
class Phase(enum.Enum):
    ANSWERING = "answering"
    REVIEWING = "reviewing"
    FINISHED = "finished"


class Correctness(enum.Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    # 正解マーカーが解釈できず判定不能
    INDETERMINATE = "indeterminate"


class UnansweredPolicy(enum.Enum):
    """
    未選択のまま submit されたときの扱い。

    REJECT       : NoSelectionError を送出する（既定）
    FIRST_ANSWER : 先頭の選択肢 (index 0) を選んだものとして扱う
    """

    REJECT = "reject"
    FIRST_ANSWER = "first_answer"


class FinalScore(NamedTuple):
    score: int
    total: int


@dataclass(frozen=True)
class AnswerRecord:
    """1 問ごとの解答結果（完了画面の一覧表示用）"""

    position: int
    question_id: str
    selection: int
    correctness: Correctness


def judge(question: Question, selection: Optional[int]) -> Correctness:
    """選択した index の正誤を判定する。"""
    correct = question.correct_index
    if correct is None:
        return Correctness.INDETERMINATE
    if selection is not None and selection == correct:
        return Correctness.CORRECT
    return Correctness.INCORRECT


# ----------------------------------------------------------------------
#  QuizSession
# ----------------------------------------------------------------------
class QuizSession:
    """
    トピック 1 つ分の進行状態を保持するクラス。

    主な操作:
    - select_answer(): 選択肢を選ぶ（何度でも上書き可）
    - submit(): 解答を確定し、正誤を判定する
    - advance(): 次の問題へ（最後なら完了）
    - current_question() / is_correct() / final_score(): 状態参照
    """

    def __init__(
        self,
        topic: Topic,
        unanswered_policy: UnansweredPolicy = UnansweredPolicy.REJECT,
    ):
        if not topic.questions:
            raise EmptyTopicError(f"topic {topic.title!r} has no questions")

        self._topic = topic
        self._policy = unanswered_policy
        self._position = 0
        self._selection: Optional[int] = None
        self._score = 0
        self._phase = Phase.ANSWERING
        self._results: List[AnswerRecord] = []

    # ------------------------------------------------------------
    # 状態参照
    # ------------------------------------------------------------
    @property
    def topic(self) -> Topic:
        return self._topic

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def position(self) -> int:
        return self._position

    @property
    def selection(self) -> Optional[int]:
        return self._selection

    @property
    def score(self) -> int:
        return self._score

    @property
    def total(self) -> int:
        return len(self._topic.questions)

    @property
    def unanswered_policy(self) -> UnansweredPolicy:
        return self._policy

    @property
    def results(self) -> List[AnswerRecord]:
        return list(self._results)

    def progress_ratio(self) -> float:
        """解答を確定した問題の割合 (0.0〜1.0)"""
        return len(self._results) / float(self.total)

    def _require(self, *phases: Phase) -> None:
        if self._phase not in phases:
            allowed = ", ".join(p.name for p in phases)
            raise InvalidStateError(
                f"operation requires phase {allowed}, current phase is {self._phase.name}"
            )

    # ------------------------------------------------------------
    # 操作
    # ------------------------------------------------------------
    def current_question(self) -> Question:
        self._require(Phase.ANSWERING, Phase.REVIEWING)
        return self._topic.questions[self._position]

    def select_answer(self, index: int) -> None:
        """
        選択肢を選ぶ。submit 前なら何度でも上書きできる（最後の選択が有効）。
        範囲外の index は AnswerOutOfRangeError、int 以外は TypeError で拒否し、選択状態は変えない。
        """
        self._require(Phase.ANSWERING)
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"answer index must be an int, got {index!r}")
        answers = self._topic.questions[self._position].answers
        if not 0 <= index < len(answers):
            raise AnswerOutOfRangeError(
                f"answer index {index} out of range for {len(answers)} answers"
            )
        self._selection = index

    def submit(self) -> Correctness:
        """
        解答を確定して REVIEWING へ進む。

        正解マーカーが解釈でき、選択と一致した場合のみ score を 1 加算する。
        2 回目の submit はフェーズチェックで弾かれるので二重加算は起きない。
        """
        self._require(Phase.ANSWERING)

        if self._selection is None:
            if self._policy is UnansweredPolicy.REJECT:
                raise NoSelectionError("submit called without a selected answer")
            # 互換動作: 未選択は先頭の選択肢として扱う
            self._selection = 0

        question = self._topic.questions[self._position]
        result = judge(question, self._selection)
        if result is Correctness.CORRECT:
            self._score += 1

        self._results.append(
            AnswerRecord(
                position=self._position,
                question_id=question.id,
                selection=self._selection,
                correctness=result,
            )
        )
        self._phase = Phase.REVIEWING
        logger.debug(
            "topic=%r q=%d selection=%d result=%s score=%d",
            self._topic.title, self._position, self._selection, result.value, self._score,
        )
        return result

    def advance(self) -> Phase:
        """次の問題へ進む。最後の問題なら FINISHED（以降は変更不可）。"""
        self._require(Phase.REVIEWING)

        if self._position + 1 < self.total:
            self._position += 1
            self._selection = None
            self._phase = Phase.ANSWERING
        else:
            self._phase = Phase.FINISHED
            logger.info(
                "topic=%r finished score=%d/%d", self._topic.title, self._score, self.total
            )
        return self._phase

    def is_correct(self) -> Correctness:
        """REVIEWING 中の問題の正誤。判定不能なら INDETERMINATE。"""
        self._require(Phase.REVIEWING)
        return judge(self._topic.questions[self._position], self._selection)

    def final_score(self) -> FinalScore:
        self._require(Phase.FINISHED)
        return FinalScore(self._score, self.total)
