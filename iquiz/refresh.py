"""
refresh.py
======================

カタログの定期再取得スケジューラ。

- 一定間隔（秒）で job を呼び出すデーモンスレッド
- 同時に実行される job は最大 1 つ（実行中のティックは何もしない）
- stop() でキャンセル、reschedule() で間隔変更（実行中のスレッドにも即反映）
- job の例外はログに残し、スレッドは止めない

stop / wake のイベントは start() ごとに新しく作る。
stop() の join がタイムアウトしても、古いスレッドは自分のイベントを見て終了する。
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)


def validate_interval(interval_seconds: int) -> int:
    if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, int):
        raise ValueError(f"refresh interval must be an integer, got {interval_seconds!r}")
    if interval_seconds < 1:
        raise ValueError(f"refresh interval must be >= 1 second, got {interval_seconds}")
    return interval_seconds


class RefreshScheduler:
    """
    job を interval_seconds ごとに実行するクラス。

    主な機能:
    - start() / stop(): スレッドの開始・停止
    - trigger(): 今すぐ 1 回実行（実行中なら False を返して何もしない）
    - reschedule(): 間隔を変更する（待機中のスレッドは新しい間隔で待ち直す）
    """

    def __init__(self, job: Callable[[], object], interval_seconds: int = 60):
        self._job = job
        self._interval = validate_interval(interval_seconds)
        self._in_flight = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        # (stop, wake): 現在のスレッド専用のイベント
        self._events: Optional[Tuple[threading.Event, threading.Event]] = None

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    # ------------------------------------------------------------
    # 実行
    # ------------------------------------------------------------
    def trigger(self) -> bool:
        """
        job を 1 回実行する。

        別の job が実行中なら何もせず False を返す。
        """
        if not self._in_flight.acquire(blocking=False):
            logger.debug("refresh skipped: a fetch is already in flight")
            return False
        try:
            self._job()
        except Exception:
            logger.exception("refresh job failed")
        finally:
            self._in_flight.release()
        return True

    def _run(self, stop: threading.Event, wake: threading.Event) -> None:
        while not stop.is_set():
            woke = wake.wait(timeout=self._interval)
            if stop.is_set():
                break
            if woke:
                # reschedule() された。新しい間隔で待ち直す
                wake.clear()
                continue
            self.trigger()

    # ------------------------------------------------------------
    # ライフサイクル
    # ------------------------------------------------------------
    def start(self) -> None:
        if self.running:
            return
        stop, wake = threading.Event(), threading.Event()
        self._events = (stop, wake)
        self._thread = threading.Thread(
            target=self._run, args=(stop, wake), name="iquiz-refresh", daemon=True
        )
        self._thread.start()
        logger.info("catalog refresh scheduled every %d seconds", self._interval)

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        if self._events is not None:
            stop, wake = self._events
            stop.set()
            wake.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None
        self._events = None

    def reschedule(self, interval_seconds: int) -> None:
        self._interval = validate_interval(interval_seconds)
        if self._events is not None:
            self._events[1].set()
        logger.info("catalog refresh interval changed to %d seconds", self._interval)
