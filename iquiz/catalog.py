"""
catalog.py
===========================

リモートの JSON からクイズカタログ（Topic のリスト）を取得・デコードするモジュール。

目的:
- fetch_catalog(): URL から取得して Topic のリストを返す（失敗は CatalogError）
- icon_for(): タイトルからアイコン名を決めるルックアップテーブル
- CatalogStore: 最後に取得できたカタログを保持する
  （取得失敗時は前のカタログをそのまま残し、エラーを記録して呼び出し側へ伝える）
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests

from .models import DEFAULT_ICON, Topic

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# ----------------------------------------------------------------------
#  タイトル → アイコン名（既知のタイトルだけ上書きする）
# ----------------------------------------------------------------------
ICON_OVERRIDES: Dict[str, str] = {
    "Mathematics": "function",
    "Science!": "leaf.arrow.circlepath",
    "Marvel Super Heroes": "star.circle",
}


class CatalogError(Exception):
    """カタログの取得・デコードに失敗した"""


class RefreshInProgressError(CatalogError):
    """別の取得が実行中のため、今回の取得は行わなかった"""


def icon_for(title: str, server_icon: Optional[str] = None) -> str:
    """
    トピックのアイコン名を返す。

    優先順位:
    1. ICON_OVERRIDES に登録されたタイトル
    2. サーバーから渡された iconName
    3. プレースホルダー (DEFAULT_ICON)
    """
    if title in ICON_OVERRIDES:
        return ICON_OVERRIDES[title]
    if server_icon:
        return server_icon
    return DEFAULT_ICON


# ----------------------------------------------------------------------
#  デコード
# ----------------------------------------------------------------------
def parse_catalog(payload: Any) -> List[Topic]:
    """
    JSON 配列（json.loads 済み）を Topic のリストに変換する。
    1 要素でも壊れていればカタログ全体を CatalogError とする。
    """
    if not isinstance(payload, list):
        raise CatalogError(
            f"catalog must be a JSON array, got {type(payload).__name__}"
        )

    topics: List[Topic] = []
    for pos, item in enumerate(payload):
        try:
            data = dict(item) if isinstance(item, dict) else item
            if isinstance(data, dict):
                data["iconName"] = icon_for(data.get("title", ""), data.get("iconName"))
            topics.append(Topic.from_dict(data))
        except (TypeError, ValueError) as e:
            raise CatalogError(f"malformed topic at index {pos}: {e}") from e
    return topics


# ----------------------------------------------------------------------
#  取得
# ----------------------------------------------------------------------
def fetch_catalog(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> List[Topic]:
    """
    url から取得してデコードした Topic のリストを返す。

    ネットワークエラー・HTTP エラー・JSON 不正・構造不正はすべて CatalogError。
    """
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise CatalogError(f"could not fetch catalog from {url}: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise CatalogError(f"catalog from {url} is not valid JSON: {e}") from e

    topics = parse_catalog(payload)
    logger.info("fetched %d topics from %s", len(topics), url)
    return topics


# ----------------------------------------------------------------------
#  CatalogStore
# ----------------------------------------------------------------------
class CatalogStore:
    """
    最後に取得できたカタログを保持するクラス。

    - refresh() 成功時のみ topics を差し替える
    - 失敗時は topics を残したまま last_error を記録し、例外を再送出する
    - 取得は store 単位で同時に 1 つまで。実行中の refresh() は RefreshInProgressError
    - 取得中に source_url が変わった場合、古い URL の結果（成功・失敗とも）は捨てる
    - 定期更新スレッドと UI から同時に触られるのでロックで保護する
    """

    def __init__(
        self,
        source_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self._session = session
        self._lock = threading.Lock()
        self._fetching = threading.Lock()
        self._source_url = source_url
        self._topics: List[Topic] = []
        self._last_error: Optional[str] = None
        self._last_updated: Optional[float] = None

    @property
    def source_url(self) -> Optional[str]:
        with self._lock:
            return self._source_url

    def set_source_url(self, url: str) -> None:
        """取得元を切り替える。実行中の古い URL の取得結果は反映されなくなる。"""
        with self._lock:
            if url != self._source_url:
                logger.info("catalog source changed to %s", url)
            self._source_url = url

    @property
    def topics(self) -> List[Topic]:
        with self._lock:
            return list(self._topics)

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    @property
    def last_updated(self) -> Optional[float]:
        with self._lock:
            return self._last_updated

    @property
    def fetching(self) -> bool:
        return self._fetching.locked()

    def find_topic(self, topic_id: str) -> Optional[Topic]:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    def _is_stale(self, url: str) -> bool:
        with self._lock:
            return self._source_url is not None and url != self._source_url

    def refresh(self, url: Optional[str] = None) -> List[Topic]:
        """
        url（省略時は source_url）から取得して topics を差し替え、現在の topics を返す。

        - 別の取得が実行中 → RefreshInProgressError（何もしない）
        - 取得失敗 → last_error を記録して CatalogError
        - 取得中に source_url が変わった → 結果を捨てて現在の topics を返す
        """
        if url is None:
            url = self.source_url
        if url is None:
            raise ValueError("no catalog source URL configured")

        if not self._fetching.acquire(blocking=False):
            raise RefreshInProgressError("a catalog fetch is already in progress")
        try:
            try:
                topics = fetch_catalog(url, timeout=self.timeout, session=self._session)
            except CatalogError as e:
                if self._is_stale(url):
                    logger.info("ignoring failed fetch from previous source %s: %s", url, e)
                    return self.topics
                logger.error("catalog refresh failed: %s", e)
                with self._lock:
                    self._last_error = str(e)
                raise

            with self._lock:
                if self._source_url is not None and url != self._source_url:
                    logger.info(
                        "discarding catalog from %s: source is now %s", url, self._source_url
                    )
                    return list(self._topics)
                self._topics = topics
                self._last_error = None
                self._last_updated = time.time()
                return list(topics)
        finally:
            self._fetching.release()


def scheduled_refresh(store: CatalogStore) -> None:
    """
    定期更新スレッドから呼ぶ refresh。

    失敗は store.last_error に記録・ログ出力済みなので、ここでは例外を外に出さない。
    実行中の取得と重なった場合は何もしない。
    """
    try:
        store.refresh()
    except RefreshInProgressError:
        logger.debug("scheduled refresh skipped: fetch already in progress")
    except CatalogError as e:
        logger.debug("scheduled refresh failed: %s", e)
