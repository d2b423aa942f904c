"""
面談IDの採番
"""

import time
from typing import Callable, Iterable, Optional


class MeetingIdGenerator:
    """
    単調増加する面談IDの採番器

    現在時刻（ミリ秒）と既存IDの最大値のうち大きい方を基準に採番するため、
    同一ミリ秒内の連続作成や一括インポートでも重複しません。
    """

    def __init__(self, existing_ids: Iterable[int] = (), clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last_id = max(existing_ids, default=0)

    def reserve(self, ids: Iterable[int]) -> None:
        """既存IDを登録し、以降の採番がそれより大きくなるようにする"""
        self._last_id = max([self._last_id, *ids])

    def next_id(self) -> int:
        candidate = max(int(self._clock() * 1000), self._last_id + 1)
        self._last_id = candidate
        return candidate
