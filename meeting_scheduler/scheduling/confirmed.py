"""
確定済み面談の抽出

基準時刻に対して「これから」または「今日進行中」の確定済み面談を
時系列順に返します。開始から1時間が経過した面談は一覧から外れます。
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import List, Optional, Sequence, Tuple

from ..models import Meeting, is_valid_time

logger = logging.getLogger(__name__)

# 開始後もこの時間は一覧に表示し続ける
VISIBLE_AFTER_START = timedelta(hours=1)


def _local_naive(now: datetime) -> datetime:
    """タイムゾーン付きの時刻はローカル時刻（naive）に揃える"""
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def _parse_confirmed(meeting: Meeting) -> Optional[Tuple[date, Optional[time]]]:
    try:
        confirmed_date = date.fromisoformat(meeting.confirmed_date)
    except ValueError:
        logger.warning(f"確定日の形式が不正なため除外します: id={meeting.id} date={meeting.confirmed_date!r}")
        return None

    start_time = None
    if meeting.confirmed_start_time:
        if is_valid_time(meeting.confirmed_start_time):
            start_time = time.fromisoformat(meeting.confirmed_start_time)
        else:
            logger.warning(f"開始時刻の形式が不正です（未設定として扱います）: id={meeting.id}")

    return confirmed_date, start_time


def is_active(confirmed_date: date, start_time: Optional[time], now: datetime) -> bool:
    """確定日程が基準時刻から見て表示対象か"""
    today = now.date()
    if confirmed_date > today:
        return True
    if confirmed_date < today:
        return False
    if start_time is None:
        return True
    return now <= datetime.combine(confirmed_date, start_time) + VISIBLE_AFTER_START


def select_active_confirmed(
    meetings: Sequence[Meeting],
    now: Optional[datetime] = None
) -> List[Meeting]:
    """
    表示対象の確定済み面談を開始日時の昇順で返す

    Args:
        meetings: 面談一覧
        now: 基準時刻（省略時は現在のローカル時刻）
    """
    now = _local_naive(now or datetime.now())

    active: List[Tuple[datetime, Meeting]] = []
    for meeting in meetings:
        if not meeting.is_confirmed() or not meeting.confirmed_date:
            continue

        parsed = _parse_confirmed(meeting)
        if parsed is None:
            continue

        confirmed_date, start_time = parsed
        if not is_active(confirmed_date, start_time, now):
            continue

        starts_at = datetime.combine(confirmed_date, start_time or time.min)
        active.append((starts_at, meeting))

    active.sort(key=lambda item: item[0])
    return [meeting for _, meeting in active]
