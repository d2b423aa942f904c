"""
予定サマリーの集計

日程調整中の面談の希望日程を日付別にまとめ、時間帯別の埋まり具合を算出します。
"""

from enum import Enum
from typing import Dict, List, Sequence

from ..models import Meeting, Schedule, SlotLabel, selectable_time_slots
from .overlap import overlaps


class OccupancyLevel(str, Enum):
    """時間帯の埋まり具合"""
    FREE = "free"            # 空き
    BOOKED = "booked"        # 予定あり
    CONFLICT = "conflict"    # 重複あり


def generate_schedule_summary(meetings: Sequence[Meeting]) -> Dict[str, List[Schedule]]:
    """
    面談一覧から日付別のスケジュールサマリーを生成

    確定済みの面談の希望日程は含めません。

    Returns:
        日付をキーとし、面談・希望順の並びを保ったスケジュール一覧
    """
    all_schedules: List[Schedule] = []

    for meeting in meetings:
        if meeting.is_confirmed():
            continue

        for index, option in enumerate(meeting.preferred_options):
            if not option.is_complete():
                continue
            all_schedules.append(Schedule(
                date=option.date,
                time_slot=option.time_slot,
                meeting_id=meeting.id,
                meeting_name=meeting.name,
                meeting_image=meeting.image,
                priority=index + 1,
                notes=meeting.notes,
                meeting_type=meeting.meeting_type,
                meeting_location=meeting.meeting_location
            ))

    # sorted は安定ソートなので同日内はスキャン順のまま
    all_schedules = sorted(all_schedules, key=lambda schedule: schedule.date)

    grouped_by_date: Dict[str, List[Schedule]] = {}
    for schedule in all_schedules:
        grouped_by_date.setdefault(schedule.date, []).append(schedule)

    return grouped_by_date


def grid_columns() -> List[str]:
    """占有表の列（終日を除く選択可能な時間帯）"""
    return [
        slot.value for slot in selectable_time_slots()
        if slot.value != SlotLabel.ALLDAY.value
    ]


def build_occupancy_grid(
    summary: Dict[str, List[Schedule]]
) -> Dict[str, Dict[str, List[Schedule]]]:
    """
    日付 × 時間帯の占有表を作成

    終日の希望はすべての列に、それ以外は時間範囲が重なる列に表示されます。
    """
    columns = grid_columns()
    grid: Dict[str, Dict[str, List[Schedule]]] = {}

    for date, schedules in summary.items():
        grid[date] = {
            column: [schedule for schedule in schedules if overlaps(schedule.time_slot, column)]
            for column in columns
        }

    return grid


def occupancy_level(schedules: Sequence[Schedule]) -> OccupancyLevel:
    if not schedules:
        return OccupancyLevel.FREE
    if len(schedules) > 1:
        return OccupancyLevel.CONFLICT
    return OccupancyLevel.BOOKED
