"""
日程の重複チェック

入力中の希望日程が、他の面談の希望日程やフォーム内の他の希望日程と
重複していないかを判定します。
"""

from typing import List, Optional, Sequence

from pydantic import BaseModel

from ..models import Meeting, FormData
from .overlap import overlaps


class SlotConflict(BaseModel):
    """重複の詳細"""
    date: str
    time_slot: str
    meeting_name: str = ""
    priority: int
    in_form: bool = False


def find_conflicts(
    date: str,
    time_slot: str,
    meetings: Sequence[Meeting],
    editing_meeting: Optional[Meeting],
    form_data: Optional[FormData],
    option_index: int = -1
) -> List[SlotConflict]:
    """
    指定された日時と重複する希望日程をすべて列挙

    Args:
        date: チェックする日付（YYYY-MM-DD形式）
        time_slot: チェックする時間帯
        meetings: 現在の面談一覧
        editing_meeting: 編集中の面談（チェックから除外）
        form_data: 現在のフォームデータ
        option_index: チェック対象自身のインデックス（フォーム内で除外）
    """
    if not date or not time_slot:
        return []

    conflicts: List[SlotConflict] = []
    editing_id = editing_meeting.id if editing_meeting is not None else None

    for meeting in meetings:
        if editing_id is not None and meeting.id == editing_id:
            continue

        for index, option in enumerate(meeting.preferred_options):
            if option.date == date and option.time_slot and overlaps(option.time_slot, time_slot):
                conflicts.append(SlotConflict(
                    date=date,
                    time_slot=option.time_slot,
                    meeting_name=meeting.name,
                    priority=index + 1
                ))

    if form_data is not None:
        for index, option in enumerate(form_data.preferred_options):
            if index == option_index:
                continue
            if option.date == date and option.time_slot and overlaps(option.time_slot, time_slot):
                conflicts.append(SlotConflict(
                    date=date,
                    time_slot=option.time_slot,
                    meeting_name=form_data.name,
                    priority=index + 1,
                    in_form=True
                ))

    return conflicts


def is_slot_occupied(
    date: str,
    time_slot: str,
    meetings: Sequence[Meeting],
    editing_meeting: Optional[Meeting],
    form_data: Optional[FormData],
    option_index: int = -1
) -> bool:
    """指定された日時が他の面談またはフォーム内の他の希望日程と重複しているか"""
    if not date or not time_slot:
        return False

    editing_id = editing_meeting.id if editing_meeting is not None else None

    for meeting in meetings:
        if editing_id is not None and meeting.id == editing_id:
            continue
        for option in meeting.preferred_options:
            if option.date == date and option.time_slot and overlaps(option.time_slot, time_slot):
                return True

    if form_data is not None:
        for index, option in enumerate(form_data.preferred_options):
            if index == option_index:
                continue
            if option.date == date and option.time_slot and overlaps(option.time_slot, time_slot):
                return True

    return False
