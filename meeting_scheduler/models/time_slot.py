"""
TimeSlot 語彙モデル

面談の希望時間帯を表すラベル（粗い時間帯 / 1時間枠）と、
ラベルから時間範囲への変換を定義します。
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SlotLabel(str, Enum):
    """粗い時間帯ラベル列挙"""
    ALLDAY = "allday"          # 終日
    MORNING = "morning"        # 10:00 ~ 12:00
    AFTERNOON = "afternoon"    # 13:00 ~ 16:00
    EVENING = "evening"        # 17:00以降


# 1時間枠の開始時刻（10-11 ... 18-19）
HOURLY_SLOT_START_HOURS = range(10, 19)


class TimeSlot(BaseModel):
    """時間帯の選択肢"""
    value: str = Field(..., description="永続化される時間帯の値")
    label: str = Field(..., description="表示用ラベル")
    disabled: bool = Field(default=False, description="選択不可の区切り行か")

    model_config = ConfigDict(frozen=True)


def hourly_slot_value(hour: int) -> str:
    """1時間枠の値を生成（例: 13 → "13-14"）"""
    return f"{hour}-{hour + 1}"


_COARSE_RANGES = {
    SlotLabel.ALLDAY.value: (0, 24),
    SlotLabel.MORNING.value: (10, 12),
    SlotLabel.AFTERNOON.value: (13, 16),
    SlotLabel.EVENING.value: (17, 24),
}

_HOURLY_RANGES = {
    hourly_slot_value(hour): (hour, hour + 1)
    for hour in HOURLY_SLOT_START_HOURS
}

TIME_SLOTS: List[TimeSlot] = [
    TimeSlot(value="separator-coarse", label="── 時間帯 ──", disabled=True),
    TimeSlot(value=SlotLabel.ALLDAY.value, label="終日"),
    TimeSlot(value=SlotLabel.MORNING.value, label="10:00 ~ 12:00"),
    TimeSlot(value=SlotLabel.AFTERNOON.value, label="13:00 ~ 16:00"),
    TimeSlot(value=SlotLabel.EVENING.value, label="17:00以降"),
    TimeSlot(value="separator-hourly", label="── 1時間枠 ──", disabled=True),
] + [
    TimeSlot(value=hourly_slot_value(hour), label=f"{hour}:00 ~ {hour + 1}:00")
    for hour in HOURLY_SLOT_START_HOURS
]

_SLOTS_BY_VALUE = {slot.value: slot for slot in TIME_SLOTS}


def selectable_time_slots() -> List[TimeSlot]:
    """区切り行を除いた選択可能な時間帯"""
    return [slot for slot in TIME_SLOTS if not slot.disabled]


def is_disabled_slot(value: str) -> bool:
    slot = _SLOTS_BY_VALUE.get(value)
    return slot is not None and slot.disabled


def is_valid_time_slot(value: str) -> bool:
    """選択可能な時間帯の値かどうか"""
    slot = _SLOTS_BY_VALUE.get(value)
    return slot is not None and not slot.disabled


def get_time_slot_label(value: str) -> str:
    """
    時間帯の値から表示ラベルを取得

    見つからない場合は値をそのまま返します。
    """
    slot = _SLOTS_BY_VALUE.get(value)
    return slot.label if slot else value


def range_of(label: str) -> Optional[Tuple[int, int]]:
    """
    時間帯ラベルを半開区間 [開始時, 終了時) に変換

    Args:
        label: 時間帯の値

    Returns:
        (開始時, 終了時)。未知のラベル・区切り行の場合は None
    """
    if label in _COARSE_RANGES:
        return _COARSE_RANGES[label]
    return _HOURLY_RANGES.get(label)
