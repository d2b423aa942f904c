"""
データモデル - 面談スケジューラー

このパッケージには、面談の日程調整のためのコアエンティティモデルが含まれています。
"""

from .time_slot import (
    SlotLabel, TimeSlot, TIME_SLOTS, range_of, get_time_slot_label,
    selectable_time_slots, is_valid_time_slot, is_disabled_slot, hourly_slot_value
)
from .meeting import (
    Meeting, MeetingType, MeetingStatus, PreferredOption, FormData, Schedule,
    PendingConfirmation, MAX_PREFERRED_OPTIONS
)
from .validation import (
    FieldKind, FieldRef, FieldError, ValidationResult, validate_form,
    validate_confirmation_times, validate_confirmation_choice, is_required, is_valid_time,
    create_empty_form_data
)
from .ids import MeetingIdGenerator

__all__ = [
    # TimeSlot関連
    "SlotLabel",
    "TimeSlot",
    "TIME_SLOTS",
    "range_of",
    "get_time_slot_label",
    "selectable_time_slots",
    "is_valid_time_slot",
    "is_disabled_slot",
    "hourly_slot_value",

    # Meeting関連
    "Meeting",
    "MeetingType",
    "MeetingStatus",
    "PreferredOption",
    "FormData",
    "Schedule",
    "PendingConfirmation",
    "MAX_PREFERRED_OPTIONS",

    # Validation関連
    "FieldKind",
    "FieldRef",
    "FieldError",
    "ValidationResult",
    "validate_form",
    "validate_confirmation_times",
    "validate_confirmation_choice",
    "is_required",
    "is_valid_time",
    "create_empty_form_data",

    # ID採番
    "MeetingIdGenerator",
]
