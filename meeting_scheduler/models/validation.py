"""
フォームバリデーション

違反項目をすべて同時に返す構造化されたバリデーション結果を提供します。
"""

import re
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .meeting import FormData, PreferredOption, MAX_PREFERRED_OPTIONS
from .time_slot import is_valid_time_slot

REQUIRED_OPTION_COUNT = 1

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class FieldKind(str, Enum):
    """エラー対象フィールドの種類"""
    NAME = "name"
    OPTION_DATE = "option_date"
    OPTION_TIME_SLOT = "option_time_slot"
    CONFIRMED_DATE = "confirmed_date"
    CONFIRMED_TIME_SLOT = "confirmed_time_slot"
    START_TIME = "start_time"
    END_TIME = "end_time"


class FieldRef(BaseModel):
    """エラー対象フィールドの参照"""
    kind: FieldKind
    index: Optional[int] = Field(None, description="希望日程のインデックス（0始まり）")

    @classmethod
    def name(cls) -> "FieldRef":
        return cls(kind=FieldKind.NAME)

    @classmethod
    def option_date(cls, index: int) -> "FieldRef":
        return cls(kind=FieldKind.OPTION_DATE, index=index)

    @classmethod
    def option_time_slot(cls, index: int) -> "FieldRef":
        return cls(kind=FieldKind.OPTION_TIME_SLOT, index=index)

    @classmethod
    def confirmed_date(cls) -> "FieldRef":
        return cls(kind=FieldKind.CONFIRMED_DATE)

    @classmethod
    def confirmed_time_slot(cls) -> "FieldRef":
        return cls(kind=FieldKind.CONFIRMED_TIME_SLOT)

    @classmethod
    def start_time(cls) -> "FieldRef":
        return cls(kind=FieldKind.START_TIME)

    @classmethod
    def end_time(cls) -> "FieldRef":
        return cls(kind=FieldKind.END_TIME)

    def __str__(self) -> str:
        if self.index is None:
            return self.kind.value
        return f"{self.kind.value}[{self.index}]"


class FieldError(BaseModel):
    """フィールド単位のエラー"""
    field: FieldRef
    message: str


class ValidationResult(BaseModel):
    """バリデーション結果"""
    errors: List[FieldError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field: FieldRef, message: str) -> None:
        self.errors.append(FieldError(field=field, message=message))

    def has_error(self, field: FieldRef) -> bool:
        return any(error.field == field for error in self.errors)

    def messages(self) -> List[str]:
        return [error.message for error in self.errors]


def is_required(index: int) -> bool:
    """指定インデックスの希望日程が必須か（第1希望のみ必須）"""
    return index < REQUIRED_OPTION_COUNT


def create_empty_form_data() -> FormData:
    """空のフォームデータを作成"""
    return FormData()


def validate_form(form_data: FormData) -> ValidationResult:
    """
    フォームデータのバリデーションを実行

    Args:
        form_data: 検証するフォームデータ

    Returns:
        違反したすべての項目を含むバリデーション結果
    """
    result = ValidationResult()

    if not form_data.name.strip():
        result.add(FieldRef.name(), "名前は必須です")

    options = form_data.preferred_options or [PreferredOption()]
    for index in range(REQUIRED_OPTION_COUNT):
        option = options[index] if index < len(options) else PreferredOption()
        if not option.date:
            result.add(FieldRef.option_date(index), f"第{index + 1}希望の日程は必須です")
        if not option.time_slot:
            result.add(FieldRef.option_time_slot(index), f"第{index + 1}希望の時間帯は必須です")

    for index, option in enumerate(options):
        if option.time_slot and not is_valid_time_slot(option.time_slot):
            result.add(FieldRef.option_time_slot(index), f"第{index + 1}希望の時間帯が不正です")

    if len(options) > MAX_PREFERRED_OPTIONS:
        result.add(
            FieldRef.option_date(MAX_PREFERRED_OPTIONS),
            f"希望日程は{MAX_PREFERRED_OPTIONS}件までです",
        )

    return result


def _is_valid_date(value: str) -> bool:
    if not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_confirmation_choice(date_str: str, time_slot: str) -> ValidationResult:
    """確定する日程（日付・時間帯）を検証"""
    result = ValidationResult()

    if not date_str:
        result.add(FieldRef.confirmed_date(), "確定日は必須です")
    elif not _is_valid_date(date_str):
        result.add(FieldRef.confirmed_date(), "確定日はYYYY-MM-DD形式で入力してください")

    if not time_slot:
        result.add(FieldRef.confirmed_time_slot(), "確定する時間帯は必須です")
    elif not is_valid_time_slot(time_slot):
        result.add(FieldRef.confirmed_time_slot(), "確定する時間帯が不正です")

    return result


def is_valid_time(value: str) -> bool:
    """HH:MM（24時間表記）形式かどうか"""
    return bool(_TIME_PATTERN.match(value or ""))


def validate_confirmation_times(start_time: str, end_time: str) -> ValidationResult:
    """確定時の開始・終了時刻を検証"""
    result = ValidationResult()

    if not is_valid_time(start_time):
        result.add(FieldRef.start_time(), "開始時刻はHH:MM形式で入力してください")
    if not is_valid_time(end_time):
        result.add(FieldRef.end_time(), "終了時刻はHH:MM形式で入力してください")

    # HH:MM はゼロ埋めされているので文字列比較で前後関係が判定できる
    if result.is_valid and end_time <= start_time:
        result.add(FieldRef.end_time(), "終了時刻は開始時刻より後である必要があります")

    return result
