"""
Meeting エンティティモデル

面談の希望日程・確定情報・面談結果を表現します。
永続化フォーマットはキャメルケースのキー（preferredOptions 等）です。
"""

import math
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_PREFERRED_OPTIONS = 5


class MeetingType(str, Enum):
    """面談形式列挙"""
    ONLINE = "online"      # オンライン
    OFFLINE = "offline"    # 対面


class MeetingStatus(str, Enum):
    """面談ステータス列挙"""
    PENDING = "pending"        # 日程調整中
    CONFIRMED = "confirmed"    # 日程確定


class PreferredOption(BaseModel):
    """希望日程（日付 + 時間帯）"""
    date: str = Field(default="", description="YYYY-MM-DD形式の日付")
    time_slot: str = Field(default="", alias="timeSlot", description="時間帯の値")

    model_config = ConfigDict(populate_by_name=True)

    def is_complete(self) -> bool:
        """日付と時間帯の両方が設定されているか"""
        return bool(self.date and self.time_slot)


class Meeting(BaseModel):
    """面談エンティティ"""

    # 基本識別情報
    id: int = Field(..., description="面談ID")
    name: str = Field(..., description="面談者名")
    image: str = Field(default="", description="画像（data URL）")
    notes: str = Field(default="", description="メモ")

    # 面談形式
    meeting_type: MeetingType = Field(
        default=MeetingType.OFFLINE, alias="meetingType", description="面談形式"
    )
    meeting_location: str = Field(
        default="", alias="meetingLocation", description="オンライン: URL、対面: 会議室情報等"
    )

    # 希望日程
    preferred_options: List[PreferredOption] = Field(
        default_factory=list, alias="preferredOptions", description="希望日程（優先順）"
    )

    # 確定情報
    confirmed_date: str = Field(default="", alias="confirmedDate")
    confirmed_time_slot: str = Field(default="", alias="confirmedTimeSlot")
    confirmed_start_time: str = Field(default="", alias="confirmedStartTime")
    confirmed_end_time: str = Field(default="", alias="confirmedEndTime")
    status: MeetingStatus = Field(default=MeetingStatus.PENDING, description="ステータス")

    # 面談結果・メモ
    meeting_result: str = Field(default="", alias="meetingResult")

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    @field_validator("id", mode="before")
    @classmethod
    def truncate_float_id(cls, v):
        """旧データの小数ID（タイムスタンプ + 乱数）は整数部を使う"""
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError(f"IDが有限の数値ではありません: {v}")
            return int(v)
        return v

    @field_validator(
        "image", "notes", "meeting_location", "confirmed_date", "confirmed_time_slot",
        "confirmed_start_time", "confirmed_end_time", "meeting_result",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v):
        """null は未設定（空文字）として扱う"""
        return "" if v is None else v

    @field_validator("meeting_type", mode="before")
    @classmethod
    def default_meeting_type(cls, v):
        return MeetingType.OFFLINE if v in (None, "") else v

    @field_validator("preferred_options")
    @classmethod
    def validate_preferred_options(cls, v):
        """希望日程の件数検証"""
        if len(v) > MAX_PREFERRED_OPTIONS:
            raise ValueError(f"希望日程は{MAX_PREFERRED_OPTIONS}件以下である必要があります")
        return v

    def is_confirmed(self) -> bool:
        return self.status == MeetingStatus.CONFIRMED

    def is_online(self) -> bool:
        return self.meeting_type == MeetingType.ONLINE

    def has_confirmed_schedule(self) -> bool:
        """ICSエクスポートに必要な確定情報が揃っているか"""
        return bool(self.confirmed_date and self.confirmed_start_time and self.confirmed_end_time)

    def complete_options(self) -> List[PreferredOption]:
        return [option for option in self.preferred_options if option.is_complete()]

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ保存用）"""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
        """辞書から Meeting インスタンスを作成"""
        return cls.model_validate(data)


class FormData(BaseModel):
    """面談作成・編集フォームの入力内容"""
    name: str = ""
    image: str = ""
    notes: str = ""
    meeting_type: MeetingType = Field(default=MeetingType.OFFLINE, alias="meetingType")
    meeting_location: str = Field(default="", alias="meetingLocation")
    preferred_options: List[PreferredOption] = Field(
        default_factory=lambda: [PreferredOption() for _ in range(MAX_PREFERRED_OPTIONS)],
        alias="preferredOptions",
    )

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    @classmethod
    def from_meeting(cls, meeting: Meeting) -> "FormData":
        """既存の面談から編集用フォームを作成（希望日程は5件に補完）"""
        options = [option.model_copy() for option in meeting.preferred_options]
        options += [PreferredOption() for _ in range(MAX_PREFERRED_OPTIONS - len(options))]
        return cls(
            name=meeting.name,
            image=meeting.image,
            notes=meeting.notes,
            meeting_type=meeting.meeting_type,
            meeting_location=meeting.meeting_location,
            preferred_options=options[:MAX_PREFERRED_OPTIONS],
        )

    def update_preferred_option(self, index: int, date: Optional[str] = None,
                                time_slot: Optional[str] = None) -> None:
        """指定インデックスの希望日程を更新"""
        option = self.preferred_options[index]
        self.preferred_options[index] = PreferredOption(
            date=option.date if date is None else date,
            time_slot=option.time_slot if time_slot is None else time_slot,
        )

    def complete_options(self) -> List[PreferredOption]:
        return [option for option in self.preferred_options if option.is_complete()]


class Schedule(BaseModel):
    """日付別サマリーの1行（面談 × 希望日程）"""
    date: str
    time_slot: str
    meeting_id: int
    meeting_name: str
    meeting_image: str = ""
    priority: int = Field(..., description="希望順位（1始まり）")
    notes: str = ""
    meeting_type: MeetingType = MeetingType.OFFLINE
    meeting_location: str = ""

    model_config = ConfigDict(use_enum_values=True)


class PendingConfirmation(BaseModel):
    """日程確定ダイアログの状態（開始・終了時刻の入力待ち）"""
    meeting_id: int
    date: str
    time_slot: str
