"""
ICS（iCalendar）エクスポート・インポート

確定済みの面談をリマインダー付きのカレンダーイベントに変換し、
ICSテキストから面談候補を読み込みます。

行単位で解析するため、折り返し行（継続行）は結合しません。
"""

import logging
import re
from datetime import datetime, date, time, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models import (
    Meeting, MeetingIdGenerator, MeetingStatus, MeetingType, PreferredOption, SlotLabel
)

logger = logging.getLogger(__name__)

CRLF = "\r\n"
PRODID = "-//Meeting Scheduler//Meeting Calendar//EN"
UID_DOMAIN = "meetingscheduler.com"
DEFAULT_DESCRIPTION = "面談の予定"
UNTITLED_NAME = "無題の面談"

_SUMMARY_TAGS = {
    MeetingType.ONLINE: "[オンライン] ",
    MeetingType.OFFLINE: "[対面] ",
}

# "[対面] 面談 田中" / "面談 - 田中" / "meeting - Taro" の接頭辞を除去する
# 空白区切りはタグ付きの場合のみ（"Meeting Room A" は除去しない）
_SUMMARY_PREFIX = re.compile(
    r"^(?:\[(?:オンライン|対面)\]\s*(?:面談|meeting)(?:\s*-\s*|\s+)|(?:面談|meeting)\s*-\s*)",
    re.IGNORECASE
)
_UTC_STAMP = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z$")
_DATE_STAMP = re.compile(r"^(\d{4})(\d{2})(\d{2})$")


class IcsExport(BaseModel):
    """ダウンロード用のICSファイル"""
    filename: str
    content: str
    event_count: int = 1
    media_type: str = "text/calendar;charset=utf-8"


class ParsedEvent(BaseModel):
    """ICSから読み込んだ面談候補"""
    id: int
    name: str = ""
    notes: str = ""
    confirmed_date: str = ""
    confirmed_time_slot: str = ""
    confirmed_start_time: str = ""
    confirmed_end_time: str = ""
    preferred_options: List[PreferredOption] = Field(default_factory=list)

    def has_full_schedule(self) -> bool:
        return bool(self.confirmed_date and self.confirmed_start_time and self.confirmed_end_time)

    def to_meeting(self) -> Meeting:
        """インポート用の Meeting に変換（日時が揃っていれば確定扱い）"""
        options = []
        if self.confirmed_date and self.confirmed_time_slot:
            options = [PreferredOption(date=self.confirmed_date, time_slot=self.confirmed_time_slot)]

        return Meeting(
            id=self.id,
            name=self.name or UNTITLED_NAME,
            notes=self.notes,
            meeting_type=MeetingType.OFFLINE,
            preferred_options=options,
            confirmed_date=self.confirmed_date,
            confirmed_time_slot=self.confirmed_time_slot,
            confirmed_start_time=self.confirmed_start_time,
            confirmed_end_time=self.confirmed_end_time,
            status=MeetingStatus.CONFIRMED if self.has_full_schedule() else MeetingStatus.PENDING
        )


def format_ics_date(value: datetime) -> str:
    """日時をICS用のUTC表記（YYYYMMDDTHHMMSSZ）に変換。naive はローカル時刻として扱う"""
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _local_datetime(date_str: str, time_str: str) -> datetime:
    hour, minute = (int(part) for part in time_str.split(":"))
    return datetime.combine(date.fromisoformat(date_str), time(hour, minute))


def _escape_text(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", "\\n")


def _build_alarms(notification_times: Sequence[int]) -> List[str]:
    lines: List[str] = []
    for minutes in notification_times:
        lines += [
            "BEGIN:VALARM",
            f"TRIGGER:-PT{minutes}M",
            "ACTION:DISPLAY",
            f"DESCRIPTION:面談開始{minutes}分前",
            "END:VALARM",
        ]
    return lines


def build_summary(meeting: Meeting) -> str:
    tag = _SUMMARY_TAGS[MeetingType(meeting.meeting_type or MeetingType.OFFLINE)]
    return f"{tag}面談 {meeting.name}"


def build_event_lines(meeting: Meeting, notification_times: Sequence[int], now: datetime) -> List[str]:
    """
    1件の面談から VEVENT ブロックの行を生成

    Raises:
        ValueError: 確定日・時刻の形式が不正な場合
    """
    start_time = _local_datetime(meeting.confirmed_date, meeting.confirmed_start_time)
    end_time = _local_datetime(meeting.confirmed_date, meeting.confirmed_end_time)
    description = _escape_text(meeting.notes) if meeting.notes else DEFAULT_DESCRIPTION

    return [
        "BEGIN:VEVENT",
        f"UID:{meeting.id}-{int(now.timestamp() * 1000)}@{UID_DOMAIN}",
        f"DTSTAMP:{format_ics_date(now)}",
        f"DTSTART:{format_ics_date(start_time)}",
        f"DTEND:{format_ics_date(end_time)}",
        f"SUMMARY:{build_summary(meeting)}",
        f"DESCRIPTION:{description}",
        "STATUS:CONFIRMED",
        *_build_alarms(notification_times),
        "END:VEVENT",
    ]


def _wrap_calendar(event_lines: List[str]) -> str:
    return CRLF.join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        *event_lines,
        "END:VCALENDAR",
    ])


def generate_ics_file(
    meeting: Meeting,
    notification_times: Sequence[int],
    now: Optional[datetime] = None
) -> Optional[IcsExport]:
    """
    面談情報からICSファイルを生成

    Args:
        meeting: 面談情報
        notification_times: 通知時刻（開始何分前か）のリスト
        now: 生成時刻（UID・DTSTAMP用）

    Returns:
        確定日・開始時刻・終了時刻が揃っていない場合は None
    """
    if not meeting.has_confirmed_schedule():
        return None

    now = now or datetime.now(timezone.utc)
    try:
        event_lines = build_event_lines(meeting, notification_times, now)
    except ValueError as e:
        logger.error(f"ICS生成に失敗しました: id={meeting.id} {e}")
        return None

    return IcsExport(
        filename=f"面談_{meeting.name}_{meeting.confirmed_date}.ics",
        content=_wrap_calendar(event_lines)
    )


def generate_unified_ics_file(
    meetings: Sequence[Meeting],
    notification_times: Sequence[int],
    now: Optional[datetime] = None
) -> Optional[IcsExport]:
    """
    確定済みの複数の面談をまとめて1つのICSファイルにする

    Returns:
        対象の面談がない場合は None
    """
    confirmed_meetings = [
        meeting for meeting in meetings
        if meeting.is_confirmed() and meeting.has_confirmed_schedule()
    ]

    if not confirmed_meetings:
        logger.warning("確定済みの面談がありません")
        return None

    now = now or datetime.now(timezone.utc)
    event_lines: List[str] = []
    exported: List[Meeting] = []
    for meeting in confirmed_meetings:
        try:
            event_lines += build_event_lines(meeting, notification_times, now)
        except ValueError as e:
            logger.error(f"ICS生成をスキップしました: id={meeting.id} {e}")
            continue
        exported.append(meeting)

    if not exported:
        logger.warning("確定済みの面談がありません")
        return None

    dates = sorted(meeting.confirmed_date for meeting in exported)
    start_date, end_date = dates[0], dates[-1]
    date_range = start_date if start_date == end_date else f"{start_date}_{end_date}"

    return IcsExport(
        filename=f"確定面談一覧_{date_range}.ics",
        content=_wrap_calendar(event_lines),
        event_count=len(exported)
    )


def parse_ics_datetime(value: str) -> Optional[datetime]:
    """
    ICS形式の日時文字列を datetime に変換

    YYYYMMDDTHHMMSSZ は UTC（タイムゾーン付き）、YYYYMMDD はローカルの0時（naive）。
    解析できない場合は None を返します。
    """
    try:
        match = _UTC_STAMP.match(value)
        if match:
            year, month, day, hour, minute, second = (int(part) for part in match.groups())
            return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)

        match = _DATE_STAMP.match(value)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return datetime(year, month, day)
    except ValueError as e:
        logger.error(f"日時解析エラー: {value!r} {e}")

    return None


def classify_time_slot(hour: int) -> str:
    """開始時刻（時）からインポート時の時間帯を決定"""
    if 10 <= hour < 12:
        return SlotLabel.MORNING.value
    if 13 <= hour < 16:
        return SlotLabel.AFTERNOON.value
    if hour >= 17:
        return SlotLabel.EVENING.value
    return SlotLabel.ALLDAY.value


def strip_summary_prefix(summary: str) -> str:
    return _SUMMARY_PREFIX.sub("", summary, count=1) or summary


def _to_local(value: datetime) -> datetime:
    return value.astimezone()


def parse_ics_file(content: str, id_generator: Optional[MeetingIdGenerator] = None) -> List[ParsedEvent]:
    """
    ICSファイルの内容を解析して面談候補のリストを返す

    名前のないイベントは除外します。日時が解析できないフィールドは空のままにします。
    """
    id_generator = id_generator or MeetingIdGenerator()
    events: List[ParsedEvent] = []
    current_event: Optional[ParsedEvent] = None
    in_alarm = False

    for raw_line in re.split(r"\r?\n", content):
        line = raw_line.strip()

        if line == "BEGIN:VEVENT":
            current_event = ParsedEvent(id=id_generator.next_id())
            in_alarm = False
        elif line == "BEGIN:VALARM":
            in_alarm = True
        elif line == "END:VALARM":
            in_alarm = False
        elif in_alarm:
            # VALARM 内の DESCRIPTION 等はイベントのプロパティではない
            continue
        elif line == "END:VEVENT" and current_event is not None:
            if current_event.name:
                events.append(current_event)
            else:
                logger.info("名前のないイベントをスキップしました")
            current_event = None
        elif current_event is not None:
            if line.startswith("SUMMARY:"):
                current_event.name = strip_summary_prefix(line[len("SUMMARY:"):])
            elif line.startswith("DESCRIPTION:"):
                current_event.notes = line[len("DESCRIPTION:"):].replace("\\n", "\n")
            elif line.startswith("DTSTART:"):
                start = parse_ics_datetime(line[len("DTSTART:"):])
                if start is None:
                    logger.error(f"日時の解析に失敗しました: {line}")
                    continue
                local_start = _to_local(start)
                current_event.confirmed_date = local_start.date().isoformat()
                current_event.confirmed_start_time = local_start.strftime("%H:%M")
                current_event.confirmed_time_slot = classify_time_slot(local_start.hour)
            elif line.startswith("DTEND:"):
                end = parse_ics_datetime(line[len("DTEND:"):])
                if end is None:
                    logger.error(f"終了時刻の解析に失敗しました: {line}")
                    continue
                current_event.confirmed_end_time = _to_local(end).strftime("%H:%M")

    return events
