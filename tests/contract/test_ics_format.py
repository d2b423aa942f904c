"""
ICSエクスポート・インポートのコントラクトテスト。

このテストは、確定済みの面談がカレンダーアプリで読み込めるICSテキストに変換され、
エクスポートしたICSを再インポートすると同じ日時・名前・メモが復元されることを検証します。
"""

from datetime import datetime, timezone
from typing import List

import pytest
from freezegun import freeze_time

# Import project modules
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '../..'))

from meeting_scheduler.integrations.ics_codec import (
    classify_time_slot, format_ics_date, generate_ics_file, generate_unified_ics_file,
    parse_ics_datetime, parse_ics_file, strip_summary_prefix
)
from meeting_scheduler.models import Meeting, MeetingIdGenerator

NOW = datetime(2024, 1, 10, 0, 0, tzinfo=timezone.utc)


def make_confirmed(meeting_id: int, name: str, confirmed_date: str, start: str = "10:30",
                   end: str = "11:30", **kwargs) -> Meeting:
    return Meeting(
        id=meeting_id,
        name=name,
        status="confirmed",
        confirmed_date=confirmed_date,
        confirmed_time_slot="morning",
        confirmed_start_time=start,
        confirmed_end_time=end,
        **kwargs
    )


def build_calendar(*event_lines: List[str]) -> str:
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0"]
    for event in event_lines:
        lines += ["BEGIN:VEVENT", *event, "END:VEVENT"]
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)


class TestIcsExport:
    """ICSエクスポートのコントラクトテスト。"""

    @pytest.fixture
    def meeting(self) -> Meeting:
        """オンライン面談の確定データ。"""
        return make_confirmed(
            7, "Taro", "2024-01-15",
            meeting_type="online", notes="line1\nline2"
        )

    def test_calendar_structure(self, meeting: Meeting):
        """VCALENDAR の構造と CRLF 改行。"""
        export = generate_ics_file(meeting, [60, 30], NOW)
        lines = export.content.split("\r\n")

        assert lines[0] == "BEGIN:VCALENDAR"
        assert lines[1] == "VERSION:2.0"
        assert lines[2] == "PRODID:-//Meeting Scheduler//Meeting Calendar//EN"
        assert lines[-1] == "END:VCALENDAR"
        assert "\n" not in export.content.replace("\r\n", "")
        assert export.media_type.startswith("text/calendar")

    def test_event_properties(self, meeting: Meeting):
        """イベントのプロパティ。"""
        lines = generate_ics_file(meeting, [60, 30], NOW).content.split("\r\n")

        assert "UID:7-1704844800000@meetingscheduler.com" in lines
        assert "DTSTAMP:20240110T000000Z" in lines
        assert f"DTSTART:{format_ics_date(datetime(2024, 1, 15, 10, 30))}" in lines
        assert f"DTEND:{format_ics_date(datetime(2024, 1, 15, 11, 30))}" in lines
        assert "SUMMARY:[オンライン] 面談 Taro" in lines
        assert "DESCRIPTION:line1\\nline2" in lines
        assert "STATUS:CONFIRMED" in lines

    def test_alarms(self, meeting: Meeting):
        """リマインダーごとに VALARM が生成される。"""
        content = generate_ics_file(meeting, [60, 30], NOW).content

        assert content.count("BEGIN:VALARM") == 2
        assert "TRIGGER:-PT60M" in content
        assert "TRIGGER:-PT30M" in content
        assert "DESCRIPTION:面談開始30分前" in content
        assert content.count("ACTION:DISPLAY") == 2

    def test_no_alarms(self, meeting: Meeting):
        """リマインダーなし。"""
        assert "VALARM" not in generate_ics_file(meeting, [], NOW).content

    def test_offline_summary_and_default_description(self):
        """対面面談のタイトルとメモなしの説明文。"""
        meeting = make_confirmed(1, "田中太郎", "2024-01-15")
        content = generate_ics_file(meeting, [], NOW).content

        assert "SUMMARY:[対面] 面談 田中太郎" in content
        assert "DESCRIPTION:面談の予定" in content

    def test_filename(self, meeting: Meeting):
        """ファイル名に名前と確定日を含む。"""
        assert generate_ics_file(meeting, [], NOW).filename == "面談_Taro_2024-01-15.ics"

    @pytest.mark.parametrize("missing", ["confirmed_date", "confirmed_start_time", "confirmed_end_time"])
    def test_incomplete_schedule(self, meeting: Meeting, missing: str):
        """確定日・開始・終了のいずれかが欠けている場合は生成しない。"""
        setattr(meeting, missing, "")
        assert generate_ics_file(meeting, [60], NOW) is None

    def test_malformed_time(self, meeting: Meeting):
        """時刻の形式が不正な場合は生成しない。"""
        meeting.confirmed_start_time = "ten"
        assert generate_ics_file(meeting, [60], NOW) is None

    @freeze_time("2024-01-10 00:00:00")
    def test_default_timestamp(self, meeting: Meeting):
        """生成時刻の省略時は現在時刻。"""
        content = generate_ics_file(meeting, []).content
        assert "DTSTAMP:20240110T000000Z" in content


class TestUnifiedIcsExport:
    """一括ICSエクスポートのコントラクトテスト。"""

    def test_date_range_filename(self):
        """複数日の場合は最初と最後の日付。"""
        meetings = [
            make_confirmed(1, "A", "2024-01-16"),
            make_confirmed(2, "B", "2024-01-15"),
            Meeting(id=3, name="pending"),
        ]
        export = generate_unified_ics_file(meetings, [60], NOW)

        assert export.filename == "確定面談一覧_2024-01-15_2024-01-16.ics"
        assert export.event_count == 2
        assert export.content.count("BEGIN:VEVENT") == 2
        assert export.content.count("BEGIN:VCALENDAR") == 1

    def test_single_date_filename(self):
        """同じ日のみの場合は日付1つ。"""
        meetings = [make_confirmed(1, "A", "2024-01-15"), make_confirmed(2, "B", "2024-01-15", "13:00", "14:00")]
        assert generate_unified_ics_file(meetings, [], NOW).filename == "確定面談一覧_2024-01-15.ics"

    def test_confirmed_without_times_skipped(self):
        """時刻のない確定済み面談は含めない。"""
        meetings = [make_confirmed(1, "A", "2024-01-15", start="", end="")]
        assert generate_unified_ics_file(meetings, [], NOW) is None

    def test_nothing_to_export(self):
        """確定済みの面談がない場合は None。"""
        assert generate_unified_ics_file([], [60], NOW) is None


class TestIcsImport:
    """ICSインポートのコントラクトテスト。"""

    @pytest.fixture
    def id_generator(self) -> MeetingIdGenerator:
        """固定時刻のID採番器。"""
        return MeetingIdGenerator(clock=lambda: 1700000000.0)

    def test_round_trip(self, id_generator: MeetingIdGenerator):
        """エクスポートしたICSを読み込むと同じ面談情報が復元される。"""
        meeting = make_confirmed(7, "Taro", "2024-01-15", notes="line1\nline2")
        content = generate_ics_file(meeting, [60, 30], NOW).content

        events = parse_ics_file(content, id_generator)

        assert len(events) == 1
        event = events[0]
        assert event.name == "Taro"
        assert event.notes == "line1\nline2"
        assert event.confirmed_date == "2024-01-15"
        assert event.confirmed_start_time == "10:30"
        assert event.confirmed_end_time == "11:30"
        assert event.confirmed_time_slot == "morning"

        imported = event.to_meeting()
        assert imported.is_confirmed()
        assert imported.meeting_type == "offline"
        assert [(o.date, o.time_slot) for o in imported.preferred_options] == [("2024-01-15", "morning")]

    def test_unified_round_trip(self, id_generator: MeetingIdGenerator):
        """一括エクスポートしたICSからも各面談のメモと日時が復元される。"""
        meetings = [
            make_confirmed(1, "田中太郎", "2024-01-15", notes="職務経歴書を確認"),
            make_confirmed(2, "佐藤花子", "2024-01-16", "17:00", "18:00", meeting_type="online"),
        ]
        content = generate_unified_ics_file(meetings, [1440, 60, 15], NOW).content

        events = parse_ics_file(content, id_generator)

        assert [(e.name, e.notes, e.confirmed_date, e.confirmed_start_time) for e in events] == [
            ("田中太郎", "職務経歴書を確認", "2024-01-15", "10:30"),
            ("佐藤花子", "面談の予定", "2024-01-16", "17:00"),
        ]
        assert events[1].confirmed_time_slot == "evening"

    def test_alarm_properties_ignored(self, id_generator: MeetingIdGenerator):
        """VALARM 内の DESCRIPTION はメモとして扱わない。"""
        content = build_calendar([
            "SUMMARY:面談 - 田中",
            "BEGIN:VALARM",
            "TRIGGER:-PT30M",
            "DESCRIPTION:面談開始30分前",
            "END:VALARM",
        ])

        event = parse_ics_file(content, id_generator)[0]

        assert event.name == "田中"
        assert event.notes == ""

    def test_english_summary_prefix(self, id_generator: MeetingIdGenerator):
        """"meeting - " 接頭辞の除去。"""
        content = build_calendar([
            "SUMMARY:meeting - Taro",
            f"DTSTART:{format_ics_date(datetime(2024, 1, 15, 10, 30))}",
        ])

        events = parse_ics_file(content, id_generator)

        assert events[0].name == "Taro"
        assert events[0].confirmed_date == "2024-01-15"
        assert events[0].confirmed_start_time == "10:30"

    def test_utc_stamp_scenario(self, id_generator: MeetingIdGenerator):
        """UTC表記の開始時刻はローカル日付として読み込まれる。"""
        stamp = "20240115T103000Z"
        local_start = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc).astimezone()
        content = build_calendar(["SUMMARY:meeting - Taro", f"DTSTART:{stamp}"])

        event = parse_ics_file(content, id_generator)[0]

        assert event.confirmed_date == local_start.date().isoformat()
        assert event.confirmed_start_time == local_start.strftime("%H:%M")

    @pytest.mark.parametrize("summary,expected", [
        ("面談 - 田中太郎", "田中太郎"),
        ("[対面] 面談 田中太郎", "田中太郎"),
        ("[オンライン] 面談 佐藤花子", "佐藤花子"),
        ("Meeting - Taro", "Taro"),
        ("チームランチ", "チームランチ"),
        ("面談", "面談"),
        ("Meeting Room A", "Meeting Room A"),
        ("面談 田中太郎", "面談 田中太郎"),
    ])
    def test_strip_summary_prefix(self, summary: str, expected: str):
        """タイトルの接頭辞除去。"""
        assert strip_summary_prefix(summary) == expected

    def test_unnamed_event_dropped(self, id_generator: MeetingIdGenerator):
        """名前のないイベントは除外。"""
        content = build_calendar(
            ["DTSTART:20240115T103000Z"],
            ["SUMMARY:面談 - 田中"],
        )
        events = parse_ics_file(content, id_generator)
        assert [event.name for event in events] == ["田中"]

    def test_invalid_datetime_left_empty(self, id_generator: MeetingIdGenerator):
        """解析できない日時は未設定のまま。"""
        content = build_calendar(["SUMMARY:面談 - 田中", "DTSTART:invalid", "DTEND:2024-01-15"])

        event = parse_ics_file(content, id_generator)[0]

        assert event.confirmed_date == ""
        assert event.confirmed_end_time == ""
        assert not event.to_meeting().is_confirmed()

    def test_start_only_is_pending(self, id_generator: MeetingIdGenerator):
        """終了時刻のないイベントは日程調整中として取り込む。"""
        content = build_calendar([
            "SUMMARY:面談 - 田中",
            f"DTSTART:{format_ics_date(datetime(2024, 1, 15, 14, 0))}",
        ])

        meeting = parse_ics_file(content, id_generator)[0].to_meeting()

        assert meeting.status == "pending"
        assert meeting.confirmed_date == "2024-01-15"
        assert meeting.confirmed_time_slot == "afternoon"

    def test_unique_ids(self, id_generator: MeetingIdGenerator):
        """同一時刻に読み込んだイベントでもIDは重複しない。"""
        content = build_calendar(["SUMMARY:A"], ["SUMMARY:B"], ["SUMMARY:C"])
        ids = [event.id for event in parse_ics_file(content, id_generator)]
        assert len(set(ids)) == 3

    def test_lf_line_endings(self, id_generator: MeetingIdGenerator):
        """LF改行のICSも読み込める。"""
        content = build_calendar(["SUMMARY:面談 - 田中"]).replace("\r\n", "\n")
        assert len(parse_ics_file(content, id_generator)) == 1

    def test_no_events(self):
        """イベントがない場合は空のリスト。"""
        assert parse_ics_file("BEGIN:VCALENDAR\r\nEND:VCALENDAR") == []


class TestIcsDateTime:
    """日時の変換のコントラクトテスト。"""

    def test_utc_stamp(self):
        """UTC表記はタイムゾーン付きで返す。"""
        assert parse_ics_datetime("20240115T103000Z") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_date_only(self):
        """日付のみはローカルの0時。"""
        assert parse_ics_datetime("20240115") == datetime(2024, 1, 15)

    @pytest.mark.parametrize("value", ["", "invalid", "2024-01-15", "20240115T103000", "20241331T000000Z"])
    def test_unparseable(self, value: str):
        """解析できない値は None。"""
        assert parse_ics_datetime(value) is None

    def test_format_is_utc(self):
        """タイムゾーン付きの日時はUTCに変換される。"""
        value = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert format_ics_date(value) == "20240115T103000Z"

    @pytest.mark.parametrize("hour,expected", [
        (9, "allday"),
        (10, "morning"),
        (11, "morning"),
        (12, "allday"),
        (13, "afternoon"),
        (15, "afternoon"),
        (16, "allday"),
        (17, "evening"),
        (22, "evening"),
    ])
    def test_classify_time_slot(self, hour: int, expected: str):
        """開始時刻から時間帯への振り分け。"""
        assert classify_time_slot(hour) == expected

    @pytest.mark.parametrize("hour,expected", [(10, "morning"), (14, "afternoon"), (18, "evening"), (8, "allday")])
    def test_import_uses_local_hour(self, hour: int, expected: str):
        """インポート時の時間帯はローカル時刻の時で決まる。"""
        id_generator = MeetingIdGenerator(clock=lambda: 1700000000.0)
        content = build_calendar([
            "SUMMARY:面談 - 田中",
            f"DTSTART:{format_ics_date(datetime(2024, 1, 15, hour, 0))}",
        ])
        assert parse_ics_file(content, id_generator)[0].confirmed_time_slot == expected
