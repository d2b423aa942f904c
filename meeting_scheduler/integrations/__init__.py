"""
外部フォーマット・ストレージ連携
"""

from .ics_codec import (
    IcsExport, ParsedEvent, generate_ics_file, generate_unified_ics_file,
    parse_ics_file, parse_ics_datetime, format_ics_date
)
from .local_store import LocalMeetingStore, LoadResult
from .backup import BackupExport, BackupPayload, export_meeting_data, parse_meeting_data

__all__ = [
    "IcsExport",
    "ParsedEvent",
    "generate_ics_file",
    "generate_unified_ics_file",
    "parse_ics_file",
    "parse_ics_datetime",
    "format_ics_date",
    "LocalMeetingStore",
    "LoadResult",
    "BackupExport",
    "BackupPayload",
    "export_meeting_data",
    "parse_meeting_data",
]
