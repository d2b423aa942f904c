"""
面談データのバックアップ・リストア

{exportDate, version, meetings} 形式のJSONでコレクション全体を入出力します。
"""

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..exceptions import InvalidImportError
from ..models import Meeting
from .local_store import meetings_from_records

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


class BackupExport(BaseModel):
    """ダウンロード用のバックアップファイル"""
    filename: str
    content: str
    media_type: str = "application/json"


class BackupPayload(BaseModel):
    """バックアップから復元した面談データ"""
    meetings: List[Meeting] = Field(default_factory=list)
    skipped_count: int = 0
    version: Optional[str] = None
    export_date: Optional[str] = None


def export_meeting_data(meetings: Sequence[Meeting], now: Optional[datetime] = None) -> BackupExport:
    """面談データをJSONバックアップに変換"""
    now = now or datetime.now(timezone.utc)
    data = {
        "exportDate": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "version": BACKUP_VERSION,
        "meetings": [meeting.to_dict() for meeting in meetings],
    }

    return BackupExport(
        filename=f"meeting-data-backup-{now.date().isoformat()}.json",
        content=json.dumps(data, ensure_ascii=False, indent=2)
    )


def is_valid_record(record: Any) -> bool:
    """id が有限の数値、name が文字列、preferredOptions が配列のレコードのみ受け付ける"""
    if not isinstance(record, dict):
        return False
    record_id = record.get("id")
    return (
        isinstance(record_id, (int, float)) and not isinstance(record_id, bool)
        and math.isfinite(record_id)
        and isinstance(record.get("name"), str)
        and isinstance(record.get("preferredOptions"), list)
    )


def parse_meeting_data(content: str) -> BackupPayload:
    """
    JSONバックアップから面談データを読み込む

    Raises:
        InvalidImportError: JSONとして解析できない、または meetings が配列でない場合
    """
    try:
        data: Dict[str, Any] = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidImportError(f"ファイルの読み込みに失敗しました: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("meetings"), list):
        raise InvalidImportError("ファイルの読み込みに失敗しました: 無効なデータ形式です")

    records = data["meetings"]
    valid_records = [record for record in records if is_valid_record(record)]
    meetings, invalid_models = meetings_from_records(valid_records)
    skipped = len(records) - len(valid_records) + invalid_models

    if skipped:
        logger.warning(f"不正な面談データを{skipped}件スキップしました")

    return BackupPayload(
        meetings=meetings,
        skipped_count=skipped,
        version=_optional_text(data.get("version")),
        export_date=_optional_text(data.get("exportDate"))
    )


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)
