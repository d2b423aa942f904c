"""
ローカルストレージ

ブラウザの localStorage と同じく「キー → JSON文字列」の形でファイルに保存します。
コレクション全体を起動時に1回読み込み、変更のたびに全体を書き込みます。
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import StorageError
from ..models import Meeting

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "meetingSchedulerData"


class LoadResult(BaseModel):
    """読み込み結果"""
    meetings: List[Meeting] = Field(default_factory=list)
    skipped_count: int = 0
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_message is None


def meetings_from_records(records: list) -> Tuple[List[Meeting], int]:
    """レコードのリストから Meeting を復元。不正なレコードはスキップ"""
    meetings: List[Meeting] = []
    skipped = 0
    for record in records:
        try:
            meetings.append(Meeting.from_dict(record))
        except (ValidationError, TypeError) as e:
            skipped += 1
            logger.warning(f"不正な面談データをスキップしました: {e}")
    return meetings, skipped


class LocalMeetingStore:
    """面談コレクションのファイルストレージ"""

    def __init__(self, path: Path, key: str = DEFAULT_STORAGE_KEY):
        """
        ストレージを初期化

        Args:
            path: 保存先のJSONファイル
            key: 面談データを保存するキー
        """
        self.path = Path(path).expanduser()
        self.key = key

    def _read_items(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except OSError as e:
            raise StorageError(f"ストレージの読み込みに失敗しました: {e}")
        except json.JSONDecodeError as e:
            raise StorageError(f"ストレージの形式が不正です: {e}")

        if not isinstance(items, dict):
            raise StorageError("ストレージの形式が不正です")
        return items

    def load(self) -> LoadResult:
        """
        面談コレクションを読み込む

        キーがない場合は空のコレクション、解析できない場合は空のコレクションと
        エラーメッセージを返します。
        """
        try:
            items = self._read_items()
        except StorageError as e:
            logger.error(f"データの読み込みに失敗しました: {e}")
            return LoadResult(error_message=str(e))

        saved = items.get(self.key)
        if saved is None:
            return LoadResult()

        try:
            records = json.loads(saved) if isinstance(saved, str) else saved
        except json.JSONDecodeError as e:
            logger.error(f"データの読み込みに失敗しました: {e}")
            return LoadResult(error_message=f"データの読み込みに失敗しました: {e}")

        if not isinstance(records, list):
            logger.error("保存データが配列ではありません")
            return LoadResult(error_message="データの読み込みに失敗しました: 保存データが配列ではありません")

        meetings, skipped = meetings_from_records(records)
        logger.info(f"面談データを読み込みました: {len(meetings)}件")
        return LoadResult(meetings=meetings, skipped_count=skipped)

    def save(self, meetings: Sequence[Meeting]) -> None:
        """
        面談コレクション全体を書き込む

        Raises:
            StorageError: 書き込みに失敗した場合
        """
        try:
            items = self._read_items()
        except StorageError:
            # 壊れたファイルは上書きする
            items = {}

        items[self.key] = json.dumps(
            [meeting.to_dict() for meeting in meetings], ensure_ascii=False
        )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            raise StorageError(f"ストレージの書き込みに失敗しました: {e}")

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            # 書きかけの一時ファイルは残さない
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageError(f"ストレージの書き込みに失敗しました: {e}")
