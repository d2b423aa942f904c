"""
例外クラス

ストレージ・インポート境界でのみ送出され、サービス層で結果オブジェクトに変換されます。
"""


class SchedulerError(Exception):
    """面談スケジューラーエラー基底クラス"""
    pass


class StorageError(SchedulerError):
    """ストレージ読み書きエラー"""
    pass


class MeetingNotFoundError(SchedulerError):
    """面談未発見エラー"""

    def __init__(self, meeting_id: int):
        super().__init__(f"面談が見つかりません: id={meeting_id}")
        self.meeting_id = meeting_id


class InvalidImportError(SchedulerError):
    """インポートデータ形式エラー"""
    pass
