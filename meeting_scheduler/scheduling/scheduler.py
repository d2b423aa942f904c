"""
面談スケジューラー (Meeting Scheduler)

面談コレクションを所有し、作成・編集・確定・削除とインポート／エクスポートを
提供します。変更のたびに注入された save 関数でコレクション全体を保存します。
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import InvalidImportError, MeetingNotFoundError, StorageError
from ..models import (
    FormData, Meeting, MeetingIdGenerator, MeetingStatus, PendingConfirmation,
    Schedule, ValidationResult, FieldRef, validate_form, validate_confirmation_times,
    validate_confirmation_choice
)
from ..integrations.backup import BackupExport, export_meeting_data, parse_meeting_data
from ..integrations.ics_codec import generate_ics_file, generate_unified_ics_file, parse_ics_file
from ..integrations.local_store import LoadResult
from .conflicts import SlotConflict, find_conflicts, is_slot_occupied
from .confirmed import select_active_confirmed
from .summary import build_occupancy_grid, generate_schedule_summary

logger = logging.getLogger(__name__)

LoadFn = Callable[[], LoadResult]
SaveFn = Callable[[Sequence[Meeting]], None]

DEFAULT_NOTIFICATION_TIMES = [60, 30]

# インライン編集で変更できないフィールド（status は確定・取消の操作でのみ変わる）
_IMMUTABLE_FIELDS = {"id", "status"}
_CONFIRMED_SLOT_FIELDS = {"confirmed_date", "confirmed_time_slot"}


class MutationResult(BaseModel):
    """変更操作の結果"""
    success: bool
    meeting: Optional[Meeting] = None
    validation: ValidationResult = Field(default_factory=ValidationResult)
    error_message: Optional[str] = None


class ImportResult(BaseModel):
    """インポート結果"""
    success: bool
    imported_count: int = 0
    skipped_count: int = 0
    error_message: Optional[str] = None


class ExportResult(BaseModel):
    """エクスポート結果"""
    success: bool
    filename: Optional[str] = None
    content: Optional[str] = None
    event_count: int = 0
    error_message: Optional[str] = None


def _load_nothing() -> LoadResult:
    return LoadResult()


def _save_nothing(meetings: Sequence[Meeting]) -> None:
    return None


class MeetingScheduler:
    """面談スケジューラー - 面談コレクションの所有者"""

    def __init__(
        self,
        load: Optional[LoadFn] = None,
        save: Optional[SaveFn] = None,
        notification_times: Optional[Sequence[int]] = None,
        id_generator: Optional[MeetingIdGenerator] = None
    ):
        """
        スケジューラーを初期化し、コレクションを1回だけ読み込む

        Args:
            load: コレクション読み込み関数
            save: コレクション保存関数
            notification_times: ICSのリマインダー（開始何分前か）
            id_generator: 面談ID採番器
        """
        self._save = save or _save_nothing
        self.notification_times: List[int] = list(
            DEFAULT_NOTIFICATION_TIMES if notification_times is None else notification_times
        )

        load_result = (load or _load_nothing)()
        self._meetings: List[Meeting] = list(load_result.meetings)
        self.load_error: Optional[str] = load_result.error_message
        self.last_save_error: Optional[str] = None

        self.id_generator = id_generator or MeetingIdGenerator()
        self.id_generator.reserve(meeting.id for meeting in self._meetings)

        self.pending_confirmation: Optional[PendingConfirmation] = None

    # ------------------------------------------------------------------
    # 参照
    # ------------------------------------------------------------------

    @property
    def meetings(self) -> List[Meeting]:
        return list(self._meetings)

    def get_meeting(self, meeting_id: int) -> Meeting:
        """
        IDから面談を取得

        Raises:
            MeetingNotFoundError: 該当する面談がない場合
        """
        for meeting in self._meetings:
            if meeting.id == meeting_id:
                return meeting
        raise MeetingNotFoundError(meeting_id)

    def edit_form_for(self, meeting_id: int) -> FormData:
        """編集用のフォームデータを作成"""
        return FormData.from_meeting(self.get_meeting(meeting_id))

    def schedule_summary(self) -> Dict[str, List[Schedule]]:
        return generate_schedule_summary(self._meetings)

    def occupancy_grid(self) -> Dict[str, Dict[str, List[Schedule]]]:
        return build_occupancy_grid(self.schedule_summary())

    def active_confirmed(self, now: Optional[datetime] = None) -> List[Meeting]:
        return select_active_confirmed(self._meetings, now)

    def _editing_meeting(self, editing_meeting_id: Optional[int]) -> Optional[Meeting]:
        if editing_meeting_id is None:
            return None
        try:
            return self.get_meeting(editing_meeting_id)
        except MeetingNotFoundError:
            return None

    def is_slot_occupied(
        self,
        date: str,
        time_slot: str,
        editing_meeting_id: Optional[int] = None,
        form_data: Optional[FormData] = None,
        option_index: int = -1
    ) -> bool:
        return is_slot_occupied(
            date, time_slot, self._meetings,
            self._editing_meeting(editing_meeting_id), form_data, option_index
        )

    def find_conflicts(
        self,
        date: str,
        time_slot: str,
        editing_meeting_id: Optional[int] = None,
        form_data: Optional[FormData] = None,
        option_index: int = -1
    ) -> List[SlotConflict]:
        return find_conflicts(
            date, time_slot, self._meetings,
            self._editing_meeting(editing_meeting_id), form_data, option_index
        )

    # ------------------------------------------------------------------
    # 変更
    # ------------------------------------------------------------------

    def _commit(self, meetings: List[Meeting]) -> None:
        """コレクションを差し替えて保存"""
        self._meetings = meetings
        try:
            self._save(self._meetings)
            self.last_save_error = None
        except StorageError as e:
            self.last_save_error = str(e)
            logger.error(f"面談データの保存に失敗しました: {e}")

    def _replace(self, updated: Meeting) -> None:
        self._commit([updated if meeting.id == updated.id else meeting for meeting in self._meetings])

    def add_meeting(self, form_data: FormData, editing_meeting_id: Optional[int] = None) -> MutationResult:
        """
        フォームの内容で面談を作成、または編集中の面談を更新

        バリデーションエラーがある場合は変更せず、すべてのエラーを返します。
        """
        validation = validate_form(form_data)
        if not validation.is_valid:
            return MutationResult(
                success=False,
                validation=validation,
                error_message="入力内容に不備があります。"
            )

        fields = {
            "name": form_data.name.strip(),
            "image": form_data.image,
            "notes": form_data.notes,
            "meeting_type": form_data.meeting_type,
            "meeting_location": form_data.meeting_location,
            "preferred_options": form_data.complete_options(),
        }

        if editing_meeting_id is not None:
            try:
                existing = self.get_meeting(editing_meeting_id)
            except MeetingNotFoundError as e:
                return MutationResult(success=False, error_message=str(e))

            updated = existing.model_copy(deep=True)
            for field_name, value in fields.items():
                setattr(updated, field_name, value)
            self._replace(updated)
            logger.info(f"面談を更新しました: id={updated.id} name={updated.name}")
            return MutationResult(success=True, meeting=updated)

        meeting = Meeting(id=self.id_generator.next_id(), status=MeetingStatus.PENDING, **fields)
        self._commit(self._meetings + [meeting])
        logger.info(f"面談を作成しました: id={meeting.id} name={meeting.name}")
        return MutationResult(success=True, meeting=meeting)

    def update_meeting_fields(self, meeting_id: int, **changes: Any) -> MutationResult:
        """面談の一部のフィールドを更新（インライン編集）"""
        try:
            existing = self.get_meeting(meeting_id)
        except MeetingNotFoundError as e:
            return MutationResult(success=False, error_message=str(e))

        blocked = _IMMUTABLE_FIELDS.intersection(changes)
        if blocked:
            return MutationResult(
                success=False,
                error_message=f"変更できないフィールドです: {', '.join(sorted(blocked))}"
            )

        if "name" in changes and not str(changes["name"] or "").strip():
            validation = ValidationResult()
            validation.add(FieldRef.name(), "名前は必須です")
            return MutationResult(success=False, validation=validation, error_message="名前は必須です")

        merged = existing.model_dump()
        merged.update(changes)
        try:
            updated = Meeting.model_validate(merged)
        except ValidationError as e:
            return MutationResult(success=False, error_message=f"面談情報の更新に失敗しました: {e}")

        has_confirmed_slot = bool(updated.confirmed_date and updated.confirmed_time_slot)
        touches_slot = _CONFIRMED_SLOT_FIELDS.intersection(changes)
        if touches_slot and updated.is_confirmed() != has_confirmed_slot:
            return MutationResult(
                success=False,
                error_message="確定日と時間帯は確定・取消の操作で変更してください"
            )

        self._replace(updated)
        logger.info(f"面談情報を更新しました: id={meeting_id} fields={sorted(changes)}")
        return MutationResult(success=True, meeting=updated)

    def set_meeting_result(self, meeting_id: int, meeting_result: str) -> MutationResult:
        """面談結果・メモを記録"""
        return self.update_meeting_fields(meeting_id, meeting_result=meeting_result)

    def delete_meeting(self, meeting_id: int) -> MutationResult:
        try:
            meeting = self.get_meeting(meeting_id)
        except MeetingNotFoundError as e:
            return MutationResult(success=False, error_message=str(e))

        self._commit([m for m in self._meetings if m.id != meeting_id])
        if self.pending_confirmation and self.pending_confirmation.meeting_id == meeting_id:
            self.pending_confirmation = None
        logger.info(f"面談を削除しました: id={meeting_id}")
        return MutationResult(success=True, meeting=meeting)

    def confirm_meeting(self, meeting_id: int, date: str, time_slot: str) -> MutationResult:
        """確定する日程を選択し、開始・終了時刻の入力待ちにする"""
        try:
            meeting = self.get_meeting(meeting_id)
        except MeetingNotFoundError as e:
            return MutationResult(success=False, error_message=str(e))

        validation = validate_confirmation_choice(date, time_slot)
        if not validation.is_valid:
            return MutationResult(
                success=False,
                validation=validation,
                error_message="入力内容に不備があります。"
            )

        self.pending_confirmation = PendingConfirmation(
            meeting_id=meeting_id, date=date, time_slot=time_slot
        )
        return MutationResult(success=True, meeting=meeting)

    def finalize_confirmation(self, start_time: str, end_time: str) -> MutationResult:
        """入力待ちの日程を開始・終了時刻付きで確定"""
        pending = self.pending_confirmation
        if pending is None:
            return MutationResult(success=False, error_message="確定する日程が選択されていません")

        validation = validate_confirmation_times(start_time, end_time)
        if not validation.is_valid:
            return MutationResult(
                success=False,
                validation=validation,
                error_message="入力内容に不備があります。"
            )

        try:
            meeting = self.get_meeting(pending.meeting_id)
        except MeetingNotFoundError as e:
            self.pending_confirmation = None
            return MutationResult(success=False, error_message=str(e))

        updated = meeting.model_copy(deep=True)
        updated.confirmed_date = pending.date
        updated.confirmed_time_slot = pending.time_slot
        updated.confirmed_start_time = start_time
        updated.confirmed_end_time = end_time
        updated.status = MeetingStatus.CONFIRMED

        self._replace(updated)
        self.pending_confirmation = None
        logger.info(f"面談日程を確定しました: id={updated.id} {pending.date} {start_time}-{end_time}")
        return MutationResult(success=True, meeting=updated)

    def cancel_confirmation(self) -> None:
        self.pending_confirmation = None

    def reset_confirmation(self, meeting_id: int) -> MutationResult:
        """確定を取り消して日程調整中に戻す"""
        try:
            meeting = self.get_meeting(meeting_id)
        except MeetingNotFoundError as e:
            return MutationResult(success=False, error_message=str(e))

        updated = meeting.model_copy(deep=True)
        updated.confirmed_date = ""
        updated.confirmed_time_slot = ""
        updated.confirmed_start_time = ""
        updated.confirmed_end_time = ""
        updated.status = MeetingStatus.PENDING

        self._replace(updated)
        logger.info(f"面談の確定を取り消しました: id={meeting_id}")
        return MutationResult(success=True, meeting=updated)

    # ------------------------------------------------------------------
    # インポート・エクスポート
    # ------------------------------------------------------------------

    def import_ics(self, content: str) -> ImportResult:
        """ICSテキストの各イベントを面談として追加"""
        events = parse_ics_file(content, self.id_generator)
        if not events:
            return ImportResult(success=False, error_message="有効なイベントが見つかりませんでした。")

        new_meetings = [event.to_meeting() for event in events]
        self._commit(self._meetings + new_meetings)
        logger.info(f"ICSから{len(new_meetings)}件の面談をインポートしました")
        return ImportResult(success=True, imported_count=len(new_meetings))

    def import_backup(self, content: str) -> ImportResult:
        """
        JSONバックアップで面談データ全体を置き換える

        形式が不正な場合は現在のデータを変更しません。
        """
        try:
            payload = parse_meeting_data(content)
        except InvalidImportError as e:
            logger.error(f"バックアップのインポートに失敗しました: {e}")
            return ImportResult(success=False, error_message=str(e))

        # 振り直すIDがバックアップ内の他のIDと衝突しないよう先に登録する
        self.id_generator.reserve(meeting.id for meeting in payload.meetings)

        seen_ids = set()
        restored: List[Meeting] = []
        for meeting in payload.meetings:
            if meeting.id in seen_ids:
                meeting = meeting.model_copy(update={"id": self.id_generator.next_id()})
                logger.warning(f"重複したIDを振り直しました: name={meeting.name} id={meeting.id}")
            seen_ids.add(meeting.id)
            restored.append(meeting)

        self.pending_confirmation = None
        self._commit(restored)
        logger.info(f"バックアップから{len(restored)}件の面談を復元しました")
        return ImportResult(
            success=True,
            imported_count=len(restored),
            skipped_count=payload.skipped_count
        )

    def export_backup(self, now: Optional[datetime] = None) -> BackupExport:
        return export_meeting_data(self._meetings, now)

    def export_ics(
        self,
        meeting_id: int,
        notification_times: Optional[Sequence[int]] = None,
        now: Optional[datetime] = None
    ) -> ExportResult:
        """1件の確定済み面談をICSにエクスポート"""
        try:
            meeting = self.get_meeting(meeting_id)
        except MeetingNotFoundError as e:
            return ExportResult(success=False, error_message=str(e))

        times = self.notification_times if notification_times is None else notification_times
        export = generate_ics_file(meeting, times, now)
        if export is None:
            return ExportResult(success=False, error_message="確定日時が設定されていません")

        return ExportResult(success=True, filename=export.filename, content=export.content, event_count=1)

    def export_all_ics(
        self,
        notification_times: Optional[Sequence[int]] = None,
        now: Optional[datetime] = None
    ) -> ExportResult:
        """確定済みの全面談を1つのICSにエクスポート"""
        times = self.notification_times if notification_times is None else notification_times
        export = generate_unified_ics_file(self._meetings, times, now)
        if export is None:
            return ExportResult(success=False, error_message="確定済みの面談がありません")

        return ExportResult(
            success=True,
            filename=export.filename,
            content=export.content,
            event_count=export.event_count
        )
