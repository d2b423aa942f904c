"""
Meeting Scheduler CLI - 面談日程管理CLI
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import SchedulerSettings, load_settings
from ..demo import demo_meetings
from ..exceptions import MeetingNotFoundError
from ..integrations.local_store import LoadResult, LocalMeetingStore
from ..models import (
    FormData, Meeting, MeetingType, PreferredOption, Schedule, TIME_SLOTS,
    get_time_slot_label, MAX_PREFERRED_OPTIONS
)
from ..scheduling import (
    MeetingScheduler, MutationResult, OccupancyLevel, grid_columns, occupancy_level
)

console = Console()
app = typer.Typer(help="Meeting Scheduler CLI - 面談日程管理ツール")

logger = logging.getLogger(__name__)

_LEVEL_STYLES = {
    OccupancyLevel.FREE: "dim",
    OccupancyLevel.BOOKED: "blue",
    OccupancyLevel.CONFLICT: "bold red",
}


class MeetingCLI:
    """
    面談管理CLI
    - 面談の登録・編集・削除
    - 重複チェック・予定サマリー
    - 日程確定とICS／バックアップの入出力
    """

    def __init__(self, settings: SchedulerSettings, scheduler: Optional[MeetingScheduler] = None):
        self.settings = settings
        if scheduler is None:
            store = LocalMeetingStore(settings.storage_path, settings.storage_key)
            scheduler = MeetingScheduler(
                load=store.load,
                save=store.save,
                notification_times=settings.notification_times
            )
        self.scheduler = scheduler

        if self.scheduler.load_error:
            console.print(f"⚠️ {self.scheduler.load_error}（空のデータで開始します）", style="yellow")

    def write_export(self, filename: str, content: str, output_dir: Optional[Path]) -> Path:
        """エクスポート内容をファイルに保存"""
        directory = Path(output_dir or self.settings.export_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        # ICSの CRLF をそのまま書き出す
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        return path


def _cli(ctx: typer.Context) -> MeetingCLI:
    return ctx.obj


def _parse_options(values: List[str]) -> List[PreferredOption]:
    """ "YYYY-MM-DD:時間帯" 形式の希望日程を解析"""
    options = []
    for value in values:
        date, _, time_slot = value.partition(":")
        options.append(PreferredOption(date=date.strip(), time_slot=time_slot.strip()))
    return options


def _pad_options(options: List[PreferredOption]) -> List[PreferredOption]:
    return options + [PreferredOption() for _ in range(MAX_PREFERRED_OPTIONS - len(options))]


def _report_mutation(result: MutationResult, success_message: str) -> None:
    if result.success:
        console.print(f"✅ {success_message}", style="green")
        return

    console.print(f"❌ {result.error_message}", style="red")
    for error in result.validation.errors:
        console.print(f"  • {error.field}: {error.message}", style="red")
    raise typer.Exit(code=1)


def _warn_conflicts(cli: MeetingCLI, form: FormData, editing_meeting_id: Optional[int] = None) -> None:
    """フォーム内の各希望日程の重複を警告"""
    for index, option in enumerate(form.preferred_options):
        if not option.is_complete():
            continue
        conflicts = cli.scheduler.find_conflicts(
            option.date, option.time_slot, editing_meeting_id, form, index
        )
        for conflict in conflicts:
            owner = "フォーム内" if conflict.in_form else conflict.meeting_name
            console.print(
                f"⚠️ 第{index + 1}希望 {option.date} {get_time_slot_label(option.time_slot)} が "
                f"{owner}の第{conflict.priority}希望（{get_time_slot_label(conflict.time_slot)}）と重複しています",
                style="yellow"
            )


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(None, "--config", help="設定ファイル (YAML)")
):
    """面談日程管理ツール"""
    settings = load_settings(config_file)
    logging.basicConfig(level=settings.log_level)
    if ctx.obj is None:
        ctx.obj = MeetingCLI(settings)


@app.command()
def slots():
    """選択可能な時間帯を表示"""
    table = Table(title="時間帯")
    table.add_column("値", style="cyan")
    table.add_column("ラベル")

    for slot in TIME_SLOTS:
        if slot.disabled:
            table.add_row("", slot.label, style="dim")
        else:
            table.add_row(slot.value, slot.label)

    console.print(table)


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="面談者名"),
    option: List[str] = typer.Option([], "--option", "-o", help="希望日程 YYYY-MM-DD:時間帯（最大5件、優先順）"),
    notes: str = typer.Option("", help="メモ"),
    meeting_type: MeetingType = typer.Option(MeetingType.OFFLINE, "--type", help="面談形式"),
    location: str = typer.Option("", help="URL・会議室など")
):
    """面談を登録"""
    cli = _cli(ctx)
    form = FormData(
        name=name,
        notes=notes,
        meeting_type=meeting_type,
        meeting_location=location,
        preferred_options=_pad_options(_parse_options(option))
    )

    _warn_conflicts(cli, form)
    result = cli.scheduler.add_meeting(form)
    _report_mutation(result, f"面談を登録しました (ID: {result.meeting.id if result.meeting else '-'})")


@app.command()
def edit(
    ctx: typer.Context,
    meeting_id: int = typer.Argument(..., help="面談ID"),
    name: Optional[str] = typer.Option(None, help="面談者名"),
    option: List[str] = typer.Option([], "--option", "-o", help="希望日程を置き換える YYYY-MM-DD:時間帯"),
    notes: Optional[str] = typer.Option(None, help="メモ"),
    location: Optional[str] = typer.Option(None, help="URL・会議室など")
):
    """面談を編集"""
    cli = _cli(ctx)
    try:
        form = cli.scheduler.edit_form_for(meeting_id)
    except MeetingNotFoundError as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(code=1)

    if name is not None:
        form.name = name
    if notes is not None:
        form.notes = notes
    if location is not None:
        form.meeting_location = location
    if option:
        form.preferred_options = _pad_options(_parse_options(option))

    _warn_conflicts(cli, form, meeting_id)
    result = cli.scheduler.add_meeting(form, editing_meeting_id=meeting_id)
    _report_mutation(result, "面談情報を更新しました")


@app.command(name="list")
def list_meetings(ctx: typer.Context):
    """面談一覧を表示"""
    meetings = _cli(ctx).scheduler.meetings
    if not meetings:
        console.print("面談が登録されていません", style="dim")
        return

    table = Table(title="面談一覧")
    table.add_column("ID", style="cyan")
    table.add_column("名前")
    table.add_column("形式")
    table.add_column("希望日程")
    table.add_column("確定日程")

    for meeting in meetings:
        options = "\n".join(
            f"第{index + 1}希望 {option.date} {get_time_slot_label(option.time_slot)}"
            for index, option in enumerate(meeting.preferred_options)
        )
        table.add_row(
            str(meeting.id),
            meeting.name,
            "オンライン" if meeting.is_online() else "対面",
            options or "-",
            _format_confirmed(meeting)
        )

    console.print(table)


def _format_confirmed(meeting: Meeting) -> str:
    if not meeting.is_confirmed():
        return "調整中"
    times = ""
    if meeting.confirmed_start_time:
        times = f" {meeting.confirmed_start_time}~{meeting.confirmed_end_time}"
    return f"{meeting.confirmed_date} ({get_time_slot_label(meeting.confirmed_time_slot)}){times}"


def _display_summary(summary: Dict[str, List[Schedule]]) -> None:
    if not summary:
        console.print("調整中の希望日程はありません", style="dim")
        return

    table = Table(title="予定サマリー")
    table.add_column("日付", style="cyan")
    table.add_column("時間帯")
    table.add_column("面談者")
    table.add_column("希望順位")

    for date, schedules in summary.items():
        for schedule in schedules:
            table.add_row(
                date,
                get_time_slot_label(schedule.time_slot),
                schedule.meeting_name,
                f"第{schedule.priority}希望"
            )

    console.print(table)


@app.command()
def summary(ctx: typer.Context):
    """日付別の予定サマリーを表示"""
    _display_summary(_cli(ctx).scheduler.schedule_summary())


@app.command()
def grid(
    ctx: typer.Context,
    hourly: bool = typer.Option(False, "--hourly", help="1時間枠で表示")
):
    """日付 × 時間帯の埋まり具合を表示"""
    occupancy = _cli(ctx).scheduler.occupancy_grid()
    if not occupancy:
        console.print("調整中の希望日程はありません", style="dim")
        return

    columns = [column for column in grid_columns() if ("-" in column) == hourly]

    table = Table(title="空き状況")
    table.add_column("日付", style="cyan")
    for column in columns:
        table.add_column(get_time_slot_label(column))

    for date, row in occupancy.items():
        cells = []
        for column in columns:
            schedules = row[column]
            level = occupancy_level(schedules)
            text = "空き" if level == OccupancyLevel.FREE else "\n".join(
                f"{schedule.meeting_name}(第{schedule.priority}希望)" for schedule in schedules
            )
            cells.append(f"[{_LEVEL_STYLES[level]}]{text}[/]")
        table.add_row(date, *cells)

    console.print(table)


@app.command()
def active(
    ctx: typer.Context,
    now: Optional[datetime] = typer.Option(None, help="基準時刻（省略時は現在時刻）")
):
    """これからの確定済み面談を表示"""
    meetings = _cli(ctx).scheduler.active_confirmed(now)
    if not meetings:
        console.print("予定されている面談はありません", style="dim")
        return

    table = Table(title="確定済みの面談")
    table.add_column("日付", style="cyan")
    table.add_column("時間")
    table.add_column("面談者")
    table.add_column("形式")
    table.add_column("場所")

    for meeting in meetings:
        time_range = (
            f"{meeting.confirmed_start_time}~{meeting.confirmed_end_time}"
            if meeting.confirmed_start_time else get_time_slot_label(meeting.confirmed_time_slot)
        )
        table.add_row(
            meeting.confirmed_date,
            time_range,
            meeting.name,
            "オンライン" if meeting.is_online() else "対面",
            meeting.meeting_location or "-"
        )

    console.print(table)


@app.command()
def check(
    ctx: typer.Context,
    date: str = typer.Argument(..., help="日付 YYYY-MM-DD"),
    time_slot: str = typer.Argument(..., help="時間帯"),
    exclude: Optional[int] = typer.Option(None, help="除外する面談ID（編集中の面談）")
):
    """指定日時が他の希望日程と重複しているか確認"""
    conflicts = _cli(ctx).scheduler.find_conflicts(date, time_slot, exclude)
    if not conflicts:
        console.print(f"✅ {date} {get_time_slot_label(time_slot)} は空いています", style="green")
        return

    console.print(f"⚠️ {date} {get_time_slot_label(time_slot)} は重複しています", style="yellow")
    for conflict in conflicts:
        console.print(
            f"  • {conflict.meeting_name} 第{conflict.priority}希望 "
            f"({get_time_slot_label(conflict.time_slot)})"
        )


@app.command()
def confirm(
    ctx: typer.Context,
    meeting_id: int = typer.Argument(..., help="面談ID"),
    date: str = typer.Argument(..., help="確定日 YYYY-MM-DD"),
    time_slot: str = typer.Argument(..., help="時間帯"),
    start_time: str = typer.Argument(..., help="開始時刻 HH:MM"),
    end_time: str = typer.Argument(..., help="終了時刻 HH:MM")
):
    """面談日程を確定"""
    scheduler = _cli(ctx).scheduler
    _report_mutation(scheduler.confirm_meeting(meeting_id, date, time_slot), "日程を選択しました")
    _report_mutation(scheduler.finalize_confirmation(start_time, end_time), "面談日程を確定しました")


@app.command()
def reset(ctx: typer.Context, meeting_id: int = typer.Argument(..., help="面談ID")):
    """日程の確定を取り消す"""
    _report_mutation(_cli(ctx).scheduler.reset_confirmation(meeting_id), "確定を取り消しました")


@app.command()
def delete(
    ctx: typer.Context,
    meeting_id: int = typer.Argument(..., help="面談ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="確認なしで削除")
):
    """面談を削除"""
    if not yes and not typer.confirm(f"面談 {meeting_id} を削除しますか？"):
        raise typer.Abort()
    _report_mutation(_cli(ctx).scheduler.delete_meeting(meeting_id), "面談を削除しました")


@app.command()
def result(
    ctx: typer.Context,
    meeting_id: int = typer.Argument(..., help="面談ID"),
    text: str = typer.Argument(..., help="面談結果・メモ")
):
    """面談結果を記録"""
    _report_mutation(_cli(ctx).scheduler.set_meeting_result(meeting_id, text), "面談結果を記録しました")


@app.command()
def export_ics(
    ctx: typer.Context,
    meeting_id: int = typer.Argument(..., help="面談ID"),
    notify: Optional[List[int]] = typer.Option(None, help="通知（開始何分前か）"),
    output_dir: Optional[Path] = typer.Option(None, help="出力ディレクトリ")
):
    """確定済みの面談をICSファイルに出力"""
    cli = _cli(ctx)
    export = cli.scheduler.export_ics(meeting_id, notify or None)
    if not export.success:
        console.print(f"❌ {export.error_message}", style="red")
        raise typer.Exit(code=1)

    path = cli.write_export(export.filename, export.content, output_dir)
    console.print(f"📁 {path} に保存しました", style="green")


@app.command()
def export_all(
    ctx: typer.Context,
    notify: Optional[List[int]] = typer.Option(None, help="通知（開始何分前か）"),
    output_dir: Optional[Path] = typer.Option(None, help="出力ディレクトリ")
):
    """確定済みの全面談を1つのICSファイルに出力"""
    cli = _cli(ctx)
    export = cli.scheduler.export_all_ics(notify or None)
    if not export.success:
        console.print(f"⚠️ {export.error_message}", style="yellow")
        return

    path = cli.write_export(export.filename, export.content, output_dir)
    console.print(f"📁 {export.event_count}件の面談を {path} に保存しました", style="green")


@app.command()
def import_ics(
    ctx: typer.Context,
    ics_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="ICSファイル")
):
    """ICSファイルから面談を取り込む"""
    content = ics_file.read_text(encoding="utf-8")
    result = _cli(ctx).scheduler.import_ics(content)
    if not result.success:
        console.print(f"❌ {result.error_message}", style="red")
        raise typer.Exit(code=1)
    console.print(f"✅ {result.imported_count}件の面談をインポートしました", style="green")


@app.command()
def backup(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(None, help="出力ディレクトリ")
):
    """全データをJSONファイルにエクスポート"""
    cli = _cli(ctx)
    export = cli.scheduler.export_backup()
    path = cli.write_export(export.filename, export.content, output_dir)
    console.print(f"📁 {path} に保存しました", style="green")


@app.command()
def restore(
    ctx: typer.Context,
    backup_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="バックアップJSON"),
    yes: bool = typer.Option(False, "--yes", "-y", help="確認なしで上書き")
):
    """JSONバックアップから全データを復元（現在のデータは上書きされます）"""
    if not yes and not typer.confirm("現在の全データを上書きします。よろしいですか？"):
        raise typer.Abort()

    content = backup_file.read_text(encoding="utf-8")
    result = _cli(ctx).scheduler.import_backup(content)
    if not result.success:
        console.print(f"❌ {result.error_message}", style="red")
        raise typer.Exit(code=1)

    message = f"✅ {result.imported_count}件の面談を復元しました"
    if result.skipped_count:
        message += f"（不正なデータ{result.skipped_count}件をスキップ）"
    console.print(message, style="green")


@app.command()
def demo(
    ctx: typer.Context,
    now: Optional[datetime] = typer.Option(None, help="基準時刻（省略時は現在時刻）")
):
    """サンプルデータで予定サマリーと確定済み面談を表示（保存はしません）"""
    scheduler = MeetingScheduler(
        load=lambda: LoadResult(meetings=demo_meetings()),
        notification_times=_cli(ctx).settings.notification_times
    )

    console.print(Panel("デモモード: サンプルデータを表示しています", style="magenta"))
    _display_summary(scheduler.schedule_summary())

    confirmed = scheduler.active_confirmed(now)
    console.print(f"\n確定済みの面談: {len(confirmed)}件")
    for meeting in confirmed:
        console.print(f"  • {meeting.confirmed_date} {meeting.confirmed_start_time} {meeting.name}")


if __name__ == "__main__":
    app()
