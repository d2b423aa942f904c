"""
面談スケジューラー (Meeting Scheduler)

複数の候補者との面談日程を管理するパーソナルツール:
- 希望日程（最大5件）の登録
- 時間帯の重複チェック（時間帯 / 1時間枠の混在に対応）
- 日付別の予定サマリー
- 日程確定とICSエクスポート・インポート
- JSONバックアップ・リストア
"""

__version__ = "0.1.0"
