"""
設定

YAML設定ファイルと環境変数から面談スケジューラーの設定を読み込みます。
環境変数は設定ファイルより優先されます。
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "MEETING_SCHEDULER_"
DEFAULT_STORAGE_PATH = "~/.meeting_scheduler/storage.json"


class SchedulerSettings(BaseModel):
    """面談スケジューラー設定"""
    storage_path: Path = Field(
        default=Path(DEFAULT_STORAGE_PATH), validate_default=True, description="保存先ファイル"
    )
    storage_key: str = Field(default="meetingSchedulerData", description="保存キー")
    notification_times: List[int] = Field(
        default_factory=lambda: [60, 30],
        description="ICSリマインダー（開始何分前か）"
    )
    export_dir: Path = Field(
        default=Path("."), validate_default=True, description="エクスポート先ディレクトリ"
    )
    log_level: str = Field(default="INFO", description="ログレベル")

    @field_validator("storage_path", "export_dir")
    @classmethod
    def expand_path(cls, v):
        return Path(v).expanduser()

    @field_validator("notification_times")
    @classmethod
    def validate_notification_times(cls, v):
        """リマインダー時間の検証"""
        for minutes in v:
            if minutes < 0 or minutes > 40320:  # 4週間まで
                raise ValueError("リマインダー時間は0分以上4週間以内である必要があります")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"不明なログレベルです: {v}")
        return level


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    storage_path = os.getenv(f"{ENV_PREFIX}STORAGE_PATH")
    if storage_path:
        overrides["storage_path"] = storage_path

    storage_key = os.getenv(f"{ENV_PREFIX}STORAGE_KEY")
    if storage_key:
        overrides["storage_key"] = storage_key

    notification_times = os.getenv(f"{ENV_PREFIX}NOTIFICATION_TIMES")
    if notification_times is not None:
        overrides["notification_times"] = [
            part.strip() for part in notification_times.split(",") if part.strip()
        ]

    export_dir = os.getenv(f"{ENV_PREFIX}EXPORT_DIR")
    if export_dir:
        overrides["export_dir"] = export_dir

    log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level

    return overrides


def load_settings(config_file: Optional[Path] = None) -> SchedulerSettings:
    """
    設定を読み込む

    Args:
        config_file: YAML設定ファイル（省略時は環境変数とデフォルト値のみ）

    Raises:
        pydantic.ValidationError: 設定値が不正な場合
    """
    data: Dict[str, Any] = {}

    if config_file is not None:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"設定ファイルの形式が不正です: {config_file}")
        logger.debug(f"設定ファイルを読み込みました: {config_file}")

    data.update(_env_overrides())
    return SchedulerSettings(**data)
