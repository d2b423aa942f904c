"""
日程調整エンジン

重複判定・予定サマリー・確定済み面談の抽出と、面談コレクションを扱うサービスを提供します。
"""

from .overlap import overlaps
from .conflicts import SlotConflict, find_conflicts, is_slot_occupied
from .summary import (
    OccupancyLevel, generate_schedule_summary, build_occupancy_grid, occupancy_level, grid_columns
)
from .confirmed import select_active_confirmed
from .scheduler import MeetingScheduler, MutationResult, ImportResult, ExportResult

__all__ = [
    "overlaps",
    "SlotConflict",
    "find_conflicts",
    "is_slot_occupied",
    "OccupancyLevel",
    "generate_schedule_summary",
    "build_occupancy_grid",
    "occupancy_level",
    "grid_columns",
    "select_active_confirmed",
    "MeetingScheduler",
    "MutationResult",
    "ImportResult",
    "ExportResult",
]
