"""
面談日程管理のCLIツール
"""

from .meeting_cli import MeetingCLI, app

__all__ = [
    "MeetingCLI",
    "app",
]
