"""
デモモード用のサンプルデータ
"""

from typing import Any, Dict, List

from .models import Meeting

DEMO_DATA: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "田中太郎",
        "notes": "プロダクトマネージャーとしての経験豊富。スクラムマスター資格保有。",
        "meetingType": "offline",
        "meetingLocation": "東京オフィス 会議室A",
        "preferredOptions": [
            {"date": "2025-08-15", "timeSlot": "morning"},
            {"date": "2025-08-16", "timeSlot": "afternoon"},
            {"date": "2025-08-20", "timeSlot": "morning"},
        ],
        "confirmedDate": "2025-08-15",
        "confirmedTimeSlot": "morning",
        "confirmedStartTime": "10:00",
        "confirmedEndTime": "11:00",
        "status": "confirmed",
        "meetingResult": "非常に優秀な候補者でした。技術的な知識も豊富で、チームワークも良好です。",
    },
    {
        "id": 2,
        "name": "佐藤花子",
        "notes": "フロントエンド開発5年経験。React、TypeScript得意。",
        "meetingType": "online",
        "meetingLocation": "Zoom（URLは別途送信）",
        "preferredOptions": [
            {"date": "2025-08-14", "timeSlot": "evening"},
            {"date": "2025-08-15", "timeSlot": "afternoon"},
            {"date": "2025-08-19", "timeSlot": "17-18"},
        ],
        "status": "pending",
    },
    {
        "id": 3,
        "name": "山田次郎",
        "notes": "バックエンドエンジニア。Go、Python、AWSクラウド経験あり。",
        "meetingType": "offline",
        "meetingLocation": "大阪支社 会議室B",
        "preferredOptions": [
            {"date": "2025-08-16", "timeSlot": "morning"},
            {"date": "2025-08-17", "timeSlot": "allday"},
            {"date": "2025-08-21", "timeSlot": "afternoon"},
        ],
        "status": "pending",
    },
    {
        "id": 4,
        "name": "鈴木美咲",
        "notes": "デザイナー兼フロントエンドエンジニア。UI/UX設計からコーディングまで対応可能。",
        "meetingType": "online",
        "meetingLocation": "Google Meet",
        "preferredOptions": [
            {"date": "2025-08-15", "timeSlot": "morning"},
            {"date": "2025-08-15", "timeSlot": "afternoon"},
            {"date": "2025-08-18", "timeSlot": "evening"},
        ],
        "confirmedDate": "2025-08-18",
        "confirmedTimeSlot": "evening",
        "confirmedStartTime": "19:00",
        "confirmedEndTime": "20:30",
        "status": "confirmed",
        "meetingResult": "デザインセンスが優秀で、エンジニアリングスキルとのバランスが取れています。",
    },
    {
        "id": 5,
        "name": "高橋和也",
        "notes": "データサイエンティスト。機械学習、統計解析の専門家。日程調整中のため未定。",
        "meetingType": "offline",
        "meetingLocation": "東京オフィス 会議室C",
        "preferredOptions": [],
        "status": "pending",
    },
    {
        "id": 6,
        "name": "中村翔太",
        "notes": "インフラエンジニア。Docker、Kubernetes、CI/CD経験豊富。",
        "meetingType": "online",
        "meetingLocation": "Microsoft Teams",
        "preferredOptions": [
            {"date": "2025-08-16", "timeSlot": "13-14"},
            {"date": "2025-08-17", "timeSlot": "morning"},
            {"date": "2025-08-19", "timeSlot": "morning"},
        ],
        "status": "pending",
    },
]


def demo_meetings() -> List[Meeting]:
    """デモ用の面談一覧（呼び出しごとに新しいインスタンス）"""
    return [Meeting.from_dict(dict(record)) for record in DEMO_DATA]
