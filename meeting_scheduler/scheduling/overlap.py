"""
時間帯の重複判定

粗い時間帯（morning 等）と1時間枠（"13-14" 等）を混在させて比較できます。
"""

from ..models.time_slot import SlotLabel, range_of, is_disabled_slot


def overlaps(label_a: str, label_b: str) -> bool:
    """
    2つの時間帯ラベルが重複するか判定

    Args:
        label_a: 時間帯の値
        label_b: 時間帯の値

    Returns:
        重複する場合は True。区切り行や解決できないラベルは重複しない
    """
    if is_disabled_slot(label_a) or is_disabled_slot(label_b):
        return False

    if label_a == SlotLabel.ALLDAY.value or label_b == SlotLabel.ALLDAY.value:
        return True

    if label_a == label_b:
        return True

    range_a = range_of(label_a)
    range_b = range_of(label_b)
    if range_a is None or range_b is None:
        return False

    start_a, end_a = range_a
    start_b, end_b = range_b
    return start_a < end_b and start_b < end_a
