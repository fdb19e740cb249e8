from enum import Enum


class BookingStatus(str, Enum):
    """サプライヤー予約ステータス（予約サービス側の値）"""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    @property
    def is_active(self) -> bool:
        """キャンセル・完了前の有効な予約か"""
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)
