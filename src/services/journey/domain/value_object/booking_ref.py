from dataclasses import dataclass

from services.journey.domain.enum import BookingStatus

from .booking_id import BookingId


@dataclass(frozen=True)
class BookingRef:
    """予約サービスが返す予約の参照情報"""

    id: BookingId
    reference: str
    status: BookingStatus

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED
