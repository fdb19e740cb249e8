from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from services.journey.domain.value_object import (
    BookingId,
    BookingRef,
    PackageBookingId,
)
from services.shared.domain import Money


@dataclass(frozen=True)
class BookingRequest:
    """予約サービスへ渡す1予約分の作成要求"""

    journey_id: str
    user_id: str
    supplier_id: str
    service_id: str | None
    service_type: str
    segment_ids: tuple[str, ...]
    service_date: datetime | None
    check_in: datetime | None
    check_out: datetime | None
    day_count: int
    travelers: int
    unit_price: Money
    total: Money
    commission: Money
    package_booking_id: PackageBookingId
    notes: str | None = None
    guest_details: dict = field(default_factory=dict)


class BookingGateway(ABC):
    """予約サービス（外部）"""

    @abstractmethod
    def create_booking(self, request: BookingRequest) -> BookingRef:
        raise NotImplementedError

    @abstractmethod
    def cancel_booking(self, booking_id: BookingId, reason: str | None) -> BookingRef:
        raise NotImplementedError

    @abstractmethod
    def get_bookings(
        self, booking_ids: list[BookingId]
    ) -> dict[BookingId, BookingRef]:
        """予約IDごとの現在の状態。見つからない予約は含めない"""
        raise NotImplementedError
