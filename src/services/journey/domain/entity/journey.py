from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from services.journey.domain.enum import JourneyStatus
from services.journey.domain.enum.journey_status import GUEST_TRANSITIONS
from services.journey.domain.event import SupplierBookingCreated
from services.journey.domain.value_object import (
    BookingRef,
    JourneyId,
    PackageBookingId,
    TravelPeriod,
)
from services.shared.domain import (
    AccessDeniedException,
    AggregateRoot,
    Currency,
    InvalidInputException,
    InvalidStateException,
    Money,
)

if TYPE_CHECKING:
    from .journey_segment import JourneySegment


class Journey(AggregateRoot[JourneyId]):
    """ジャーニー集約

    1人のユーザーが所有する複数セグメントの旅行計画。
    total_price は取消されていないセグメント価格の合計をキャッシュした値で、
    recalculate_total 以外から更新してはならない。
    """

    def __init__(
        self,
        id: JourneyId,
        user_id: str,
        name: str,
        origin_location_id: str,
        destination_location_id: str,
        period: TravelPeriod,
        travelers: int,
        currency: Currency,
        total_price: Money | None = None,
        status: JourneyStatus = JourneyStatus.PLANNING,
        preferences: dict | None = None,
        created_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(id, version=version)
        if travelers < 1:
            raise InvalidInputException("Journey must have at least one traveler")
        self._user_id = user_id
        self._name = name
        self._origin_location_id = origin_location_id
        self._destination_location_id = destination_location_id
        self._period = period
        self._travelers = travelers
        self._currency = currency
        self._total_price = total_price or Money.zero(currency)
        self._status = status
        self._preferences = preferences or {}
        self._created_at = created_at or datetime.now(timezone.utc)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def origin_location_id(self) -> str:
        return self._origin_location_id

    @property
    def destination_location_id(self) -> str:
        return self._destination_location_id

    @property
    def period(self) -> TravelPeriod:
        return self._period

    @property
    def travelers(self) -> int:
        return self._travelers

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def total_price(self) -> Money:
        return self._total_price

    @property
    def status(self) -> JourneyStatus:
        return self._status

    @property
    def preferences(self) -> dict:
        return self._preferences

    @property
    def created_at(self) -> datetime:
        return self._created_at

    # --- ガード ---

    def ensure_owned_by(self, user_id: str) -> None:
        if self._user_id != user_id:
            raise AccessDeniedException("You do not have access to this journey")

    def ensure_segments_editable(self) -> None:
        """CONFIRMED / COMPLETED のジャーニーはセグメントを変更できない"""
        if self._status.locks_segments:
            raise InvalidStateException(
                f"Cannot modify segments of a {self._status.value} journey"
            )

    def ensure_bookable(self) -> None:
        if not self._status.is_bookable:
            raise InvalidStateException(
                "Journey must be in PLANNING, READY, or PENDING_CHANGES status to book"
            )

    # --- 属性変更 ---

    def rename(self, name: str) -> None:
        self._name = name

    def reschedule(self, period: TravelPeriod) -> None:
        self._period = period

    def change_travelers(self, travelers: int) -> None:
        if travelers < 1:
            raise InvalidInputException("Journey must have at least one traveler")
        self._travelers = travelers

    def recalculate_total(self, segments: Iterable[JourneySegment]) -> bool:
        """取消されていないセグメントの価格合計を再計算する

        Returns:
            bool: 合計が変わった場合 True
        """
        total = Money.zero(self._currency)
        for segment in segments:
            if segment.is_cancelled:
                continue
            try:
                total = total.add(segment.price)
            except ValueError as e:
                raise InvalidInputException(
                    f"Segment {segment.id} is priced in {segment.price.currency}, "
                    f"journey currency is {self._currency}"
                ) from e
        changed = total != self._total_price
        self._total_price = total
        return changed

    # --- ステータス遷移 ---

    def request_status(self, status: JourneyStatus) -> None:
        """ゲスト操作によるステータス変更"""
        if status == self._status:
            return
        if status not in GUEST_TRANSITIONS[self._status]:
            raise InvalidStateException(
                f"Cannot change journey status from {self._status.value} "
                f"to {status.value}"
            )
        self._status = status

    def start_booking(self) -> None:
        self.ensure_bookable()
        self._status = JourneyStatus.BOOKING

    def confirm(self) -> None:
        if self._status not in (JourneyStatus.BOOKING, JourneyStatus.PENDING_CHANGES):
            raise InvalidStateException(
                f"Cannot confirm a journey in {self._status.value} status"
            )
        self._status = JourneyStatus.CONFIRMED

    def complete(self) -> None:
        """アーカイブ（終端遷移）。ガードは所有者チェックのみ"""
        self._status = JourneyStatus.COMPLETED

    def apply_status(self, status: JourneyStatus) -> bool:
        """カスケード・再計算による遷移を適用する

        Returns:
            bool: ステータスが変わった場合 True
        """
        if status == self._status:
            return False
        self._status = status
        return True

    # --- ドメインイベント ---

    def record_booking_created(
        self,
        booking: BookingRef,
        supplier_id: str,
        amount: Money,
        package_booking_id: PackageBookingId,
    ) -> None:
        self.add_domain_event(
            SupplierBookingCreated(
                journey_id=str(self.id),
                supplier_id=supplier_id,
                booking_id=str(booking.id),
                booking_reference=booking.reference,
                amount=str(amount.amount),
                currency=str(amount.currency),
                package_booking_id=str(package_booking_id),
            )
        )
