from __future__ import annotations

from datetime import datetime, timezone

from services.journey.domain.enum import CancellationInitiator, SegmentType
from services.journey.domain.value_object import (
    BookingId,
    CatalogService,
    JourneyId,
    SegmentId,
)
from services.shared.domain import Entity, InvalidStateException, Money


def _minutes_between(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return round((end - start).total_seconds() / 60)


class JourneySegment(Entity[SegmentId]):
    """ジャーニーセグメントエンティティ

    予約は所有せず booking_id で参照する。
    未予約 → 予約済み → 確定 → (取消) → (差し替えで未予約に戻る) の順に遷移する。
    """

    def __init__(
        self,
        id: SegmentId,
        journey_id: JourneyId,
        segment_type: SegmentType,
        price: Money,
        segment_order: int = 0,
        service_id: str | None = None,
        departure_location_id: str | None = None,
        arrival_location_id: str | None = None,
        departure_time: datetime | None = None,
        arrival_time: datetime | None = None,
        duration: int | None = None,
        booking_id: BookingId | None = None,
        is_booked: bool = False,
        is_confirmed: bool = False,
        is_cancelled: bool = False,
        cancelled_at: datetime | None = None,
        cancellation_reason: str | None = None,
        cancelled_by: CancellationInitiator | None = None,
        notes: str | None = None,
        metadata: dict | None = None,
    ) -> None:
        super().__init__(id)
        self._journey_id = journey_id
        self._segment_type = segment_type
        self._segment_order = segment_order
        self._service_id = service_id
        self._departure_location_id = departure_location_id
        self._arrival_location_id = arrival_location_id
        self._departure_time = departure_time
        self._arrival_time = arrival_time
        self._duration = (
            duration
            if duration is not None
            else _minutes_between(departure_time, arrival_time)
        )
        self._price = price
        self._booking_id = booking_id
        self._is_booked = is_booked
        self._is_confirmed = is_confirmed
        self._is_cancelled = is_cancelled
        self._cancelled_at = cancelled_at
        self._cancellation_reason = cancellation_reason
        self._cancelled_by = cancelled_by
        self._notes = notes
        self._metadata = metadata or {}

    @property
    def journey_id(self) -> JourneyId:
        return self._journey_id

    @property
    def segment_type(self) -> SegmentType:
        return self._segment_type

    @property
    def segment_order(self) -> int:
        return self._segment_order

    @property
    def service_id(self) -> str | None:
        return self._service_id

    @property
    def departure_location_id(self) -> str | None:
        return self._departure_location_id

    @property
    def arrival_location_id(self) -> str | None:
        return self._arrival_location_id

    @property
    def departure_time(self) -> datetime | None:
        return self._departure_time

    @property
    def arrival_time(self) -> datetime | None:
        return self._arrival_time

    @property
    def duration(self) -> int | None:
        return self._duration

    @property
    def price(self) -> Money:
        return self._price

    @property
    def booking_id(self) -> BookingId | None:
        return self._booking_id

    @property
    def is_booked(self) -> bool:
        return self._is_booked

    @property
    def is_confirmed(self) -> bool:
        return self._is_confirmed

    @property
    def is_cancelled(self) -> bool:
        return self._is_cancelled

    @property
    def cancelled_at(self) -> datetime | None:
        return self._cancelled_at

    @property
    def cancellation_reason(self) -> str | None:
        return self._cancellation_reason

    @property
    def cancelled_by(self) -> CancellationInitiator | None:
        return self._cancelled_by

    @property
    def notes(self) -> str | None:
        return self._notes

    @property
    def metadata(self) -> dict:
        return self._metadata

    @property
    def awaits_booking(self) -> bool:
        """予約対象（未予約かつ未取消）か"""
        return not self._is_booked and not self._is_cancelled

    def ensure_editable(self) -> None:
        if self._is_booked and not self._is_cancelled:
            raise InvalidStateException(
                f"Segment {self.id} is booked and cannot be modified"
            )

    # --- Segment Store から呼ばれる並び順の操作 ---

    def move_to(self, order: int) -> None:
        if order < 1:
            raise ValueError("Segment order must be 1 or greater")
        self._segment_order = order

    # --- 編集 ---

    def reschedule(
        self, departure_time: datetime | None, arrival_time: datetime | None
    ) -> None:
        """時刻を変更し、所要時間を再計算する"""
        if departure_time is not None:
            self._departure_time = departure_time
        if arrival_time is not None:
            self._arrival_time = arrival_time
        duration = _minutes_between(self._departure_time, self._arrival_time)
        if duration is not None:
            self._duration = duration

    def relocate(
        self, departure_location_id: str | None, arrival_location_id: str | None
    ) -> None:
        if departure_location_id is not None:
            self._departure_location_id = departure_location_id
        if arrival_location_id is not None:
            self._arrival_location_id = arrival_location_id

    def annotate(self, notes: str | None) -> None:
        self._notes = notes

    def change_service(self, service_id: str, price: Money) -> None:
        self._service_id = service_id
        self._price = price

    def reprice(self, price: Money) -> None:
        self._price = price

    # --- 予約ライフサイクル ---

    def link_booking(self, booking_id: BookingId) -> None:
        if self._is_cancelled:
            raise InvalidStateException(
                f"Cannot link a booking to cancelled segment {self.id}"
            )
        self._booking_id = booking_id
        self._is_booked = True

    def confirm(self) -> None:
        if self._is_cancelled:
            return
        self._is_confirmed = True

    def cancel(
        self,
        reason: str | None,
        initiator: CancellationInitiator,
        at: datetime | None = None,
    ) -> None:
        """リンク先の予約が取消された"""
        if self._is_cancelled:
            return
        self._is_cancelled = True
        self._cancelled_at = at or datetime.now(timezone.utc)
        self._cancellation_reason = reason
        self._cancelled_by = initiator

    def attach_replacement(self, service: CatalogService, price: Money) -> None:
        """取消済みセグメントに代替サービスを付け替え、未予約状態に戻す"""
        if not self._is_cancelled:
            raise InvalidStateException("Segment is not cancelled")

        self._service_id = service.id
        self._price = price
        self._is_cancelled = False
        self._cancelled_at = None
        self._cancellation_reason = None
        self._cancelled_by = None
        self._booking_id = None
        self._is_booked = False
        self._is_confirmed = False

        if service.departure_location_id is not None:
            self._departure_location_id = service.departure_location_id
            self._arrival_location_id = service.arrival_location_id
            self._departure_time = service.departure_time or self._departure_time
            self._arrival_time = service.arrival_time or self._arrival_time
            self._duration = (
                service.duration
                if service.duration is not None
                else _minutes_between(self._departure_time, self._arrival_time)
            )
