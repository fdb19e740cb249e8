from __future__ import annotations

from collections.abc import Iterable, Mapping

from services.journey.domain.entity import JourneySegment
from services.journey.domain.enum import (
    BookingStatus,
    CancellationInitiator,
    JourneyStatus,
)
from services.journey.domain.value_object import BookingId, BookingRef


def linked_booking_statuses(
    segments: Iterable[JourneySegment],
    bookings: Mapping[BookingId, BookingRef],
) -> dict[BookingId, BookingStatus]:
    """セグメントが参照している予約の現在ステータス

    予約サービスに存在しない予約は、セグメントが取消済みなら CANCELLED とみなし、
    そうでなければ判定対象から外す。
    """
    statuses: dict[BookingId, BookingStatus] = {}
    for segment in segments:
        if segment.booking_id is None:
            continue
        ref = bookings.get(segment.booking_id)
        if ref is not None:
            statuses[segment.booking_id] = ref.status
        elif segment.is_cancelled:
            statuses[segment.booking_id] = BookingStatus.CANCELLED
    return statuses


class StatusReconciler:
    """セグメントと予約の現在状態だけからジャーニーのステータスを再計算する

    副作用を持たない。同じ入力に対しては常に同じ結果を返す。
    """

    def reconcile(
        self,
        current: JourneyStatus,
        segments: list[JourneySegment],
        bookings: Mapping[BookingId, BookingRef],
    ) -> JourneyStatus:
        statuses = linked_booking_statuses(segments, bookings)
        if not statuses:
            return current

        if all(s == BookingStatus.CANCELLED for s in statuses.values()):
            return JourneyStatus.CANCELLED

        has_active = any(s.is_active for s in statuses.values())
        # 予約サービス側だけで取消された予約もサプライヤー都合として扱う
        cancelled_by_supplier = any(
            statuses.get(segment.booking_id) == BookingStatus.CANCELLED
            and segment.cancelled_by != CancellationInitiator.GUEST
            for segment in segments
            if segment.booking_id is not None
        )

        if cancelled_by_supplier and has_active:
            return JourneyStatus.PENDING_CHANGES
        if not has_active and current == JourneyStatus.CONFIRMED:
            return JourneyStatus.CANCELLED
        if current == JourneyStatus.BOOKING:
            return self._settle_interrupted_booking(segments, has_active)
        return current

    def _settle_interrupted_booking(
        self, segments: list[JourneySegment], has_active: bool
    ) -> JourneyStatus:
        """予約処理が途中で止まった BOOKING ジャーニーの行き先を決める"""
        if any(segment.awaits_booking for segment in segments):
            return JourneyStatus.PENDING_CHANGES
        if has_active:
            return JourneyStatus.CONFIRMED
        return JourneyStatus.BOOKING
