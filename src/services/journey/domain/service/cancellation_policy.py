from __future__ import annotations

from collections.abc import Mapping

from services.journey.domain.entity import JourneySegment
from services.journey.domain.enum import (
    BookingStatus,
    CancellationInitiator,
    JourneyStatus,
)
from services.journey.domain.value_object import BookingId, BookingRef

from .status_reconciler import linked_booking_statuses


class CancellationPolicy:
    """予約取消がジャーニーに及ぼす影響を判定する

    サプライヤー都合の取消はゲストの対応（差し替え）が必要なため PENDING_CHANGES、
    ゲストが最後の有効な予約を取り消した場合は旅行の放棄とみなして CANCELLED。
    """

    def resulting_status(
        self,
        current: JourneyStatus,
        segments: list[JourneySegment],
        bookings: Mapping[BookingId, BookingRef],
        cancelled_booking_id: BookingId,
        initiator: CancellationInitiator,
    ) -> JourneyStatus:
        if current.is_terminal:
            return current

        statuses = linked_booking_statuses(segments, bookings)
        statuses[cancelled_booking_id] = BookingStatus.CANCELLED

        if all(s == BookingStatus.CANCELLED for s in statuses.values()):
            return JourneyStatus.CANCELLED

        has_active = any(s.is_active for s in statuses.values())
        if initiator == CancellationInitiator.SUPPLIER and has_active:
            return JourneyStatus.PENDING_CHANGES
        if initiator == CancellationInitiator.GUEST and not has_active:
            return JourneyStatus.CANCELLED
        return current
