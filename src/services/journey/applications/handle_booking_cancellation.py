from datetime import datetime, timezone

from services.journey.domain.entity import Journey
from services.journey.domain.enum import CancellationInitiator
from services.journey.domain.gateway import BookingGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.service import CancellationPolicy
from services.journey.domain.value_object import BookingId, JourneyId, SegmentId
from services.shared.domain import InvalidStateException
from services.shared.utils import get_logger

from .journey_access import find_segment, linked_booking_ids, load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")


class HandleBookingCancellationService:
    """予約取消のカスケード

    予約を参照するセグメントを取消済みにし、残りの予約の状態からジャーニーのステータスを決める。
    同じ取消イベントを何度受け取っても結果は変わらない。
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        bookings: BookingGateway,
        policy: CancellationPolicy | None = None,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._bookings = bookings
        self._policy = policy or CancellationPolicy()

    def handle(
        self,
        booking_id: BookingId,
        reason: str | None,
        initiator: CancellationInitiator,
    ) -> JourneyView | None:
        """予約サービスの取消イベントを処理する

        Returns:
            JourneyView | None: 予約がどのジャーニーにも紐付いていなければ None
        """
        referencing = self._segments.find_by_booking_id(booking_id)
        if not referencing:
            logger.info(
                "Cancelled booking is not linked to any segment",
                extra={"booking_id": str(booking_id)},
            )
            return None

        journey = self._journeys.find_by_id(referencing[0].journey_id)
        if journey is None:
            logger.warning(
                "Journey of cancelled booking not found",
                extra={
                    "booking_id": str(booking_id),
                    "journey_id": str(referencing[0].journey_id),
                },
            )
            return None

        return self._apply(journey, booking_id, reason, initiator)

    def _apply(
        self,
        journey: Journey,
        booking_id: BookingId,
        reason: str | None,
        initiator: CancellationInitiator,
    ) -> JourneyView:
        segments = self._segments.list_by_journey(journey.id)
        cancelled_at = datetime.now(timezone.utc)
        affected = [s for s in segments if s.booking_id == booking_id]
        for segment in affected:
            segment.cancel(reason, initiator, at=cancelled_at)

        refs = self._bookings.get_bookings(linked_booking_ids(segments))
        previous = journey.status
        journey.apply_status(
            self._policy.resulting_status(
                previous, segments, refs, booking_id, initiator
            )
        )
        journey.recalculate_total(segments)
        self._segments.save_all(journey, affected)

        logger.info(
            "Booking cancellation applied",
            extra={
                "journey_id": str(journey.id),
                "booking_id": str(booking_id),
                "initiator": initiator.value,
                "from_status": previous.value,
                "to_status": journey.status.value,
            },
        )
        return JourneyView(journey, segments)

    def cancel_segment_booking(
        self,
        journey_id: JourneyId,
        segment_id: SegmentId,
        user_id: str,
        reason: str | None = None,
    ) -> JourneyView:
        """ゲストが自分のセグメントの予約を取り消す"""
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        if journey.status.is_terminal:
            raise InvalidStateException(
                f"Cannot cancel bookings of a {journey.status.value} journey"
            )
        segment = find_segment(self._segments.list_by_journey(journey.id), segment_id)
        if segment.booking_id is None or segment.is_cancelled:
            raise InvalidStateException(
                f"Segment {segment_id} has no active booking to cancel"
            )

        self._bookings.cancel_booking(segment.booking_id, reason)
        return self._apply(
            journey, segment.booking_id, reason, CancellationInitiator.GUEST
        )
