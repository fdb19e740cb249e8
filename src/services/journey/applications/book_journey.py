from typing import TypedDict

from services.journey.domain.gateway import EventPublisher
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.service import BookingGrouper
from services.journey.domain.value_object import JourneyId, PackageBookingId
from services.shared.domain import InvalidInputException, InvalidStateException
from services.shared.utils import get_logger

from .booking_dispatcher import BookingDispatcher
from .exceptions import PartialBookingFailureException
from .journey_access import load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")


class BookingOptions(TypedDict, total=False):
    """予約時のオプション（予約サービスへそのまま渡す）"""

    notes: str | None
    guest_details: dict


class BookJourneyService:
    """ジャーニー一括予約のユースケース

    未予約のセグメントを予約グループに分け、グループごとにサプライヤー予約を作成する。
    すべて成功したら CONFIRMED、一部失敗したら作成済みの予約を残したまま BOOKING で止める。
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        dispatcher: BookingDispatcher,
        publisher: EventPublisher,
        grouper: BookingGrouper | None = None,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._dispatcher = dispatcher
        self._publisher = publisher
        self._grouper = grouper or BookingGrouper()

    def book(
        self,
        journey_id: JourneyId,
        user_id: str,
        options: BookingOptions | None = None,
    ) -> JourneyView:
        options = options or {}
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        journey.ensure_bookable()

        segments = self._segments.list_by_journey(journey.id)
        pending = [s for s in segments if s.awaits_booking]
        if not pending:
            raise InvalidStateException(
                "No segments available for booking. "
                "All segments are either already booked or cancelled."
            )
        for segment in pending:
            if segment.service_id is None:
                raise InvalidInputException(
                    f"Segment {segment.id} does not have an associated service"
                )

        previous = journey.status
        journey.start_booking()
        # 先に BOOKING を確定させ、同じジャーニーの二重予約を version で弾く
        self._journeys.update(journey)
        logger.info(
            "Journey booking started",
            extra={
                "journey_id": str(journey.id),
                "from_status": previous.value,
                "to_status": journey.status.value,
            },
        )

        package_booking_id = PackageBookingId.generate()
        result = self._dispatcher.dispatch(
            journey,
            self._grouper.group(segments),
            package_booking_id,
            notes=options.get("notes"),
            guest_details=options.get("guest_details"),
        )

        journey.recalculate_total(segments)
        linked = [s for group, _ in result.created for s in group.segments]

        if result.failed:
            self._segments.save_all(journey, linked)
            self._publisher.publish(journey.flush_domain_events())
            logger.warning(
                "Journey partially booked",
                extra={
                    "journey_id": str(journey.id),
                    "package_booking_id": str(package_booking_id),
                    "created": result.created_booking_ids,
                    "failed": len(result.failed),
                },
            )
            raise PartialBookingFailureException(
                JourneyView(journey, segments),
                result.created_booking_ids,
                result.failed,
            )

        for segment in segments:
            if segment.is_booked:
                segment.confirm()
        journey.confirm()
        self._segments.save_all(journey, [s for s in segments if s.is_booked])
        self._publisher.publish(journey.flush_domain_events())
        logger.info(
            "Journey booked",
            extra={
                "journey_id": str(journey.id),
                "package_booking_id": str(package_booking_id),
                "bookings": result.created_booking_ids,
                "to_status": journey.status.value,
            },
        )
        return JourneyView(journey, segments)
