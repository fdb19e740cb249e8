from services.journey.domain.gateway import BookingGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.service.status_reconciler import linked_booking_statuses
from services.journey.domain.value_object import JourneyId
from services.shared.domain import InvalidStateException
from services.shared.utils import get_logger

from .journey_access import linked_booking_ids, load_owned_journey

logger = get_logger("journey")


class DeleteJourneyService:
    """ジャーニー削除のユースケース"""

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        bookings: BookingGateway,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._bookings = bookings

    def delete(self, journey_id: JourneyId, user_id: str) -> None:
        """有効な予約（PENDING / CONFIRMED）が1件もなければ、ステータスに関係なく削除する"""
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        segments = self._segments.list_by_journey(journey.id)

        booking_ids = linked_booking_ids(segments)
        if booking_ids:
            refs = self._bookings.get_bookings(booking_ids)
            statuses = linked_booking_statuses(segments, refs)
            if any(status.is_active for status in statuses.values()):
                raise InvalidStateException(
                    "Cannot delete journey with active bookings. "
                    "Please cancel all bookings first."
                )

        self._journeys.delete(journey)
        logger.info("Journey deleted", extra={"journey_id": str(journey.id)})
