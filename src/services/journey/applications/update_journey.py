from datetime import datetime
from typing import TypedDict

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.factory.segment_factory import price_for
from services.journey.domain.gateway import CatalogGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import JourneyId, TravelPeriod
from services.shared.domain import (
    InvalidInputException,
    InvalidStateException,
)
from services.shared.utils import get_logger

from .journey_access import load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")


class JourneyPatch(TypedDict, total=False):
    """ジャーニー更新の入力データ構造（指定された項目だけ変更する）"""

    name: str
    status: JourneyStatus
    start_date: datetime
    end_date: datetime
    travelers: int


class UpdateJourneyService:
    """ジャーニー更新のユースケース"""

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        catalog: CatalogGateway,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._catalog = catalog

    def update(
        self, journey_id: JourneyId, user_id: str, patch: JourneyPatch
    ) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        if journey.status.locks_segments:
            raise InvalidStateException("Cannot update journey in current status")

        segments = self._segments.list_by_journey(journey.id)

        if "name" in patch:
            journey.rename(patch["name"])
        if "start_date" in patch or "end_date" in patch:
            self._reschedule(journey, patch)
        if "status" in patch:
            previous = journey.status
            journey.request_status(patch["status"])
            logger.info(
                "Journey status changed by guest",
                extra={
                    "journey_id": str(journey.id),
                    "from_status": previous.value,
                    "to_status": journey.status.value,
                },
            )

        repriced: list[JourneySegment] = []
        if "travelers" in patch and patch["travelers"] != journey.travelers:
            repriced = self._change_travelers(journey, segments, patch["travelers"])

        if repriced:
            journey.recalculate_total(segments)
            self._segments.save_all(journey, repriced)
        else:
            self._journeys.update(journey)
        return JourneyView(journey, segments)

    def _reschedule(self, journey: Journey, patch: JourneyPatch) -> None:
        try:
            period = TravelPeriod(
                start=patch.get("start_date", journey.period.start),
                end=patch.get("end_date", journey.period.end),
            )
        except ValueError as e:
            raise InvalidInputException(str(e)) from e
        journey.reschedule(period)

    def _change_travelers(
        self, journey: Journey, segments: list[JourneySegment], travelers: int
    ) -> list[JourneySegment]:
        """旅行者数を変更し、1人あたり価格のセグメントを再計算する

        予約済みの人数は変えられないため、有効な予約があるジャーニーでは変更不可。
        """
        if any(s.is_booked and not s.is_cancelled for s in segments):
            raise InvalidStateException(
                "Cannot change travelers while the journey has active bookings"
            )
        journey.change_travelers(travelers)

        repriced = []
        for segment in segments:
            if not segment.awaits_booking or segment.service_id is None:
                continue
            service = self._catalog.get_service(segment.service_id)
            if service is None:
                logger.warning(
                    "Service no longer in catalog, keeping segment price",
                    extra={"segment_id": str(segment.id), "service_id": segment.service_id},
                )
                continue
            if not service.accepts_guests(travelers):
                raise InvalidInputException(
                    f"Service {service.id} does not accept {travelers} guests"
                )
            if segment.segment_type.is_per_person_priced:
                segment.reprice(price_for(segment.segment_type, service, travelers))
                repriced.append(segment)
        return repriced
