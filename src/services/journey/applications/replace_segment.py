from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import JourneyStatus, SegmentType
from services.journey.domain.factory.segment_factory import price_for
from services.journey.domain.gateway import CatalogGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import (
    CatalogService,
    JourneyId,
    SegmentId,
)
from services.shared.domain import (
    InvalidInputException,
    InvalidStateException,
    ResourceNotFoundException,
)
from services.shared.utils import get_logger

from .journey_access import find_segment, load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")

MAX_REPLACEMENT_CANDIDATES = 10


class ReplaceSegmentService:
    """取消されたセグメントの差し替えのユースケース"""

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        catalog: CatalogGateway,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._catalog = catalog

    def find_replacements(
        self, journey_id: JourneyId, segment_id: SegmentId, user_id: str
    ) -> list[CatalogService]:
        """同じ種別・同じ地点の代替サービスを安い順に最大10件返す"""
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        segment = find_segment(self._segments.list_by_journey(journey.id), segment_id)
        if not segment.is_cancelled:
            raise InvalidStateException("Segment is not cancelled")

        candidates = self._catalog.search_services(
            segment.segment_type.to_service_type(), **self._location_filter(segment)
        )
        candidates = [
            c
            for c in candidates
            if c.id != segment.service_id and c.accepts_guests(journey.travelers)
        ]
        candidates.sort(key=lambda c: c.price.amount)
        return candidates[:MAX_REPLACEMENT_CANDIDATES]

    def replace(
        self,
        journey_id: JourneyId,
        segment_id: SegmentId,
        service_id: str,
        user_id: str,
    ) -> JourneyView:
        """代替サービスを付け替え、セグメントを未予約の状態に戻す

        予約はここでは作らない。取消済みのセグメントが残っていなければ
        ジャーニーを CONFIRMED に戻す。
        """
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        if journey.status.is_terminal:
            raise InvalidStateException(
                f"Cannot replace segments of a {journey.status.value} journey"
            )
        segments = self._segments.list_by_journey(journey.id)
        segment = find_segment(segments, segment_id)
        if not segment.is_cancelled:
            raise InvalidStateException("Segment is not cancelled")

        service = self._catalog.get_service(service_id)
        if service is None:
            raise ResourceNotFoundException(f"Service with ID {service_id} not found")
        self._ensure_compatible(journey, segment, service)

        segment.attach_replacement(
            service, price_for(segment.segment_type, service, journey.travelers)
        )
        journey.recalculate_total(segments)

        previous = journey.status
        if not any(s.is_cancelled for s in segments) and journey.status in (
            JourneyStatus.CONFIRMED,
            JourneyStatus.PENDING_CHANGES,
        ):
            journey.apply_status(JourneyStatus.CONFIRMED)
        self._segments.save_all(journey, [segment])

        logger.info(
            "Segment replaced",
            extra={
                "journey_id": str(journey.id),
                "segment_id": str(segment.id),
                "service_id": service.id,
                "from_status": previous.value,
                "to_status": journey.status.value,
            },
        )
        return JourneyView(journey, segments)

    def _location_filter(self, segment: JourneySegment) -> dict:
        if segment.segment_type.is_transport:
            return {
                "departure_location_id": segment.departure_location_id,
                "arrival_location_id": segment.arrival_location_id,
            }
        if (
            segment.segment_type == SegmentType.ACCOMMODATION
            and segment.arrival_location_id
        ):
            return {"location_id": segment.arrival_location_id}
        return {}

    def _ensure_compatible(
        self, journey: Journey, segment: JourneySegment, service: CatalogService
    ) -> None:
        if service.type != segment.segment_type.to_service_type():
            raise InvalidInputException(
                f"Service {service.id} is a {service.type} service, "
                f"segment requires {segment.segment_type.to_service_type()}"
            )
        if not service.accepts_guests(journey.travelers):
            raise InvalidInputException(
                f"Service {service.id} does not accept {journey.travelers} guests"
            )
        if service.price.currency != journey.currency:
            raise InvalidInputException(
                f"Service currency {service.price.currency} does not match "
                f"journey currency {journey.currency}"
            )
