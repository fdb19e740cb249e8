from datetime import datetime
from typing import TypedDict

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.factory import SegmentDetails, SegmentFactory
from services.journey.domain.factory.segment_factory import price_for
from services.journey.domain.gateway import CatalogGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import CatalogService, JourneyId, SegmentId
from services.shared.domain import (
    InvalidInputException,
    ResourceNotFoundException,
)
from services.shared.utils import get_logger

from .journey_access import find_segment, load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")


class SegmentPatch(TypedDict, total=False):
    """セグメント更新の入力データ構造（指定された項目だけ変更する）"""

    service_id: str
    departure_location_id: str
    arrival_location_id: str
    departure_time: datetime
    arrival_time: datetime
    notes: str | None
    metadata: dict


class EditSegmentsService:
    """セグメントの追加・更新・削除のユースケース

    CONFIRMED / COMPLETED のジャーニーは変更できない。
    並び順と合計金額はジャーニーの version を条件に同じ書き込みで更新する。
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        catalog: CatalogGateway,
        factory: SegmentFactory,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._catalog = catalog
        self._factory = factory

    def add(
        self,
        journey_id: JourneyId,
        user_id: str,
        details: SegmentDetails,
        insert_after_order: int | None = None,
    ) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        journey.ensure_segments_editable()

        segments = self._segments.list_by_journey(journey.id)
        if insert_after_order is not None and not 0 <= insert_after_order <= len(
            segments
        ):
            raise InvalidInputException(
                f"insert_after_order must be between 0 and {len(segments)}"
            )

        service = None
        if details.get("service_id"):
            service = self._require_service(details["service_id"])
        segment = self._factory.create(journey, details, service)

        journey.recalculate_total([*segments, segment])
        self._segments.insert_at(journey, segment, insert_after_order)
        logger.info(
            "Segment added",
            extra={
                "journey_id": str(journey.id),
                "segment_id": str(segment.id),
                "segment_order": segment.segment_order,
            },
        )
        return JourneyView(journey, self._segments.list_by_journey(journey.id))

    def update(
        self,
        journey_id: JourneyId,
        segment_id: SegmentId,
        user_id: str,
        patch: SegmentPatch,
    ) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        segments = self._segments.list_by_journey(journey.id)
        segment = find_segment(segments, segment_id)
        journey.ensure_segments_editable()
        segment.ensure_editable()

        if "service_id" in patch:
            service = self._require_service(patch["service_id"])
            self._change_service(journey, segment, service)
        segment.relocate(
            patch.get("departure_location_id"), patch.get("arrival_location_id")
        )
        if "departure_time" in patch or "arrival_time" in patch:
            segment.reschedule(patch.get("departure_time"), patch.get("arrival_time"))
        if "notes" in patch:
            segment.annotate(patch["notes"])
        if "metadata" in patch:
            segment.metadata.update(patch["metadata"])

        journey.recalculate_total(segments)
        self._segments.save_all(journey, [segment])
        return JourneyView(journey, segments)

    def delete(
        self, journey_id: JourneyId, segment_id: SegmentId, user_id: str
    ) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        segments = self._segments.list_by_journey(journey.id)
        segment = find_segment(segments, segment_id)
        journey.ensure_segments_editable()
        segment.ensure_editable()

        remaining = [s for s in segments if s.id != segment.id]
        journey.recalculate_total(remaining)
        previous = journey.status
        if self._all_booked(journey, remaining):
            journey.apply_status(JourneyStatus.CONFIRMED)
        self._segments.delete(journey, segment)

        remaining = self._segments.list_by_journey(journey.id)
        unconfirmed = [s for s in remaining if not s.is_confirmed]
        if journey.status == JourneyStatus.CONFIRMED and unconfirmed:
            for s in unconfirmed:
                s.confirm()
            self._segments.save_all(journey, unconfirmed)

        logger.info(
            "Segment deleted",
            extra={
                "journey_id": str(journey.id),
                "segment_id": str(segment.id),
                "from_status": previous.value,
                "to_status": journey.status.value,
            },
        )
        return JourneyView(journey, remaining)

    @staticmethod
    def _all_booked(journey: Journey, remaining: list[JourneySegment]) -> bool:
        """PENDING_CHANGES の原因になっていたセグメントがもう残っていないか"""
        return (
            journey.status == JourneyStatus.PENDING_CHANGES
            and bool(remaining)
            and all(s.is_booked and not s.is_cancelled for s in remaining)
        )

    def _require_service(self, service_id: str) -> CatalogService:
        service = self._catalog.get_service(service_id)
        if service is None:
            raise ResourceNotFoundException(f"Service with ID {service_id} not found")
        return service

    def _change_service(
        self, journey: Journey, segment: JourneySegment, service: CatalogService
    ) -> None:
        if not service.accepts_guests(journey.travelers):
            raise InvalidInputException(
                f"Service {service.id} does not accept {journey.travelers} guests"
            )
        price = price_for(segment.segment_type, service, journey.travelers)
        if price.currency != journey.currency:
            raise InvalidInputException(
                f"Service currency {price.currency} does not match "
                f"journey currency {journey.currency}"
            )
        segment.change_service(service.id, price)
