from __future__ import annotations

from datetime import datetime

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import CancellationInitiator
from services.journey.domain.factory import (
    JourneyDetails,
    JourneyFactory,
    SegmentDetails,
    SegmentFactory,
)
from services.journey.domain.gateway import (
    BookingGateway,
    CatalogGateway,
    EventPublisher,
)
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import (
    BookingId,
    CatalogService,
    JourneyId,
    SegmentId,
)

from .book_journey import BookingOptions, BookJourneyService
from .booking_dispatcher import BookingDispatcher
from .complete_journey import CompleteJourneyService
from .delete_journey import DeleteJourneyService
from .edit_segments import EditSegmentsService, SegmentPatch
from .get_journey import GetJourneyService
from .handle_booking_cancellation import HandleBookingCancellationService
from .journey_view import JourneyView
from .plan_journey import PlanJourneyService
from .reconcile_journey_status import (
    RecalculationResult,
    ReconcileJourneyStatusService,
    SweepResult,
)
from .replace_segment import ReplaceSegmentService
from .update_journey import JourneyPatch, UpdateJourneyService


class JourneyFacade:
    """ジャーニー機能の公開窓口

    HTTP ハンドラ・イベントハンドラ・スケジューラはこのクラスだけを呼び出す。
    ID は文字列で受け取り、ここで Value Object に変換する。
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        bookings: BookingGateway,
        catalog: CatalogGateway,
        publisher: EventPublisher,
        booking_concurrency: int | None = None,
    ) -> None:
        dispatcher = BookingDispatcher(
            bookings, catalog, max_workers=booking_concurrency
        )
        self._plan = PlanJourneyService(journeys, catalog, JourneyFactory())
        self._get = GetJourneyService(journeys, segments)
        self._update = UpdateJourneyService(journeys, segments, catalog)
        self._delete = DeleteJourneyService(journeys, segments, bookings)
        self._segments = EditSegmentsService(
            journeys, segments, catalog, SegmentFactory()
        )
        self._book = BookJourneyService(journeys, segments, dispatcher, publisher)
        self._cancellation = HandleBookingCancellationService(
            journeys, segments, bookings
        )
        self._replace = ReplaceSegmentService(journeys, segments, catalog)
        self._reconcile = ReconcileJourneyStatusService(journeys, segments, bookings)
        self._complete = CompleteJourneyService(journeys, segments)

    # --- ジャーニー ---

    def plan_journey(self, user_id: str, details: JourneyDetails) -> Journey:
        return self._plan.plan(user_id, details)

    def get_journey(self, journey_id: str, user_id: str) -> JourneyView:
        return self._get.get(JourneyId(journey_id), user_id)

    def list_journeys(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> list[JourneyView]:
        return self._get.list_for_user(user_id, page=page, limit=limit)

    def update_journey(
        self, journey_id: str, user_id: str, patch: JourneyPatch
    ) -> JourneyView:
        return self._update.update(JourneyId(journey_id), user_id, patch)

    def delete_journey(self, journey_id: str, user_id: str) -> None:
        self._delete.delete(JourneyId(journey_id), user_id)

    def complete_journey(self, journey_id: str, user_id: str) -> JourneyView:
        return self._complete.complete(JourneyId(journey_id), user_id)

    # --- セグメント ---

    def add_segment(
        self,
        journey_id: str,
        user_id: str,
        details: SegmentDetails,
        insert_after_order: int | None = None,
    ) -> JourneyView:
        return self._segments.add(
            JourneyId(journey_id), user_id, details, insert_after_order
        )

    def update_segment(
        self, journey_id: str, segment_id: str, user_id: str, patch: SegmentPatch
    ) -> JourneyView:
        return self._segments.update(
            JourneyId(journey_id), SegmentId(segment_id), user_id, patch
        )

    def delete_segment(
        self, journey_id: str, segment_id: str, user_id: str
    ) -> JourneyView:
        return self._segments.delete(
            JourneyId(journey_id), SegmentId(segment_id), user_id
        )

    # --- 予約 ---

    def book_journey(
        self, journey_id: str, user_id: str, options: BookingOptions | None = None
    ) -> JourneyView:
        return self._book.book(JourneyId(journey_id), user_id, options)

    def cancel_segment_booking(
        self,
        journey_id: str,
        segment_id: str,
        user_id: str,
        reason: str | None = None,
    ) -> JourneyView:
        return self._cancellation.cancel_segment_booking(
            JourneyId(journey_id), SegmentId(segment_id), user_id, reason
        )

    def handle_booking_cancelled(
        self,
        booking_id: str,
        reason: str | None,
        initiator: CancellationInitiator,
    ) -> JourneyView | None:
        return self._cancellation.handle(BookingId(booking_id), reason, initiator)

    # --- 差し替え ---

    def get_cancelled_segments(
        self, journey_id: str, user_id: str
    ) -> list[JourneySegment]:
        return self._get.cancelled_segments(JourneyId(journey_id), user_id)

    def find_replacement_services(
        self, journey_id: str, segment_id: str, user_id: str
    ) -> list[CatalogService]:
        return self._replace.find_replacements(
            JourneyId(journey_id), SegmentId(segment_id), user_id
        )

    def replace_segment(
        self, journey_id: str, segment_id: str, service_id: str, user_id: str
    ) -> JourneyView:
        return self._replace.replace(
            JourneyId(journey_id), SegmentId(segment_id), service_id, user_id
        )

    # --- 再計算・スイープ ---

    def recalculate_journey_status(self, journey_id: str, user_id: str) -> JourneyView:
        return self._reconcile.recalculate(JourneyId(journey_id), user_id)

    def recalculate_all_journey_statuses(self, user_id: str) -> RecalculationResult:
        return self._reconcile.recalculate_all(user_id)

    def reconcile_all_journeys(self) -> SweepResult:
        return self._reconcile.sweep()

    def archive_past_journeys(self, now: datetime | None = None) -> SweepResult:
        return self._complete.archive_past(now)
