from collections.abc import Iterator
from dataclasses import dataclass, field

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import CancellationInitiator, JourneyStatus
from services.journey.domain.gateway import BookingGateway
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.service import StatusReconciler
from services.journey.domain.value_object import BookingId, BookingRef, JourneyId
from services.shared.utils import get_logger

from .journey_access import linked_booking_ids, load_owned_journey
from .journey_view import JourneyView

logger = get_logger("journey")

_PAGE_SIZE = 50


@dataclass
class RecalculationResult:
    """recalculateAll の結果"""

    updated_count: int = 0
    journeys: list[JourneyView] = field(default_factory=list)


@dataclass
class SweepResult:
    """定期スイープの結果"""

    processed: int = 0
    updated: int = 0
    failed: list[str] = field(default_factory=list)


class ReconcileJourneyStatusService:
    """ジャーニーステータスの再計算（修復用）

    予約の現在状態だけから再計算するので、何度呼んでも同じ結果になる。
    変更がなければ何も書き込まない。
    """

    def __init__(
        self,
        journeys: JourneyRepository,
        segments: SegmentRepository,
        bookings: BookingGateway,
        reconciler: StatusReconciler | None = None,
    ) -> None:
        self._journeys = journeys
        self._segments = segments
        self._bookings = bookings
        self._reconciler = reconciler or StatusReconciler()

    def recalculate(self, journey_id: JourneyId, user_id: str) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        view, _ = self._reconcile(journey)
        return view

    def recalculate_all(self, user_id: str) -> RecalculationResult:
        result = RecalculationResult()
        for journey in self._journeys_of(user_id):
            view, changed = self._reconcile(journey)
            result.journeys.append(view)
            if changed:
                result.updated_count += 1
        logger.info(
            "Recalculated journey statuses",
            extra={
                "user_id": user_id,
                "journeys": len(result.journeys),
                "updated": result.updated_count,
            },
        )
        return result

    def sweep(self) -> SweepResult:
        """全ユーザーのジャーニーを再計算する

        1件の失敗で残りのジャーニーを止めない。途中で中断しても、各ジャーニーは
        独立に書き込まれているので次回の実行で続きから収束する。
        """
        result = SweepResult()
        for user_id in self._journeys.iter_user_ids():
            for journey in self._journeys_of(user_id):
                result.processed += 1
                try:
                    _, changed = self._reconcile(journey)
                except Exception:
                    logger.exception(
                        "Failed to reconcile journey",
                        extra={"journey_id": str(journey.id)},
                    )
                    result.failed.append(str(journey.id))
                    continue
                if changed:
                    result.updated += 1
        logger.info(
            "Reconciliation sweep finished",
            extra={
                "processed": result.processed,
                "updated": result.updated,
                "failed": len(result.failed),
            },
        )
        return result

    def _journeys_of(self, user_id: str) -> Iterator[Journey]:
        page = 1
        while True:
            journeys = self._journeys.find_by_user_id(user_id, page=page, limit=_PAGE_SIZE)
            yield from journeys
            if len(journeys) < _PAGE_SIZE:
                return
            page += 1

    def _reconcile(self, journey: Journey) -> tuple[JourneyView, bool]:
        """Returns: (最新のビュー, ステータスが変わったか)"""
        segments = self._segments.list_by_journey(journey.id)
        if [s.segment_order for s in segments] != list(range(1, len(segments) + 1)):
            logger.warning(
                "Segment order has gaps, renumbering",
                extra={"journey_id": str(journey.id)},
            )
            segments = self._segments.reorder(journey)
        booking_ids = linked_booking_ids(segments)
        refs = self._bookings.get_bookings(booking_ids) if booking_ids else {}

        touched = self._cancel_missed(segments, refs)

        previous = journey.status
        status_changed = journey.apply_status(
            self._reconciler.reconcile(previous, segments, refs)
        )
        if status_changed and journey.status == JourneyStatus.CONFIRMED:
            for segment in segments:
                if segment.is_booked and not segment.is_confirmed:
                    segment.confirm()
                    touched.append(segment)
        price_changed = journey.recalculate_total(segments)

        if status_changed or price_changed or touched:
            self._segments.save_all(journey, touched)
            logger.info(
                "Journey reconciled",
                extra={
                    "journey_id": str(journey.id),
                    "from_status": previous.value,
                    "to_status": journey.status.value,
                    "total_price": str(journey.total_price.amount),
                },
            )
        return JourneyView(journey, segments), status_changed

    def _cancel_missed(
        self, segments: list[JourneySegment], refs: dict[BookingId, BookingRef]
    ) -> list[JourneySegment]:
        """取消イベントを取りこぼしたセグメントを取消済みにする"""
        missed = []
        for segment in segments:
            ref = refs.get(segment.booking_id) if segment.booking_id else None
            if ref is not None and ref.is_cancelled and not segment.is_cancelled:
                segment.cancel(
                    "Booking was cancelled by the supplier",
                    CancellationInitiator.SUPPLIER,
                )
                missed.append(segment)
        return missed
