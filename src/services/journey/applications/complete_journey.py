from datetime import datetime, time, timezone

from services.journey.domain.enum import JourneyStatus
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import JourneyId
from services.shared.utils import get_logger

from .journey_access import load_owned_journey
from .journey_view import JourneyView
from .reconcile_journey_status import SweepResult

logger = get_logger("journey")


class CompleteJourneyService:
    """ジャーニー完了（アーカイブ）のユースケース"""

    def __init__(
        self, journeys: JourneyRepository, segments: SegmentRepository
    ) -> None:
        self._journeys = journeys
        self._segments = segments

    def complete(self, journey_id: JourneyId, user_id: str) -> JourneyView:
        """所有者チェック以外のガードはない"""
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        previous = journey.status
        if previous != JourneyStatus.COMPLETED:
            journey.complete()
            self._journeys.update(journey)
            logger.info(
                "Journey completed",
                extra={
                    "journey_id": str(journey.id),
                    "from_status": previous.value,
                    "to_status": journey.status.value,
                },
            )
        return JourneyView(journey, self._segments.list_by_journey(journey.id))

    def archive_past(self, now: datetime | None = None) -> SweepResult:
        """終了日が今日より前の CONFIRMED ジャーニーを COMPLETED にする"""
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(timezone.utc).date()
        start_of_today = datetime.combine(today, time.min, tzinfo=timezone.utc)

        result = SweepResult()
        for journey in self._journeys.find_ending_before(
            start_of_today, JourneyStatus.CONFIRMED
        ):
            result.processed += 1
            try:
                journey.complete()
                self._journeys.update(journey)
            except Exception:
                logger.exception(
                    "Failed to archive journey", extra={"journey_id": str(journey.id)}
                )
                result.failed.append(str(journey.id))
                continue
            result.updated += 1

        logger.info(
            "Archived past journeys",
            extra={
                "before": start_of_today.isoformat(),
                "archived": result.updated,
                "failed": len(result.failed),
            },
        )
        return result
