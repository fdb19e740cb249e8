from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.repository import JourneyRepository, SegmentRepository
from services.journey.domain.value_object import JourneyId

from .journey_access import load_owned_journey
from .journey_view import JourneyView


class GetJourneyService:
    """ジャーニー参照のユースケース"""

    def __init__(
        self, journeys: JourneyRepository, segments: SegmentRepository
    ) -> None:
        self._journeys = journeys
        self._segments = segments

    def get(self, journey_id: JourneyId, user_id: str) -> JourneyView:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        return JourneyView(journey, self._segments.list_by_journey(journey.id))

    def list_for_user(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> list[JourneyView]:
        """作成日時の新しい順"""
        journeys: list[Journey] = self._journeys.find_by_user_id(
            user_id, page=page, limit=limit
        )
        return [
            JourneyView(journey, self._segments.list_by_journey(journey.id))
            for journey in journeys
        ]

    def cancelled_segments(
        self, journey_id: JourneyId, user_id: str
    ) -> list[JourneySegment]:
        journey = load_owned_journey(self._journeys, journey_id, user_id)
        return [s for s in self._segments.list_by_journey(journey.id) if s.is_cancelled]
