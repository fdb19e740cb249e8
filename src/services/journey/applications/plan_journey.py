from services.journey.domain.entity import Journey
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.factory import JourneyDetails, JourneyFactory
from services.journey.domain.gateway import CatalogGateway
from services.journey.domain.repository import JourneyRepository
from services.shared.domain import InvalidInputException, LimitExceededException
from services.shared.utils import get_logger

logger = get_logger("journey")

# PLANNING / READY のジャーニーを同時に持てる上限
MAX_PLANNING_JOURNEYS = 3

_PLANNING_STATUSES = {
    status for status in JourneyStatus if status.counts_toward_planning_cap
}


class PlanJourneyService:
    """ジャーニー作成のユースケース"""

    def __init__(
        self,
        repository: JourneyRepository,
        catalog: CatalogGateway,
        factory: JourneyFactory,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._factory = factory

    def plan(self, user_id: str, details: JourneyDetails) -> Journey:
        """空の PLANNING ジャーニーを作成する

        Raises:
            InvalidInputException: 出発地・目的地が存在しない
            LimitExceededException: 計画中のジャーニーが上限に達している
        """
        self._validate_locations(
            details["origin_location_id"], details["destination_location_id"]
        )

        journey = self._factory.create(user_id, details)
        if not self._repository.save_if_below_limit(
            journey, _PLANNING_STATUSES, MAX_PLANNING_JOURNEYS
        ):
            raise LimitExceededException(
                f"You can have at most {MAX_PLANNING_JOURNEYS} journeys in planning. "
                "Complete or cancel one before planning another."
            )
        logger.info(
            "Journey planned",
            extra={"journey_id": str(journey.id), "user_id": user_id},
        )
        return journey

    def _validate_locations(self, origin_id: str, destination_id: str) -> None:
        missing = [
            location_id
            for location_id in (origin_id, destination_id)
            if self._catalog.get_location(location_id) is None
        ]
        if missing:
            raise InvalidInputException(
                f"Invalid origin or destination location: {', '.join(missing)}"
            )
