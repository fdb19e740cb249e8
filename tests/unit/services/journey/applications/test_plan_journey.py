import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from services.journey.domain.enum import JourneyStatus
from services.shared.domain import InvalidInputException, LimitExceededException


@pytest.fixture
def details():
    return {
        "name": "Island hopping",
        "origin_location_id": "loc-split",
        "destination_location_id": "loc-hvar",
        "start_date": datetime(2030, 7, 1, tzinfo=timezone.utc),
        "end_date": datetime(2030, 7, 5, tzinfo=timezone.utc),
        "travelers": 2,
    }


class TestPlanJourney:
    def test_plan_journey(self, facade, journeys, details):
        journey = facade.plan_journey("user-1", details)

        stored = journeys.find_by_id(journey.id)
        assert stored is not None
        assert stored.status == JourneyStatus.PLANNING
        assert stored.name == "Island hopping"
        assert stored.total_price.amount == 0

    def test_unknown_location(self, facade, details):
        details["destination_location_id"] = "loc-atlantis"

        with pytest.raises(InvalidInputException, match="loc-atlantis"):
            facade.plan_journey("user-1", details)

    def test_planning_cap(self, facade, create_journey, details):
        create_journey(status=JourneyStatus.PLANNING)
        create_journey(status=JourneyStatus.READY)
        create_journey(status=JourneyStatus.PLANNING)

        with pytest.raises(LimitExceededException):
            facade.plan_journey("user-1", details)

    def test_completing_a_journey_frees_a_slot(self, facade, create_journey, details):
        first = create_journey()
        create_journey()
        create_journey()

        facade.complete_journey(str(first.id), "user-1")

        assert facade.plan_journey("user-1", details).status == JourneyStatus.PLANNING

    def test_booked_journeys_do_not_count(self, facade, create_journey, details):
        for status in (
            JourneyStatus.BOOKING,
            JourneyStatus.CONFIRMED,
            JourneyStatus.PENDING_CHANGES,
            JourneyStatus.CANCELLED,
        ):
            create_journey(status=status)
        create_journey()
        create_journey()

        facade.plan_journey("user-1", details)

    def test_cap_is_per_user(self, facade, create_journey, details):
        for _ in range(3):
            create_journey(user_id="user-2")

        facade.plan_journey("user-1", details)

    def test_concurrent_plans_respect_the_cap(
        self, facade, journeys, create_journey, details
    ):
        create_journey()
        create_journey()
        start = threading.Barrier(8)

        def plan():
            start.wait()
            try:
                return facade.plan_journey("user-1", dict(details))
            except LimitExceededException:
                return None

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: plan(), range(8)))

        assert len([r for r in results if r is not None]) == 1
        assert (
            journeys.count_by_user_id_and_status(
                "user-1", {JourneyStatus.PLANNING, JourneyStatus.READY}
            )
            == 3
        )
