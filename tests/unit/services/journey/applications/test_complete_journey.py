from datetime import datetime, timezone

import pytest

from services.journey.domain.enum import JourneyStatus
from services.shared.domain import AccessDeniedException


class TestCompleteJourney:
    @pytest.mark.parametrize("status", list(JourneyStatus))
    def test_complete_from_any_status(self, facade, journeys, create_journey, status):
        journey = create_journey(status=status)

        view = facade.complete_journey(str(journey.id), "user-1")

        assert view.journey.status == JourneyStatus.COMPLETED
        assert journeys.find_by_id(journey.id).status == JourneyStatus.COMPLETED

    def test_other_user(self, facade, create_journey):
        journey = create_journey(user_id="user-2")

        with pytest.raises(AccessDeniedException):
            facade.complete_journey(str(journey.id), "user-1")


class TestArchivePastJourneys:
    def test_archives_confirmed_journeys_ended_before_today(
        self, facade, journeys, create_journey
    ):
        ended = create_journey(
            status=JourneyStatus.CONFIRMED,
            start=datetime(2030, 6, 1, tzinfo=timezone.utc),
            end=datetime(2030, 6, 9, 18, tzinfo=timezone.utc),
        )
        ends_today = create_journey(
            status=JourneyStatus.CONFIRMED,
            start=datetime(2030, 6, 5, tzinfo=timezone.utc),
            end=datetime(2030, 6, 10, 8, tzinfo=timezone.utc),
        )
        not_confirmed = create_journey(
            status=JourneyStatus.PENDING_CHANGES,
            start=datetime(2030, 6, 1, tzinfo=timezone.utc),
            end=datetime(2030, 6, 2, tzinfo=timezone.utc),
        )

        result = facade.archive_past_journeys(
            now=datetime(2030, 6, 10, 15, tzinfo=timezone.utc)
        )

        assert result.updated == 1
        assert journeys.find_by_id(ended.id).status == JourneyStatus.COMPLETED
        assert journeys.find_by_id(ends_today.id).status == JourneyStatus.CONFIRMED
        assert (
            journeys.find_by_id(not_confirmed.id).status
            == JourneyStatus.PENDING_CHANGES
        )

    def test_nothing_to_archive(self, facade, create_journey):
        create_journey(status=JourneyStatus.CONFIRMED)

        result = facade.archive_past_journeys(
            now=datetime(2030, 6, 10, tzinfo=timezone.utc)
        )

        assert result.processed == 0
