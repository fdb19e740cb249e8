from datetime import datetime, timezone

import pytest

from services.journey.domain.enum import JourneyStatus
from services.journey.domain.factory import JourneyDetails, JourneyFactory
from services.shared.domain import Currency, InvalidInputException


class TestJourneyFactory:
    @pytest.fixture
    def details(self) -> JourneyDetails:
        return {
            "origin_location_id": "loc-split",
            "destination_location_id": "loc-hvar",
            "start_date": datetime(2030, 7, 1, tzinfo=timezone.utc),
            "end_date": datetime(2030, 7, 5, tzinfo=timezone.utc),
            "travelers": 2,
        }

    def test_create_defaults(self, details):
        journey = JourneyFactory().create("user-1", details)

        assert journey.user_id == "user-1"
        assert journey.name == "My Journey"
        assert journey.currency == Currency.eur()
        assert journey.status == JourneyStatus.PLANNING
        assert journey.total_price.amount == 0
        assert str(journey.id).startswith("jrn_")

    def test_create_with_name_and_currency(self, details):
        details["name"] = "Island hopping"
        details["currency_code"] = "usd"

        journey = JourneyFactory().create("user-1", details)

        assert journey.name == "Island hopping"
        assert journey.currency == Currency.usd()

    def test_end_before_start(self, details):
        details["end_date"] = datetime(2030, 6, 30, tzinfo=timezone.utc)
        with pytest.raises(InvalidInputException):
            JourneyFactory().create("user-1", details)

    def test_unsupported_currency(self, details):
        details["currency_code"] = "XYZ"
        with pytest.raises(InvalidInputException):
            JourneyFactory().create("user-1", details)
