from decimal import Decimal

import pytest
from pydantic import ValidationError

from services.journey.domain.enum import CancellationInitiator, SegmentType
from services.journey.handlers.request_models import (
    AddSegmentRequest,
    BookingCancelledDetail,
    PlanJourneyRequest,
)


class TestPlanJourneyRequest:
    def test_numeric_location_ids_become_strings(self):
        request = PlanJourneyRequest.model_validate(
            {
                "origin_location_id": 12,
                "destination_location_id": 34,
                "start_date": "2030-07-01T00:00:00Z",
                "end_date": "2030-07-05T00:00:00Z",
            }
        )

        assert request.origin_location_id == "12"
        assert request.travelers == 1
        assert request.currency == "EUR"

    def test_lowercase_currency_is_rejected(self):
        with pytest.raises(ValidationError):
            PlanJourneyRequest.model_validate(
                {
                    "origin_location_id": "loc-split",
                    "destination_location_id": "loc-hvar",
                    "start_date": "2030-07-01T00:00:00Z",
                    "end_date": "2030-07-05T00:00:00Z",
                    "currency": "eur",
                }
            )


class TestAddSegmentRequest:
    def test_day_and_time_go_into_metadata(self):
        request = AddSegmentRequest.model_validate(
            {
                "segment_type": "EVENT",
                "price": "35.50",
                "currency": "EUR",
                "day_number": 3,
                "time_of_day": "EVENING",
                "metadata": {"venue": "Fortica"},
            }
        )

        assert request.segment_type == SegmentType.EVENT
        assert request.price == Decimal("35.50")
        assert request.segment_metadata() == {
            "venue": "Fortica",
            "day_number": 3,
            "time_of_day": "EVENING",
        }

    def test_negative_insert_position(self):
        with pytest.raises(ValidationError):
            AddSegmentRequest.model_validate(
                {"segment_type": "TOUR", "insert_after_order": -1}
            )


class TestBookingCancelledDetail:
    @pytest.mark.parametrize(
        "cancelled_by, expected",
        [
            ("SUPPLIER", CancellationInitiator.SUPPLIER),
            ("supplier", CancellationInitiator.SUPPLIER),
            (None, CancellationInitiator.SUPPLIER),
            ("CUSTOMER", CancellationInitiator.GUEST),
            ("ADMIN", CancellationInitiator.GUEST),
        ],
    )
    def test_initiator_normalization(self, cancelled_by, expected):
        detail = BookingCancelledDetail.model_validate(
            {"bookingId": 5, "cancelledBy": cancelled_by}
        )

        assert detail.booking_id == "5"
        assert detail.cancelled_by == expected
