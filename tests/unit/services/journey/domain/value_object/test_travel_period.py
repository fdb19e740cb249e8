from datetime import datetime, timedelta, timezone

import pytest

from services.journey.domain.value_object import TravelPeriod


class TestTravelPeriod:
    def test_end_must_be_after_start(self):
        start = datetime(2030, 7, 1, tzinfo=timezone.utc)
        with pytest.raises(ValueError):
            TravelPeriod(start=start, end=start)

    def test_naive_datetimes_are_utc(self):
        period = TravelPeriod(start=datetime(2030, 7, 1), end=datetime(2030, 7, 3))
        assert period.start.tzinfo == timezone.utc

    def test_offsets_are_normalized_to_utc(self):
        cest = timezone(timedelta(hours=2))
        period = TravelPeriod(
            start=datetime(2030, 7, 1, 0, 0, tzinfo=cest),
            end=datetime(2030, 7, 3, tzinfo=cest),
        )
        assert period.start == datetime(2030, 6, 30, 22, 0, tzinfo=timezone.utc)
        assert period.start.isoformat() == "2030-06-30T22:00:00+00:00"

    def test_has_ended_before(self):
        period = TravelPeriod(
            start=datetime(2030, 7, 1, tzinfo=timezone.utc),
            end=datetime(2030, 7, 5, tzinfo=timezone.utc),
        )
        assert period.has_ended_before(datetime(2030, 7, 6, tzinfo=timezone.utc))
        assert not period.has_ended_before(datetime(2030, 7, 5, tzinfo=timezone.utc))
