import pytest

from services.journey.domain.enum import BookingStatus, JourneyStatus, SegmentType
from services.journey.domain.enum.journey_status import GUEST_TRANSITIONS


class TestJourneyStatus:
    def test_planning_cap_statuses(self):
        capped = {s for s in JourneyStatus if s.counts_toward_planning_cap}
        assert capped == {JourneyStatus.PLANNING, JourneyStatus.READY}

    def test_terminal_statuses(self):
        terminal = {s for s in JourneyStatus if s.is_terminal}
        assert terminal == {JourneyStatus.COMPLETED, JourneyStatus.CANCELLED}

    def test_every_status_has_guest_transitions(self):
        assert set(GUEST_TRANSITIONS) == set(JourneyStatus)

    def test_guest_cannot_reach_booking_states(self):
        reachable = set().union(*GUEST_TRANSITIONS.values())
        assert JourneyStatus.CONFIRMED not in reachable
        assert JourneyStatus.PENDING_CHANGES not in reachable
        assert JourneyStatus.COMPLETED not in reachable


class TestSegmentType:
    @pytest.mark.parametrize(
        "segment_type, service_type",
        [
            (SegmentType.FERRY, "TRANSPORT"),
            (SegmentType.AIRPORT_TRANSFER, "TRANSPORT"),
            (SegmentType.ACCOMMODATION, "ACCOMMODATION"),
            (SegmentType.TOUR, "TOUR"),
            (SegmentType.EVENT, "EVENT_TICKET"),
        ],
    )
    def test_to_service_type(self, segment_type, service_type):
        assert segment_type.to_service_type() == service_type

    def test_per_person_priced(self):
        per_person = {t for t in SegmentType if t.is_per_person_priced}
        assert per_person == {SegmentType.TOUR, SegmentType.ACTIVITY}


class TestBookingStatus:
    def test_active_statuses(self):
        active = {s for s in BookingStatus if s.is_active}
        assert active == {BookingStatus.PENDING, BookingStatus.CONFIRMED}
