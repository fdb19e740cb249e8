from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from services.journey.applications.exceptions import PartialBookingFailureException
from services.journey.applications.journey_facade import JourneyFacade
from services.journey.domain.enum import JourneyStatus, SegmentType
from services.journey.domain.event import SupplierBookingCreated
from services.shared.domain import InvalidStateException, Money


@pytest.fixture
def planned_journey(create_journey, create_service, add_segment):
    """2連泊 + ツアー + 3泊目（別ホテル）のジャーニー"""
    create_service("svc-hotel", "ACCOMMODATION", Decimal("100"), supplier_id="sup-hotel")
    create_service("svc-tour", "TOUR", Decimal("45"), supplier_id="sup-tour")
    create_service("svc-villa", "ACCOMMODATION", Decimal("200"), supplier_id="sup-villa")

    journey = create_journey(travelers=2)
    add_segment(journey, service_id="svc-hotel", day=0, price=Decimal("100"))
    add_segment(journey, service_id="svc-hotel", day=1, price=Decimal("110"))
    add_segment(
        journey,
        segment_type=SegmentType.TOUR,
        service_id="svc-tour",
        day=1,
        price=Decimal("90"),
    )
    add_segment(journey, service_id="svc-villa", day=2, price=Decimal("200"))
    return journey


class TestBookJourney:
    def test_books_each_group_and_confirms(
        self, facade, bookings, journeys, planned_journey
    ):
        view = facade.book_journey(
            str(planned_journey.id), "user-1", {"notes": "Arriving late"}
        )

        assert view.journey.status == JourneyStatus.CONFIRMED
        assert len(bookings.requests) == 3
        stay, tour, villa = bookings.requests

        assert stay.service_id == "svc-hotel"
        assert stay.supplier_id == "sup-hotel"
        assert stay.service_type == "ACCOMMODATION"
        assert stay.day_count == 2
        assert stay.check_in == datetime(2030, 7, 1, tzinfo=timezone.utc)
        assert stay.check_out == datetime(2030, 7, 3, tzinfo=timezone.utc)
        assert stay.total == Money.eur(Decimal("210"))
        assert stay.unit_price == Money.eur(Decimal("105.00"))
        assert stay.commission == Money.eur(Decimal("31.50"))
        assert stay.notes == "Arriving late"

        assert tour.service_type == "TOUR"
        assert tour.day_count == 1
        assert villa.supplier_id == "sup-villa"

        # 1回の予約で作られた予約には同じパッケージタグが付く
        assert len({r.package_booking_id for r in bookings.requests}) == 1

        assert [str(s.booking_id) for s in view.segments] == [
            "bkg-1",
            "bkg-1",
            "bkg-2",
            "bkg-3",
        ]
        assert all(s.is_booked and s.is_confirmed for s in view.segments)
        assert journeys.find_by_id(planned_journey.id).status == JourneyStatus.CONFIRMED

    def test_publishes_one_event_per_booking(self, facade, publisher, planned_journey):
        facade.book_journey(str(planned_journey.id), "user-1")

        publisher.publish.assert_called_once()
        events = publisher.publish.call_args.args[0]
        assert [type(e) for e in events] == [SupplierBookingCreated] * 3
        assert [e.booking_id for e in events] == ["bkg-1", "bkg-2", "bkg-3"]
        assert events[0].supplier_id == "sup-hotel"
        assert events[0].amount == "210"
        assert events[0].currency == "EUR"

    def test_partial_failure_keeps_created_bookings(
        self, facade, bookings, journeys, segments, publisher, planned_journey
    ):
        bookings.failing_services.add("svc-tour")

        with pytest.raises(PartialBookingFailureException) as exc_info:
            facade.book_journey(str(planned_journey.id), "user-1")

        error = exc_info.value
        assert error.created_booking_ids == ["bkg-1", "bkg-2"]
        assert len(error.failed) == 1
        assert error.failed[0].service_id == "svc-tour"
        assert "sold out" in error.failed[0].reason

        assert journeys.find_by_id(planned_journey.id).status == JourneyStatus.BOOKING
        stored = segments.list_by_journey(planned_journey.id)
        assert [s.is_booked for s in stored] == [True, True, False, True]
        assert not any(s.is_confirmed for s in stored)
        assert len(publisher.publish.call_args.args[0]) == 2

    def test_retry_after_partial_failure_books_the_rest(
        self, facade, bookings, journeys, planned_journey
    ):
        bookings.failing_services.add("svc-tour")
        with pytest.raises(PartialBookingFailureException):
            facade.book_journey(str(planned_journey.id), "user-1")
        # BOOKING のままでは再予約できないので再計算で PENDING_CHANGES に戻す
        bookings.failing_services.clear()
        facade.recalculate_journey_status(str(planned_journey.id), "user-1")
        assert (
            journeys.find_by_id(planned_journey.id).status
            == JourneyStatus.PENDING_CHANGES
        )

        view = facade.book_journey(str(planned_journey.id), "user-1")

        assert view.journey.status == JourneyStatus.CONFIRMED
        assert len(bookings.requests) == 3
        assert bookings.requests[-1].service_id == "svc-tour"

    def test_nothing_to_book(self, facade, create_journey):
        journey = create_journey()

        with pytest.raises(InvalidStateException):
            facade.book_journey(str(journey.id), "user-1")

    @pytest.mark.parametrize(
        "status",
        [JourneyStatus.BOOKING, JourneyStatus.CONFIRMED, JourneyStatus.CANCELLED],
    )
    def test_not_bookable(self, facade, create_journey, add_segment, status):
        journey = create_journey(status=status)
        add_segment(journey)

        with pytest.raises(InvalidStateException):
            facade.book_journey(str(journey.id), "user-1")

    def test_concurrent_dispatch(
        self,
        journeys,
        segments,
        bookings,
        catalog,
        publisher,
        create_journey,
        create_service,
        add_segment,
    ):
        facade = JourneyFacade(
            journeys, segments, bookings, catalog, publisher, booking_concurrency=4
        )
        journey = create_journey(travelers=1)
        for i in range(6):
            create_service(f"svc-tour-{i}", "TOUR", Decimal("20"))
            add_segment(
                journey,
                segment_type=SegmentType.TOUR,
                service_id=f"svc-tour-{i}",
                day=i % 4,
                price=Decimal("20"),
            )

        view = facade.book_journey(str(journey.id), "user-1")

        assert view.journey.status == JourneyStatus.CONFIRMED
        assert len(bookings.requests) == 6
        assert len({s.booking_id for s in view.segments}) == 6
        assert view.journey.total_price == Money.eur(Decimal("120"))
        assert all(
            r.service_date == journey.period.start + timedelta(days=i % 4)
            for i, r in enumerate(
                sorted(bookings.requests, key=lambda r: r.service_id)
            )
        )
