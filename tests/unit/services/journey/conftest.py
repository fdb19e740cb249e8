import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from services.journey.applications.journey_facade import JourneyFacade
from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import (
    BookingStatus,
    CancellationInitiator,
    JourneyStatus,
    SegmentType,
)
from services.journey.domain.gateway import (
    BookingGateway,
    BookingRequest,
    CatalogGateway,
)
from services.journey.domain.value_object import (
    BookingId,
    BookingRef,
    CatalogService,
    JourneyId,
    Location,
    SegmentId,
    TravelPeriod,
)
from services.journey.infrastructure.in_memory_repository import (
    InMemoryJourneyRepository,
    InMemorySegmentRepository,
    InMemoryStore,
)
from services.shared.domain import Currency, Money
from services.shared.utils.lambda_invoke import RemoteInvocationException

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TRIP_START = datetime(2030, 7, 1, tzinfo=timezone.utc)
TRIP_END = datetime(2030, 7, 5, tzinfo=timezone.utc)
LOCATIONS = ("loc-split", "loc-hvar", "loc-split-port", "loc-hvar-port")


class FakeCatalogGateway(CatalogGateway):
    """辞書で保持するカタログ"""

    def __init__(self) -> None:
        self.services: dict[str, CatalogService] = {}
        self.locations: dict[str, Location] = {}

    def add_service(self, service: CatalogService) -> CatalogService:
        self.services[service.id] = service
        return service

    def get_service(self, service_id):
        return self.services.get(service_id)

    def get_location(self, location_id):
        return self.locations.get(location_id)

    def search_services(
        self,
        service_type,
        departure_location_id=None,
        arrival_location_id=None,
        location_id=None,
    ):
        return [
            s
            for s in self.services.values()
            if s.type == service_type
            and departure_location_id in (None, s.departure_location_id)
            and arrival_location_id in (None, s.arrival_location_id)
            and location_id in (None, s.location_id)
        ]


class FakeBookingGateway(BookingGateway):
    """予約を連番で作成し、状態を辞書で保持する予約サービス"""

    def __init__(self) -> None:
        self.bookings: dict[BookingId, BookingRef] = {}
        self.requests: list[BookingRequest] = []
        self.cancelled: list[tuple[BookingId, str | None]] = []
        self.failing_services: set[str] = set()
        self._lock = threading.Lock()
        self._sequence = 0

    def create_booking(self, request):
        with self._lock:
            if request.service_id in self.failing_services:
                raise RemoteInvocationException(
                    f"booking-service failed: {request.service_id} is sold out"
                )
            self._sequence += 1
            ref = BookingRef(
                id=BookingId(f"bkg-{self._sequence}"),
                reference=f"REF-{self._sequence:04d}",
                status=BookingStatus.CONFIRMED,
            )
            self.bookings[ref.id] = ref
            self.requests.append(request)
            return ref

    def cancel_booking(self, booking_id, reason):
        self.cancelled.append((booking_id, reason))
        return self.set_status(str(booking_id), BookingStatus.CANCELLED)

    def get_bookings(self, booking_ids):
        return {b: self.bookings[b] for b in booking_ids if b in self.bookings}

    def set_status(self, booking_id: str, status: BookingStatus) -> BookingRef:
        """予約を追加または状態を変更する"""
        ref = BookingRef(
            id=BookingId(booking_id), reference=f"REF-{booking_id}", status=status
        )
        self.bookings[ref.id] = ref
        return ref


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def journeys(store):
    return InMemoryJourneyRepository(store)


@pytest.fixture
def segments(store):
    return InMemorySegmentRepository(store)


@pytest.fixture
def catalog():
    fake = FakeCatalogGateway()
    for location_id in LOCATIONS:
        fake.locations[location_id] = Location(id=location_id, type="TOWN")
    return fake


@pytest.fixture
def bookings():
    return FakeBookingGateway()


@pytest.fixture
def publisher():
    return MagicMock()


@pytest.fixture
def facade(journeys, segments, bookings, catalog, publisher):
    # 1ワーカーにして予約IDの採番順をセグメント順に揃える
    return JourneyFacade(
        journeys=journeys,
        segments=segments,
        bookings=bookings,
        catalog=catalog,
        publisher=publisher,
        booking_concurrency=1,
    )


@pytest.fixture
def create_service(catalog):
    """CatalogService をカタログに登録する Factory fixture"""

    def _factory(
        service_id: str = "svc-hotel",
        type: str = "ACCOMMODATION",
        price: Decimal = Decimal("100"),
        currency: str = "EUR",
        supplier_id: str = "sup-1",
        **kwargs,
    ) -> CatalogService:
        return catalog.add_service(
            CatalogService(
                id=service_id,
                type=type,
                supplier_id=supplier_id,
                price=Money(amount=price, currency=Currency(currency)),
                **kwargs,
            )
        )

    return _factory


@pytest.fixture
def create_journey(journeys):
    """Journey を生成して保存する Factory fixture（Factories as fixtures パターン）"""

    def _factory(
        status: JourneyStatus = JourneyStatus.PLANNING,
        user_id: str = USER_ID,
        travelers: int = 2,
        start: datetime = TRIP_START,
        end: datetime = TRIP_END,
        currency: str = "EUR",
        save: bool = True,
    ) -> Journey:
        journey = Journey(
            id=JourneyId.generate(),
            user_id=user_id,
            name="Dalmatian Islands",
            origin_location_id="loc-split",
            destination_location_id="loc-hvar",
            period=TravelPeriod(start=start, end=end),
            travelers=travelers,
            currency=Currency(currency),
            status=status,
        )
        if save:
            journeys.save(journey)
        return journey

    return _factory


@pytest.fixture
def add_segment(segments, bookings):
    """セグメントを保存済みジャーニーの末尾に追加する Factory fixture

    booking_id を渡すと予約サービス側にも同じ予約を作る。
    """

    def _factory(
        journey: Journey,
        segment_type: SegmentType = SegmentType.ACCOMMODATION,
        price: Decimal = Decimal("100"),
        service_id: str | None = "svc-hotel",
        day: int | None = None,
        booking_id: str | None = None,
        booking_status: BookingStatus = BookingStatus.CONFIRMED,
        is_confirmed: bool = False,
        cancelled_by: CancellationInitiator | None = None,
        currency: str = "EUR",
    ) -> JourneySegment:
        arrival_time = TRIP_START + timedelta(days=day) if day is not None else None
        segment = JourneySegment(
            id=SegmentId.generate(),
            journey_id=journey.id,
            segment_type=segment_type,
            price=Money(amount=price, currency=Currency(currency)),
            service_id=service_id,
            departure_time=arrival_time,
            arrival_time=arrival_time,
            booking_id=BookingId(booking_id) if booking_id else None,
            is_booked=booking_id is not None,
            is_confirmed=is_confirmed,
            is_cancelled=cancelled_by is not None,
            cancelled_by=cancelled_by,
        )
        if booking_id is not None:
            bookings.set_status(booking_id, booking_status)
        journey.recalculate_total([*segments.list_by_journey(journey.id), segment])
        return segments.insert_at(journey, segment)

    return _factory


@pytest.fixture
def make_segment():
    """保存しないセグメントを生成する Factory fixture（ドメインサービスのテスト用）"""

    def _factory(
        segment_type: SegmentType = SegmentType.ACCOMMODATION,
        service_id: str | None = "svc-hotel",
        price: Decimal = Decimal("100"),
        order: int = 1,
        day: int | None = None,
        booking_id: str | None = None,
        is_cancelled: bool = False,
        cancelled_by: CancellationInitiator | None = None,
    ) -> JourneySegment:
        arrival_time = TRIP_START + timedelta(days=day) if day is not None else None
        return JourneySegment(
            id=SegmentId.generate(),
            journey_id=JourneyId("jrn-123"),
            segment_type=segment_type,
            price=Money.eur(price),
            segment_order=order,
            service_id=service_id,
            departure_time=arrival_time,
            arrival_time=arrival_time,
            booking_id=BookingId(booking_id) if booking_id else None,
            is_booked=booking_id is not None,
            is_cancelled=is_cancelled or cancelled_by is not None,
            cancelled_by=cancelled_by,
        )

    return _factory


@pytest.fixture
def booking_refs():
    """bkg_1=BookingStatus.CONFIRMED 形式から予約状態の辞書を作る"""

    def _factory(**statuses: BookingStatus) -> dict[BookingId, BookingRef]:
        return {
            BookingId(key.replace("_", "-")): BookingRef(
                id=BookingId(key.replace("_", "-")), reference=key, status=status
            )
            for key, status in statuses.items()
        }

    return _factory
