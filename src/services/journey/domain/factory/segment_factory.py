from datetime import datetime
from decimal import Decimal
from typing import NotRequired, TypedDict

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import SegmentType
from services.journey.domain.value_object import CatalogService, SegmentId
from services.shared.domain import Currency, InvalidInputException, Money


class SegmentDetails(TypedDict):
    """セグメント追加の入力データ構造（TypedDict）"""

    segment_type: SegmentType
    service_id: NotRequired[str | None]
    departure_location_id: NotRequired[str | None]
    arrival_location_id: NotRequired[str | None]
    departure_time: NotRequired[datetime | None]
    arrival_time: NotRequired[datetime | None]
    price: NotRequired[Decimal | None]
    currency_code: NotRequired[str | None]
    notes: NotRequired[str | None]
    metadata: NotRequired[dict | None]


def price_for(
    segment_type: SegmentType, service: CatalogService, travelers: int
) -> Money:
    """カタログ価格から保存するセグメント価格を求める

    TOUR / ACTIVITY は1人あたりの価格なので旅行者数を掛ける。
    """
    if segment_type.is_per_person_priced:
        return service.price.multiply(travelers)
    return service.price


class SegmentFactory:
    """ジャーニーセグメントファクトリ"""

    def create(
        self,
        journey: Journey,
        details: SegmentDetails,
        service: CatalogService | None = None,
    ) -> JourneySegment:
        """未予約のセグメントを生成する

        並び順は Segment Store への挿入時に確定する。
        """
        segment_type = details["segment_type"]

        if service is not None:
            if not service.accepts_guests(journey.travelers):
                raise InvalidInputException(
                    f"Service {service.id} accepts between "
                    f"{service.min_guests or 1} and {service.max_guests or '-'} guests, "
                    f"journey has {journey.travelers}"
                )
            price = price_for(segment_type, service, journey.travelers)
        else:
            price = self._manual_price(details)

        if price.currency != journey.currency:
            raise InvalidInputException(
                f"Segment currency {price.currency} does not match "
                f"journey currency {journey.currency}"
            )

        departure_location_id = details.get("departure_location_id")
        arrival_location_id = details.get("arrival_location_id")
        departure_time = details.get("departure_time")
        arrival_time = details.get("arrival_time")
        duration = None
        if service is not None and service.is_transport:
            departure_location_id = (
                departure_location_id or service.departure_location_id
            )
            arrival_location_id = arrival_location_id or service.arrival_location_id
            departure_time = departure_time or service.departure_time
            arrival_time = arrival_time or service.arrival_time
            duration = service.duration
        elif service is not None and service.location_id is not None:
            arrival_location_id = arrival_location_id or service.location_id

        return JourneySegment(
            id=SegmentId.generate(),
            journey_id=journey.id,
            segment_type=segment_type,
            service_id=service.id if service is not None else None,
            departure_location_id=departure_location_id,
            arrival_location_id=arrival_location_id,
            departure_time=departure_time,
            arrival_time=arrival_time,
            duration=duration,
            price=price,
            notes=details.get("notes"),
            metadata=details.get("metadata"),
        )

    def _manual_price(self, details: SegmentDetails) -> Money:
        """サービスに紐付かないセグメントは価格と通貨の指定が必須"""
        amount = details.get("price")
        currency_code = details.get("currency_code")
        if amount is None or not currency_code:
            raise InvalidInputException(
                "Price and currency are required for segments without a service"
            )
        try:
            return Money(amount=amount, currency=Currency(currency_code))
        except ValueError as e:
            raise InvalidInputException(str(e)) from e
