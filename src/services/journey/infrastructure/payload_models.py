from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.journey.domain.enum import BookingStatus
from services.journey.domain.value_object import (
    BookingId,
    BookingRef,
    CatalogService,
    Location,
)
from services.shared.domain import Currency, Money
from services.shared.utils import to_decimal


class BookingPayload(BaseModel):
    """予約サービスが返す予約"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    reference: str = Field(..., alias="bookingReference")
    status: BookingStatus

    @field_validator("id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)

    def to_ref(self) -> BookingRef:
        return BookingRef(
            id=BookingId(self.id), reference=self.reference, status=self.status
        )


class BookingListPayload(BaseModel):
    bookings: list[BookingPayload] = Field(default_factory=list)


class LocationPayload(BaseModel):
    """カタログサービスが返す地点"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str
    parent_id: str | None = Field(default=None, alias="parentId")
    name: str | None = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v) if v is not None else None

    def to_location(self) -> Location:
        return Location(
            id=self.id, type=self.type, parent_id=self.parent_id, name=self.name
        )


class ServicePayload(BaseModel):
    """カタログサービスが返すサービス

    交通・宿泊などの種別固有の項目は任意。
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: str
    supplier_id: str = Field(..., alias="supplierId")
    price: Decimal
    currency: str = "EUR"
    name: str | None = None
    min_guests: int | None = Field(default=None, alias="minGuests")
    max_guests: int | None = Field(default=None, alias="maxGuests")
    location_id: str | None = Field(default=None, alias="locationId")
    departure_location_id: str | None = Field(
        default=None, alias="departureLocationId"
    )
    arrival_location_id: str | None = Field(default=None, alias="arrivalLocationId")
    departure_time: datetime | None = Field(default=None, alias="departureTime")
    arrival_time: datetime | None = Field(default=None, alias="arrivalTime")
    duration: int | None = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        """Decimalに変換する"""
        return to_decimal(v)

    @field_validator("id", "supplier_id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)

    def to_service(self) -> CatalogService:
        return CatalogService(
            id=self.id,
            type=self.type,
            supplier_id=self.supplier_id,
            price=Money(amount=self.price, currency=Currency(self.currency)),
            name=self.name,
            min_guests=self.min_guests,
            max_guests=self.max_guests,
            location_id=self.location_id,
            departure_location_id=self.departure_location_id,
            arrival_location_id=self.arrival_location_id,
            departure_time=self.departure_time,
            arrival_time=self.arrival_time,
            duration=self.duration,
            attributes=dict(self.model_extra or {}),
        )


class ServiceListPayload(BaseModel):
    services: list[ServicePayload] = Field(default_factory=list)
