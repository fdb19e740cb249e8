from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from services.journey.domain.enum import (
    CancellationInitiator,
    JourneyStatus,
    SegmentType,
)
from services.shared.utils import to_optional_decimal


class PlanJourneyRequest(BaseModel):
    """ジャーニー作成リクエストスキーマ"""

    origin_location_id: str = Field(..., min_length=1, description="出発地ID")
    destination_location_id: str = Field(..., min_length=1, description="目的地ID")
    start_date: datetime = Field(..., description="開始日時（ISO 8601形式）")
    end_date: datetime = Field(..., description="終了日時（ISO 8601形式）")
    travelers: int = Field(default=1, ge=1, le=50, description="旅行者数")
    name: str | None = Field(default=None, max_length=200)
    currency: str = Field(
        default="EUR",
        pattern="^[A-Z]{3}$",
        description="通貨コード（ISO 4217）",
        examples=["EUR"],
    )
    preferences: dict | None = None

    @field_validator("origin_location_id", "destination_location_id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "origin_location_id": "loc-split",
                    "destination_location_id": "loc-hvar",
                    "start_date": "2025-07-01T00:00:00Z",
                    "end_date": "2025-07-05T00:00:00Z",
                    "travelers": 2,
                    "name": "Summer in Dalmatia",
                }
            ]
        }
    }


class UpdateJourneyRequest(BaseModel):
    """ジャーニー更新リクエストスキーマ（指定した項目だけ更新）"""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    status: JourneyStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    travelers: int | None = Field(default=None, ge=1, le=50)


class AddSegmentRequest(BaseModel):
    """セグメント追加リクエストスキーマ"""

    segment_type: SegmentType
    service_id: str | None = None
    departure_location_id: str | None = None
    arrival_location_id: str | None = None
    departure_time: datetime | None = None
    arrival_time: datetime | None = None
    price: Decimal | None = Field(default=None, ge=0, description="料金（サービスなしの場合は必須）")
    currency: str | None = Field(default=None, pattern="^[A-Z]{3}$")
    insert_after_order: int | None = Field(default=None, ge=0)
    day_number: int | None = Field(default=None, ge=1)
    time_of_day: str | None = Field(default=None, examples=["MORNING", "EVENING"])
    notes: str | None = Field(default=None, max_length=2000)
    metadata: dict | None = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        """Decimalに変換する"""
        return to_optional_decimal(v)

    @field_validator(
        "service_id", "departure_location_id", "arrival_location_id", mode="before"
    )
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v) if v is not None else None

    def segment_metadata(self) -> dict:
        """dayNumber / timeOfDay を metadata にまとめる"""
        metadata = dict(self.metadata or {})
        if self.day_number is not None:
            metadata["day_number"] = self.day_number
        if self.time_of_day is not None:
            metadata["time_of_day"] = self.time_of_day
        return metadata


class UpdateSegmentRequest(BaseModel):
    """セグメント更新リクエストスキーマ"""

    service_id: str | None = None
    departure_location_id: str | None = None
    arrival_location_id: str | None = None
    departure_time: datetime | None = None
    arrival_time: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)
    metadata: dict | None = None

    @field_validator(
        "service_id", "departure_location_id", "arrival_location_id", mode="before"
    )
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v) if v is not None else None


class BookJourneyRequest(BaseModel):
    """ジャーニー予約リクエストスキーマ"""

    notes: str | None = Field(default=None, max_length=2000)
    guest_details: dict = Field(default_factory=dict)


class ReplaceSegmentRequest(BaseModel):
    """セグメント差し替えリクエストスキーマ"""

    service_id: str = Field(..., min_length=1)

    @field_validator("service_id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)


class CancelSegmentBookingRequest(BaseModel):
    """ゲストによる予約取消リクエストスキーマ"""

    reason: str | None = Field(default=None, max_length=500)


class ListJourneysQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class BookingCancelledDetail(BaseModel):
    """予約サービスが EventBridge に送る取消イベントの detail"""

    booking_id: str = Field(..., alias="bookingId")
    reason: str | None = Field(default=None, alias="cancellationReason")
    cancelled_by: CancellationInitiator = Field(
        default=CancellationInitiator.SUPPLIER, alias="cancelledBy"
    )

    @model_validator(mode="before")
    @classmethod
    def normalize_initiator(cls, data):
        """予約サービスはサプライヤー以外の取消を CUSTOMER / ADMIN などで送ってくる"""
        if isinstance(data, dict):
            data = dict(data)
            if "bookingId" in data:
                data["bookingId"] = str(data["bookingId"])
            initiator = str(data.get("cancelledBy") or "SUPPLIER").upper()
            data["cancelledBy"] = "SUPPLIER" if initiator == "SUPPLIER" else "GUEST"
        return data


class SupplierBookingCreatedMessage(BaseModel):
    """通知キューのメッセージ"""

    event_type: str
    journey_id: str
    supplier_id: str
    booking_id: str
    booking_reference: str
    amount: Decimal
    currency: str

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount_to_decimal(cls, v):
        """Decimalに変換する"""
        return to_optional_decimal(v)
