from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from services.journey.applications.journey_view import JourneyView
from services.journey.applications.reconcile_journey_status import (
    RecalculationResult,
)
from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.value_object import CatalogService


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


class SegmentData(BaseModel):
    """セグメントデータのレスポンスモデル"""

    segment_id: str
    journey_id: str
    segment_type: str
    segment_order: int
    service_id: str | None
    departure_location_id: str | None
    arrival_location_id: str | None
    departure_time: str | None
    arrival_time: str | None
    duration: int | None
    price: str
    currency: str
    booking_id: str | None
    is_booked: bool
    is_confirmed: bool
    is_cancelled: bool
    cancelled_at: str | None
    cancellation_reason: str | None
    cancelled_by: str | None
    notes: str | None
    metadata: dict


class JourneyData(BaseModel):
    """ジャーニーデータのレスポンスモデル"""

    journey_id: str
    user_id: str
    name: str
    origin_location_id: str
    destination_location_id: str
    start_date: str
    end_date: str
    travelers: int
    currency: str
    total_price: str
    status: str
    preferences: dict
    created_at: str
    segments: list[SegmentData]


class ServiceData(BaseModel):
    """代替候補サービスのレスポンスモデル"""

    service_id: str
    type: str
    supplier_id: str
    name: str | None
    price: str
    currency: str
    min_guests: int | None
    max_guests: int | None
    location_id: str | None
    departure_location_id: str | None
    arrival_location_id: str | None
    departure_time: str | None
    arrival_time: str | None
    duration: int | None


class SuccessResponse(BaseModel):
    """成功レスポンスモデル"""

    status: str = "success"
    data: Any


class ErrorResponse(BaseModel):
    """エラーレスポンスモデル"""

    status: str = "error"
    error_code: str
    message: str
    details: dict | None = None


def to_segment_data(segment: JourneySegment) -> SegmentData:
    return SegmentData(
        segment_id=str(segment.id),
        journey_id=str(segment.journey_id),
        segment_type=segment.segment_type.value,
        segment_order=segment.segment_order,
        service_id=segment.service_id,
        departure_location_id=segment.departure_location_id,
        arrival_location_id=segment.arrival_location_id,
        departure_time=_iso(segment.departure_time),
        arrival_time=_iso(segment.arrival_time),
        duration=segment.duration,
        price=str(segment.price.amount),
        currency=str(segment.price.currency),
        booking_id=str(segment.booking_id) if segment.booking_id else None,
        is_booked=segment.is_booked,
        is_confirmed=segment.is_confirmed,
        is_cancelled=segment.is_cancelled,
        cancelled_at=_iso(segment.cancelled_at),
        cancellation_reason=segment.cancellation_reason,
        cancelled_by=segment.cancelled_by.value if segment.cancelled_by else None,
        notes=segment.notes,
        metadata=segment.metadata,
    )


def to_journey_data(
    journey: Journey, segments: list[JourneySegment] | None = None
) -> JourneyData:
    return JourneyData(
        journey_id=str(journey.id),
        user_id=journey.user_id,
        name=journey.name,
        origin_location_id=journey.origin_location_id,
        destination_location_id=journey.destination_location_id,
        start_date=journey.period.start.isoformat(),
        end_date=journey.period.end.isoformat(),
        travelers=journey.travelers,
        currency=str(journey.currency),
        total_price=str(journey.total_price.amount),
        status=journey.status.value,
        preferences=journey.preferences,
        created_at=journey.created_at.isoformat(),
        segments=[to_segment_data(s) for s in segments or []],
    )


def to_service_data(service: CatalogService) -> ServiceData:
    return ServiceData(
        service_id=service.id,
        type=service.type,
        supplier_id=service.supplier_id,
        name=service.name,
        price=str(service.price.amount),
        currency=str(service.price.currency),
        min_guests=service.min_guests,
        max_guests=service.max_guests,
        location_id=service.location_id,
        departure_location_id=service.departure_location_id,
        arrival_location_id=service.arrival_location_id,
        departure_time=_iso(service.departure_time),
        arrival_time=_iso(service.arrival_time),
        duration=service.duration,
    )


def to_response(view: JourneyView) -> dict:
    """JourneyView をレスポンス辞書に変換する"""
    return SuccessResponse(
        data=to_journey_data(view.journey, view.segments).model_dump()
    ).model_dump()


def to_list_response(views: list[JourneyView], page: int, limit: int) -> dict:
    return SuccessResponse(
        data={
            "journeys": [
                to_journey_data(v.journey, v.segments).model_dump() for v in views
            ],
            "page": page,
            "limit": limit,
        }
    ).model_dump()


def to_recalculation_response(result: RecalculationResult) -> dict:
    return SuccessResponse(
        data={
            "updated_count": result.updated_count,
            "journeys": [
                to_journey_data(v.journey, v.segments).model_dump()
                for v in result.journeys
            ],
        }
    ).model_dump()


def to_error_response(
    error_code: str, message: str, details: dict | None = None
) -> dict:
    return ErrorResponse(
        error_code=error_code, message=message, details=details
    ).model_dump()
