import os
from typing import Any

from services.journey.domain.gateway import BookingGateway, BookingRequest
from services.journey.domain.value_object import BookingId, BookingRef
from services.shared.utils import invoke_function
from services.shared.utils.lambda_invoke import lambda_client

from .payload_models import BookingListPayload, BookingPayload


def booking_payload(request: BookingRequest) -> dict:
    """BookingRequest を予約サービスの入力形式に変換する"""
    return {
        "userId": request.user_id,
        "supplierId": request.supplier_id,
        "packageBookingId": str(request.package_booking_id),
        "status": "PENDING",
        "serviceDate": request.service_date.isoformat() if request.service_date else None,
        "totalAmount": str(request.total.amount),
        "currency": str(request.total.currency),
        "commission": str(request.commission.amount),
        "notes": request.notes,
        "items": [
            {
                "serviceId": request.service_id,
                "serviceType": request.service_type,
                "quantity": request.travelers,
                "unitPrice": str(request.unit_price.amount),
                "totalPrice": str(request.total.amount),
                "metadata": {
                    **request.guest_details,
                    "journeyId": request.journey_id,
                    "segmentIds": list(request.segment_ids),
                    "checkIn": request.check_in.isoformat() if request.check_in else None,
                    "checkOut": (
                        request.check_out.isoformat() if request.check_out else None
                    ),
                    "dayCount": request.day_count,
                },
            }
        ],
    }


class LambdaBookingGateway(BookingGateway):
    """予約サービス Lambda を同期呼び出しする BookingGateway"""

    def __init__(self, function_name: str | None = None, client: Any = None) -> None:
        self.function_name = function_name or os.getenv("BOOKING_SERVICE_FUNCTION")
        self.client = client or lambda_client()

    def create_booking(self, request: BookingRequest) -> BookingRef:
        result = invoke_function(
            self.client,
            self.function_name,
            {"action": "createBooking", "booking": booking_payload(request)},
        )
        return BookingPayload.model_validate(result).to_ref()

    def cancel_booking(self, booking_id: BookingId, reason: str | None) -> BookingRef:
        result = invoke_function(
            self.client,
            self.function_name,
            {
                "action": "cancelBooking",
                "bookingId": str(booking_id),
                "cancellationReason": reason,
                "cancelledBy": "GUEST",
            },
        )
        return BookingPayload.model_validate(result).to_ref()

    def get_bookings(
        self, booking_ids: list[BookingId]
    ) -> dict[BookingId, BookingRef]:
        if not booking_ids:
            return {}
        result = invoke_function(
            self.client,
            self.function_name,
            {"action": "getBookings", "bookingIds": [str(b) for b in booking_ids]},
        )
        refs = (p.to_ref() for p in BookingListPayload.model_validate(result).bookings)
        return {ref.id: ref for ref in refs}
