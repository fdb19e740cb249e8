import os
from typing import Any

from services.journey.domain.gateway import NotificationGateway
from services.shared.domain import Money
from services.shared.utils import invoke_function
from services.shared.utils.lambda_invoke import lambda_client


class LambdaNotificationGateway(NotificationGateway):
    """通知サービス Lambda を呼び出す NotificationGateway"""

    def __init__(self, function_name: str | None = None, client: Any = None) -> None:
        self.function_name = function_name or os.getenv(
            "NOTIFICATION_SERVICE_FUNCTION"
        )
        self.client = client or lambda_client()

    def notify_supplier_new_booking(
        self, supplier_id: str, booking_id: str, reference: str, amount: Money
    ) -> None:
        invoke_function(
            self.client,
            self.function_name,
            {
                "action": "notifySupplierNewBooking",
                "supplierId": supplier_id,
                "bookingId": booking_id,
                "bookingReference": reference,
                "amount": str(amount.amount),
                "currency": str(amount.currency),
            },
        )
