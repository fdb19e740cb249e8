from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import SQSEvent, event_source
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from services.journey.handlers.dependencies import get_notification_gateway
from services.journey.handlers.request_models import SupplierBookingCreatedMessage
from services.shared.domain import Currency, Money

logger = Logger()


@logger.inject_lambda_context
@event_source(data_class=SQSEvent)
def lambda_handler(event: SQSEvent, context: LambdaContext) -> dict:
    """サプライヤー通知 Lambda Handler

    予約作成後にキューへ積まれた SupplierBookingCreated を読み、サプライヤーへ通知する。
    通知の失敗は予約の結果に影響させないため、ログに残してメッセージは消費する。
    """

    gateway = get_notification_gateway()
    sent = 0
    failed = 0

    for record in event.records:
        try:
            message = SupplierBookingCreatedMessage.model_validate_json(record.body)
        except ValidationError:
            logger.exception(
                "Discarding malformed notification message",
                extra={"message_id": record.message_id},
            )
            failed += 1
            continue

        try:
            gateway.notify_supplier_new_booking(
                message.supplier_id,
                message.booking_id,
                message.booking_reference,
                Money(amount=message.amount, currency=Currency(message.currency)),
            )
        except Exception:
            logger.exception(
                "Failed to notify supplier",
                extra={
                    "supplier_id": message.supplier_id,
                    "booking_id": message.booking_id,
                },
            )
            failed += 1
            continue
        sent += 1

    logger.info("Supplier notifications processed", extra={"sent": sent, "failed": failed})
    return {"sent": sent, "failed": failed}
