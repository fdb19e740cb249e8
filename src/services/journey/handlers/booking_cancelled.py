from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes import (
    EventBridgeEvent,
    event_source,
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from services.journey.handlers.dependencies import get_facade
from services.journey.handlers.request_models import BookingCancelledDetail

logger = Logger()


@logger.inject_lambda_context
@event_source(data_class=EventBridgeEvent)
def lambda_handler(event: EventBridgeEvent, context: LambdaContext) -> dict:
    """予約取消イベント Lambda Handler

    予約サービスが EventBridge に送る BookingCancelled を受け取り、
    取消のカスケードを実行する。失敗時は例外を送出し EventBridge の再試行に任せる。
    """

    detail = BookingCancelledDetail.model_validate(event.detail)
    logger.info(
        "Received booking cancelled event",
        extra={
            "booking_id": detail.booking_id,
            "cancelled_by": detail.cancelled_by.value,
        },
    )

    view = get_facade().handle_booking_cancelled(
        detail.booking_id, detail.reason, detail.cancelled_by
    )
    if view is None:
        return {"status": "ignored", "booking_id": detail.booking_id}
    return {
        "status": "processed",
        "booking_id": detail.booking_id,
        "journey_id": str(view.journey.id),
        "journey_status": view.journey.status.value,
    }
