from functools import lru_cache

from services.journey.applications.journey_facade import JourneyFacade
from services.journey.infrastructure.dynamodb_journey_repository import (
    DynamoDBJourneyRepository,
)
from services.journey.infrastructure.dynamodb_segment_repository import (
    DynamoDBSegmentRepository,
)
from services.journey.infrastructure.lambda_booking_gateway import (
    LambdaBookingGateway,
)
from services.journey.infrastructure.lambda_catalog_gateway import (
    LambdaCatalogGateway,
)
from services.journey.infrastructure.lambda_notification_gateway import (
    LambdaNotificationGateway,
)
from services.journey.infrastructure.sqs_event_publisher import SqsEventPublisher


@lru_cache(maxsize=1)
def get_facade() -> JourneyFacade:
    """Lambda 実行環境ごとに1度だけ組み立てる"""
    return JourneyFacade(
        journeys=DynamoDBJourneyRepository(),
        segments=DynamoDBSegmentRepository(),
        bookings=LambdaBookingGateway(),
        catalog=LambdaCatalogGateway(),
        publisher=SqsEventPublisher(),
    )


@lru_cache(maxsize=1)
def get_notification_gateway() -> LambdaNotificationGateway:
    return LambdaNotificationGateway()
