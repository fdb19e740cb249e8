from aws_cdk import Duration
from aws_cdk import aws_events as events
from aws_cdk import aws_events_targets as targets
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_lambda_event_sources as event_sources
from aws_cdk import aws_sqs as sqs
from constructs import Construct


class NotificationQueue(Construct):
    """ドメインイベント (サプライヤー通知) 用の SQS キュー"""

    def __init__(self, scope: Construct, id: str) -> None:
        super().__init__(scope, id)

        self.dead_letter_queue = sqs.Queue(
            self,
            "NotificationDLQ",
            retention_period=Duration.days(14),
        )

        self.queue = sqs.Queue(
            self,
            "NotificationQueue",
            visibility_timeout=Duration.seconds(60),
            dead_letter_queue=sqs.DeadLetterQueue(
                max_receive_count=3,
                queue=self.dead_letter_queue,
            ),
        )


class Messaging(Construct):
    """非同期イベントの配線を管理する Construct

    - 通知キュー -> notify_supplier 関数
    - 予約サービスの BookingCancelled イベント -> booking_cancelled 関数
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        notification_queue: sqs.Queue,
        notify_supplier: _lambda.IFunction,
        booking_cancelled: _lambda.IFunction,
        booking_event_source: str = "booking-service",
    ) -> None:
        super().__init__(scope, id)

        notify_supplier.add_event_source(
            event_sources.SqsEventSource(notification_queue, batch_size=10)
        )

        self.booking_cancelled_rule = events.Rule(
            self,
            "BookingCancelledRule",
            event_pattern=events.EventPattern(
                source=[booking_event_source],
                detail_type=["BookingCancelled"],
            ),
        )
        self.booking_cancelled_rule.add_target(
            targets.LambdaFunction(booking_cancelled, retry_attempts=2)
        )
