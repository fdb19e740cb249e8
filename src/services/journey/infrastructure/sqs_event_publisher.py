import json
import os
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from services.journey.domain.event import DomainEvent
from services.journey.domain.gateway import EventPublisher
from services.shared.utils import get_logger

logger = get_logger("journey")

# SendMessageBatch の上限
_BATCH_SIZE = 10


class SqsEventPublisher(EventPublisher):
    """ドメインイベントを SQS に送る EventPublisher

    送信に失敗したイベントはログに残し、呼び出し元の処理結果には影響させない。
    """

    def __init__(self, queue_url: str | None = None, client: Any = None) -> None:
        self.queue_url = queue_url or os.getenv("NOTIFICATION_QUEUE_URL")
        self.client = client or boto3.client("sqs")

    def publish(self, events: list[DomainEvent]) -> None:
        for start in range(0, len(events), _BATCH_SIZE):
            self._send_batch(events[start : start + _BATCH_SIZE])

    def _send_batch(self, events: list[DomainEvent]) -> None:
        entries = [
            {
                "Id": str(index),
                "MessageBody": json.dumps(event.to_dict(), default=str),
                "MessageAttributes": {
                    "event_type": {"DataType": "String", "StringValue": event.event_type}
                },
            }
            for index, event in enumerate(events)
        ]
        try:
            response = self.client.send_message_batch(
                QueueUrl=self.queue_url, Entries=entries
            )
        except (BotoCoreError, ClientError):
            logger.exception(
                "Failed to publish domain events",
                extra={"events": [e.to_dict() for e in events]},
            )
            return

        for failure in response.get("Failed", []):
            event = events[int(failure["Id"])]
            logger.error(
                "Domain event was rejected by SQS",
                extra={"event": event.to_dict(), "reason": failure.get("Message")},
            )
