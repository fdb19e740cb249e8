import json
import os
from datetime import datetime
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from services.journey.domain.entity import Journey, JourneySegment
from services.journey.domain.enum import CancellationInitiator, SegmentType
from services.journey.domain.repository import SegmentRepository
from services.journey.domain.value_object import BookingId, JourneyId, SegmentId
from services.shared.domain import Currency, Money
from services.shared.domain.exception.exceptions import (
    BusinessRuleViolationException,
    OptimisticLockException,
)

from .dynamodb_journey_repository import versioned_put

# TransactWriteItems の上限
MAX_TRANSACTION_ITEMS = 100


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def segment_key(journey_id: JourneyId, segment_id: SegmentId) -> dict:
    return {"PK": f"JOURNEY#{journey_id}", "SK": f"SEGMENT#{segment_id}"}


def segment_item(segment: JourneySegment) -> dict:
    """JourneySegment を DynamoDB アイテムに変換する"""
    item = {
        **segment_key(segment.journey_id, segment.id),
        "entity_type": "SEGMENT",
        "segment_id": str(segment.id),
        "journey_id": str(segment.journey_id),
        "segment_type": segment.segment_type.value,
        "segment_order": segment.segment_order,
        "service_id": segment.service_id,
        "departure_location_id": segment.departure_location_id,
        "arrival_location_id": segment.arrival_location_id,
        "departure_time": _iso(segment.departure_time),
        "arrival_time": _iso(segment.arrival_time),
        "duration": segment.duration,
        "price_amount": str(segment.price.amount),
        "price_currency": str(segment.price.currency),
        "booking_id": str(segment.booking_id) if segment.booking_id else None,
        "is_booked": segment.is_booked,
        "is_confirmed": segment.is_confirmed,
        "is_cancelled": segment.is_cancelled,
        "cancelled_at": _iso(segment.cancelled_at),
        "cancellation_reason": segment.cancellation_reason,
        "cancelled_by": segment.cancelled_by.value if segment.cancelled_by else None,
        "notes": segment.notes,
        "metadata": json.dumps(segment.metadata),
    }
    if segment.booking_id is not None:
        item["GSI3PK"] = f"BOOKING#{segment.booking_id}"
        item["GSI3SK"] = f"SEGMENT#{segment.id}"
    return item


def to_segment(item: dict) -> JourneySegment:
    """DynamoDB アイテムをドメインエンティティに変換する"""
    cancelled_by = item.get("cancelled_by")
    return JourneySegment(
        id=SegmentId(value=item["segment_id"]),
        journey_id=JourneyId(value=item["journey_id"]),
        segment_type=SegmentType(item["segment_type"]),
        segment_order=int(item["segment_order"]),
        service_id=item.get("service_id"),
        departure_location_id=item.get("departure_location_id"),
        arrival_location_id=item.get("arrival_location_id"),
        departure_time=_datetime(item.get("departure_time")),
        arrival_time=_datetime(item.get("arrival_time")),
        duration=int(item["duration"]) if item.get("duration") is not None else None,
        price=Money(
            amount=Decimal(item["price_amount"]),
            currency=Currency(item["price_currency"]),
        ),
        booking_id=BookingId(item["booking_id"]) if item.get("booking_id") else None,
        is_booked=bool(item.get("is_booked")),
        is_confirmed=bool(item.get("is_confirmed")),
        is_cancelled=bool(item.get("is_cancelled")),
        cancelled_at=_datetime(item.get("cancelled_at")),
        cancellation_reason=item.get("cancellation_reason"),
        cancelled_by=CancellationInitiator(cancelled_by) if cancelled_by else None,
        notes=item.get("notes"),
        metadata=json.loads(item.get("metadata") or "{}"),
    )


class DynamoDBSegmentRepository(SegmentRepository):
    """DynamoDBを使用したセグメントストアの具象実装

    並び順・合計金額を変える書き込みは、ジャーニーアイテムの version 条件付き Put と
    同じ TransactWriteItems にまとめる。
    """

    def __init__(self, table_name: str | None = None) -> None:
        self.table_name = table_name or os.getenv("TABLE_NAME")
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(self.table_name)
        self.client = self.dynamodb.meta.client

    def list_by_journey(self, journey_id: JourneyId) -> list[JourneySegment]:
        kwargs: dict = {
            "KeyConditionExpression": Key("PK").eq(f"JOURNEY#{journey_id}")
            & Key("SK").begins_with("SEGMENT#"),
            "ConsistentRead": True,
        }
        segments: list[JourneySegment] = []
        while True:
            response = self.table.query(**kwargs)
            segments.extend(to_segment(item) for item in response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                break
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        return sorted(segments, key=lambda s: s.segment_order)

    def find_by_id(
        self, journey_id: JourneyId, segment_id: SegmentId
    ) -> JourneySegment | None:
        response = self.table.get_item(
            Key=segment_key(journey_id, segment_id), ConsistentRead=True
        )
        item = response.get("Item")
        if not item:
            return None
        return to_segment(item)

    def find_by_booking_id(self, booking_id: BookingId) -> list[JourneySegment]:
        response = self.table.query(
            IndexName="GSI3",
            KeyConditionExpression=Key("GSI3PK").eq(f"BOOKING#{booking_id}"),
        )
        return [to_segment(item) for item in response.get("Items", [])]

    def insert_at(
        self,
        journey: Journey,
        segment: JourneySegment,
        after_order: int | None = None,
    ) -> JourneySegment:
        current = self.list_by_journey(journey.id)
        if after_order is None:
            segment.move_to(len(current) + 1)
            shifted = []
        else:
            segment.move_to(after_order + 1)
            shifted = [s for s in current if s.segment_order > after_order]

        items = [self._put(segment)]
        for s in shifted:
            items.append(self._set_order(s, s.segment_order + 1))
        self._transact(journey, items)
        for s in shifted:
            s.move_to(s.segment_order + 1)
        return segment

    def delete(self, journey: Journey, segment: JourneySegment) -> None:
        current = self.list_by_journey(journey.id)
        items: list[dict] = [
            {
                "Delete": {
                    "TableName": self.table_name,
                    "Key": segment_key(journey.id, segment.id),
                }
            }
        ]
        for s in current:
            if s.segment_order > segment.segment_order:
                items.append(self._set_order(s, s.segment_order - 1))
        self._transact(journey, items)

    def reorder(self, journey: Journey) -> list[JourneySegment]:
        current = self.list_by_journey(journey.id)
        items = [
            self._set_order(s, order)
            for order, s in enumerate(current, start=1)
            if s.segment_order != order
        ]
        self._transact(journey, items)
        for order, s in enumerate(current, start=1):
            s.move_to(order)
        return current

    def save_all(self, journey: Journey, segments: list[JourneySegment]) -> None:
        self._transact(journey, [self._put(s) for s in segments])

    def _put(self, segment: JourneySegment) -> dict:
        return {"Put": {"TableName": self.table_name, "Item": segment_item(segment)}}

    def _set_order(self, segment: JourneySegment, order: int) -> dict:
        return {
            "Update": {
                "TableName": self.table_name,
                "Key": segment_key(segment.journey_id, segment.id),
                "UpdateExpression": "SET segment_order = :order",
                "ConditionExpression": "attribute_exists(PK)",
                "ExpressionAttributeValues": {":order": order},
            }
        }

    def _transact(self, journey: Journey, items: list[dict]) -> None:
        """ジャーニーの version 条件付き書き込みと一緒にコミットする"""
        transact_items = [versioned_put(self.table_name, journey), *items]
        if len(transact_items) > MAX_TRANSACTION_ITEMS:
            raise BusinessRuleViolationException(
                f"Journey {journey.id} has too many segments to update at once"
            )
        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                raise OptimisticLockException(
                    f"Journey was modified concurrently: "
                    f"expected version {journey.version}, "
                    f"journey_id={journey.id}"
                ) from e
            raise
        journey.increment_version()
