import json
import os
from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from services.journey.domain.entity import Journey
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.repository import JourneyRepository
from services.journey.domain.value_object import JourneyId, TravelPeriod
from services.shared.domain import Currency, Money
from services.shared.domain.exception.exceptions import (
    DuplicateResourceException,
    OptimisticLockException,
)


def journey_key(journey_id: JourneyId) -> dict:
    return {"PK": f"JOURNEY#{journey_id}", "SK": "METADATA"}


def planning_guard_key(user_id: str) -> dict:
    """同じユーザーのジャーニー作成を直列化するためのアイテム"""
    return {"PK": f"USER#{user_id}", "SK": "PLANNING_GUARD"}


def journey_item(journey: Journey, version: int) -> dict:
    """Journey を DynamoDB アイテムに変換する"""
    return {
        **journey_key(journey.id),
        "entity_type": "JOURNEY",
        "journey_id": str(journey.id),
        "user_id": journey.user_id,
        "name": journey.name,
        "origin_location_id": journey.origin_location_id,
        "destination_location_id": journey.destination_location_id,
        "start_date": journey.period.start.isoformat(),
        "end_date": journey.period.end.isoformat(),
        "travelers": journey.travelers,
        "currency": str(journey.currency),
        "total_price": str(journey.total_price.amount),
        "status": journey.status.value,
        # preferences は float を含みうるので JSON 文字列で保存する
        "preferences": json.dumps(journey.preferences),
        "created_at": journey.created_at.isoformat(),
        "version": version,
        "GSI1PK": f"USER#{journey.user_id}",
        "GSI1SK": f"CREATED#{journey.created_at.isoformat()}#{journey.id}",
        "GSI2PK": "JOURNEYS",
        "GSI2SK": f"END#{journey.period.end.isoformat()}#{journey.id}",
    }


def versioned_put(table_name: str, journey: Journey) -> dict:
    """version = 期待値 を条件に、version を +1 して書き込む TransactItem"""
    return {
        "Put": {
            "TableName": table_name,
            "Item": journey_item(journey, journey.version + 1),
            "ConditionExpression": "#version = :expected",
            "ExpressionAttributeNames": {"#version": "version"},
            "ExpressionAttributeValues": {":expected": journey.version},
        }
    }


def to_journey(item: dict) -> Journey:
    """DynamoDB アイテムをドメインエンティティに変換する"""
    currency = Currency(item["currency"])
    return Journey(
        id=JourneyId(value=item["journey_id"]),
        user_id=item["user_id"],
        name=item["name"],
        origin_location_id=item["origin_location_id"],
        destination_location_id=item["destination_location_id"],
        period=TravelPeriod(
            start=datetime.fromisoformat(item["start_date"]),
            end=datetime.fromisoformat(item["end_date"]),
        ),
        travelers=int(item["travelers"]),
        currency=currency,
        total_price=Money(amount=Decimal(item["total_price"]), currency=currency),
        status=JourneyStatus(item["status"]),
        preferences=json.loads(item.get("preferences") or "{}"),
        created_at=datetime.fromisoformat(item["created_at"]),
        version=int(item["version"]),
    )


class DynamoDBJourneyRepository(JourneyRepository):
    """DynamoDBを使用した JourneyRepository の具象実装"""

    def __init__(self, table_name: str | None = None) -> None:
        self.table_name = table_name or os.getenv("TABLE_NAME")
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(self.table_name)
        self.client = self.dynamodb.meta.client

    def save(self, journey: Journey) -> None:
        """ジャーニーをDBに保存する"""
        try:
            self.table.put_item(
                Item=journey_item(journey, journey.version),
                ConditionExpression=Attr("PK").not_exists(),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise DuplicateResourceException(
                    f"Journey already exists: {journey.id}"
                ) from e
            raise

    def save_if_below_limit(
        self, journey: Journey, statuses: set[JourneyStatus], limit: int
    ) -> bool:
        """ユーザーごとのガードアイテムの seq を条件に新規作成をコミットする

        同じユーザーの作成が並行した場合、先にコミットした方だけが成功する。
        件数は GSI1 から数えるため、直前にコミットされた作成が反映される前に
        数えてしまう余地は残る。
        """
        guard = self.table.get_item(
            Key=planning_guard_key(journey.user_id), ConsistentRead=True
        ).get("Item")
        seen = int(guard["seq"]) if guard else 0

        if self.count_by_user_id_and_status(journey.user_id, statuses) >= limit:
            return False

        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": journey_item(journey, journey.version),
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": {
                                **planning_guard_key(journey.user_id),
                                "entity_type": "PLANNING_GUARD",
                                "seq": seen + 1,
                            },
                            "ConditionExpression": (
                                "attribute_not_exists(PK) OR seq = :seen"
                            ),
                            "ExpressionAttributeValues": {":seen": seen},
                        }
                    },
                ]
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":
                raise
            reasons = e.response.get("CancellationReasons") or []
            if reasons and reasons[0].get("Code") == "ConditionalCheckFailed":
                raise DuplicateResourceException(
                    f"Journey already exists: {journey.id}"
                ) from e
            raise OptimisticLockException(
                f"Another journey was planned concurrently: user_id={journey.user_id}"
            ) from e
        return True

    def find_by_id(self, journey_id: JourneyId) -> Journey | None:
        response = self.table.get_item(Key=journey_key(journey_id), ConsistentRead=True)
        item = response.get("Item")
        if not item:
            return None
        return to_journey(item)

    def find_by_user_id(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> list[Journey]:
        skip = (page - 1) * limit
        journeys: list[Journey] = []
        for index, item in enumerate(
            self._query_all(
                IndexName="GSI1",
                KeyConditionExpression=Key("GSI1PK").eq(f"USER#{user_id}"),
                ScanIndexForward=False,
            )
        ):
            if index < skip:
                continue
            journeys.append(to_journey(item))
            if len(journeys) >= limit:
                break
        return journeys

    def count_by_user_id_and_status(
        self, user_id: str, statuses: set[JourneyStatus]
    ) -> int:
        count = 0
        kwargs: dict = {
            "IndexName": "GSI1",
            "KeyConditionExpression": Key("GSI1PK").eq(f"USER#{user_id}"),
            "FilterExpression": Attr("status").is_in([s.value for s in statuses]),
            "Select": "COUNT",
        }
        while True:
            response = self.table.query(**kwargs)
            count += response.get("Count", 0)
            if "LastEvaluatedKey" not in response:
                return count
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    def update(self, journey: Journey) -> None:
        """version を条件にジャーニーを更新する"""
        try:
            self.table.put_item(
                Item=journey_item(journey, journey.version + 1),
                ConditionExpression=Attr("version").eq(journey.version),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise OptimisticLockException(
                    f"Journey version conflict: "
                    f"expected {journey.version}, "
                    f"journey_id={journey.id}"
                ) from e
            raise
        journey.increment_version()

    def delete(self, journey: Journey) -> None:
        """METADATA を version 条件付きで先に消し、その後セグメントを削除する

        METADATA が消えた後のセグメント書き込みは version 条件で失敗するので、
        削除と並行して追加されたセグメントが取り残されることはない。
        """
        try:
            self.table.delete_item(
                Key=journey_key(journey.id),
                ConditionExpression=Attr("version").eq(journey.version),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise OptimisticLockException(
                    f"Journey was modified before deletion: "
                    f"expected version {journey.version}, "
                    f"journey_id={journey.id}"
                ) from e
            raise

        items = self._query_all(
            KeyConditionExpression=Key("PK").eq(f"JOURNEY#{journey.id}"),
            ProjectionExpression="PK, SK",
        )
        with self.table.batch_writer() as batch:
            for item in items:
                batch.delete_item(Key={"PK": item["PK"], "SK": item["SK"]})

    def iter_user_ids(self) -> Iterator[str]:
        seen: set[str] = set()
        for item in self._query_all(
            IndexName="GSI2",
            KeyConditionExpression=Key("GSI2PK").eq("JOURNEYS"),
            ProjectionExpression="user_id",
        ):
            if item["user_id"] not in seen:
                seen.add(item["user_id"])
                yield item["user_id"]

    def find_ending_before(
        self, moment: datetime, status: JourneyStatus
    ) -> Iterator[Journey]:
        for item in self._query_all(
            IndexName="GSI2",
            KeyConditionExpression=Key("GSI2PK").eq("JOURNEYS")
            & Key("GSI2SK").lt(f"END#{moment.isoformat()}"),
            FilterExpression=Attr("status").eq(status.value),
        ):
            # GSI は結果整合なので最新の version を読み直す
            journey = self.find_by_id(JourneyId(value=item["journey_id"]))
            if journey is not None and journey.status == status:
                yield journey

    def _query_all(self, **kwargs) -> Iterator[dict]:
        while True:
            response = self.table.query(**kwargs)
            yield from response.get("Items", [])
            if "LastEvaluatedKey" not in response:
                return
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
