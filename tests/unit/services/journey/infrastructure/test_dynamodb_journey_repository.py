from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from services.journey.domain.enum import JourneyStatus
from services.journey.infrastructure.dynamodb_journey_repository import (
    DynamoDBJourneyRepository,
    journey_item,
    to_journey,
    versioned_put,
)
from services.shared.domain import (
    DuplicateResourceException,
    Money,
    OptimisticLockException,
)


def _client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _transaction_cancelled(*codes: str) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "TransactionCanceledException", "Message": "cancelled"},
            "CancellationReasons": [{"Code": code} for code in codes],
        },
        "TransactWriteItems",
    )


@pytest.fixture
def repository():
    with patch(
        "services.journey.infrastructure.dynamodb_journey_repository.boto3"
    ) as mock_boto3:
        repo = DynamoDBJourneyRepository(table_name="journeys")
        yield repo
        mock_boto3.resource.assert_called_once_with("dynamodb")


class TestJourneyItem:
    def test_item_layout(self, create_journey):
        journey = create_journey(save=False)

        item = journey_item(journey, version=3)

        assert item["PK"] == f"JOURNEY#{journey.id}"
        assert item["SK"] == "METADATA"
        assert item["GSI1PK"] == "USER#user-1"
        assert item["GSI1SK"].startswith("CREATED#")
        assert item["GSI2PK"] == "JOURNEYS"
        assert item["GSI2SK"] == f"END#2030-07-05T00:00:00+00:00#{journey.id}"
        assert item["total_price"] == "0"
        assert item["version"] == 3

    def test_item_maps_back_to_journey(self, create_journey, make_segment):
        journey = create_journey(status=JourneyStatus.CONFIRMED, save=False)
        journey.recalculate_total([make_segment(price=Decimal("149.90"))])

        restored = to_journey(journey_item(journey, version=journey.version))

        assert restored.id == journey.id
        assert restored.status == JourneyStatus.CONFIRMED
        assert restored.total_price == Money.eur(Decimal("149.90"))
        assert restored.period == journey.period
        assert restored.created_at == journey.created_at

    def test_versioned_put_expects_current_version(self, create_journey):
        journey = create_journey(save=False)

        put = versioned_put("journeys", journey)["Put"]

        assert put["TableName"] == "journeys"
        assert put["Item"]["version"] == 1
        assert put["ExpressionAttributeValues"] == {":expected": 0}


class TestDynamoDBJourneyRepository:
    def test_save_duplicate(self, repository, create_journey):
        repository.table.put_item.side_effect = _client_error(
            "ConditionalCheckFailedException"
        )

        with pytest.raises(DuplicateResourceException):
            repository.save(create_journey(save=False))

    def test_update_increments_version(self, repository, create_journey):
        journey = create_journey(save=False)

        repository.update(journey)

        item = repository.table.put_item.call_args.kwargs["Item"]
        assert item["version"] == 1
        assert journey.version == 1

    def test_update_conflict(self, repository, create_journey):
        journey = create_journey(save=False)
        repository.table.put_item.side_effect = _client_error(
            "ConditionalCheckFailedException"
        )

        with pytest.raises(OptimisticLockException):
            repository.update(journey)
        assert journey.version == 0

    def test_other_errors_propagate(self, repository, create_journey):
        repository.table.put_item.side_effect = _client_error(
            "ProvisionedThroughputExceededException"
        )

        with pytest.raises(ClientError):
            repository.update(create_journey(save=False))

    def test_find_by_id_not_found(self, repository):
        repository.table.get_item.return_value = {}

        assert repository.find_by_id("jrn-missing") is None

    def test_find_by_user_id_pages_through_results(self, repository, create_journey):
        items = [
            journey_item(create_journey(save=False), version=0) for _ in range(3)
        ]
        repository.table.query.side_effect = [
            {"Items": items[:2], "LastEvaluatedKey": {"PK": "x"}},
            {"Items": items[2:]},
        ]

        journeys = repository.find_by_user_id("user-1", page=2, limit=2)

        assert [str(j.id) for j in journeys] == [items[2]["journey_id"]]
        first_query = repository.table.query.call_args_list[0].kwargs
        assert first_query["IndexName"] == "GSI1"
        assert first_query["ScanIndexForward"] is False

    def test_count_by_user_id_and_status(self, repository):
        repository.table.query.side_effect = [
            {"Count": 2, "LastEvaluatedKey": {"PK": "x"}},
            {"Count": 1},
        ]

        count = repository.count_by_user_id_and_status(
            "user-1", {JourneyStatus.PLANNING}
        )

        assert count == 3
        assert repository.table.query.call_args.kwargs["ExclusiveStartKey"] == {
            "PK": "x"
        }

    def test_find_ending_before_rereads_items(self, repository, create_journey):
        journey = create_journey(status=JourneyStatus.CONFIRMED, save=False)
        item = journey_item(journey, version=0)
        repository.table.query.return_value = {"Items": [item]}
        repository.table.get_item.return_value = {"Item": item}

        found = list(
            repository.find_ending_before(
                datetime(2030, 8, 1, tzinfo=timezone.utc), JourneyStatus.CONFIRMED
            )
        )

        assert [j.id for j in found] == [journey.id]
        repository.table.get_item.assert_called_once()

    def test_save_if_below_limit_writes_guard(self, repository, create_journey):
        journey = create_journey(save=False)
        repository.table.get_item.return_value = {
            "Item": {"PK": "USER#user-1", "SK": "PLANNING_GUARD", "seq": 4}
        }
        repository.table.query.return_value = {"Count": 2}

        saved = repository.save_if_below_limit(journey, {JourneyStatus.PLANNING}, 3)

        assert saved is True
        items = repository.client.transact_write_items.call_args.kwargs[
            "TransactItems"
        ]
        assert items[0]["Put"]["Item"]["PK"] == f"JOURNEY#{journey.id}"
        guard = items[1]["Put"]
        assert guard["Item"]["PK"] == "USER#user-1"
        assert guard["Item"]["SK"] == "PLANNING_GUARD"
        assert guard["Item"]["seq"] == 5
        assert guard["ConditionExpression"] == "attribute_not_exists(PK) OR seq = :seen"
        assert guard["ExpressionAttributeValues"] == {":seen": 4}

    def test_save_if_below_limit_at_cap(self, repository, create_journey):
        repository.table.get_item.return_value = {}
        repository.table.query.return_value = {"Count": 3}

        saved = repository.save_if_below_limit(
            create_journey(save=False), {JourneyStatus.PLANNING}, 3
        )

        assert saved is False
        repository.client.transact_write_items.assert_not_called()

    def test_save_if_below_limit_concurrent_plan(self, repository, create_journey):
        repository.table.get_item.return_value = {}
        repository.table.query.return_value = {"Count": 0}
        repository.client.transact_write_items.side_effect = _transaction_cancelled(
            "None", "ConditionalCheckFailed"
        )

        with pytest.raises(OptimisticLockException):
            repository.save_if_below_limit(
                create_journey(save=False), {JourneyStatus.PLANNING}, 3
            )

    def test_save_if_below_limit_duplicate(self, repository, create_journey):
        repository.table.get_item.return_value = {}
        repository.table.query.return_value = {"Count": 0}
        repository.client.transact_write_items.side_effect = _transaction_cancelled(
            "ConditionalCheckFailed", "None"
        )

        with pytest.raises(DuplicateResourceException):
            repository.save_if_below_limit(
                create_journey(save=False), {JourneyStatus.PLANNING}, 3
            )

    def test_delete_removes_metadata_with_version_condition_first(
        self, repository, create_journey
    ):
        journey = create_journey(save=False)
        repository.table.query.return_value = {
            "Items": [{"PK": f"JOURNEY#{journey.id}", "SK": "SEGMENT#seg-1"}]
        }
        calls = MagicMock()
        calls.attach_mock(repository.table.delete_item, "delete_item")
        calls.attach_mock(repository.table.batch_writer, "batch_writer")

        repository.delete(journey)

        assert [c[0] for c in calls.mock_calls][:2] == ["delete_item", "batch_writer"]
        kwargs = repository.table.delete_item.call_args.kwargs
        assert kwargs["Key"] == {"PK": f"JOURNEY#{journey.id}", "SK": "METADATA"}
        assert "ConditionExpression" in kwargs

    def test_delete_conflict(self, repository, create_journey):
        repository.table.delete_item.side_effect = _client_error(
            "ConditionalCheckFailedException", "DeleteItem"
        )

        with pytest.raises(OptimisticLockException):
            repository.delete(create_journey(save=False))
        repository.table.batch_writer.assert_not_called()
