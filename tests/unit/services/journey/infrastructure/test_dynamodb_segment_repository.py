from decimal import Decimal
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from services.journey.domain.enum import CancellationInitiator, SegmentType
from services.journey.infrastructure.dynamodb_segment_repository import (
    DynamoDBSegmentRepository,
    segment_item,
    to_segment,
)
from services.shared.domain import Money, OptimisticLockException
from services.shared.domain.exception.exceptions import (
    BusinessRuleViolationException,
)


@pytest.fixture
def repository():
    with patch("services.journey.infrastructure.dynamodb_segment_repository.boto3"):
        yield DynamoDBSegmentRepository(table_name="journeys")


@pytest.fixture
def stored(repository):
    """list_by_journey が返すセグメントを設定する"""

    def _set(*segments):
        repository.table.query.return_value = {
            "Items": [segment_item(s) for s in segments]
        }

    return _set


def _transact_items(repository) -> list[dict]:
    return repository.client.transact_write_items.call_args.kwargs["TransactItems"]


class TestSegmentItem:
    def test_booked_segment_is_indexed_by_booking(self, make_segment):
        segment = make_segment(booking_id="bkg-7")

        item = segment_item(segment)

        assert item["PK"] == "JOURNEY#jrn-123"
        assert item["SK"] == f"SEGMENT#{segment.id}"
        assert item["GSI3PK"] == "BOOKING#bkg-7"

    def test_unbooked_segment_has_no_booking_index(self, make_segment):
        assert "GSI3PK" not in segment_item(make_segment())

    def test_cancelled_segment_maps_back(self, make_segment):
        segment = make_segment(
            segment_type=SegmentType.TOUR,
            price=Decimal("90"),
            day=2,
            booking_id="bkg-7",
            cancelled_by=CancellationInitiator.SUPPLIER,
        )
        segment.metadata["meeting_point"] = "Riva"

        restored = to_segment(segment_item(segment))

        assert restored.segment_type == SegmentType.TOUR
        assert restored.price == Money.eur(Decimal("90"))
        assert restored.arrival_time == segment.arrival_time
        assert restored.is_cancelled
        assert restored.cancelled_by == CancellationInitiator.SUPPLIER
        assert restored.metadata == {"meeting_point": "Riva"}


class TestDynamoDBSegmentRepository:
    def test_append(self, repository, stored, create_journey, make_segment):
        journey = create_journey(save=False)
        stored(make_segment(order=1), make_segment(order=2))
        segment = make_segment()

        repository.insert_at(journey, segment)

        items = _transact_items(repository)
        assert items[0]["Put"]["ConditionExpression"] == "#version = :expected"
        assert items[1]["Put"]["Item"]["segment_id"] == str(segment.id)
        assert items[1]["Put"]["Item"]["segment_order"] == 3
        assert len(items) == 2
        assert journey.version == 1

    def test_insert_shifts_following_segments(
        self, repository, stored, create_journey, make_segment
    ):
        journey = create_journey(save=False)
        first, second, third = (make_segment(order=i) for i in (1, 2, 3))
        stored(first, second, third)

        segment = repository.insert_at(journey, make_segment(), after_order=1)

        assert segment.segment_order == 2
        updates = [i["Update"] for i in _transact_items(repository) if "Update" in i]
        assert [u["Key"]["SK"] for u in updates] == [
            f"SEGMENT#{second.id}",
            f"SEGMENT#{third.id}",
        ]
        assert [u["ExpressionAttributeValues"][":order"] for u in updates] == [3, 4]

    def test_delete_closes_the_gap(
        self, repository, stored, create_journey, make_segment
    ):
        journey = create_journey(save=False)
        first, second, third = (make_segment(order=i) for i in (1, 2, 3))
        stored(first, second, third)

        repository.delete(journey, first)

        items = _transact_items(repository)
        assert items[1]["Delete"]["Key"]["SK"] == f"SEGMENT#{first.id}"
        orders = [i["Update"]["ExpressionAttributeValues"][":order"] for i in items[2:]]
        assert orders == [1, 2]

    def test_reorder_only_writes_moved_segments(
        self, repository, stored, create_journey, make_segment
    ):
        journey = create_journey(save=False)
        stored(make_segment(order=1), make_segment(order=4))

        segments = repository.reorder(journey)

        assert [s.segment_order for s in segments] == [1, 2]
        assert len(_transact_items(repository)) == 2

    def test_too_many_items(self, repository, create_journey, make_segment):
        journey = create_journey(save=False)

        with pytest.raises(BusinessRuleViolationException):
            repository.save_all(journey, [make_segment() for _ in range(100)])
        repository.client.transact_write_items.assert_not_called()

    def test_concurrent_modification(self, repository, create_journey, make_segment):
        journey = create_journey(save=False)
        repository.client.transact_write_items.side_effect = ClientError(
            {"Error": {"Code": "TransactionCanceledException", "Message": "x"}},
            "TransactWriteItems",
        )

        with pytest.raises(OptimisticLockException):
            repository.save_all(journey, [make_segment()])
        assert journey.version == 0
