import json
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from services.journey.domain.event import SupplierBookingCreated
from services.journey.infrastructure.sqs_event_publisher import SqsEventPublisher


def _event(index: int) -> SupplierBookingCreated:
    return SupplierBookingCreated(
        journey_id="jrn-1",
        supplier_id="sup-1",
        booking_id=f"bkg-{index}",
        booking_reference=f"BK-{index}",
        amount="100",
        currency="EUR",
        package_booking_id="pkg_1_abcd",
    )


class TestSqsEventPublisher:
    def test_publish(self):
        client = MagicMock()
        client.send_message_batch.return_value = {"Successful": [{"Id": "0"}]}
        publisher = SqsEventPublisher("https://sqs/queue", client)

        publisher.publish([_event(1)])

        kwargs = client.send_message_batch.call_args.kwargs
        assert kwargs["QueueUrl"] == "https://sqs/queue"
        entry = kwargs["Entries"][0]
        body = json.loads(entry["MessageBody"])
        assert body["event_type"] == "SupplierBookingCreated"
        assert body["booking_id"] == "bkg-1"
        assert body["occurred_at"]
        assert (
            entry["MessageAttributes"]["event_type"]["StringValue"]
            == "SupplierBookingCreated"
        )

    def test_events_are_sent_in_batches_of_ten(self):
        client = MagicMock()
        client.send_message_batch.return_value = {}
        publisher = SqsEventPublisher("https://sqs/queue", client)

        publisher.publish([_event(i) for i in range(23)])

        sizes = [
            len(c.kwargs["Entries"]) for c in client.send_message_batch.call_args_list
        ]
        assert sizes == [10, 10, 3]

    def test_nothing_to_publish(self):
        client = MagicMock()

        SqsEventPublisher("https://sqs/queue", client).publish([])

        client.send_message_batch.assert_not_called()

    def test_send_failure_does_not_raise(self):
        client = MagicMock()
        client.send_message_batch.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}},
            "SendMessageBatch",
        )
        publisher = SqsEventPublisher("https://sqs/queue", client)

        publisher.publish([_event(1), _event(2)])

        assert client.send_message_batch.call_count == 1

    def test_rejected_entries_are_logged(self):
        client = MagicMock()
        client.send_message_batch.return_value = {
            "Failed": [{"Id": "1", "Message": "too large"}]
        }
        publisher = SqsEventPublisher("https://sqs/queue", client)

        publisher.publish([_event(1), _event(2)])

        client.send_message_batch.assert_called_once()
