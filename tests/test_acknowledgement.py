"""Tests for AcknowledgementEngine and QueueAcknowledger."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sqs_template.acknowledgement import (
    AcknowledgementEngine,
    QueueAcknowledger,
    queue_name_of,
)
from sqs_template.exceptions import (
    AcknowledgementError,
    CorrelationError,
    ValidationError,
)
from sqs_template.headers import SQS_QUEUE_NAME_HEADER, SQS_RECEIPT_HANDLE_HEADER
from sqs_template.message import Message
from sqs_template.metadata import QueueMetadataCache, QueueMetadataResolver
from sqs_template.ports import Acknowledger

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123/orders"


def _received(*ids: str, queue: str = "orders") -> list[Message[str]]:
    return [
        Message(
            id=i,
            payload=f"p{i}",
            headers={SQS_RECEIPT_HANDLE_HEADER: f"rh{i}", SQS_QUEUE_NAME_HEADER: queue},
        )
        for i in ids
    ]


@pytest.fixture
def engine(mock_connection: MagicMock) -> AcknowledgementEngine:
    cache = QueueMetadataCache(QueueMetadataResolver(mock_connection))
    return AcknowledgementEngine(mock_connection, cache)


@pytest.mark.asyncio
async def test_acknowledge_deletes_by_receipt_handle(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    mock_client.delete_message_batch.return_value = {
        "Successful": [{"Id": "1"}, {"Id": "2"}]
    }
    await engine.acknowledge("orders", _received("1", "2"))
    mock_client.delete_message_batch.assert_called_once_with(
        QueueUrl=QUEUE_URL,
        Entries=[
            {"Id": "1", "ReceiptHandle": "rh1"},
            {"Id": "2", "ReceiptHandle": "rh2"},
        ],
    )


@pytest.mark.asyncio
async def test_empty_collection_is_a_no_op(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    await engine.acknowledge("orders", [])
    mock_client.delete_message_batch.assert_not_called()
    mock_client.get_queue_url.assert_not_called()


@pytest.mark.asyncio
async def test_partial_failure_reports_both_sides(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    messages = _received("1", "2", "3")
    mock_client.delete_message_batch.return_value = {
        "Successful": [{"Id": "1"}, {"Id": "3"}],
        "Failed": [
            {"Id": "2", "Code": "ReceiptHandleIsInvalid", "SenderFault": True}
        ],
    }
    with pytest.raises(AcknowledgementError) as exc_info:
        await engine.acknowledge("orders", messages)
    err = exc_info.value
    assert err.endpoint_name == "orders"
    assert err.successful_messages == [messages[0], messages[2]]
    assert err.failed_messages == [messages[1]]
    assert err.cause is None


@pytest.mark.asyncio
async def test_total_failure_marks_every_message_failed(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    messages = _received("1", "2")
    mock_client.delete_message_batch.side_effect = RuntimeError("connection reset")
    with pytest.raises(AcknowledgementError) as exc_info:
        await engine.acknowledge("orders", messages)
    err = exc_info.value
    assert err.successful_messages == []
    assert err.failed_messages == messages
    assert isinstance(err.cause, RuntimeError)
    assert err.__cause__ is err.cause


@pytest.mark.asyncio
async def test_unknown_response_id_raises_correlation_error(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    mock_client.delete_message_batch.return_value = {
        "Successful": [{"Id": "1"}],
        "Failed": [{"Id": "zzz", "Code": "InternalError"}],
    }
    with pytest.raises(CorrelationError):
        await engine.acknowledge("orders", _received("1"))


@pytest.mark.asyncio
async def test_missing_receipt_handle_fails_before_network(
    engine: AcknowledgementEngine, mock_client: MagicMock
) -> None:
    with pytest.raises(ValidationError):
        await engine.acknowledge("orders", [Message(id="1", payload="x")])
    mock_client.delete_message_batch.assert_not_called()


def test_queue_name_of_requires_header() -> None:
    assert queue_name_of(_received("1")[0]) == "orders"
    with pytest.raises(ValidationError):
        queue_name_of(Message(payload="x"))


class TestQueueAcknowledger:
    def test_is_an_acknowledger(self) -> None:
        assert isinstance(QueueAcknowledger(MagicMock()), Acknowledger)

    @pytest.mark.asyncio
    async def test_uses_queue_header(self) -> None:
        engine = MagicMock()
        engine.acknowledge = AsyncMock()
        acknowledger = QueueAcknowledger(engine)
        messages = _received("1", "2", queue="payments")
        await acknowledger.on_acknowledge_many(messages)
        engine.acknowledge.assert_awaited_once_with("payments", messages)

    @pytest.mark.asyncio
    async def test_single_message(self) -> None:
        engine = MagicMock()
        engine.acknowledge = AsyncMock()
        message = _received("1")[0]
        await QueueAcknowledger(engine).on_acknowledge(message)
        engine.acknowledge.assert_awaited_once_with("orders", [message])

    @pytest.mark.asyncio
    async def test_empty_collection_is_a_no_op(self) -> None:
        engine = MagicMock()
        engine.acknowledge = AsyncMock()
        await QueueAcknowledger(engine).on_acknowledge_many([])
        engine.acknowledge.assert_not_awaited()
