"""Tests for header ↔ SQS attribute mapping."""

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Any

import pytest

from sqs_template import headers as h
from sqs_template.exceptions import MessageConversionError, ValidationError
from sqs_template.mapping import (
    HeaderMapper,
    from_message_attribute,
    to_message_attribute,
)
from sqs_template.message import Message
from sqs_template.metadata import QueueMetadata

URL = "https://sqs.us-east-1.amazonaws.com/123/orders"


@pytest.fixture
def mapper() -> HeaderMapper:
    return HeaderMapper()


@pytest.mark.parametrize(
    ("value", "data_type"),
    [
        ("acme", "String"),
        (True, "String.bool"),
        (7, "Number.int"),
        (1.5, "Number.float"),
        (Decimal("2.50"), "Number"),
        (uuid.UUID(int=1), "String.uuid"),
    ],
)
def test_typed_attributes_keep_their_type(value: Any, data_type: str) -> None:
    attribute = to_message_attribute(value)
    assert attribute["DataType"] == data_type
    assert from_message_attribute("h", attribute) == value


def test_binary_attribute() -> None:
    attribute = to_message_attribute(b"\x00\x01")
    assert attribute == {"DataType": "Binary", "BinaryValue": b"\x00\x01"}
    assert from_message_attribute("h", attribute) == b"\x00\x01"


def test_plain_number_attribute_from_other_producers() -> None:
    attribute = {"DataType": "Number", "StringValue": "42"}
    decoded = from_message_attribute("n", attribute)
    assert decoded == Decimal("42")
    assert isinstance(decoded, Decimal)


def test_integral_decimal_keeps_its_type() -> None:
    decoded = from_message_attribute("n", to_message_attribute(Decimal("2.0")))
    assert isinstance(decoded, Decimal)
    assert str(decoded) == "2.0"


def test_invalid_number_attribute_raises() -> None:
    with pytest.raises(MessageConversionError):
        from_message_attribute("n", {"DataType": "Number.int", "StringValue": "x"})


def test_to_wire_splits_reserved_headers(mapper: HeaderMapper) -> None:
    message = Message(
        id="m-1",
        payload={"id": 1},
        headers={
            "tenant": "acme",
            h.SQS_DELAY_HEADER: 5,
            h.SQS_MESSAGE_GROUP_ID_HEADER: "g-1",
            h.SQS_MESSAGE_DEDUPLICATION_ID_HEADER: "d-1",
            h.SQS_AWS_TRACE_HEADER: "Root=1-abc",
            h.SQS_RECEIPT_HANDLE_HEADER: "rh",
        },
    )
    wire = mapper.to_wire(message)
    assert wire.id == "m-1"
    assert wire.body == '{"id": 1}'
    assert wire.delay_seconds == 5
    assert wire.message_group_id == "g-1"
    assert wire.message_deduplication_id == "d-1"
    assert wire.message_attributes == {
        "tenant": {"DataType": "String", "StringValue": "acme"}
    }
    assert wire.system_attributes == {
        "AWSTraceHeader": {"DataType": "String", "StringValue": "Root=1-abc"}
    }


def test_request_fields_omit_unset_values(mapper: HeaderMapper) -> None:
    fields = mapper.to_wire(Message(payload="hello")).request_fields()
    assert fields == {"MessageBody": "hello"}


def test_invalid_delay_header_raises(mapper: HeaderMapper) -> None:
    message = Message(payload="x", headers={h.SQS_DELAY_HEADER: "soon"})
    with pytest.raises(ValidationError):
        mapper.to_wire(message)


@pytest.mark.parametrize("delay", [-1, 901])
def test_out_of_range_delay_header_raises(mapper: HeaderMapper, delay: int) -> None:
    message = Message(payload="x", headers={h.SQS_DELAY_HEADER: delay})
    with pytest.raises(ValidationError) as exc_info:
        mapper.to_wire(message)
    assert h.SQS_DELAY_HEADER in exc_info.value.errors


def test_receive_request_fields() -> None:
    fields = HeaderMapper.receive_request_fields(
        {
            h.SQS_VISIBILITY_TIMEOUT_HEADER: timedelta(seconds=30),
            h.SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER: "attempt-1",
            "tenant": "acme",
        }
    )
    assert fields == {"VisibilityTimeout": 30, "ReceiveRequestAttemptId": "attempt-1"}


def test_from_wire_enriches_headers(mapper: HeaderMapper) -> None:
    metadata = QueueMetadata(name="orders", url=URL, attributes={"QueueArn": "arn"})
    raw = {
        "MessageId": "sqs-1",
        "ReceiptHandle": "rh-1",
        "Body": '{"id": 1}',
        "Attributes": {"ApproximateReceiveCount": "1"},
        "MessageAttributes": {
            "tenant": {"DataType": "String", "StringValue": "acme"},
        },
    }
    message = mapper.from_wire(
        raw,
        metadata,
        payload_type=dict,
        additional_headers={
            h.SQS_VISIBILITY_TIMEOUT_HEADER: timedelta(seconds=30),
            "source": "poller",
        },
    )
    assert message.id == "sqs-1"
    assert message.payload == {"id": 1}
    assert message.headers["tenant"] == "acme"
    assert message.headers["source"] == "poller"
    assert message.headers["Sqs_Msa_ApproximateReceiveCount"] == "1"
    assert message.headers[h.SQS_RECEIPT_HANDLE_HEADER] == "rh-1"
    assert message.headers[h.SQS_QUEUE_NAME_HEADER] == "orders"
    assert message.headers[h.SQS_QUEUE_URL_HEADER] == URL
    assert message.headers[h.SQS_QUEUE_ATTRIBUTES_HEADER] == {"QueueArn": "arn"}
    assert h.SQS_VISIBILITY_TIMEOUT_HEADER not in message.headers


def test_from_wire_without_payload_type_keeps_raw_body(mapper: HeaderMapper) -> None:
    metadata = QueueMetadata(name="orders", url=URL)
    raw = {"MessageId": "sqs-1", "ReceiptHandle": "rh", "Body": '{"id": 1}'}
    message = mapper.from_wire(raw, metadata)
    assert message.payload == '{"id": 1}'
    assert h.SQS_QUEUE_ATTRIBUTES_HEADER not in message.headers


def test_additional_headers_never_replace_received_headers(
    mapper: HeaderMapper,
) -> None:
    metadata = QueueMetadata(name="orders", url=URL)
    raw = {
        "MessageId": "sqs-1",
        "ReceiptHandle": "rh-1",
        "Body": "x",
        "MessageAttributes": {
            "tenant": {"DataType": "String", "StringValue": "acme"},
        },
    }
    message = mapper.from_wire(
        raw,
        metadata,
        additional_headers={
            "tenant": "poller",
            h.SQS_RECEIPT_HANDLE_HEADER: "bogus",
            h.SQS_QUEUE_NAME_HEADER: "other",
            "source": "poller",
        },
    )
    assert message.headers["tenant"] == "acme"
    assert message.headers[h.SQS_RECEIPT_HANDLE_HEADER] == "rh-1"
    assert message.headers[h.SQS_QUEUE_NAME_HEADER] == "orders"
    assert message.headers["source"] == "poller"
