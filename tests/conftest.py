"""Pytest fixtures for sqs-template tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sqs_template.options import TemplateOptions
from sqs_template.template import SqsTemplate
from sqs_template.testing import InMemorySQSConnection, InMemorySqsClient

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123/orders"


@pytest.fixture
def sqs_client() -> InMemorySqsClient:
    client = InMemorySqsClient()
    client.add_queue("orders")
    client.add_queue("orders.fifo")
    return client


@pytest.fixture
def memory_connection(sqs_client: InMemorySqsClient) -> InMemorySQSConnection:
    return InMemorySQSConnection(sqs_client)


@pytest.fixture
def template(memory_connection: InMemorySQSConnection) -> SqsTemplate:
    return SqsTemplate(memory_connection)


@pytest.fixture
def manual_template(memory_connection: InMemorySQSConnection) -> SqsTemplate:
    return SqsTemplate(
        memory_connection, TemplateOptions(acknowledgement_mode="manual")
    )


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.get_queue_url = AsyncMock(return_value={"QueueUrl": QUEUE_URL})
    client.create_queue = AsyncMock(return_value={"QueueUrl": QUEUE_URL})
    client.get_queue_attributes = AsyncMock(return_value={"Attributes": {}})
    client.send_message = AsyncMock(return_value={"MessageId": "sqs-1"})
    client.send_message_batch = AsyncMock(
        return_value={"Successful": [], "Failed": []}
    )
    client.receive_message = AsyncMock(return_value={})
    client.delete_message_batch = AsyncMock(
        return_value={"Successful": [], "Failed": []}
    )
    client.list_queues = AsyncMock(return_value={"QueueUrls": []})
    return client


@pytest.fixture
def mock_connection(mock_client: MagicMock) -> MagicMock:
    conn = MagicMock()
    conn.get_client = AsyncMock(return_value=mock_client)
    conn.health_check = AsyncMock(return_value=True)
    conn.close = AsyncMock()
    return conn
