"""Unit tests for SQSConnectionManager with mocked aiobotocore (no real AWS)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sqs_template.connection import SQSConnectionManager


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    mock_cm = MagicMock()
    mock_client = MagicMock()
    mock_client.list_queues = AsyncMock(return_value={"QueueUrls": []})
    mock_cm.__aenter__ = AsyncMock(return_value=mock_client)
    mock_cm.__aexit__ = AsyncMock(return_value=None)
    session.create_client = MagicMock(return_value=mock_cm)
    return session


@pytest.mark.asyncio
async def test_get_client_creates_and_caches(mock_session: MagicMock) -> None:
    conn = SQSConnectionManager(region_name="eu-west-1", session=mock_session)
    client1 = await conn.get_client()
    client2 = await conn.get_client()
    assert client1 is client2
    mock_session.create_client.assert_called_once()
    assert mock_session.create_client.call_args.kwargs["region_name"] == "eu-west-1"
    assert mock_session.create_client.call_args.args[0] == "sqs"


@pytest.mark.asyncio
async def test_client_kwargs_are_forwarded(mock_session: MagicMock) -> None:
    conn = SQSConnectionManager(
        session=mock_session, endpoint_url="http://localhost:4566"
    )
    await conn.get_client()
    kwargs = mock_session.create_client.call_args.kwargs
    assert kwargs["endpoint_url"] == "http://localhost:4566"


@pytest.mark.asyncio
async def test_close_cleans_up_client(mock_session: MagicMock) -> None:
    mock_cm = mock_session.create_client.return_value
    conn = SQSConnectionManager(session=mock_session)
    await conn.get_client()
    await conn.close()
    mock_cm.__aexit__.assert_called_once()
    assert conn._client is None
    assert conn._client_cm is None


@pytest.mark.asyncio
async def test_close_idempotent_when_never_opened(mock_session: MagicMock) -> None:
    conn = SQSConnectionManager(session=mock_session)
    await conn.close()
    mock_session.create_client.return_value.__aexit__.assert_not_called()


@pytest.mark.asyncio
async def test_health_check_returns_true_when_list_queues_succeeds(
    mock_session: MagicMock,
) -> None:
    conn = SQSConnectionManager(session=mock_session)
    assert await conn.health_check() is True
    client = await conn.get_client()
    client.list_queues.assert_called_once_with(MaxResults=1)


@pytest.mark.asyncio
async def test_health_check_returns_false_on_failure(mock_session: MagicMock) -> None:
    client = mock_session.create_client.return_value.__aenter__.return_value
    client.list_queues = AsyncMock(side_effect=RuntimeError("timeout"))
    conn = SQSConnectionManager(session=mock_session)
    assert await conn.health_check() is False
