"""AcknowledgementEngine — acknowledge consumed messages with DeleteMessageBatch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .batch import build_delete_batch_entries, correlate_delete_batch, index_by_id
from .exceptions import AcknowledgementError, ValidationError
from .headers import SQS_QUEUE_NAME_HEADER, SQS_RECEIPT_HANDLE_HEADER
from .ports import Acknowledger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .connection import SQSConnectionManager
    from .message import Message
    from .metadata import QueueMetadataCache

logger = logging.getLogger("sqs_template.acknowledgement")


class AcknowledgementEngine:
    """Delete consumed messages and report per-message outcomes.

    - No response from the broker: every message failed, ``cause`` is set.
    - Response with failed entries: successful and failed messages are
      matched back by id, ``cause`` is None.
    - Response without failed entries: success.

    The first two raise :class:`AcknowledgementError`. A response id that
    matches no input message raises :class:`CorrelationError`.
    """

    def __init__(
        self,
        connection: SQSConnectionManager,
        metadata_cache: QueueMetadataCache,
    ) -> None:
        self._connection = connection
        self._metadata_cache = metadata_cache

    async def acknowledge(
        self, endpoint_name: str, messages: Iterable[Message[Any]]
    ) -> None:
        batch = list(messages)
        if not batch:
            return
        ids = [message.id for message in batch]
        originals = index_by_id(batch)
        entries = build_delete_batch_entries(batch, SQS_RECEIPT_HANDLE_HEADER)
        logger.debug("Acknowledging in queue %s messages %s", endpoint_name, ids)
        try:
            metadata = await self._metadata_cache.resolve(endpoint_name)
            client = await self._connection.get_client()
            response = await client.delete_message_batch(
                QueueUrl=metadata.url, Entries=entries
            )
        except Exception as e:
            logger.error(
                "Error acknowledging in queue %s messages %s", endpoint_name, ids
            )
            raise AcknowledgementError(
                f"Error acknowledging messages in queue {endpoint_name}",
                endpoint_name,
                failed_messages=batch,
                cause=e,
            ) from e

        if response.get("Failed"):
            successful, failed = correlate_delete_batch(response, originals)
            logger.error(
                "Some messages could not be acknowledged in queue %s: %s",
                endpoint_name,
                [message.id for message in failed],
            )
            raise AcknowledgementError(
                f"Error acknowledging messages in queue {endpoint_name}",
                endpoint_name,
                successful_messages=successful,
                failed_messages=failed,
            )
        logger.debug("Acknowledged messages in queue %s: %s", endpoint_name, ids)


def queue_name_of(message: Message[Any]) -> str:
    queue_name = message.headers.get(SQS_QUEUE_NAME_HEADER)
    if not queue_name:
        raise ValidationError(
            {SQS_QUEUE_NAME_HEADER: [f"message {message.id!r} has no queue name"]}
        )
    return str(queue_name)


class QueueAcknowledger(Acknowledger):
    """Acknowledger deriving the queue from the ``Sqs_QueueName`` header."""

    def __init__(self, engine: AcknowledgementEngine) -> None:
        self._engine = engine

    async def on_acknowledge(self, message: Message[Any]) -> None:
        await self._engine.acknowledge(queue_name_of(message), [message])

    async def on_acknowledge_many(self, messages: Iterable[Message[Any]]) -> None:
        batch = list(messages)
        if not batch:
            return
        await self._engine.acknowledge(queue_name_of(batch[0]), batch)
