"""SqsTemplate — asynchronous send / receive / acknowledge facade over SQS."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .acknowledgement import AcknowledgementEngine, QueueAcknowledger
from .batch import (
    build_send_batch_entries,
    correlate_send_batch,
    create_send_result,
    index_by_id,
)
from .exceptions import (
    ReceiveOperationFailedError,
    SendBatchOperationFailedError,
    SendOperationFailedError,
    ValidationError,
)
from .headers import (
    SQS_DELAY_HEADER,
    SQS_MESSAGE_DEDUPLICATION_ID_HEADER,
    SQS_MESSAGE_GROUP_ID_HEADER,
    SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER,
    SQS_VISIBILITY_TIMEOUT_HEADER,
)
from .mapping import HeaderMapper
from .message import Message
from .metadata import QueueMetadataCache, QueueMetadataResolver
from .options import (
    AcknowledgementMode,
    ReceiveOptions,
    SendBatchFailureHandling,
    SendOptions,
    TemplateOptions,
)
from .ports import Acknowledger, SqsAsyncOperations

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from types import TracebackType

    from .connection import SQSConnectionManager
    from .metadata import QueueMetadata
    from .results import BatchSendResult, SendResult
    from .serialization import PayloadConverter

logger = logging.getLogger("sqs_template.template")


def add_fifo_headers(
    message: Message[Any],
    message_group_id: str | None = None,
    message_deduplication_id: str | None = None,
) -> Message[Any]:
    """Return *message* with ordering group and deduplication id headers.

    Explicit ids win over headers already on the message; whatever is still
    missing is generated, so every call gets its own ids.
    """
    group_id = (
        message_group_id
        or message.headers.get(SQS_MESSAGE_GROUP_ID_HEADER)
        or str(uuid.uuid4())
    )
    dedup_id = (
        message_deduplication_id
        or message.headers.get(SQS_MESSAGE_DEDUPLICATION_ID_HEADER)
        or str(uuid.uuid4())
    )
    return message.with_headers(
        {
            SQS_MESSAGE_GROUP_ID_HEADER: str(group_id),
            SQS_MESSAGE_DEDUPLICATION_ID_HEADER: str(dedup_id),
        }
    )


@dataclass(frozen=True)
class _ConversionContext:
    """Per-queue state used to turn received SQS messages into Messages."""

    metadata: QueueMetadata
    acknowledger: Acknowledger


class SqsTemplate(SqsAsyncOperations):
    """Send, receive and acknowledge SQS messages.

    Queue metadata is resolved once per queue name and shared by all calls.
    ``queue`` arguments fall back to ``TemplateOptions.default_queue``.

    Usage::

        async with SqsTemplate(SQSConnectionManager("eu-west-1")) as template:
            await template.send(SendOptions(queue="orders", payload={"id": 1}))
            message = await template.receive(ReceiveOptions(queue="orders"))
    """

    def __init__(
        self,
        connection: SQSConnectionManager,
        options: TemplateOptions | None = None,
        *,
        converter: PayloadConverter | None = None,
    ) -> None:
        self._connection = connection
        self._options = options or TemplateOptions()
        self._mapper = HeaderMapper(converter)
        self._metadata_cache = QueueMetadataCache(
            QueueMetadataResolver(
                connection,
                queue_not_found_strategy=self._options.queue_not_found_strategy,
                queue_attribute_names=self._options.queue_attribute_names,
            )
        )
        self._engine = AcknowledgementEngine(connection, self._metadata_cache)
        self._acknowledger = QueueAcknowledger(self._engine)
        self._conversion_contexts: dict[str, _ConversionContext] = {}

    @property
    def options(self) -> TemplateOptions:
        return self._options

    @property
    def acknowledger(self) -> Acknowledger:
        """Acknowledger for messages received with ``AcknowledgementMode.MANUAL``."""
        return self._acknowledger

    @property
    def metadata_cache(self) -> QueueMetadataCache:
        return self._metadata_cache

    # ── Send ─────────────────────────────────────────────────────────

    async def send(self, options: SendOptions) -> SendResult[Any]:
        """Send the message described by *options*.

        An ordered send is the generic send with group and deduplication id
        headers injected.
        """
        if options.payload is None:
            raise ValidationError({"payload": ["payload must not be None"]})
        message = self._message_from_options(options)
        if options.fifo is not None:
            message = add_fifo_headers(
                message,
                options.fifo.message_group_id,
                options.fifo.message_deduplication_id,
            )
        return await self.send_message(message, queue=options.queue)

    async def send_payload(
        self, payload: Any, *, queue: str | None = None
    ) -> SendResult[Any]:
        return await self.send(SendOptions(queue=queue).with_payload(payload))

    async def send_message(
        self, message: Message[Any], *, queue: str | None = None
    ) -> SendResult[Any]:
        endpoint = self._endpoint(queue)
        wire = self._mapper.to_wire(message)
        metadata = await self._metadata_cache.resolve(endpoint)
        logger.debug("Sending message %s to endpoint %s", message.id, endpoint)
        try:
            client = await self._connection.get_client()
            response = await client.send_message(
                QueueUrl=metadata.url, **wire.request_fields()
            )
        except Exception as e:
            raise SendOperationFailedError(
                f"Message send operation failed for message {message.id} "
                f"to endpoint {endpoint}",
                endpoint,
                [message],
            ) from e
        return create_send_result(
            str(response["MessageId"]),
            response.get("SequenceNumber"),
            endpoint,
            message,
        )

    async def send_many(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]:
        """Send *messages* in one batch and correlate the per-entry outcomes."""
        batch = list(messages)
        if not batch:
            raise ValidationError({"messages": ["messages must not be empty"]})
        endpoint = self._endpoint(queue)
        originals = index_by_id(batch)
        entries = build_send_batch_entries([self._mapper.to_wire(m) for m in batch])
        metadata = await self._metadata_cache.resolve(endpoint)
        logger.debug("Sending messages %s to endpoint %s", list(originals), endpoint)
        try:
            client = await self._connection.get_client()
            response = await client.send_message_batch(
                QueueUrl=metadata.url, Entries=entries
            )
        except Exception as e:
            raise SendOperationFailedError(
                f"Message batch send operation failed to endpoint {endpoint}",
                endpoint,
                batch,
            ) from e
        result = correlate_send_batch(response, endpoint, originals)
        if (
            result.failed
            and self._options.send_batch_failure_handling
            is SendBatchFailureHandling.THROW
        ):
            raise SendBatchOperationFailedError(
                f"{len(result.failed)} of {len(batch)} messages failed to send "
                f"to endpoint {endpoint}",
                endpoint,
                result,
            )
        return result

    async def send_many_fifo(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]:
        """Batch send to a FIFO queue; each message gets its own ids if missing."""
        batch = list(messages)
        if not batch:
            raise ValidationError({"messages": ["messages must not be empty"]})
        return await self.send_many(
            [add_fifo_headers(message) for message in batch], queue=queue
        )

    @staticmethod
    def _message_from_options(options: SendOptions) -> Message[Any]:
        headers = dict(options.headers)
        if options.delay_seconds is not None:
            headers[SQS_DELAY_HEADER] = options.delay_seconds
        return Message(payload=options.payload, headers=headers)

    # ── Receive ──────────────────────────────────────────────────────

    async def receive(
        self, options: ReceiveOptions | None = None
    ) -> Message[Any] | None:
        """Receive at most one message."""
        single = (options or ReceiveOptions()).with_max_number_of_messages(1)
        messages = await self.receive_many(single)
        return messages[0] if messages else None

    async def receive_many(
        self, options: ReceiveOptions | None = None
    ) -> list[Message[Any]]:
        """Receive up to ``max_number_of_messages`` messages.

        With ``AcknowledgementMode.ACKNOWLEDGE`` the messages are deleted from
        the queue once converted.
        """
        options = options or ReceiveOptions()
        endpoint = self._endpoint(options.queue)
        additional_headers = self._additional_headers(options)
        payload_type = options.payload_type or self._options.default_payload_type
        metadata = await self._metadata_cache.resolve(endpoint)
        request = self._receive_request(options, metadata.url, additional_headers)
        logger.debug(
            "Receiving messages with settings: endpoint_name - %s, request - %s",
            endpoint,
            request,
        )
        try:
            client = await self._connection.get_client()
            response = await client.receive_message(**request)
        except Exception as e:
            raise ReceiveOperationFailedError(
                f"Message receive operation failed for endpoint {endpoint}", endpoint
            ) from e

        context = self._conversion_context(endpoint, metadata)
        messages = [
            self._mapper.from_wire(
                raw,
                context.metadata,
                payload_type=payload_type,
                additional_headers=additional_headers,
            )
            for raw in response.get("Messages") or []
        ]
        acknowledge = (
            self._options.acknowledgement_mode is AcknowledgementMode.ACKNOWLEDGE
        )
        if messages and acknowledge:
            await context.acknowledger.on_acknowledge_many(messages)
        return messages

    def _receive_request(
        self,
        options: ReceiveOptions,
        queue_url: str,
        additional_headers: Mapping[str, Any],
    ) -> dict[str, Any]:
        poll_timeout = (
            options.poll_timeout
            if options.poll_timeout is not None
            else self._options.default_poll_timeout
        )
        return {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": (
                options.max_number_of_messages
                or self._options.default_max_number_of_messages
            ),
            "WaitTimeSeconds": int(poll_timeout.total_seconds()),
            "MessageAttributeNames": list(self._options.message_attribute_names),
            "AttributeNames": list(self._options.message_system_attribute_names),
            **self._mapper.receive_request_fields(additional_headers),
        }

    @staticmethod
    def _additional_headers(options: ReceiveOptions) -> dict[str, Any]:
        headers = dict(options.additional_headers)
        if options.visibility_timeout is not None:
            headers[SQS_VISIBILITY_TIMEOUT_HEADER] = options.visibility_timeout
        if options.fifo is not None:
            headers[SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER] = (
                options.fifo.receive_request_attempt_id or str(uuid.uuid4())
            )
        return headers

    def _conversion_context(
        self, endpoint: str, metadata: QueueMetadata
    ) -> _ConversionContext:
        context = self._conversion_contexts.get(endpoint)
        if context is None:
            context = _ConversionContext(
                metadata=metadata, acknowledger=self._acknowledger
            )
            self._conversion_contexts[endpoint] = context
        return context

    # ── Acknowledge ──────────────────────────────────────────────────

    async def acknowledge(self, queue: str, messages: Iterable[Message[Any]]) -> None:
        """Delete *messages* from *queue*.

        Raises:
            AcknowledgementError: some or all messages could not be deleted.
        """
        await self._engine.acknowledge(self._endpoint(queue), messages)

    # ── Lifecycle ────────────────────────────────────────────────────

    def _endpoint(self, queue: str | None) -> str:
        endpoint = queue or self._options.default_queue
        if not endpoint:
            raise ValidationError(
                {"queue": ["no queue given and no default queue configured"]}
            )
        return endpoint

    async def health_check(self) -> bool:
        return await self._connection.health_check()

    async def close(self) -> None:
        await self._connection.close()

    async def __aenter__(self) -> SqsTemplate:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
