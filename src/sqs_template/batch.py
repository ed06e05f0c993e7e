"""Batch correlation — request entries keyed by message id, responses matched back.

Every entry of a batch request carries the originating message's id. Every
entry of the response must match one of those ids; an unknown id is a
:class:`~sqs_template.exceptions.CorrelationError` and fails the whole call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import CorrelationError, ValidationError
from .results import (
    ERROR_CODE_PARAMETER_NAME,
    SENDER_FAULT_PARAMETER_NAME,
    SEQUENCE_NUMBER_PARAMETER_NAME,
    BatchSendResult,
    FailedSend,
    SendResult,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from .mapping import WireMessage
    from .message import Message

T = TypeVar("T")


def index_by_id(messages: Iterable[Message[T]]) -> dict[str, Message[T]]:
    """Map messages by id; duplicate ids within one batch are a caller error."""
    indexed: dict[str, Message[T]] = {}
    for message in messages:
        if message.id in indexed:
            raise ValidationError(
                {"messages": [f"duplicate message id {message.id!r} in batch"]}
            )
        indexed[message.id] = message
    return indexed


def build_send_batch_entries(
    wire_messages: Sequence[WireMessage],
) -> list[dict[str, Any]]:
    """SendMessageBatch entries with ``Id`` set to each message's id."""
    seen: set[str] = set()
    entries: list[dict[str, Any]] = []
    for wire in wire_messages:
        if wire.id in seen:
            raise ValidationError(
                {"messages": [f"duplicate message id {wire.id!r} in batch"]}
            )
        seen.add(wire.id)
        entries.append({"Id": wire.id, **wire.request_fields()})
    return entries


def build_delete_batch_entries(
    messages: Iterable[Message[Any]], receipt_handle_header: str
) -> list[dict[str, str]]:
    """DeleteMessageBatch entries with ``Id`` set to each message's id."""
    entries: list[dict[str, str]] = []
    for message in messages:
        receipt_handle = message.headers.get(receipt_handle_header)
        if not receipt_handle:
            raise ValidationError(
                {
                    receipt_handle_header: [
                        f"message {message.id!r} has no receipt handle"
                    ]
                }
            )
        entries.append({"Id": message.id, "ReceiptHandle": str(receipt_handle)})
    return entries


def create_send_result(
    message_id: str,
    sequence_number: str | None,
    endpoint_name: str,
    message: Message[T],
) -> SendResult[T]:
    metadata: dict[str, Any] = {}
    if sequence_number is not None:
        metadata[SEQUENCE_NUMBER_PARAMETER_NAME] = sequence_number
    return SendResult(
        message_id=message_id,
        endpoint_name=endpoint_name,
        message=message,
        metadata=metadata,
    )


def _original(
    originals_by_id: Mapping[str, Message[T]], entry_id: str, operation: str
) -> Message[T]:
    message = originals_by_id.get(entry_id)
    if message is None:
        raise CorrelationError(
            f"Could not correlate {operation} result to original message for id "
            f"{entry_id}. Original message ids: {sorted(originals_by_id)}",
            entry_id=entry_id,
        )
    return message


def correlate_send_batch(
    response: Mapping[str, Any],
    endpoint_name: str,
    originals_by_id: Mapping[str, Message[T]],
) -> BatchSendResult[T]:
    """Partition a SendMessageBatch response into successes and failures."""
    successful = [
        create_send_result(
            str(entry["MessageId"]),
            entry.get("SequenceNumber"),
            endpoint_name,
            _original(originals_by_id, entry["Id"], "send"),
        )
        for entry in response.get("Successful") or []
    ]
    failed = [
        FailedSend(
            error_message=str(entry.get("Message", "")),
            endpoint_name=endpoint_name,
            message=_original(originals_by_id, entry["Id"], "send"),
            metadata={
                ERROR_CODE_PARAMETER_NAME: entry.get("Code"),
                SENDER_FAULT_PARAMETER_NAME: bool(entry.get("SenderFault", False)),
            },
        )
        for entry in response.get("Failed") or []
    ]
    return BatchSendResult(successful=successful, failed=failed)


def correlate_delete_batch(
    response: Mapping[str, Any],
    originals_by_id: Mapping[str, Message[T]],
) -> tuple[list[Message[T]], list[Message[T]]]:
    """Return ``(successful, failed)`` messages of a DeleteMessageBatch response."""
    successful = [
        _original(originals_by_id, entry["Id"], "acknowledgement")
        for entry in response.get("Successful") or []
    ]
    failed = [
        _original(originals_by_id, entry["Id"], "acknowledgement")
        for entry in response.get("Failed") or []
    ]
    return successful, failed
