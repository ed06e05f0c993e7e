"""HeaderMapper — message headers to SQS attributes and back.

Reserved ``Sqs_`` headers shape the request (delay, FIFO ids, visibility
timeout, receive attempt id) and are never sent as message attributes.
All other headers travel as typed message attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any
from uuid import UUID

from . import headers as h
from .exceptions import MessageConversionError, ValidationError
from .message import Message
from .options import MAX_DELAY_SECONDS
from .serialization import PayloadConverter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .metadata import QueueMetadata

STRING = "String"
NUMBER = "Number"
BINARY = "Binary"
BOOLEAN = "String.bool"
UUID_TYPE = "String.uuid"
INTEGER = "Number.int"
FLOAT = "Number.float"

# Only AWSTraceHeader may be set as a system attribute on send.
_SENDABLE_SYSTEM_ATTRIBUTES = {h.SQS_AWS_TRACE_HEADER: "AWSTraceHeader"}


@dataclass(frozen=True)
class WireMessage:
    """Outbound message in SQS terms, before the queue URL is known."""

    id: str
    body: str
    delay_seconds: int | None = None
    message_group_id: str | None = None
    message_deduplication_id: str | None = None
    message_attributes: dict[str, dict[str, Any]] = field(default_factory=dict)
    system_attributes: dict[str, dict[str, Any]] = field(default_factory=dict)

    def request_fields(self) -> dict[str, Any]:
        """Fields shared by SendMessage and SendMessageBatch entries."""
        fields: dict[str, Any] = {"MessageBody": self.body}
        if self.delay_seconds is not None:
            fields["DelaySeconds"] = self.delay_seconds
        if self.message_group_id is not None:
            fields["MessageGroupId"] = self.message_group_id
        if self.message_deduplication_id is not None:
            fields["MessageDeduplicationId"] = self.message_deduplication_id
        if self.message_attributes:
            fields["MessageAttributes"] = self.message_attributes
        if self.system_attributes:
            fields["MessageSystemAttributes"] = self.system_attributes
        return fields


def to_message_attribute(value: Any) -> dict[str, Any]:
    """Encode a header value as an SQS message attribute."""
    if isinstance(value, bool):
        return {"DataType": BOOLEAN, "StringValue": "true" if value else "false"}
    if isinstance(value, int):
        return {"DataType": INTEGER, "StringValue": str(value)}
    if isinstance(value, float):
        return {"DataType": FLOAT, "StringValue": repr(value)}
    if isinstance(value, Decimal):
        return {"DataType": NUMBER, "StringValue": str(value)}
    if isinstance(value, UUID):
        return {"DataType": UUID_TYPE, "StringValue": str(value)}
    if isinstance(value, (bytes, bytearray)):
        return {"DataType": BINARY, "BinaryValue": bytes(value)}
    return {"DataType": STRING, "StringValue": str(value)}


def from_message_attribute(name: str, attribute: Mapping[str, Any]) -> Any:
    """Decode an SQS message attribute into a header value.

    Plain ``Number`` values decode to ``Decimal``; ints and floats travel as
    ``Number.int`` and ``Number.float``.
    """
    data_type = str(attribute.get("DataType", STRING))
    if data_type.startswith(BINARY):
        return attribute.get("BinaryValue")
    raw = attribute.get("StringValue")
    if raw is None:
        raise MessageConversionError(f"Attribute {name!r} has no StringValue")
    try:
        if data_type == BOOLEAN:
            return raw.lower() == "true"
        if data_type == UUID_TYPE:
            return UUID(raw)
        if data_type == INTEGER:
            return int(raw)
        if data_type == FLOAT:
            return float(raw)
        if data_type.startswith(NUMBER):
            return Decimal(raw)
    except (ValueError, InvalidOperation) as e:
        raise MessageConversionError(
            f"Attribute {name!r} is not a valid {data_type}: {raw!r}"
        ) from e
    return raw


class HeaderMapper:
    """Translate between :class:`Message` headers and the SQS attribute model."""

    def __init__(self, converter: PayloadConverter | None = None) -> None:
        self._converter = converter or PayloadConverter()

    # ── Send ─────────────────────────────────────────────────────────

    def to_wire(self, message: Message[Any]) -> WireMessage:
        """Convert *message* to its SQS representation."""
        message_attributes: dict[str, dict[str, Any]] = {}
        system_attributes: dict[str, dict[str, Any]] = {}
        for name, value in message.headers.items():
            if name in _SENDABLE_SYSTEM_ATTRIBUTES:
                system_attributes[_SENDABLE_SYSTEM_ATTRIBUTES[name]] = {
                    "DataType": STRING,
                    "StringValue": str(value),
                }
            elif not h.is_reserved(name):
                message_attributes[name] = to_message_attribute(value)
        group_id = message.headers.get(h.SQS_MESSAGE_GROUP_ID_HEADER)
        dedup_id = message.headers.get(h.SQS_MESSAGE_DEDUPLICATION_ID_HEADER)
        return WireMessage(
            id=message.id,
            body=self._converter.to_body(message.payload),
            delay_seconds=self._delay_seconds(message),
            message_group_id=str(group_id) if group_id is not None else None,
            message_deduplication_id=str(dedup_id) if dedup_id is not None else None,
            message_attributes=message_attributes,
            system_attributes=system_attributes,
        )

    @staticmethod
    def _delay_seconds(message: Message[Any]) -> int | None:
        value = message.headers.get(h.SQS_DELAY_HEADER)
        if value is None:
            return None
        try:
            delay = int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                {h.SQS_DELAY_HEADER: [f"not an integer: {value!r}"]}
            ) from e
        if not 0 <= delay <= MAX_DELAY_SECONDS:
            raise ValidationError(
                {
                    h.SQS_DELAY_HEADER: [
                        f"must be between 0 and {MAX_DELAY_SECONDS} seconds"
                    ]
                }
            )
        return delay

    # ── Receive ──────────────────────────────────────────────────────

    @staticmethod
    def receive_request_fields(additional_headers: Mapping[str, Any]) -> dict[str, Any]:
        """Request parameters carried by reserved receive headers."""
        fields: dict[str, Any] = {}
        visibility = additional_headers.get(h.SQS_VISIBILITY_TIMEOUT_HEADER)
        if visibility is not None:
            seconds = getattr(visibility, "total_seconds", None)
            fields["VisibilityTimeout"] = int(seconds() if seconds else visibility)
        attempt_id = additional_headers.get(h.SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER)
        if attempt_id is not None:
            fields["ReceiveRequestAttemptId"] = str(attempt_id)
        return fields

    @staticmethod
    def strip_request_headers(additional_headers: Mapping[str, Any]) -> dict[str, Any]:
        """Drop request-shaping headers before they reach application code."""
        return {
            name: value
            for name, value in additional_headers.items()
            if name not in h.RECEIVE_REQUEST_HEADERS
        }

    def from_wire(
        self,
        raw: Mapping[str, Any],
        metadata: QueueMetadata,
        *,
        payload_type: Any = None,
        additional_headers: Mapping[str, Any] | None = None,
    ) -> Message[Any]:
        """Convert a received SQS message into a :class:`Message`."""
        headers: dict[str, Any] = {
            name: from_message_attribute(name, attribute)
            for name, attribute in (raw.get("MessageAttributes") or {}).items()
        }
        for name, value in (raw.get("Attributes") or {}).items():
            headers[h.system_attribute_header(name)] = value
        headers[h.SQS_RECEIPT_HANDLE_HEADER] = raw.get("ReceiptHandle")
        headers[h.SQS_QUEUE_NAME_HEADER] = metadata.name
        headers[h.SQS_QUEUE_URL_HEADER] = metadata.url
        if metadata.attributes:
            headers[h.SQS_QUEUE_ATTRIBUTES_HEADER] = dict(metadata.attributes)
        if additional_headers:
            # Never replace what the broker returned.
            for name, value in self.strip_request_headers(additional_headers).items():
                headers.setdefault(name, value)
        return Message(
            id=str(raw["MessageId"]),
            payload=self._converter.from_body(raw.get("Body", ""), payload_type),
            headers=headers,
        )
