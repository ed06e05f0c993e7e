"""Send results returned by the template."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .message import Message

T = TypeVar("T")

SEQUENCE_NUMBER_PARAMETER_NAME = "sequenceNumber"
ERROR_CODE_PARAMETER_NAME = "errorCode"
SENDER_FAULT_PARAMETER_NAME = "senderFault"


@dataclass(frozen=True)
class SendResult(Generic[T]):
    """Outcome of a successful send.

    ``metadata`` holds broker extras, e.g. ``sequenceNumber`` for FIFO queues.
    """

    message_id: str
    endpoint_name: str
    message: Message[T]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FailedSend(Generic[T]):
    """A batch entry the broker refused.

    ``metadata`` carries ``errorCode`` and ``senderFault``.
    """

    error_message: str
    endpoint_name: str
    message: Message[T]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchSendResult(Generic[T]):
    """Partitioned outcome of a batch send, in broker order."""

    successful: list[SendResult[T]] = field(default_factory=list)
    failed: list[FailedSend[T]] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)
