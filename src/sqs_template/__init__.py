"""Async SQS template — send, receive and acknowledge with batch correlation."""

from __future__ import annotations

from .acknowledgement import AcknowledgementEngine, QueueAcknowledger
from .blocking import BlockingSqsTemplate
from .connection import SQSConnectionManager
from .exceptions import (
    AcknowledgementError,
    BrokerError,
    CorrelationError,
    MessageConversionError,
    QueueResolutionError,
    ReceiveOperationFailedError,
    SendBatchOperationFailedError,
    SendOperationFailedError,
    SqsTemplateError,
    ValidationError,
)
from .message import Message
from .metadata import QueueMetadata, QueueMetadataCache, QueueMetadataResolver
from .options import (
    AcknowledgementMode,
    FifoReceiveOptions,
    FifoSendOptions,
    QueueNotFoundStrategy,
    ReceiveOptions,
    SendBatchFailureHandling,
    SendOptions,
    TemplateOptions,
)
from .ports import Acknowledger, SqsAsyncOperations, SqsOperations
from .results import BatchSendResult, FailedSend, SendResult
from .serialization import PayloadConverter
from .template import SqsTemplate, add_fifo_headers

__all__ = [
    "AcknowledgementEngine",
    "AcknowledgementError",
    "AcknowledgementMode",
    "Acknowledger",
    "BatchSendResult",
    "BlockingSqsTemplate",
    "BrokerError",
    "CorrelationError",
    "FailedSend",
    "FifoReceiveOptions",
    "FifoSendOptions",
    "Message",
    "MessageConversionError",
    "PayloadConverter",
    "QueueAcknowledger",
    "QueueMetadata",
    "QueueMetadataCache",
    "QueueMetadataResolver",
    "QueueNotFoundStrategy",
    "QueueResolutionError",
    "ReceiveOperationFailedError",
    "ReceiveOptions",
    "SQSConnectionManager",
    "SendBatchFailureHandling",
    "SendBatchOperationFailedError",
    "SendOperationFailedError",
    "SendOptions",
    "SendResult",
    "SqsAsyncOperations",
    "SqsOperations",
    "SqsTemplate",
    "SqsTemplateError",
    "TemplateOptions",
    "ValidationError",
    "add_fifo_headers",
]
