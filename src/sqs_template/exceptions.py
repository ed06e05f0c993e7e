"""Exceptions raised by the SQS template."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .message import Message
    from .results import BatchSendResult


class SqsTemplateError(Exception):
    """Root exception for the sqs-template package."""


class ValidationError(SqsTemplateError, ValueError):
    """Raised when an option or argument is malformed.

    Always raised before any network call is made.
    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


class CorrelationError(SqsTemplateError):
    """Raised when a batch response references an id absent from the request.

    Signals a protocol-level inconsistency; never swallowed.
    """

    def __init__(self, message: str, entry_id: str | None = None) -> None:
        self.entry_id = entry_id
        super().__init__(message)


class MessageConversionError(SqsTemplateError):
    """Raised when a payload or message attribute cannot be converted."""


class BrokerError(SqsTemplateError):
    """Base class for transport or service failures from the SQS client.

    The original exception is always available as ``__cause__``.
    """


class QueueResolutionError(BrokerError):
    """Raised when queue metadata cannot be resolved."""

    def __init__(self, message: str, queue_name: str) -> None:
        self.queue_name = queue_name
        super().__init__(message)


class SendOperationFailedError(BrokerError):
    """Raised when a send or send-batch call fails before a response is obtained."""

    def __init__(
        self,
        message: str,
        endpoint_name: str,
        messages: Sequence[Message[Any]] = (),
    ) -> None:
        self.endpoint_name = endpoint_name
        self.messages = list(messages)
        super().__init__(message)


class ReceiveOperationFailedError(BrokerError):
    """Raised when a receive call fails."""

    def __init__(self, message: str, endpoint_name: str) -> None:
        self.endpoint_name = endpoint_name
        super().__init__(message)


class SendBatchOperationFailedError(SqsTemplateError):
    """Raised for a partially failed batch when failures are configured to throw.

    The full result (successful and failed entries) is kept on ``result``.
    """

    def __init__(
        self,
        message: str,
        endpoint_name: str,
        result: BatchSendResult[Any],
    ) -> None:
        self.endpoint_name = endpoint_name
        self.result = result
        super().__init__(message)


class AcknowledgementError(SqsTemplateError):
    """Partial or total failure to delete consumed messages.

    ``failed_messages`` can be retried selectively. ``cause`` is set only when
    no response was obtained from the broker (total failure).
    """

    def __init__(
        self,
        message: str,
        endpoint_name: str,
        successful_messages: Sequence[Message[Any]] = (),
        failed_messages: Sequence[Message[Any]] = (),
        cause: BaseException | None = None,
    ) -> None:
        self.endpoint_name = endpoint_name
        self.successful_messages = list(successful_messages)
        self.failed_messages = list(failed_messages)
        self.cause = cause
        super().__init__(message)
