from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .message import Message
    from .options import ReceiveOptions, SendOptions
    from .results import BatchSendResult, SendResult

T = TypeVar("T")


@runtime_checkable
class Acknowledger(Protocol):
    """
    Capability for acknowledging (deleting) consumed messages.

    Invoked by whatever consumer loop delivers messages to application code;
    the queue is derived from each message's headers.
    """

    async def on_acknowledge(self, message: Message[Any]) -> None:
        """Acknowledge a single message."""
        ...

    async def on_acknowledge_many(self, messages: Iterable[Message[Any]]) -> None:
        """Acknowledge messages from one queue; an empty collection is a no-op."""
        ...


@runtime_checkable
class SqsAsyncOperations(Protocol):
    """
    Asynchronous send / receive / acknowledge operations.

    ``queue`` arguments default to the template's default queue.
    """

    async def send(self, options: SendOptions) -> SendResult[Any]: ...

    async def send_payload(
        self, payload: Any, *, queue: str | None = None
    ) -> SendResult[Any]: ...

    async def send_message(
        self, message: Message[Any], *, queue: str | None = None
    ) -> SendResult[Any]: ...

    async def send_many(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]: ...

    async def send_many_fifo(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]: ...

    async def receive(
        self, options: ReceiveOptions | None = None
    ) -> Message[Any] | None: ...

    async def receive_many(
        self, options: ReceiveOptions | None = None
    ) -> list[Message[Any]]: ...

    async def acknowledge(
        self, queue: str, messages: Iterable[Message[Any]]
    ) -> None: ...


@runtime_checkable
class SqsOperations(Protocol):
    """Blocking counterpart of :class:`SqsAsyncOperations`."""

    def send(self, options: SendOptions) -> SendResult[Any]: ...

    def send_payload(
        self, payload: Any, *, queue: str | None = None
    ) -> SendResult[Any]: ...

    def send_message(
        self, message: Message[Any], *, queue: str | None = None
    ) -> SendResult[Any]: ...

    def send_many(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]: ...

    def send_many_fifo(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]: ...

    def receive(self, options: ReceiveOptions | None = None) -> Message[Any] | None: ...

    def receive_many(
        self, options: ReceiveOptions | None = None
    ) -> list[Message[Any]]: ...

    def acknowledge(self, queue: str, messages: Iterable[Message[Any]]) -> None: ...
