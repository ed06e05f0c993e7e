"""BlockingSqsTemplate — synchronous wait-and-unwrap over :class:`SqsTemplate`."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar

from .ports import SqsOperations
from .template import SqsTemplate

if TYPE_CHECKING:
    from collections.abc import Coroutine, Iterable
    from types import TracebackType

    from .connection import SQSConnectionManager
    from .message import Message
    from .options import ReceiveOptions, SendOptions, TemplateOptions
    from .results import BatchSendResult, SendResult

logger = logging.getLogger("sqs_template.blocking")

R = TypeVar("R")


class BlockingSqsTemplate(SqsOperations):
    """Blocking SQS operations for non-async code.

    Runs the wrapped :class:`SqsTemplate` on a private event loop thread and
    blocks the caller until each operation completes. Failures are re-raised
    as the original exception, never wrapped.
    """

    def __init__(self, template: SqsTemplate) -> None:
        self._template = template
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            name="sqs-template-loop",
            daemon=True,
        )
        self._thread.start()
        self._closed = False

    @classmethod
    def create(
        cls,
        connection: SQSConnectionManager,
        options: TemplateOptions | None = None,
        **kwargs: Any,
    ) -> BlockingSqsTemplate:
        return cls(SqsTemplate(connection, options, **kwargs))

    @property
    def template(self) -> SqsTemplate:
        """The wrapped asynchronous template."""
        return self._template

    def _wait(self, coro: Coroutine[Any, Any, R]) -> R:
        if self._closed:
            coro.close()
            raise RuntimeError("BlockingSqsTemplate is closed")
        if threading.current_thread() is self._thread:
            coro.close()
            raise RuntimeError("Cannot block on the template's own event loop")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def send(self, options: SendOptions) -> SendResult[Any]:
        return self._wait(self._template.send(options))

    def send_payload(
        self, payload: Any, *, queue: str | None = None
    ) -> SendResult[Any]:
        return self._wait(self._template.send_payload(payload, queue=queue))

    def send_message(
        self, message: Message[Any], *, queue: str | None = None
    ) -> SendResult[Any]:
        return self._wait(self._template.send_message(message, queue=queue))

    def send_many(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]:
        return self._wait(self._template.send_many(list(messages), queue=queue))

    def send_many_fifo(
        self, messages: Iterable[Message[Any]], *, queue: str | None = None
    ) -> BatchSendResult[Any]:
        return self._wait(self._template.send_many_fifo(list(messages), queue=queue))

    def receive(self, options: ReceiveOptions | None = None) -> Message[Any] | None:
        return self._wait(self._template.receive(options))

    def receive_many(
        self, options: ReceiveOptions | None = None
    ) -> list[Message[Any]]:
        return self._wait(self._template.receive_many(options))

    def acknowledge(self, queue: str, messages: Iterable[Message[Any]]) -> None:
        self._wait(self._template.acknowledge(queue, list(messages)))

    def health_check(self) -> bool:
        return self._wait(self._template.health_check())

    def close(self) -> None:
        """Close the template and stop the loop thread. Idempotent."""
        if self._closed:
            return
        try:
            self._wait(self._template.close())
        finally:
            self._closed = True
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join()
            self._loop.close()
            logger.debug("Blocking template loop stopped")

    def __enter__(self) -> BlockingSqsTemplate:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
