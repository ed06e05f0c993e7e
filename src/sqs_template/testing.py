"""In-memory SQS client for tests — no AWS, no network.

Implements the subset of the aiobotocore SQS client used by the template.
Received messages stay in flight until deleted; there is no visibility
timeout clock. Per-entry batch failures can be injected with
:meth:`InMemorySqsClient.fail_entry`.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import ClientError

from .connection import SQSConnectionManager

_ACCOUNT_URL = "https://sqs.us-east-1.amazonaws.com/000000000000"


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message, "Type": "Sender"}},
        operation,
    )


@dataclass
class _StoredMessage:
    message_id: str
    body: str
    message_attributes: dict[str, dict[str, Any]]
    attributes: dict[str, str]
    receipt_handle: str | None = None


@dataclass
class _Queue:
    name: str
    url: str
    attributes: dict[str, str]
    messages: list[_StoredMessage] = field(default_factory=list)
    sequence: int = 0

    @property
    def is_fifo(self) -> bool:
        return self.name.endswith(".fifo")


class InMemorySqsClient:
    """Fake SQS client with assertion helpers.

    Every call is recorded in :attr:`calls` as ``(operation, kwargs)``.
    """

    def __init__(self) -> None:
        self._queues: dict[str, _Queue] = {}
        self._failures: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    # ── Test helpers ─────────────────────────────────────────────────

    def add_queue(self, name: str, attributes: dict[str, str] | None = None) -> str:
        """Create a queue directly (not recorded as a call) and return its URL."""
        url = f"{_ACCOUNT_URL}/{name}"
        defaults = {"QueueArn": f"arn:aws:sqs:us-east-1:000000000000:{name}"}
        if name.endswith(".fifo"):
            defaults["FifoQueue"] = "true"
        self._queues[url] = _Queue(
            name=name, url=url, attributes={**defaults, **(attributes or {})}
        )
        return url

    def fail_entry(
        self,
        operation: str,
        entry_id: str,
        code: str = "InternalError",
        message: str = "",
        sender_fault: bool = False,
    ) -> None:
        """Make the next batch *operation* fail for *entry_id*."""
        self._failures[(operation, entry_id)] = {
            "Code": code,
            "Message": message,
            "SenderFault": sender_fault,
        }

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    def queue_depth(self, name: str) -> int:
        return len(self._queue_by_name(name).messages)

    # ── Queue management ─────────────────────────────────────────────

    async def get_queue_url(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("get_queue_url", kwargs))
        queue = self._queue_by_name(kwargs["QueueName"], operation="GetQueueUrl")
        return {"QueueUrl": queue.url}

    async def create_queue(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_queue", kwargs))
        name = kwargs["QueueName"]
        url = f"{_ACCOUNT_URL}/{name}"
        if url not in self._queues:
            self.add_queue(name, kwargs.get("Attributes"))
        return {"QueueUrl": url}

    async def get_queue_attributes(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("get_queue_attributes", kwargs))
        queue = self._queue(kwargs["QueueUrl"], "GetQueueAttributes")
        names = kwargs.get("AttributeNames") or []
        if "All" in names:
            return {"Attributes": dict(queue.attributes)}
        return {
            "Attributes": {
                name: value for name, value in queue.attributes.items() if name in names
            }
        }

    async def list_queues(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("list_queues", kwargs))
        return {"QueueUrls": list(self._queues)}

    # ── Messages ─────────────────────────────────────────────────────

    async def send_message(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("send_message", kwargs))
        queue = self._queue(kwargs["QueueUrl"], "SendMessage")
        return self._enqueue(queue, kwargs, "SendMessage")

    async def send_message_batch(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("send_message_batch", kwargs))
        queue = self._queue(kwargs["QueueUrl"], "SendMessageBatch")
        successful: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for entry in kwargs["Entries"]:
            failure = self._failures.pop(("send_message_batch", entry["Id"]), None)
            if failure is not None:
                failed.append({"Id": entry["Id"], **failure})
                continue
            result = self._enqueue(queue, entry, "SendMessageBatch")
            successful.append({"Id": entry["Id"], **result})
        return {"Successful": successful, "Failed": failed}

    async def receive_message(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("receive_message", kwargs))
        queue = self._queue(kwargs["QueueUrl"], "ReceiveMessage")
        max_messages = int(kwargs.get("MaxNumberOfMessages", 1))
        attribute_names = kwargs.get("MessageAttributeNames") or []
        system_names = kwargs.get("AttributeNames") or []
        received: list[dict[str, Any]] = []
        for stored in queue.messages:
            if len(received) >= max_messages:
                break
            if stored.receipt_handle is not None:
                continue
            stored.receipt_handle = uuid.uuid4().hex
            count = int(stored.attributes.get("ApproximateReceiveCount", "0")) + 1
            stored.attributes["ApproximateReceiveCount"] = str(count)
            received.append(self._to_received(stored, attribute_names, system_names))
        return {"Messages": received} if received else {}

    async def delete_message_batch(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("delete_message_batch", kwargs))
        queue = self._queue(kwargs["QueueUrl"], "DeleteMessageBatch")
        successful: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for entry in kwargs["Entries"]:
            failure = self._failures.pop(("delete_message_batch", entry["Id"]), None)
            if failure is not None:
                failed.append({"Id": entry["Id"], **failure})
                continue
            stored = next(
                (
                    m
                    for m in queue.messages
                    if m.receipt_handle == entry["ReceiptHandle"]
                ),
                None,
            )
            if stored is None:
                failed.append(
                    {
                        "Id": entry["Id"],
                        "Code": "ReceiptHandleIsInvalid",
                        "Message": "The receipt handle is not valid",
                        "SenderFault": True,
                    }
                )
                continue
            queue.messages.remove(stored)
            successful.append({"Id": entry["Id"]})
        return {"Successful": successful, "Failed": failed}

    # ── Internals ────────────────────────────────────────────────────

    def _queue(self, url: str, operation: str) -> _Queue:
        queue = self._queues.get(url)
        if queue is None:
            raise _client_error(
                "AWS.SimpleQueueService.NonExistentQueue",
                f"The specified queue does not exist: {url}",
                operation,
            )
        return queue

    def _queue_by_name(self, name: str, operation: str = "GetQueueUrl") -> _Queue:
        return self._queue(f"{_ACCOUNT_URL}/{name}", operation)

    def _enqueue(
        self, queue: _Queue, entry: dict[str, Any], operation: str
    ) -> dict[str, Any]:
        if queue.is_fifo and "MessageGroupId" not in entry:
            raise _client_error(
                "MissingParameter",
                "The request must contain the parameter MessageGroupId.",
                operation,
            )
        body = entry["MessageBody"]
        attributes = {"SentTimestamp": "0"}
        digest = hashlib.md5(body.encode("utf-8")).hexdigest()  # noqa: S324
        result: dict[str, Any] = {
            "MessageId": str(uuid.uuid4()),
            "MD5OfMessageBody": digest,
        }
        if queue.is_fifo:
            queue.sequence += 1
            result["SequenceNumber"] = f"{queue.sequence:020d}"
            attributes["MessageGroupId"] = entry["MessageGroupId"]
            attributes["SequenceNumber"] = result["SequenceNumber"]
            if "MessageDeduplicationId" in entry:
                attributes["MessageDeduplicationId"] = entry["MessageDeduplicationId"]
        queue.messages.append(
            _StoredMessage(
                message_id=result["MessageId"],
                body=body,
                message_attributes=dict(entry.get("MessageAttributes") or {}),
                attributes=attributes,
            )
        )
        return result

    @staticmethod
    def _to_received(
        stored: _StoredMessage,
        attribute_names: list[str],
        system_names: list[str],
    ) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "MessageId": stored.message_id,
            "ReceiptHandle": stored.receipt_handle,
            "Body": stored.body,
        }
        if "All" in system_names:
            raw["Attributes"] = dict(stored.attributes)
        elif system_names:
            raw["Attributes"] = {
                k: v for k, v in stored.attributes.items() if k in system_names
            }
        if "All" in attribute_names or ".*" in attribute_names:
            attrs = dict(stored.message_attributes)
        else:
            attrs = {
                k: v
                for k, v in stored.message_attributes.items()
                if k in attribute_names
            }
        if attrs:
            raw["MessageAttributes"] = attrs
        return raw


class InMemorySQSConnection(SQSConnectionManager):
    """Connection manager handing out an :class:`InMemorySqsClient`."""

    def __init__(self, client: InMemorySqsClient | None = None) -> None:
        super().__init__()
        self.client = client or InMemorySqsClient()
        self._client = self.client
