"""Queue metadata resolution and the per-queue single-flight cache."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .exceptions import QueueResolutionError
from .options import QueueNotFoundStrategy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .connection import SQSConnectionManager

logger = logging.getLogger("sqs_template.metadata")

_QUEUE_NOT_FOUND_CODES = frozenset(
    {"AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"}
)


def _freeze(attributes: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(attributes))


@dataclass(frozen=True)
class QueueMetadata:
    """Resolved queue URL plus the selected queue attributes."""

    name: str
    url: str
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze(self.attributes))

    @property
    def is_fifo(self) -> bool:
        return self.url.endswith(".fifo")


def _error_code(exc: BaseException) -> str | None:
    err = getattr(exc, "response", None) or {}
    code = err.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def _is_queue_url(queue_name: str) -> bool:
    return queue_name.startswith(("http://", "https://"))


class QueueMetadataResolver:
    """Look up a queue URL and attributes, creating the queue if configured to."""

    def __init__(
        self,
        connection: SQSConnectionManager,
        *,
        queue_not_found_strategy: QueueNotFoundStrategy = QueueNotFoundStrategy.CREATE,
        queue_attribute_names: Iterable[str] = (),
    ) -> None:
        self._connection = connection
        self._strategy = queue_not_found_strategy
        self._attribute_names = list(queue_attribute_names)

    async def resolve(self, queue_name: str) -> QueueMetadata:
        client = await self._connection.get_client()
        url = await self._resolve_url(client, queue_name)
        attributes = await self._fetch_attributes(client, queue_name, url)
        logger.debug("Resolved queue %s to %s", queue_name, url)
        return QueueMetadata(name=queue_name, url=url, attributes=attributes)

    async def _resolve_url(self, client: Any, queue_name: str) -> str:
        if _is_queue_url(queue_name):
            return queue_name
        try:
            out = await client.get_queue_url(QueueName=queue_name)
            return str(out["QueueUrl"])
        except Exception as e:
            if _error_code(e) not in _QUEUE_NOT_FOUND_CODES:
                raise QueueResolutionError(
                    f"Error resolving url for queue {queue_name}: {e}", queue_name
                ) from e
            if self._strategy is QueueNotFoundStrategy.FAIL:
                raise QueueResolutionError(
                    f"Queue {queue_name} does not exist", queue_name
                ) from e
        return await self._create_queue(client, queue_name)

    async def _create_queue(self, client: Any, queue_name: str) -> str:
        kwargs: dict[str, Any] = {"QueueName": queue_name}
        if queue_name.endswith(".fifo"):
            kwargs["Attributes"] = {"FifoQueue": "true"}
        try:
            out = await client.create_queue(**kwargs)
        except Exception as e:
            raise QueueResolutionError(
                f"Error creating queue {queue_name}: {e}", queue_name
            ) from e
        logger.warning("Queue %s not found; created it", queue_name)
        return str(out["QueueUrl"])

    async def _fetch_attributes(
        self, client: Any, queue_name: str, url: str
    ) -> dict[str, str]:
        if not self._attribute_names:
            return {}
        try:
            out = await client.get_queue_attributes(
                QueueUrl=url, AttributeNames=self._attribute_names
            )
        except Exception as e:
            raise QueueResolutionError(
                f"Error fetching attributes for queue {queue_name}: {e}", queue_name
            ) from e
        return dict(out.get("Attributes") or {})


class QueueMetadataCache:
    """Single-flight cache of :class:`QueueMetadata` keyed by queue name.

    The first caller for a name starts the resolution; concurrent callers
    await the same task and observe the same result or failure. Successful
    results stay cached for the lifetime of the cache. Failed resolutions are
    evicted once the task completes, so a later call retries.
    """

    def __init__(self, resolver: QueueMetadataResolver) -> None:
        self._resolver = resolver
        self._entries: dict[str, asyncio.Future[QueueMetadata]] = {}

    async def resolve(self, queue_name: str) -> QueueMetadata:
        # No await between lookup and insert: population is serialized per key.
        entry = self._entries.get(queue_name)
        if entry is None:
            entry = asyncio.ensure_future(self._resolver.resolve(queue_name))
            self._entries[queue_name] = entry
            entry.add_done_callback(functools.partial(self._on_done, queue_name))
        # Shielded so one cancelled waiter does not cancel the shared lookup.
        return await asyncio.shield(entry)

    def get_if_resolved(self, queue_name: str) -> QueueMetadata | None:
        """Return cached metadata without triggering a lookup."""
        entry = self._entries.get(queue_name)
        if entry is None or not entry.done() or entry.cancelled():
            return None
        if entry.exception() is not None:
            return None
        return entry.result()

    def evict(self, queue_name: str) -> None:
        self._entries.pop(queue_name, None)

    def _on_done(self, queue_name: str, entry: asyncio.Future[QueueMetadata]) -> None:
        if entry.cancelled() or entry.exception() is not None:
            if self._entries.get(queue_name) is entry:
                del self._entries[queue_name]
            logger.debug("Evicted failed metadata resolution for %s", queue_name)

    def __contains__(self, queue_name: object) -> bool:
        return queue_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
