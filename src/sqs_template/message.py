"""Message — immutable payload plus headers, identified by a correlation id."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Message(BaseModel, Generic[T]):
    """Immutable message exchanged with a queue.

    ``id`` is the correlation identifier: batch entries and acknowledgements
    are matched by it. Two messages are equal when their ids are equal,
    regardless of payload.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    payload: T
    headers: dict[str, Any] = Field(default_factory=dict)

    def get_header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)

    def with_headers(self, headers: Mapping[str, Any]) -> Message[T]:
        """Return a copy with *headers* added (overriding existing names)."""
        return self.model_copy(update={"headers": {**self.headers, **headers}})

    def without_headers(self, *names: str) -> Message[T]:
        """Return a copy with the given header names removed."""
        return self.model_copy(
            update={
                "headers": {k: v for k, v in self.headers.items() if k not in names}
            }
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
