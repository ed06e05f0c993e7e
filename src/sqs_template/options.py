"""Immutable option sets for send, receive and template configuration.

Every option model validates on construction and every ``with_*`` step
returns a new, re-validated instance, so invalid values surface as
:class:`~sqs_template.exceptions.ValidationError` at the point of assignment,
never at the network call. Ordered (FIFO) queues are described by an optional
``fifo`` sub-record instead of a separate option type.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, TypeVar
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

MAX_MESSAGES_PER_REQUEST = 10
MAX_WAIT_TIME = timedelta(seconds=20)
MAX_VISIBILITY_TIMEOUT = timedelta(hours=12)
MAX_DELAY_SECONDS = 900
MAX_FIFO_ID_LENGTH = 128

_O = TypeVar("_O", bound="_Options")


class AcknowledgementMode(str, enum.Enum):
    """What the template does with messages after a successful receive."""

    ACKNOWLEDGE = "acknowledge"
    MANUAL = "manual"


class SendBatchFailureHandling(str, enum.Enum):
    """Whether a batch with failed entries raises or is returned."""

    THROW = "throw"
    DO_NOT_THROW = "do_not_throw"


class QueueNotFoundStrategy(str, enum.Enum):
    """What to do when a queue name cannot be resolved."""

    CREATE = "create"
    FAIL = "fail"


def _errors_from(exc: PydanticValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        key = ".".join(str(part) for part in err["loc"]) or "__root__"
        errors.setdefault(key, []).append(err["msg"])
    return errors


def _require_text(value: str | None, name: str) -> str | None:
    if value is not None and not value.strip():
        raise ValueError(f"{name} must have text")
    return value


def _check_headers(headers: dict[str, Any]) -> dict[str, Any]:
    for name, value in headers.items():
        if not isinstance(name, str) or not name.strip():
            raise ValueError("header names must have text")
        if value is None:
            raise ValueError(f"header {name!r} must not be None")
    return headers


def _check_range(
    value: timedelta | None, name: str, upper: timedelta
) -> timedelta | None:
    if value is not None and not timedelta(0) <= value <= upper:
        raise ValueError(
            f"{name} must be between 0 and {int(upper.total_seconds())} seconds"
        )
    return value


class _Options(BaseModel):
    """Frozen base translating pydantic failures into ValidationError."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError(_errors_from(e)) from e

    def _replace(self: _O, **changes: Any) -> _O:
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)


# ── Send ─────────────────────────────────────────────────────────────


class FifoSendOptions(_Options):
    """Ordering group and deduplication ids for a FIFO send.

    Missing ids are generated per call by the template.
    """

    message_group_id: str | None = Field(default=None, max_length=MAX_FIFO_ID_LENGTH)
    message_deduplication_id: str | None = Field(
        default=None, max_length=MAX_FIFO_ID_LENGTH
    )

    @field_validator("message_group_id", "message_deduplication_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, UUID) else value

    @field_validator("message_group_id", "message_deduplication_id")
    @classmethod
    def _has_text(cls, value: str | None) -> str | None:
        return _require_text(value, "FIFO id")


class SendOptions(_Options):
    """Options for a single send.

    Usage::

        options = (
            SendOptions()
            .to_queue("orders")
            .with_payload({"id": 1})
            .with_header("tenant", "acme")
            .with_delay(5)
        )
    """

    queue: str | None = None
    payload: Any = None
    headers: dict[str, Any] = Field(default_factory=dict)
    delay_seconds: int | None = Field(default=None, ge=0, le=MAX_DELAY_SECONDS)
    fifo: FifoSendOptions | None = None

    @field_validator("queue")
    @classmethod
    def _queue_has_text(cls, value: str | None) -> str | None:
        return _require_text(value, "queue")

    @field_validator("headers")
    @classmethod
    def _valid_headers(cls, value: dict[str, Any]) -> dict[str, Any]:
        return _check_headers(value)

    def to_queue(self, queue: str) -> SendOptions:
        if queue is None:
            raise ValidationError({"queue": ["queue must not be None"]})
        return self._replace(queue=queue)

    def with_payload(self, payload: Any) -> SendOptions:
        if payload is None:
            raise ValidationError({"payload": ["payload must not be None"]})
        return self._replace(payload=payload)

    def with_header(self, name: str, value: Any) -> SendOptions:
        return self._replace(headers={**self.headers, name: value})

    def with_headers(self, headers: Mapping[str, Any]) -> SendOptions:
        if headers is None:
            raise ValidationError({"headers": ["headers must not be None"]})
        return self._replace(headers={**self.headers, **headers})

    def with_delay(self, delay_seconds: int) -> SendOptions:
        if delay_seconds is None:
            raise ValidationError({"delay_seconds": ["delay must not be None"]})
        return self._replace(delay_seconds=delay_seconds)

    def as_fifo(
        self,
        message_group_id: str | UUID | None = None,
        message_deduplication_id: str | UUID | None = None,
    ) -> SendOptions:
        """Mark the send as ordered; ids left as None are generated per call."""
        return self._replace(
            fifo=FifoSendOptions(
                message_group_id=message_group_id,
                message_deduplication_id=message_deduplication_id,
            )
        )

    def with_message_group_id(self, message_group_id: str | UUID) -> SendOptions:
        if message_group_id is None:
            raise ValidationError(
                {"message_group_id": ["message_group_id must not be None"]}
            )
        fifo = self.fifo or FifoSendOptions()
        return self._replace(fifo=fifo._replace(message_group_id=message_group_id))

    def with_deduplication_id(
        self, message_deduplication_id: str | UUID
    ) -> SendOptions:
        if message_deduplication_id is None:
            raise ValidationError(
                {
                    "message_deduplication_id": [
                        "message_deduplication_id must not be None"
                    ]
                }
            )
        fifo = self.fifo or FifoSendOptions()
        return self._replace(
            fifo=fifo._replace(message_deduplication_id=message_deduplication_id)
        )

    @property
    def is_fifo(self) -> bool:
        return self.fifo is not None


# ── Receive ──────────────────────────────────────────────────────────


class FifoReceiveOptions(_Options):
    """Receive-request attempt id for FIFO polling.

    Repeated polls with the same id are treated by SQS as the same attempt.
    """

    receive_request_attempt_id: str | None = Field(
        default=None, max_length=MAX_FIFO_ID_LENGTH
    )

    @field_validator("receive_request_attempt_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, UUID) else value

    @field_validator("receive_request_attempt_id")
    @classmethod
    def _has_text(cls, value: str | None) -> str | None:
        return _require_text(value, "receive_request_attempt_id")


class ReceiveOptions(_Options):
    """Options for a receive call.

    Unset values fall back to the template defaults.
    """

    queue: str | None = None
    poll_timeout: timedelta | None = None
    visibility_timeout: timedelta | None = None
    max_number_of_messages: int | None = Field(
        default=None, ge=1, le=MAX_MESSAGES_PER_REQUEST
    )
    payload_type: Any = None
    additional_headers: dict[str, Any] = Field(default_factory=dict)
    fifo: FifoReceiveOptions | None = None

    @field_validator("queue")
    @classmethod
    def _queue_has_text(cls, value: str | None) -> str | None:
        return _require_text(value, "queue")

    @field_validator("poll_timeout")
    @classmethod
    def _poll_timeout_in_range(cls, value: timedelta | None) -> timedelta | None:
        return _check_range(value, "poll_timeout", MAX_WAIT_TIME)

    @field_validator("visibility_timeout")
    @classmethod
    def _visibility_in_range(cls, value: timedelta | None) -> timedelta | None:
        return _check_range(value, "visibility_timeout", MAX_VISIBILITY_TIMEOUT)

    @field_validator("additional_headers")
    @classmethod
    def _valid_headers(cls, value: dict[str, Any]) -> dict[str, Any]:
        return _check_headers(value)

    def from_queue(self, queue: str) -> ReceiveOptions:
        if queue is None:
            raise ValidationError({"queue": ["queue must not be None"]})
        return self._replace(queue=queue)

    def with_poll_timeout(self, poll_timeout: timedelta | float) -> ReceiveOptions:
        if poll_timeout is None:
            raise ValidationError({"poll_timeout": ["poll_timeout must not be None"]})
        return self._replace(poll_timeout=poll_timeout)

    def with_visibility_timeout(
        self, visibility_timeout: timedelta | float
    ) -> ReceiveOptions:
        if visibility_timeout is None:
            raise ValidationError(
                {"visibility_timeout": ["visibility_timeout must not be None"]}
            )
        return self._replace(visibility_timeout=visibility_timeout)

    def with_max_number_of_messages(
        self, max_number_of_messages: int
    ) -> ReceiveOptions:
        if max_number_of_messages is None:
            raise ValidationError(
                {"max_number_of_messages": ["max_number_of_messages must not be None"]}
            )
        return self._replace(max_number_of_messages=max_number_of_messages)

    def with_payload_type(self, payload_type: type[Any]) -> ReceiveOptions:
        if payload_type is None:
            raise ValidationError({"payload_type": ["payload_type must not be None"]})
        return self._replace(payload_type=payload_type)

    def with_additional_header(self, name: str, value: Any) -> ReceiveOptions:
        return self._replace(
            additional_headers={**self.additional_headers, name: value}
        )

    def with_additional_headers(self, headers: Mapping[str, Any]) -> ReceiveOptions:
        if headers is None:
            raise ValidationError(
                {"additional_headers": ["additional_headers must not be None"]}
            )
        return self._replace(
            additional_headers={**self.additional_headers, **headers}
        )

    def as_fifo(
        self, receive_request_attempt_id: str | UUID | None = None
    ) -> ReceiveOptions:
        """Mark the receive as FIFO; a missing attempt id is generated per call."""
        return self._replace(
            fifo=FifoReceiveOptions(
                receive_request_attempt_id=receive_request_attempt_id
            )
        )

    def with_receive_request_attempt_id(
        self, receive_request_attempt_id: str | UUID
    ) -> ReceiveOptions:
        if receive_request_attempt_id is None:
            raise ValidationError(
                {
                    "receive_request_attempt_id": [
                        "receive_request_attempt_id must not be None"
                    ]
                }
            )
        return self.as_fifo(receive_request_attempt_id)

    @property
    def is_fifo(self) -> bool:
        return self.fifo is not None


# ── Template ─────────────────────────────────────────────────────────


class TemplateOptions(_Options):
    """Template-wide defaults and broker policies."""

    default_queue: str | None = None
    default_poll_timeout: timedelta = timedelta(seconds=10)
    default_max_number_of_messages: int = Field(
        default=MAX_MESSAGES_PER_REQUEST, ge=1, le=MAX_MESSAGES_PER_REQUEST
    )
    default_payload_type: Any = None
    acknowledgement_mode: AcknowledgementMode = AcknowledgementMode.ACKNOWLEDGE
    send_batch_failure_handling: SendBatchFailureHandling = (
        SendBatchFailureHandling.DO_NOT_THROW
    )
    queue_not_found_strategy: QueueNotFoundStrategy = QueueNotFoundStrategy.CREATE
    queue_attribute_names: tuple[str, ...] = ()
    message_attribute_names: tuple[str, ...] = ("All",)
    message_system_attribute_names: tuple[str, ...] = ("All",)

    @field_validator("default_queue")
    @classmethod
    def _queue_has_text(cls, value: str | None) -> str | None:
        return _require_text(value, "default_queue")

    @field_validator("default_poll_timeout")
    @classmethod
    def _poll_timeout_in_range(cls, value: timedelta) -> timedelta:
        _check_range(value, "default_poll_timeout", MAX_WAIT_TIME)
        return value
