"""PayloadConverter — message bodies to and from the SQS string body."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MessageConversionError


def _json_serializer(obj: Any) -> Any:
    """Serialize datetime and other non-JSON types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class PayloadConverter:
    """Convert payloads to SQS bodies and back.

    Outbound: ``str`` is sent as-is, ``bytes`` decoded as UTF-8, pydantic
    models dumped as JSON, anything else encoded with ``json.dumps``.
    Inbound: without a payload type the raw body string is returned;
    otherwise the body is validated into the type through pydantic.
    """

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def to_body(self, payload: Any) -> str:
        if isinstance(payload, str):
            return payload
        if isinstance(payload, bytes):
            try:
                return payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MessageConversionError(str(e)) from e
        if isinstance(payload, BaseModel):
            return payload.model_dump_json()
        try:
            return json.dumps(payload, default=_json_serializer)
        except (TypeError, ValueError) as e:
            raise MessageConversionError(str(e)) from e

    def from_body(self, body: str, payload_type: Any = None) -> Any:
        if payload_type is None or payload_type is str:
            return body
        if payload_type is bytes:
            return body.encode("utf-8")
        try:
            if isinstance(payload_type, type) and issubclass(payload_type, BaseModel):
                return payload_type.model_validate_json(body)
            return self._adapter(payload_type).validate_json(body)
        except PydanticValidationError as e:
            raise MessageConversionError(
                f"Cannot convert body to {payload_type!r}: {e}"
            ) from e

    def _adapter(self, payload_type: Any) -> TypeAdapter[Any]:
        adapter = self._adapters.get(payload_type)
        if adapter is None:
            adapter = TypeAdapter(payload_type)
            self._adapters[payload_type] = adapter
        return adapter
