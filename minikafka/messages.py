"""Decoding of messages sent by producers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_USIZE_MAX = 2**64 - 1


class MessageFormatError(ValueError):
    """Raised when a producer's payload cannot be decoded."""


@dataclass(frozen=True)
class IncomingMessage:
    """A message from a producer, optionally aimed at one partition."""

    message: str
    partition_id: int | None = None


def _partition_id(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MessageFormatError(f"partitionId must be a non-negative integer, got {value!r}")
    if not 0 <= value <= _USIZE_MAX:
        raise MessageFormatError(f"partitionId out of range: {value}")
    return value


def _message_text(value: Any) -> str:
    if not isinstance(value, str):
        raise MessageFormatError(f"message must be a string, got {value!r}")
    return value


def parse_message(data: bytes | str) -> IncomingMessage:
    """Decode a JSON payload of the form ``{"partitionId": n, "message": "..."}``.

    ``partitionId`` may be absent or null. A two-element array
    ``[partitionId, message]`` is accepted as well.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        document = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MessageFormatError(f"invalid JSON: {exc}") from exc

    if isinstance(document, dict):
        if "message" not in document:
            raise MessageFormatError("missing field 'message'")
        return IncomingMessage(
            message=_message_text(document["message"]),
            partition_id=_partition_id(document.get("partitionId")),
        )
    if isinstance(document, list):
        if len(document) != 2:
            raise MessageFormatError(f"expected 2 elements, got {len(document)}")
        partition, message = document
        return IncomingMessage(
            message=_message_text(message),
            partition_id=_partition_id(partition),
        )
    raise MessageFormatError("expected a JSON object")