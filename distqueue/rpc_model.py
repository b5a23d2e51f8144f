"""Commands and responses exchanged between broker nodes."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandType(str, Enum):
    """Kinds of node-to-node commands."""

    PING = "ping"
    CREATE_QUEUE = "createQueue"
    APPEND_MESSAGE = "appendMessage"
    READ_MESSAGE = "readMessage"
    UPDATE_OFFSET = "updateOffset"

    def __str__(self) -> str:
        return self.value


def _require_object(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _get(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"{key} has the wrong type")
    return value


def _encode_bytes(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def _decode_bytes(data: dict[str, Any], key: str) -> bytes:
    value = _get(data, key, str, None)
    if value is None:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"{key} is not valid base64: {exc}") from exc


@dataclass
class Command:
    """A command sent from one node to another."""

    type: CommandType | str
    queue_id: str = ""
    queue_name: str = ""
    message_id: str = ""
    client_id: str = ""
    data: bytes = b""
    index: int = 0
    replicas: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form, leaving out empty fields."""
        result: dict[str, Any] = {"type": str(self.type)}
        if self.queue_id:
            result["queueId"] = self.queue_id
        if self.queue_name:
            result["queueName"] = self.queue_name
        if self.message_id:
            result["messageId"] = self.message_id
        if self.client_id:
            result["clientId"] = self.client_id
        if self.data:
            result["data"] = _encode_bytes(self.data)
        if self.index:
            result["index"] = self.index
        if self.replicas:
            result["replicas"] = list(self.replicas)
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Command:
        """Build a command from its wire form; unknown types are kept as text."""
        data = _require_object(data)
        raw_type = _get(data, "type", str, "")
        try:
            command_type: CommandType | str = CommandType(raw_type)
        except ValueError:
            command_type = raw_type
        replicas = _get(data, "replicas", list, [])
        if not all(isinstance(replica, str) for replica in replicas):
            raise ValueError("replicas must be strings")
        return cls(
            type=command_type,
            queue_id=_get(data, "queueId", str, ""),
            queue_name=_get(data, "queueName", str, ""),
            message_id=_get(data, "messageId", str, ""),
            client_id=_get(data, "clientId", str, ""),
            data=_decode_bytes(data, "data"),
            index=_get(data, "index", int, 0),
            replicas=list(replicas),
        )


@dataclass
class CommandResponse:
    """The answer to a command."""

    success: bool
    error: str = ""
    message_id: str = ""
    data: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form, leaving out empty optional fields."""
        result: dict[str, Any] = {"success": self.success}
        if self.error:
            result["error"] = self.error
        if self.message_id:
            result["messageId"] = self.message_id
        if self.data:
            result["data"] = _encode_bytes(self.data)
        return result

    @classmethod
    def from_dict(cls, data: Any) -> CommandResponse:
        """Build a response from its wire form."""
        data = _require_object(data)
        return cls(
            success=_get(data, "success", bool, False),
            error=_get(data, "error", str, ""),
            message_id=_get(data, "messageId", str, ""),
            data=_decode_bytes(data, "data"),
        )


@dataclass
class MessageData:
    """A message id and its payload."""

    id: str
    data: bytes


@dataclass
class QueueInfo:
    """Summary of a queue."""

    id: str
    name: str
    message_count: int = 0
    replicas: list[str] = field(default_factory=list)


@dataclass
class NodeInfo:
    """Summary of a node."""

    id: str
    address: str
    status: str