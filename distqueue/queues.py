"""A replicated queue with per-client read offsets."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .message import Message, _format_time, _parse_time


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NoMoreMessagesError(LookupError):
    """Raised when a client has read every message in a queue."""


@dataclass
class Queue:
    """An ordered list of messages replicated to a set of nodes."""

    id: str
    name: str
    replicas: list[str] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    client_offsets: dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    last_updated_at: datetime | None = None
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.replicas is None:
            self.replicas = []
        if self.last_updated_at is None:
            self.last_updated_at = self.created_at

    def append_message(self, message: Message) -> None:
        """Add a message to the end of the queue."""
        with self._lock:
            self.messages.append(message)
            self.last_updated_at = _now()

    def read_message_for_client(self, client_id: str) -> Message:
        """Return the client's next message and advance its offset."""
        with self._lock:
            offset = self.client_offsets.setdefault(client_id, 0)
            if offset >= len(self.messages):
                raise NoMoreMessagesError(
                    f"no more messages in queue for client {client_id}"
                )
            self.client_offsets[client_id] = offset + 1
            return self.messages[offset]

    def message_count(self) -> int:
        """Return the number of messages."""
        with self._lock:
            return len(self.messages)

    def client_offset(self, client_id: str) -> int:
        """Return the client's read offset, 0 if it has never read."""
        with self._lock:
            return self.client_offsets.get(client_id, 0)

    def set_client_offset(self, client_id: str, offset: int) -> None:
        """Set the client's read offset."""
        with self._lock:
            self.client_offsets[client_id] = offset

    def has_replica(self, node_id: str) -> bool:
        """Tell whether a node holds a replica of this queue."""
        with self._lock:
            return node_id in self.replicas

    def add_replica(self, node_id: str) -> None:
        """Add a replica node unless already present."""
        with self._lock:
            if node_id in self.replicas:
                return
            self.replicas.append(node_id)
            self.last_updated_at = _now()

    def remove_replica(self, node_id: str) -> None:
        """Remove a replica node if present."""
        with self._lock:
            if node_id in self.replicas:
                self.replicas.remove(node_id)
                self.last_updated_at = _now()

    def messages_from(self, start_index: int) -> list[Message]:
        """Return a copy of the messages from start_index on."""
        if start_index < 0:
            raise ValueError(f"start index must not be negative: {start_index}")
        with self._lock:
            return list(self.messages[start_index:])

    def to_dict(self) -> dict[str, Any]:
        """Return the stored JSON form of this queue."""
        with self._lock:
            return {
                "ID": self.id,
                "Name": self.name,
                "Replicas": list(self.replicas),
                "Messages": [m.to_dict() for m in self.messages],
                "ClientOffsets": dict(self.client_offsets),
                "CreatedAt": _format_time(self.created_at),
                "LastUpdatedAt": _format_time(self.last_updated_at),
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Queue:
        """Build a queue from its stored JSON form."""
        created = data.get("CreatedAt")
        updated = data.get("LastUpdatedAt")
        created_at = _parse_time(created) if created else _now()
        return cls(
            id=data.get("ID") or "",
            name=data.get("Name") or "",
            replicas=list(data.get("Replicas") or []),
            messages=[Message.from_dict(m) for m in data.get("Messages") or []],
            client_offsets={
                str(k): int(v) for k, v in (data.get("ClientOffsets") or {}).items()
            },
            created_at=created_at,
            last_updated_at=_parse_time(updated) if updated else created_at,
        )