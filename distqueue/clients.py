"""Clients connected to the queue system."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Client:
    """A client that reads from queues."""

    id: str
    last_activity: datetime = field(default_factory=_now)

    def touch(self) -> None:
        """Record activity now."""
        self.last_activity = _now()


class ClientRegistry:
    """Thread-safe set of known clients."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._lock = threading.Lock()

    def get_or_create(self, client_id: str) -> Client:
        """Return the client with this id, registering it if new."""
        with self._lock:
            client = self._clients.get(client_id)
            if client is None:
                client = Client(client_id)
                self._clients[client_id] = client
            return client

    def get(self, client_id: str) -> Client | None:
        """Return the client with this id, or None."""
        with self._lock:
            return self._clients.get(client_id)

    def remove(self, client_id: str) -> None:
        """Forget a client; unknown ids are ignored."""
        with self._lock:
            self._clients.pop(client_id, None)

    def cleanup_inactive(self, threshold: float) -> None:
        """Drop clients idle for longer than threshold seconds."""
        with self._lock:
            now = _now()
            stale = [
                client_id
                for client_id, client in self._clients.items()
                if (now - client.last_activity).total_seconds() > threshold
            ]
            for client_id in stale:
                del self._clients[client_id]