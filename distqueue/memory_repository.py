"""Queue repository kept in process memory."""

from __future__ import annotations

import threading

from .clients import ClientRegistry
from .message import Message
from .queues import Queue
from .repository import (
    MessageNotFoundError,
    QueueExistsError,
    QueueNotFoundError,
    QueueRepository,
)


class MemoryQueueRepository(QueueRepository):
    """Holds live queue objects in a dictionary."""

    def __init__(self) -> None:
        self._queues: dict[str, Queue] = {}
        self._clients = ClientRegistry()
        self._lock = threading.RLock()

    def _queue(self, queue_id: str) -> Queue:
        queue = self._queues.get(queue_id)
        if queue is None:
            raise QueueNotFoundError(f"queue with ID {queue_id} not found")
        return queue

    def create_queue(self, queue: Queue) -> None:
        with self._lock:
            if queue.id in self._queues:
                raise QueueExistsError(f"queue with ID {queue.id} already exists")
            self._queues[queue.id] = queue

    def get_queue(self, queue_id: str) -> Queue:
        with self._lock:
            return self._queue(queue_id)

    def list_queues(self) -> list[Queue]:
        with self._lock:
            return list(self._queues.values())

    def append_message(self, queue_id: str, message: Message) -> None:
        with self._lock:
            self._queue(queue_id).append_message(message)

    def get_message(self, queue_id: str, message_id: str) -> Message:
        with self._lock:
            queue = self._queue(queue_id)
            for message in queue.messages:
                if message.id == message_id:
                    return message
            raise MessageNotFoundError(
                f"message with ID {message_id} not found in queue {queue_id}"
            )

    def get_messages(self, queue_id: str) -> list[Message]:
        with self._lock:
            return self._queue(queue_id).messages_from(0)

    def get_messages_from(self, queue_id: str, from_index: int) -> list[Message]:
        with self._lock:
            return self._queue(queue_id).messages_from(from_index)

    def update_client_offset(self, queue_id: str, client_id: str, offset: int) -> None:
        with self._lock:
            queue = self._queue(queue_id)
            self._clients.get_or_create(client_id)
            queue.set_client_offset(client_id, offset)

    def get_client_offset(self, queue_id: str, client_id: str) -> int:
        with self._lock:
            return self._queue(queue_id).client_offset(client_id)

    def update_queue_replicas(self, queue_id: str, replicas: list[str]) -> None:
        with self._lock:
            self._queue(queue_id).replicas = list(replicas)

    def get_queues_by_replica(self, node_id: str) -> list[Queue]:
        with self._lock:
            return [q for q in self._queues.values() if q.has_replica(node_id)]