"""Queue repository persisted as JSON files."""

from __future__ import annotations

import threading
from typing import Any

from .clients import Client
from .filestorage import FileStorage, StorageError, StoredFileNotFoundError
from .message import Message
from .queues import Queue
from .repository import (
    MessageNotFoundError,
    QueueExistsError,
    QueueNotFoundError,
    QueueRepository,
    RepositoryError,
)


class FileQueueRepository(QueueRepository):
    """Stores each queue, with its messages and offsets, in its own file.

    Queues returned are fresh copies; changes to them are not saved.
    """

    def __init__(self, queue_storage: FileStorage, client_storage: FileStorage) -> None:
        self._queues = queue_storage
        self._clients = client_storage
        self._lock = threading.RLock()

    def _load(self, queue_id: str, context: str) -> Queue:
        try:
            raw = self._queues.load(queue_id)
        except StoredFileNotFoundError as exc:
            raise QueueNotFoundError(f"{context}: {exc}") from exc
        except StorageError as exc:
            raise RepositoryError(f"{context}: {exc}") from exc
        return self._decode(raw, context)

    @staticmethod
    def _decode(raw: Any, context: str) -> Queue:
        if not isinstance(raw, dict):
            raise RepositoryError(f"{context}: stored queue is not an object")
        try:
            return Queue.from_dict(raw)
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            raise RepositoryError(f"{context}: {exc}") from exc

    def _save(self, queue: Queue) -> None:
        try:
            self._queues.save(queue.id, queue.to_dict())
        except StorageError as exc:
            raise RepositoryError(f"failed to save queue: {exc}") from exc

    def _ensure_client(self, client_id: str) -> None:
        try:
            self._clients.load(client_id)
        except StoredFileNotFoundError:
            client = Client(client_id)
            try:
                self._clients.save(
                    client_id,
                    {"ID": client.id, "LastActivity": client.last_activity.isoformat()},
                )
            except StorageError as exc:
                raise RepositoryError(f"failed to save client: {exc}") from exc
        except StorageError as exc:
            raise RepositoryError(f"failed to load client[{client_id}]: {exc}") from exc

    def create_queue(self, queue: Queue) -> None:
        with self._lock:
            try:
                self._queues.load(queue.id)
            except StoredFileNotFoundError:
                pass
            except StorageError as exc:
                raise RepositoryError(f"failed to check if queue exists: {exc}") from exc
            else:
                raise QueueExistsError(f"queue with ID {queue.id} already exists")
            self._save(queue)

    def get_queue(self, queue_id: str) -> Queue:
        with self._lock:
            return self._load(queue_id, "failed to retrieve queue")

    def list_queues(self) -> list[Queue]:
        with self._lock:
            try:
                ids = self._queues.ids()
            except StorageError as exc:
                raise RepositoryError(f"failed to list queues: {exc}") from exc
            queues = []
            for queue_id in ids:
                try:
                    queues.append(self._load(queue_id, "failed to load queue"))
                except RepositoryError:
                    continue
            return queues

    def append_message(self, queue_id: str, message: Message) -> None:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            queue.append_message(message)
            self._save(queue)

    def get_message(self, queue_id: str, message_id: str) -> Message:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            for message in queue.messages:
                if message.id == message_id:
                    return message
            raise MessageNotFoundError("message not found")

    def get_messages(self, queue_id: str) -> list[Message]:
        with self._lock:
            return self._load(queue_id, "failed to load queue").messages_from(0)

    def get_messages_from(self, queue_id: str, from_index: int) -> list[Message]:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            return queue.messages_from(from_index)

    def update_client_offset(self, queue_id: str, client_id: str, offset: int) -> None:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            try:
                self._clients.load(client_id)
            except StoredFileNotFoundError:
                pass
            except StorageError as exc:
                raise RepositoryError(
                    f"failed to load client[{client_id}]: {exc}"
                ) from exc
            queue.set_client_offset(client_id, offset)
            self._save(queue)

    def get_client_offset(self, queue_id: str, client_id: str) -> int:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            self._ensure_client(client_id)
            return queue.client_offset(client_id)

    def update_queue_replicas(self, queue_id: str, replicas: list[str]) -> None:
        with self._lock:
            queue = self._load(queue_id, "failed to load queue")
            queue.replicas = list(replicas)
            self._save(queue)

    def get_queues_by_replica(self, node_id: str) -> list[Queue]:
        with self._lock:
            return [q for q in self.list_queues() if node_id in q.replicas]