"""The storage interface for queues and the errors it raises."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .message import Message
from .queues import Queue


class RepositoryError(Exception):
    """Raised when a repository operation fails."""


class QueueNotFoundError(RepositoryError, LookupError):
    """Raised when no queue has the requested id."""


class QueueExistsError(RepositoryError):
    """Raised when creating a queue whose id is already taken."""


class MessageNotFoundError(RepositoryError, LookupError):
    """Raised when a queue has no message with the requested id."""


class QueueRepository(ABC):
    """Storage for queues, their messages and client offsets."""

    @abstractmethod
    def create_queue(self, queue: Queue) -> None:
        """Store a new queue."""

    @abstractmethod
    def get_queue(self, queue_id: str) -> Queue:
        """Return the queue with this id."""

    @abstractmethod
    def list_queues(self) -> list[Queue]:
        """Return every stored queue."""

    @abstractmethod
    def append_message(self, queue_id: str, message: Message) -> None:
        """Add a message to a queue."""

    @abstractmethod
    def get_message(self, queue_id: str, message_id: str) -> Message:
        """Return one message of a queue."""

    @abstractmethod
    def get_messages(self, queue_id: str) -> list[Message]:
        """Return all messages of a queue."""

    @abstractmethod
    def get_messages_from(self, queue_id: str, from_index: int) -> list[Message]:
        """Return the messages of a queue from an index on."""

    @abstractmethod
    def update_client_offset(self, queue_id: str, client_id: str, offset: int) -> None:
        """Set a client's read offset in a queue."""

    @abstractmethod
    def get_client_offset(self, queue_id: str, client_id: str) -> int:
        """Return a client's read offset in a queue."""

    @abstractmethod
    def update_queue_replicas(self, queue_id: str, replicas: list[str]) -> None:
        """Replace the replica list of a queue."""

    @abstractmethod
    def get_queues_by_replica(self, node_id: str) -> list[Queue]:
        """Return the queues replicated on a node."""