"""Queue operations across the replicas of a cluster."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .config import Config
from .message import Message
from .node_service import NodeService
from .queues import NoMoreMessagesError, Queue
from .repository import QueueRepository, RepositoryError
from .rpc_client import RpcClient, RpcError
from .rpc_model import Command, CommandResponse, CommandType

logger = logging.getLogger(__name__)

Runner = Callable[..., None]


class QueueServiceError(Exception):
    """Raised when a queue operation cannot be completed."""


def _spawn(target: Callable[..., None], *args: Any) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


class QueueService:
    """Creates queues, appends and reads messages, and keeps replicas in step."""

    def __init__(
        self,
        config: Config,
        queue_repo: QueueRepository,
        rpc_client: RpcClient,
        node_service: NodeService,
        run_in_background: Runner | None = None,
    ) -> None:
        self.config = config
        self.queue_repo = queue_repo
        self.rpc_client = rpc_client
        self.node_service = node_service
        self._run_in_background = run_in_background or _spawn

    @property
    def _self_id(self) -> str:
        return self.node_service.node_id

    def create_queue(self, name: str) -> str:
        """Create a queue here and on randomly chosen replicas; return its id."""
        queue_id = str(uuid.uuid4())
        replicas = [self._self_id]
        if self.config.replication_factor > 1:
            chosen = self.node_service.random_alive_nodes(
                self.config.replication_factor - 1
            )
            replicas.extend(node.id for node in chosen)

        try:
            self.queue_repo.create_queue(Queue(queue_id, name, list(replicas)))
        except RepositoryError as exc:
            raise QueueServiceError(f"failed to create queue locally: {exc}") from exc

        remote = [r for r in replicas if r != self._self_id]

        def create_on(node_id: str) -> str | None:
            address = self.node_service.node_address(node_id)
            if address is None:
                return f"node {node_id} not found"
            try:
                self.rpc_client.create_queue(address, queue_id, name, list(replicas))
            except RpcError as exc:
                return f"failed to create queue on node {node_id}: {exc}"
            return None

        errors: list[str] = []
        if remote:
            with ThreadPoolExecutor(max_workers=len(remote)) as pool:
                errors = [e for e in pool.map(create_on, remote) if e is not None]

        for error in errors:
            logger.error("Error creating queue replica: %s", error)
        if errors and len(errors) == len(replicas) - 1:
            raise QueueServiceError("failed to create queue on any replica nodes")
        return queue_id

    def append_message(self, queue_id: str, client_id: str, data: bytes) -> str:
        """Append data to a queue and return the new message's id."""
        try:
            queue = self.queue_repo.get_queue(queue_id)
        except RepositoryError:
            return self._forward_append(queue_id, data)

        message_id = str(uuid.uuid4())
        message = Message(message_id, queue_id, len(queue.messages), data)
        try:
            self.queue_repo.append_message(queue_id, message)
        except RepositoryError as exc:
            raise QueueServiceError(f"failed to append message: {exc}") from exc

        self._run_in_background(
            self._replicate_message, queue_id, message_id, data, list(queue.replicas)
        )
        return message_id

    def _find_remote_replica(self, queue_id: str) -> str:
        try:
            queues = self.queue_repo.list_queues()
        except RepositoryError as exc:
            raise QueueServiceError(f"failed to list queues: {exc}") from exc

        target = None
        for queue in queues:
            if queue.id == queue_id:
                target = next(
                    (
                        r
                        for r in queue.replicas
                        if self.node_service.is_node_alive(r) and r != self._self_id
                    ),
                    None,
                )
                break
        if target is None:
            raise QueueServiceError(
                f"queue {queue_id} not found or no alive replicas"
            )

        address = self.node_service.node_address(target)
        if address is None:
            raise QueueServiceError(f"node {target} not found")
        return address

    def _forward_append(self, queue_id: str, data: bytes) -> str:
        address = self._find_remote_replica(queue_id)
        message_id = str(uuid.uuid4())
        try:
            self.rpc_client.append_message(address, queue_id, message_id, data)
        except RpcError as exc:
            raise QueueServiceError(str(exc)) from exc
        return message_id

    def _remote_targets(self, replicas: list[str], what: str) -> list[str]:
        targets = []
        for replica in replicas:
            if replica == self._self_id:
                continue
            if not self.node_service.is_node_alive(replica):
                logger.info("Skipping %s to dead node %s", what, replica)
                continue
            targets.append(replica)
        return targets

    def _fan_out(self, targets: list[str], action: Callable[[str], None]) -> None:
        if not targets:
            return
        with ThreadPoolExecutor(max_workers=len(targets)) as pool:
            list(pool.map(action, targets))

    def _replicate_message(
        self, queue_id: str, message_id: str, data: bytes, replicas: list[str]
    ) -> None:
        def send(node_id: str) -> None:
            address = self.node_service.node_address(node_id)
            if address is None:
                logger.error("Node %s not found for replication", node_id)
                return
            try:
                self.rpc_client.append_message(address, queue_id, message_id, data)
            except RpcError as exc:
                logger.error("Failed to replicate message to node %s: %s", node_id, exc)

        self._fan_out(self._remote_targets(replicas, "replication"), send)

    def read_message(self, queue_id: str, client_id: str) -> Message:
        """Return the client's next message from a queue."""
        try:
            queue = self.queue_repo.get_queue(queue_id)
        except RepositoryError:
            return self._forward_read(queue_id, client_id)

        try:
            message = queue.read_message_for_client(client_id)
        except NoMoreMessagesError as exc:
            raise QueueServiceError(str(exc)) from exc

        self._run_in_background(
            self._sync_client_offset,
            queue_id,
            client_id,
            queue.client_offset(client_id),
            list(queue.replicas),
        )
        return message

    def _forward_read(self, queue_id: str, client_id: str) -> Message:
        address = self._find_remote_replica(queue_id)
        try:
            found = self.rpc_client.read_message(address, queue_id, client_id)
        except RpcError as exc:
            raise QueueServiceError(str(exc)) from exc
        return Message(id=found.id, queue_id=queue_id, index=0, data=found.data)

    def _sync_client_offset(
        self, queue_id: str, client_id: str, offset: int, replicas: list[str]
    ) -> None:
        def send(node_id: str) -> None:
            address = self.node_service.node_address(node_id)
            if address is None:
                logger.error("Node %s not found for offset sync", node_id)
                return
            try:
                self.rpc_client.update_client_offset(
                    address, queue_id, client_id, offset
                )
            except RpcError as exc:
                logger.error("Failed to sync client offset to node %s: %s", node_id, exc)

        self._fan_out(self._remote_targets(replicas, "client offset sync"), send)

    def queue_info(self, queue_id: str) -> dict[str, Any]:
        """Return a summary of a locally stored queue."""
        try:
            queue = self.queue_repo.get_queue(queue_id)
        except RepositoryError as exc:
            raise QueueServiceError(str(exc)) from exc
        return {
            "id": queue.id,
            "name": queue.name,
            "messageCount": len(queue.messages),
            "replicas": list(queue.replicas),
            "createdAt": queue.created_at,
            "updatedAt": queue.last_updated_at,
        }

    def node_status(self) -> dict[str, Any]:
        """Return the node summary with the number of local queues added."""
        status = self.node_service.status()
        try:
            queue_count = len(self.queue_repo.list_queues())
        except RepositoryError:
            queue_count = 0
        status["queueCount"] = queue_count
        return status

    def process_command(self, cmd: Command) -> CommandResponse:
        """Carry out a command sent by another node."""
        resp = CommandResponse(success=True)
        try:
            if cmd.type == CommandType.PING:
                pass
            elif cmd.type == CommandType.CREATE_QUEUE:
                self.queue_repo.create_queue(
                    Queue(cmd.queue_id, cmd.queue_name, list(cmd.replicas))
                )
            elif cmd.type == CommandType.APPEND_MESSAGE:
                self.queue_repo.append_message(
                    cmd.queue_id,
                    Message(cmd.message_id, cmd.queue_id, cmd.index, cmd.data),
                )
            elif cmd.type == CommandType.READ_MESSAGE:
                queue = self.queue_repo.get_queue(cmd.queue_id)
                message = queue.read_message_for_client(cmd.client_id)
                resp.message_id = message.id
                resp.data = message.data
            elif cmd.type == CommandType.UPDATE_OFFSET:
                self.queue_repo.update_client_offset(
                    cmd.queue_id, cmd.client_id, cmd.index
                )
            else:
                resp.success = False
                resp.error = "Unknown command type"
        except (RepositoryError, NoMoreMessagesError) as exc:
            resp.success = False
            resp.error = str(exc)
        return resp