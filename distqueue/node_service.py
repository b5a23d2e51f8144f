"""Cluster membership, health checking and re-replication."""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Any

from .config import Config
from .nodes import Node, NodeRegistry, NodeStatus
from .repository import QueueRepository, RepositoryError
from .rpc_client import RpcClient, RpcError

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


class NodeService:
    """Tracks the nodes of the cluster and reacts to their failure."""

    def __init__(
        self,
        config: Config,
        queue_repo: QueueRepository,
        rpc_client: RpcClient,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.queue_repo = queue_repo
        self.rpc_client = rpc_client
        self.registry = NodeRegistry()
        self._rng = rng or random.Random()
        self._started = time.monotonic()

        self_address = f"localhost:{config.rpc_port}"
        self.registry.register_node(config.node_id, self_address)
        for position, address in enumerate(config.nodes):
            if address == self_address:
                continue
            node_id = "node" + chr(ord("1") + position)
            if node_id == config.node_id:
                node_id = "node" + chr(ord("2") + position)
            self.registry.register_node(node_id, address)

    @property
    def node_id(self) -> str:
        """The id of this node."""
        return self.config.node_id

    def run_health_checks(
        self, interval: float, stop_event: threading.Event | None = None
    ) -> None:
        """Check node health every interval seconds until stop_event is set."""
        stop_event = stop_event or threading.Event()
        while not stop_event.wait(interval):
            self.check_node_health()

    def check_node_health(self) -> list[str]:
        """Ping every other alive node; return the ids found unreachable."""
        failed = []
        for node in self.registry.alive_nodes():
            if node.id == self.node_id:
                continue
            try:
                self.rpc_client.ping(node.address)
            except RpcError as exc:
                logger.warning(
                    "Node %s (%s) is unreachable: %s", node.id, node.address, exc
                )
                self.registry.update_node_status(node.id, NodeStatus.DEAD)
                threading.Thread(
                    target=self.handle_node_failure, args=(node.id,), daemon=True
                ).start()
                failed.append(node.id)
            else:
                self.registry.update_node_status(node.id, NodeStatus.ALIVE)
        return failed

    def handle_node_failure(self, node_id: str) -> None:
        """Move every queue replicated on a failed node to another node."""
        try:
            queues = self.queue_repo.get_queues_by_replica(node_id)
        except RepositoryError as exc:
            logger.error("Failed to get queues by replica for node %s: %s", node_id, exc)
            return

        for queue in queues:
            replacement = self.find_new_replica_node(queue.replicas)
            if replacement is None:
                logger.warning(
                    "No available nodes to replace failed node %s for queue %s",
                    node_id,
                    queue.id,
                )
                continue
            new_replicas = [r for r in queue.replicas if r != node_id]
            new_replicas.append(replacement)
            try:
                self.queue_repo.update_queue_replicas(queue.id, new_replicas)
            except RepositoryError as exc:
                logger.error("Failed to update replicas for queue %s: %s", queue.id, exc)
                continue
            self.sync_queue_to_new_replica(queue.id, replacement)

    def find_new_replica_node(self, current_replicas: list[str]) -> str | None:
        """Pick a random alive node that is not yet a replica, or None."""
        taken = set(current_replicas)
        candidates = [n.id for n in self.registry.alive_nodes() if n.id not in taken]
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def sync_queue_to_new_replica(self, queue_id: str, node_id: str) -> None:
        """Create a queue on a node and send it every message."""
        try:
            queue = self.queue_repo.get_queue(queue_id)
        except RepositoryError as exc:
            logger.error("Failed to get queue %s for syncing: %s", queue_id, exc)
            return

        node = self.registry.get_node(node_id)
        if node is None:
            logger.error("Node %s not found for syncing queue %s", node_id, queue_id)
            return

        try:
            self.rpc_client.create_queue(
                node.address, queue.id, queue.name, list(queue.replicas)
            )
        except RpcError as exc:
            logger.error("Failed to create queue %s on node %s: %s", queue_id, node_id, exc)
            return

        for message in queue.messages:
            try:
                self.rpc_client.append_message(
                    node.address, message.queue_id, message.id, message.data
                )
            except RpcError as exc:
                logger.error(
                    "Failed to sync message %s to node %s: %s", message.id, node_id, exc
                )
        logger.info("Queue %s successfully synced to node %s", queue_id, node_id)

    def random_alive_nodes(self, count: int) -> list[Node]:
        """Return up to count alive nodes other than this one, in random order."""
        if count < 0:
            raise ValueError(f"count must not be negative: {count}")
        others = [n for n in self.registry.alive_nodes() if n.id != self.node_id]
        self._rng.shuffle(others)
        return others[:count]

    def status(self) -> dict[str, Any]:
        """Return a summary of this node and the cluster."""
        alive = self.registry.alive_node_count()
        total = self.registry.node_count()
        return {
            "nodeId": self.node_id,
            "aliveNodes": alive,
            "totalNodes": total,
            "deadNodes": total - alive,
            "uptimeHours": int((time.monotonic() - self._started) // 3600),
            "version": VERSION,
        }

    def node_address(self, node_id: str) -> str | None:
        """Return a node's address, or None if unknown."""
        node = self.registry.get_node(node_id)
        return node.address if node is not None else None

    def is_node_alive(self, node_id: str) -> bool:
        """Tell whether a node is currently marked alive."""
        return self.registry.node_status(node_id) is NodeStatus.ALIVE