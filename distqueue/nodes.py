"""Broker nodes in the cluster and their registry."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class NodeStatus(str, Enum):
    """Reachability of a node."""

    ALIVE = "alive"
    DEAD = "dead"
    SUSPECT = "suspect"


@dataclass
class Node:
    """A broker node."""

    id: str
    address: str
    status: NodeStatus = NodeStatus.ALIVE
    last_seen: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NodeRegistry:
    """Thread-safe registry of cluster nodes."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._lock = threading.Lock()

    def register_node(self, node_id: str, address: str) -> None:
        """Add or replace a node, marking it alive."""
        with self._lock:
            self._nodes[node_id] = Node(node_id, address)

    def update_node_status(self, node_id: str, status: NodeStatus) -> None:
        """Set a known node's status; unknown ids are ignored."""
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                return
            node.status = status
            if status is NodeStatus.ALIVE:
                node.last_seen = datetime.now(timezone.utc)

    def alive_nodes(self) -> list[Node]:
        """Return every node currently marked alive."""
        with self._lock:
            return [n for n in self._nodes.values() if n.status is NodeStatus.ALIVE]

    def get_node(self, node_id: str) -> Node | None:
        """Return the node with this id, or None."""
        with self._lock:
            return self._nodes.get(node_id)

    def node_status(self, node_id: str) -> NodeStatus:
        """Return a node's status; unknown nodes count as dead."""
        with self._lock:
            node = self._nodes.get(node_id)
            return node.status if node is not None else NodeStatus.DEAD

    def node_count(self) -> int:
        """Return the number of registered nodes."""
        with self._lock:
            return len(self._nodes)

    def alive_node_count(self) -> int:
        """Return the number of alive nodes."""
        with self._lock:
            return sum(1 for n in self._nodes.values() if n.status is NodeStatus.ALIVE)