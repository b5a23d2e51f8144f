"""Broker configuration loading."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

DEFAULT_HTTP_PORT = "8000"
DEFAULT_RPC_PORT = "8001"
DEFAULT_HEALTH_CHECK_INTERVAL = 10.0
DEFAULT_NODE_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 2.0

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(ValueError):
    """Raised when a configuration file cannot be loaded or is invalid."""


@dataclass
class Config:
    """Broker configuration; durations are in seconds."""

    node_id: str
    http_port: str = DEFAULT_HTTP_PORT
    rpc_port: str = DEFAULT_RPC_PORT
    nodes: list[str] = field(default_factory=list)
    replication_factor: int = 1
    health_check_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL
    node_timeout: float = DEFAULT_NODE_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT


def parse_duration(text: str) -> float:
    """Parse a duration such as "1h30m" or "250ms" into seconds."""
    rest = text
    sign = 1.0
    if rest[:1] in ("+", "-") and rest:
        if rest[0] == "-":
            sign = -1.0
        rest = rest[1:]
    if rest == "0":
        return 0.0
    if not rest:
        raise ValueError(f'invalid duration "{text}"')
    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None:
            raise ValueError(f'invalid duration "{text}"')
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def _field(raw: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"failed to parse config file: {key} has the wrong type")
    return value


def _duration(raw: dict[str, Any], key: str, default: float) -> float:
    text = _field(raw, key, str, "")
    try:
        return parse_duration(text)
    except ValueError:
        return default


def load_config(path) -> Config:
    """Load and validate a broker configuration from a JSON file."""
    try:
        with open(path, encoding="utf-8") as handle:
            try:
                raw = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"failed to parse config file: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"failed to open config file: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("failed to parse config file: expected a JSON object")

    nodes = _field(raw, "nodes", list, [])
    if not all(isinstance(node, str) for node in nodes):
        raise ConfigError("failed to parse config file: nodes must be strings")

    config = Config(
        node_id=_field(raw, "nodeId", str, ""),
        http_port=_field(raw, "httpPort", str, ""),
        rpc_port=_field(raw, "rpcPort", str, ""),
        nodes=list(nodes),
        replication_factor=_field(raw, "replicationFactor", int, 0),
        health_check_interval=_duration(
            raw, "healthCheckInterval", DEFAULT_HEALTH_CHECK_INTERVAL
        ),
        node_timeout=_duration(raw, "nodeTimeout", DEFAULT_NODE_TIMEOUT),
        read_timeout=_duration(raw, "readTimeout", DEFAULT_READ_TIMEOUT),
    )

    if not config.node_id:
        raise ConfigError("nodeId is required")
    if not config.http_port:
        config.http_port = DEFAULT_HTTP_PORT
    if not config.rpc_port:
        config.rpc_port = DEFAULT_RPC_PORT
    if config.replication_factor < 1:
        raise ConfigError("replicationFactor must be at least 1")
    if len(config.nodes) < config.replication_factor:
        raise ConfigError("not enough nodes for requested replication factor")
    return config