"""The broker node command: wires services together and serves them."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from dataclasses import dataclass
from pathlib import Path

from .config import Config, ConfigError, load_config
from .file_repository import FileQueueRepository
from .filestorage import FileStorage, StorageError
from .node_service import NodeService
from .queue_service import QueueService
from .rest import RestHandler
from .rpc_client import RpcClient
from .rpc_server import RpcServer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "../../config/config.json"


@dataclass
class Services:
    """Everything a running broker node is made of."""

    config: Config
    queue_repo: FileQueueRepository
    rpc_client: RpcClient
    rpc_server: RpcServer
    node_service: NodeService
    queue_service: QueueService
    rest_handler: RestHandler


def build_services(config: Config, data_dir: str | os.PathLike[str]) -> Services:
    """Create the repository, RPC endpoints and services for a node."""
    node_dir = Path(data_dir) / config.node_id
    queue_storage = FileStorage(node_dir / "queue_storage")
    client_storage = FileStorage(node_dir / "client_storage")
    queue_repo = FileQueueRepository(queue_storage, client_storage)

    rpc_client = RpcClient(config.node_timeout)
    rpc_server = RpcServer()
    node_service = NodeService(config, queue_repo, rpc_client)
    queue_service = QueueService(config, queue_repo, rpc_client, node_service)
    return Services(
        config=config,
        queue_repo=queue_repo,
        rpc_client=rpc_client,
        rpc_server=rpc_server,
        node_service=node_service,
        queue_service=queue_service,
        rest_handler=RestHandler(queue_service),
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a distributed queue broker node.")
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH, help="Path to config file"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run a broker node until SIGINT or SIGTERM; return the exit status."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        logger.error("Failed to load config: %s", exc)
        return 1

    try:
        services = build_services(config, Path.cwd() / "data")
    except StorageError as exc:
        logger.error("Failed to create file storage: %s", exc)
        return 1

    stop = threading.Event()
    failures: list[str] = []

    threading.Thread(
        target=services.node_service.run_health_checks,
        args=(config.health_check_interval, stop),
        daemon=True,
    ).start()

    def serve_rpc() -> None:
        try:
            services.rpc_server.start(config.rpc_port, services.queue_service)
        except (OSError, ValueError) as exc:
            logger.error("Failed to start RPC server: %s", exc)
            failures.append(str(exc))
            stop.set()

    threading.Thread(target=serve_rpc, daemon=True).start()

    try:
        http_server = services.rest_handler.make_server("", config.http_port)
    except (OSError, ValueError) as exc:
        logger.error("Failed to start HTTP server: %s", exc)
        stop.set()
        services.rpc_server.stop()
        return 1

    logger.info("Starting HTTP server on port %s", config.http_port)
    threading.Thread(target=http_server.serve_forever, daemon=True).start()

    previous = {
        sig: signal.signal(sig, lambda *_: stop.set())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    logger.info("Shutting down server...")
    http_server.shutdown()
    http_server.server_close()
    services.rpc_server.stop()
    if failures:
        return 1
    logger.info("Server exited properly")
    return 0