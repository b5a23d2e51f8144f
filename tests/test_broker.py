import json

from distqueue.broker import build_services, main
from distqueue.config import Config


def _config():
    return Config(node_id="node1", nodes=["localhost:8001"], replication_factor=1)


def test_build_services_creates_storage_directories(tmp_path):
    build_services(_config(), tmp_path)
    assert (tmp_path / "node1" / "queue_storage").is_dir()
    assert (tmp_path / "node1" / "client_storage").is_dir()


def test_build_services_persists_queues(tmp_path):
    services = build_services(_config(), tmp_path)
    queue_id = services.queue_service.create_queue("orders")
    stored = tmp_path / "node1" / "queue_storage" / f"{queue_id}.json"
    assert stored.is_file()
    assert json.loads(stored.read_text())["Name"] == "orders"

    services.queue_service.append_message(queue_id, "c1", b"payload")
    assert [m.data for m in services.queue_repo.get_messages(queue_id)] == [b"payload"]


def test_build_services_rest_handler_uses_node(tmp_path):
    services = build_services(_config(), tmp_path)
    status, _, body = services.rest_handler.handle("GET", "/status", b"")
    assert status == 200
    assert json.loads(body)["nodeId"] == "node1"


def test_build_services_shares_timeout(tmp_path):
    config = _config()
    config.node_timeout = 0.25
    services = build_services(config, tmp_path)
    assert services.rpc_client.timeout == 0.25
    assert services.node_service.node_id == "node1"


def test_main_missing_config_fails(tmp_path):
    assert main(["--config", str(tmp_path / "missing.json")]) == 1


def test_main_invalid_config_fails(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"nodes": ["a:1"], "replicationFactor": 1}))
    assert main(["--config", str(path)]) == 1