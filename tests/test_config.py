import json

import pytest

from distqueue.config import ConfigError, load_config, parse_duration


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_applied(tmp_path):
    path = _write(
        tmp_path,
        {"nodeId": "node1", "nodes": ["localhost:8001"], "replicationFactor": 1},
    )
    config = load_config(path)
    assert config.node_id == "node1"
    assert config.http_port == "8000"
    assert config.rpc_port == "8001"
    assert config.health_check_interval == 10.0
    assert config.node_timeout == 5.0
    assert config.read_timeout == 2.0


def test_explicit_values(tmp_path):
    path = _write(
        tmp_path,
        {
            "nodeId": "node2",
            "httpPort": "9100",
            "rpcPort": "9101",
            "nodes": ["a:1", "b:2"],
            "replicationFactor": 2,
            "healthCheckInterval": "3s",
            "nodeTimeout": "1m",
            "readTimeout": "bogus",
        },
    )
    config = load_config(path)
    assert config.http_port == "9100"
    assert config.rpc_port == "9101"
    assert config.nodes == ["a:1", "b:2"]
    assert config.replication_factor == 2
    assert config.health_check_interval == parse_duration("3s")
    assert config.node_timeout == parse_duration("60s")
    assert config.read_timeout == 2.0


def test_missing_node_id(tmp_path):
    path = _write(tmp_path, {"nodes": ["a"], "replicationFactor": 1})
    with pytest.raises(ConfigError, match="nodeId is required"):
        load_config(path)


def test_replication_factor_too_small(tmp_path):
    path = _write(tmp_path, {"nodeId": "n", "nodes": ["a"], "replicationFactor": 0})
    with pytest.raises(ConfigError, match="at least 1"):
        load_config(path)


def test_not_enough_nodes(tmp_path):
    path = _write(tmp_path, {"nodeId": "n", "nodes": ["a"], "replicationFactor": 2})
    with pytest.raises(ConfigError, match="not enough nodes"):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="failed to open config file"):
        load_config(tmp_path / "absent.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="failed to parse config file"):
        load_config(path)


def test_wrong_type(tmp_path):
    path = _write(tmp_path, {"nodeId": 5, "nodes": ["a"], "replicationFactor": 1})
    with pytest.raises(ConfigError, match="failed to parse config file"):
        load_config(path)


def test_parse_duration_components_add_up():
    assert parse_duration("1h30m") == parse_duration("90m")
    assert parse_duration("1m30s") == parse_duration("90s")
    assert parse_duration("-2s") == -parse_duration("2s")


def test_parse_duration_zero_and_fraction():
    assert parse_duration("0") == 0.0
    assert parse_duration("1.5h") == parse_duration("90m")


@pytest.mark.parametrize("text", ["", "10", "5x", "s", ".", "1h-3m"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)