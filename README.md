# distqueue

A small replicated message queue broker. Each node keeps its queues on disk
and copies every queue to a number of other nodes. Every client reading from
a queue has its own read offset, so each client sees each message once, in
the order it was appended.

It needs nothing beyond the Python standard library (3.10 or later).

## Installing

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Configuring a node

A node reads a JSON file like this:

    {
      "nodeId": "node1",
      "httpPort": "8000",
      "rpcPort": "8001",
      "nodes": ["localhost:8001", "localhost:8011", "localhost:8021"],
      "replicationFactor": 2,
      "healthCheckInterval": "10s",
      "nodeTimeout": "5s",
      "readTimeout": "2s"
    }

- `nodeId` is required.
- `httpPort` and `rpcPort` default to `8000` and `8001`.
- `replicationFactor` must be at least 1, and `nodes` must list at least that
  many addresses.
- Durations take forms such as `500ms`, `10s` or `1m30s` (units `ns`, `us`,
  `ms`, `s`, `m`, `h`). A missing or unreadable value falls back to 10s, 5s
  and 2s for `healthCheckInterval`, `nodeTimeout` and `readTimeout`.
- The address `localhost:<rpcPort>` in `nodes` is taken to be this node and
  is skipped. The other addresses are given the ids `node1`, `node2`, ... by
  their position in the list (shifted by one if that id is this node's own).

`distqueue.config.load_config(path)` reads such a file into a `Config` and
raises `ConfigError` when it cannot be read or is invalid.

## Running a broker

    distqueue-broker --config config.json

Without `--config` the file `../../config/config.json` is used. The broker
stores its data under `data/<nodeId>/queue_storage` and
`data/<nodeId>/client_storage` in the current directory, one JSON file per
queue. It serves the REST API on `httpPort` and takes commands from other
nodes on `rpcPort`.

At every health-check interval the broker pings the other live nodes. A node
that does not answer is marked dead, and each queue it held a replica of is
given a randomly chosen live node in its place; the queue and its messages
are then sent to that node. Stop the broker with Ctrl+C or SIGTERM.

## REST API

| Method | Path           | Body or query                       | Reply                            |
|--------|----------------|-------------------------------------|----------------------------------|
| POST   | `/createQueue` | `{"name": "orders"}`                | `{"queueId", "message"}` (201)   |
| POST   | `/appendData`  | `{"queueId", "clientId", "data"}`   | `{"messageId", "message"}` (200) |
| GET    | `/readData`    | `?queueId=...&clientId=...`         | `{"messageId", "data"}` (200)    |
| GET    | `/status`      |                                     | node, cluster and queue counts   |

Errors come back as `{"error": "..."}`: 405 for the wrong method, 400 for a
bad body or a missing query parameter, 500 when the operation fails. Reading
past the last message for a client is such a failure. Unknown paths get a
plain-text 404.

A new queue is created on this node and on `replicationFactor - 1` randomly
chosen live nodes; creation fails only if every other replica fails.
Appended messages and advanced read offsets are sent to the other live
replicas in the background. When a queue cannot be loaded locally but this
node knows of it with a live replica elsewhere, the append or read is passed
on to that replica.

## Node-to-node commands

Nodes send each other JSON commands with `POST /rpc` on the RPC port. The
command types (`distqueue.rpc_model.CommandType`) are `ping`, `createQueue`,
`appendMessage`, `readMessage` and `updateOffset`. `RpcClient` sends them
and raises `RpcError` on failure; `RpcServer` answers them by passing each
command to `QueueService.process_command`.

## Using it as a library

- `Queue` and `Message` (`distqueue.queues`, `distqueue.message`) hold a
  queue's messages and per-client offsets; `Queue.read_message_for_client`
  raises `NoMoreMessagesError` when a client is at the end.
- `FileQueueRepository` keeps queues as JSON files through `FileStorage`;
  `MemoryQueueRepository` keeps them in memory. Both implement
  `QueueRepository` and raise `QueueNotFoundError`, `QueueExistsError` or
  `MessageNotFoundError` (all `RepositoryError`).
- `distqueue.broker.build_services(config, data_dir)` wires up the
  repository, RPC client and server, `NodeService`, `QueueService` and
  `RestHandler` for one node without starting anything.
- `distqueue.role` defines the `LEADER` and `FOLLOWER` roles with `parse`,
  `parse_many` and `to_strings`.

## Command-line client

    distqueue-client --url http://localhost:5000 --queue-id Q --client-id C

prints the result of a health check against the server and, when both
`--queue-id` and `--client-id` are given, reads that client's next message
and prints its id and value. `--url` defaults to `http://localhost:5000`.

`QueueClient` in `distqueue.http_client` offers `health_check`,
`create_client`, `create_queue`, `append_message`, `read_message` and
`list_queues`; a failed request raises `ClientError`.

## What it does not do

- `QueueClient` and `distqueue-client` talk to `/api/...` endpoints
  (`/api/health`, `/api/queue`, `/api/message/read` and so on). The broker in
  this package does not serve those paths; its REST API is the one in the
  table above. The client is only useful against a server that offers them.
- The broker command always stores data in files; the in-memory repository
  is there for use from Python only.
- There is no leader election: the roles in `distqueue.role` are defined but
  nothing in the broker uses them.