[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distqueue"
version = "1.0.0"
description = "A replicated message queue broker with per-client read offsets, file-backed storage and node health checking"
requires-python = ">=3.10"
dependencies = []
keywords = ["queue", "message-broker", "replication", "distributed", "cluster"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
distqueue-broker = "distqueue.broker:main"
distqueue-client = "distqueue.http_client:main"

[tool.hatch.build.targets.wheel]
packages = ["distqueue"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
