[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dkv"
version = "0.1.0"
description = "Sharded in-memory key-value database with logical-time expiration, snapshots, stores and locks"
requires-python = ">=3.10"
dependencies = []
keywords = ["key-value", "database", "in-memory", "ttl", "expiration", "snapshot", "lock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dkv"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
