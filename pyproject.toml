[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "datanode"
version = "0.1.0"
description = "Data node for a distributed database: answers framed MessagePack statements from a master over TCP"
requires-python = ">=3.11"
dependencies = [
    "msgpack",
]
keywords = ["database", "datanode", "msgpack", "asyncio", "protocol"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
datanode = "datanode.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["datanode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
