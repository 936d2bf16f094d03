[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wsthroughput"
version = "0.1.0"
description = "WebSocket throughput benchmark: a server that streams large binary messages and clients that time them"
requires-python = ">=3.10"
keywords = ["websocket", "benchmark", "throughput", "aiohttp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
wsthroughput-server = "wsthroughput.server:main"
wsthroughput-client = "wsthroughput.client:main"

[tool.hatch.build.targets.wheel]
packages = ["wsthroughput"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
