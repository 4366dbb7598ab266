[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "utilkit"
version = "0.1.0"
description = "Lightweight parsers and encoders for XML trees, JSON trees, WebSocket frames, HTTP frames and the Redis protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["xml", "json", "websocket", "http", "multipart", "redis", "resp", "protocol", "parser"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["utilkit"]

[tool.pytest.ini_options]
addopts = "-ra"
