"""Parsers and encoders for XML and JSON trees, WebSocket and HTTP frames, and the Redis protocol."""

__version__ = "0.1.0"

__all__ = [
    "xmltree",
    "jsontree",
    "websocket",
    "httpframe",
    "resp_reply",
    "resp_reader",
    "resp_command",
]