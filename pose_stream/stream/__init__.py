"""Result publication to the remote visualization server."""

from pose_stream.stream.payload import format_payload, parse_payload
from pose_stream.stream.publisher import LogPublisher, SocketIOPublisher

__all__ = [
    "format_payload",
    "parse_payload",
    "LogPublisher",
    "SocketIOPublisher",
]
