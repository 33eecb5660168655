"""Single-threaded multi-user chat server."""

from smallchat.registry import ConnectionRecord, ConnectionRegistry
from smallchat.server import ChatServer

__version__ = "0.1.0"
