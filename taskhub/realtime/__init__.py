"""Realtime fan-out over WebSockets."""

from taskhub.realtime.registry import ConnectionRegistry
from taskhub.realtime.hub import ConnectionState, RealtimeConnection, RealtimeHub

__all__ = ["ConnectionRegistry", "ConnectionState", "RealtimeConnection", "RealtimeHub"]
