"""
Presence registry: which users currently hold realtime connections.

Process-local and rebuilt from nothing on restart.
"""

import threading
from typing import Dict, FrozenSet, Set


class ConnectionRegistry:
    """
    Maps user id to the set of that user's open connection ids.

    A user is online while their set is non-empty; the entry is removed
    as soon as the last connection goes away.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def add(self, user_id: str, connection_id: str) -> bool:
        """Register a connection. Returns True if the user just came online."""
        with self._lock:
            connections = self._connections.setdefault(user_id, set())
            came_online = not connections
            connections.add(connection_id)
            return came_online

    def remove(self, user_id: str, connection_id: str) -> bool:
        """Drop a connection. Returns True if the user just went offline."""
        with self._lock:
            connections = self._connections.get(user_id)
            if connections is None:
                return False
            connections.discard(connection_id)
            if connections:
                return False
            del self._connections[user_id]
            return True

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def connections_for(self, user_id: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._connections.get(user_id, ()))

    def online_user_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()
