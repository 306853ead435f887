"""
Connection registry: which live connection receives pushes for which user.

The registry is volatile. It starts empty on every process start and is not
shared between instances, so a user is only reachable from the instance that
accepted their connection.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from .connections import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Maps user ids to live connections.

    Two tables are kept:
    - ``connection_id -> Connection`` for every open transport
    - ``user_id -> connection_id`` with at most one connection per user;
      a later registration for the same user replaces the earlier one
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._users: Dict[str, str] = {}
        self._lock = threading.Lock()

    # Transport lifecycle

    def attach(self, connection: Connection) -> None:
        """Track an open transport; it is not yet reachable by user id."""
        with self._lock:
            self._connections[connection.connection_id] = connection

    def detach(self, connection_id: str) -> List[str]:
        """Forget a closed transport and every user entry pointing at it."""
        with self._lock:
            self._connections.pop(connection_id, None)
            return self._unregister_locked(connection_id)

    # User mapping

    def register(self, user_id: str, connection_id: str) -> None:
        """Insert or overwrite the entry for ``user_id``."""
        with self._lock:
            previous = self._users.get(user_id)
            self._users[user_id] = connection_id

        if previous and previous != connection_id:
            logger.info(f"User {user_id} moved from connection {previous} to {connection_id}")
        else:
            logger.info(f"User {user_id} registered on connection {connection_id}")

    def unregister(self, connection_id: str) -> List[str]:
        """Remove every user entry that points at ``connection_id``.

        Returns the user ids that were removed; empty when there were none.
        """
        with self._lock:
            return self._unregister_locked(connection_id)

    def _unregister_locked(self, connection_id: str) -> List[str]:
        removed = [uid for uid, cid in self._users.items() if cid == connection_id]
        for user_id in removed:
            del self._users[user_id]
            logger.info(f"User {user_id} disconnected")
        return removed

    def leave(self, user_id: str) -> bool:
        """Drop the entry for ``user_id`` regardless of which connection owns it."""
        with self._lock:
            return self._users.pop(user_id, None) is not None

    # Lookups

    def connection_for(self, user_id: str) -> Optional[Connection]:
        """The live connection registered for ``user_id``, if any."""
        with self._lock:
            connection_id = self._users.get(user_id)
            if connection_id is None:
                return None
            return self._connections.get(connection_id)

    def connection_id_for(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._users.get(user_id)

    def registered_connections(self) -> List[Connection]:
        """Every connection registered under at least one user, each once."""
        with self._lock:
            seen: Dict[str, Connection] = {}
            for connection_id in self._users.values():
                connection = self._connections.get(connection_id)
                if connection is not None:
                    seen.setdefault(connection_id, connection)
            return list(seen.values())

    def entries(self) -> List[Tuple[str, str]]:
        """Snapshot of ``(user_id, connection_id)`` pairs."""
        with self._lock:
            return list(self._users.items())

    def is_online(self, user_id: str) -> bool:
        return self.connection_for(user_id) is not None

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "connections": len(self._connections),
                "registered_users": len(self._users),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
