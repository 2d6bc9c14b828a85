from typing import Dict, Optional


class ConnectionRegistry:
    """Index from a live connection id to the one match it belongs to.

    The registry only maintains the index. It refuses to rebind a connection
    that is still seated elsewhere: moving between matches goes through
    ``LobbyManager._seat``, which runs the old match's leave path (removing
    the Player and reclaiming the seat) before binding the new one.
    """

    def __init__(self):
        self._by_connection: Dict[str, str] = {}

    def bind(self, connection_id: str, match_id: str) -> None:
        current = self._by_connection.get(connection_id)
        if current is not None and current != match_id:
            raise ValueError(f"connection {connection_id} is still bound to match {current}")
        self._by_connection[connection_id] = match_id

    def unbind(self, connection_id: str) -> Optional[str]:
        return self._by_connection.pop(connection_id, None)

    def match_of(self, connection_id: str) -> Optional[str]:
        return self._by_connection.get(connection_id)

    def __len__(self):
        return len(self._by_connection)

    def __contains__(self, connection_id):
        return connection_id in self._by_connection
