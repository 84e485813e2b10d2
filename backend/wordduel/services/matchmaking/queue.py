from typing import List, Optional, Tuple


class MatchQueue:
    """FIFO list of connection ids waiting for an opponent.

    A connection id appears at most once; removal is idempotent.
    """

    def __init__(self):
        self._waiting: List[str] = []

    def __len__(self) -> int:
        return len(self._waiting)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._waiting

    def enqueue(self, connection_id: str) -> bool:
        if connection_id in self._waiting:
            return False
        self._waiting.append(connection_id)
        return True

    def requeue_front(self, connection_id: str) -> None:
        """Put a connection back at the head, keeping its seniority."""
        self.remove(connection_id)
        self._waiting.insert(0, connection_id)

    def dequeue_pair(self) -> Optional[Tuple[str, str]]:
        if len(self._waiting) < 2:
            return None
        first, second = self._waiting[0], self._waiting[1]
        del self._waiting[:2]
        return first, second

    def remove(self, connection_id: str) -> bool:
        try:
            self._waiting.remove(connection_id)
        except ValueError:
            return False
        return True

    def snapshot(self) -> List[str]:
        return list(self._waiting)
