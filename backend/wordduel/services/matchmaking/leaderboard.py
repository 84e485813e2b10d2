import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from wordduel.events import LeaderboardEntry

logger = logging.getLogger(__name__)

MAX_LEADERBOARD_SIZE = 10


@dataclass
class Standing:
    name: str
    score: int = 1


class Leaderboard:
    """Capped ranking of cumulative wins, keyed by case-insensitive name."""

    def __init__(self, max_size: int = MAX_LEADERBOARD_SIZE):
        self.max_size = max_size
        self._entries: List[Standing] = []

    def __len__(self) -> int:
        return len(self._entries)

    def _find(self, name: str) -> Optional[Standing]:
        key = name.lower()
        for entry in self._entries:
            if entry.name.lower() == key:
                return entry
        return None

    def record_win(self, name: Optional[str]) -> bool:
        """Credit one win to ``name``.

        Blank names are ignored and return False. The board is re-sorted by
        score (ties keep their current order) and truncated to ``max_size``.
        """
        if not isinstance(name, str) or not name.strip():
            return False
        name = name.strip()

        entry = self._find(name)
        if entry:
            entry.score += 1
        else:
            self._entries.append(Standing(name))
        self._entries.sort(key=lambda e: e.score, reverse=True)
        del self._entries[self.max_size:]
        logger.info(f"[leaderboard] win for {name}: {self.standings()}")
        return True

    def score_of(self, name: str) -> int:
        entry = self._find(name.strip())
        return entry.score if entry else 0

    def standings(self) -> List[Dict[str, Any]]:
        return [LeaderboardEntry(name=e.name, score=e.score).to_payload() for e in self._entries]
