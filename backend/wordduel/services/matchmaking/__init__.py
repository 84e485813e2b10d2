"""Matchmaking core: queue, sessions, leaderboard and their coordinator.

Nothing in this package knows about Flask or Socket.IO; the transport hands
in a ``Notifier`` and forwards connection events to ``MatchCoordinator``.
"""
from .coordinator import Connection, MatchCoordinator, Notifier
from .errors import (
    AlreadyActive,
    MatchmakingError,
    NotAParticipant,
    SessionAlreadyFinished,
    StaleOpponent,
    UnknownSession,
)
from .leaderboard import MAX_LEADERBOARD_SIZE, Leaderboard
from .queue import MatchQueue
from .registry import SessionRegistry
from .session import Participant, Resolution, Session, SessionStatus

__all__ = [
    'AlreadyActive', 'Connection', 'Leaderboard', 'MAX_LEADERBOARD_SIZE', 'MatchCoordinator',
    'MatchQueue', 'MatchmakingError', 'NotAParticipant', 'Notifier', 'Participant', 'Resolution',
    'Session', 'SessionAlreadyFinished', 'SessionRegistry', 'SessionStatus', 'StaleOpponent',
    'UnknownSession',
]
