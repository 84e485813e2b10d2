"""Per-session state machine for a two-player word duel.

A session only ever moves Playing -> Finished. Each event handler returns a
``Resolution`` describing who should hear about it; the coordinator does the
actual delivery and leaderboard bookkeeping, so nothing here touches the
transport.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from wordduel.events import (
    GameOver,
    OpponentUpdate,
    OutboundEvent,
    WaitingForOpponentFinish,
)
from .errors import NotAParticipant, SessionAlreadyFinished

LivenessCheck = Callable[[str], bool]


class SessionStatus(str, Enum):
    PLAYING = 'playing'
    FINISHED = 'finished'


@dataclass
class Participant:
    connection_id: str
    name: str
    finished: bool = False
    attempts: int = 0
    # Cleared once the connection goes away; used by the reaper
    connected: bool = True

    def finish(self, attempts: int) -> None:
        self.finished = True
        self.attempts = attempts


@dataclass(frozen=True)
class Notice:
    """One outbound message: to a single connection or to the session group."""
    message: OutboundEvent
    connection_id: Optional[str] = None
    group: Optional[str] = None


@dataclass
class Resolution:
    notices: List[Notice] = field(default_factory=list)
    # Set when this event produced a winner to credit on the leaderboard
    winner_name: Optional[str] = None

    def tell(self, connection_id: str, message: OutboundEvent) -> None:
        self.notices.append(Notice(message, connection_id=connection_id))

    def tell_group(self, group: str, message: OutboundEvent) -> None:
        self.notices.append(Notice(message, group=group))


@dataclass
class Session:
    id: str
    participants: Tuple[Participant, Participant]
    secret_word: str
    status: SessionStatus = SessionStatus.PLAYING
    winner_name: Optional[str] = None
    finished_at: Optional[float] = None
    # Stamps finished_at; the registry hands in its own clock
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    @property
    def group(self) -> str:
        return self.id

    @property
    def is_playing(self) -> bool:
        return self.status is SessionStatus.PLAYING

    def has_participant(self, connection_id: str) -> bool:
        return any(p.connection_id == connection_id for p in self.participants)

    def participant(self, connection_id: str) -> Participant:
        for p in self.participants:
            if p.connection_id == connection_id:
                return p
        raise NotAParticipant(self.id, connection_id)

    def opponent_of(self, connection_id: str) -> Participant:
        first, second = self.participants
        if first.connection_id == connection_id:
            return second
        if second.connection_id == connection_id:
            return first
        raise NotAParticipant(self.id, connection_id)

    def _acting(self, connection_id: str) -> Participant:
        if not self.is_playing:
            raise SessionAlreadyFinished(self.id)
        actor = self.participant(connection_id)
        if actor.finished:
            raise SessionAlreadyFinished(self.id)
        return actor

    def _finish(self, winner_name: Optional[str] = None) -> None:
        self.status = SessionStatus.FINISHED
        self.winner_name = winner_name
        self.finished_at = self.clock()

    def won(self, connection_id: str, attempts: int, is_live: LivenessCheck) -> Resolution:
        """The actor guessed the word. First win always ends the session."""
        actor = self._acting(connection_id)
        opponent = self.opponent_of(connection_id)
        actor.finish(attempts)
        self._finish(winner_name=actor.name)

        res = Resolution(winner_name=actor.name)
        res.tell(actor.connection_id, GameOver(
            result='win', word=self.secret_word,
            message=f'You guessed it in {attempts} tries!',
        ))
        if is_live(opponent.connection_id):
            res.tell(opponent.connection_id, GameOver(
                result='lose', word=self.secret_word,
                message=f'{actor.name} finished first in {attempts} tries!',
            ))
        return res

    def exhausted(self, connection_id: str, attempts: int, is_live: LivenessCheck) -> Resolution:
        """The actor used every guess without finding the word."""
        actor = self._acting(connection_id)
        opponent = self.opponent_of(connection_id)
        actor.finish(attempts)

        res = Resolution()
        if opponent.finished:
            if self.winner_name is None:
                self._finish()
                res.tell_group(self.group, GameOver(
                    result='draw', word=self.secret_word,
                    message="Neither of you got the word! It's a draw.",
                ))
        elif is_live(opponent.connection_id):
            res.tell(actor.connection_id, WaitingForOpponentFinish(
                word=self.secret_word,
                message="You didn't get it. Waiting for opponent...",
            ))
            res.tell(opponent.connection_id, OpponentUpdate(
                message=f'{actor.name} has used all their attempts.',
            ))
        else:
            self._finish()
            res.tell(actor.connection_id, GameOver(
                result='draw', word=self.secret_word,
                message="You didn't get the word, and opponent is unavailable.",
            ))
        return res

    def disconnected(self, connection_id: str, is_live: LivenessCheck) -> Resolution:
        """The actor's connection is gone; a live opponent wins by default."""
        leaver = self.participant(connection_id)
        leaver.connected = False

        res = Resolution()
        if not self.is_playing:
            return res
        opponent = self.opponent_of(connection_id)
        if is_live(opponent.connection_id):
            self._finish(winner_name=opponent.name)
            res.winner_name = opponent.name
            res.tell(opponent.connection_id, GameOver(
                result='win', word=self.secret_word,
                message=f'{leaver.name} disconnected. You win!',
            ))
        else:
            self._finish()
        return res

    def abandoned(self) -> bool:
        return not any(p.connected for p in self.participants)
