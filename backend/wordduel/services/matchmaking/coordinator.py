import logging
import random
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Tuple

from wordduel.events import (
    LEADERBOARD_UPDATE,
    WAITING_FOR_OPPONENT,
    AlreadyInGameOrSearching,
    GameStarted,
)
from wordduel.words import select_secret_word
from .errors import AlreadyActive, NotAParticipant, SessionAlreadyFinished, StaleOpponent, UnknownSession
from .leaderboard import Leaderboard
from .queue import MatchQueue
from .registry import SessionRegistry
from .session import Participant, Resolution, Session, SessionStatus

logger = logging.getLogger(__name__)

# Events that arrive for a session the sender can no longer act on
IGNORED_EVENT_ERRORS = (UnknownSession, NotAParticipant, SessionAlreadyFinished)

# (kind, target, event, payload); kind is 'send', 'group' or 'broadcast'
Delivery = Tuple[str, Optional[str], str, Any]


class Notifier(Protocol):
    """Delivery primitives supplied by the transport."""

    def send(self, connection_id: str, event: str, payload: Any = None) -> None: ...

    def send_group(self, group: str, event: str, payload: Any = None) -> None: ...

    def broadcast(self, event: str, payload: Any = None) -> None: ...

    def join_group(self, connection_id: str, group: str) -> None: ...

    def leave_group(self, connection_id: str, group: str) -> None: ...

    def close_group(self, group: str) -> None: ...


@dataclass
class Connection:
    id: str
    name: Optional[str] = None
    session_id: Optional[str] = None
    live: bool = True


class MatchCoordinator:
    """Owns the queue, the sessions and the leaderboard for one process.

    State changes run under a single lock, so handlers may be dispatched
    from worker threads. Outbound messages are collected while the lock is
    held and delivered after it is released.
    """

    def __init__(
        self,
        notifier: Notifier,
        select_word: Callable[[], str] = select_secret_word,
        leaderboard: Optional[Leaderboard] = None,
        registry: Optional[SessionRegistry] = None,
        guest_prefix: str = 'Guest',
        session_idle_timeout: float = 0,
        clock: Callable[[], float] = time.time,
        rng=random,
    ):
        self.notifier = notifier
        self.select_word = select_word
        self.leaderboard = leaderboard if leaderboard is not None else Leaderboard()
        self.registry = registry if registry is not None else SessionRegistry(clock=clock)
        self.queue = MatchQueue()
        self.guest_prefix = guest_prefix
        self.session_idle_timeout = session_idle_timeout
        self._clock = clock
        self._rng = rng
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.RLock()

    @contextmanager
    def _transaction(self) -> Iterator[List[Delivery]]:
        outbox: List[Delivery] = []
        with self._lock:
            yield outbox
        self._deliver(outbox)

    def _deliver(self, outbox: List[Delivery]) -> None:
        for kind, target, event, payload in outbox:
            if kind == 'broadcast':
                self.notifier.broadcast(event, payload)
            elif kind == 'group':
                self.notifier.send_group(target, event, payload)
            else:
                self.notifier.send(target, event, payload)

    # ---- connections ----

    def connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def is_live(self, connection_id: str) -> bool:
        conn = self._connections.get(connection_id)
        return bool(conn and conn.live)

    def connect(self, connection_id: str) -> Connection:
        """Register a new connection and hand it the current standings."""
        with self._transaction() as outbox:
            conn = self._register(connection_id)
            outbox.append(('send', connection_id, LEADERBOARD_UPDATE, self.leaderboard.standings()))
        return conn

    def _register(self, connection_id: str) -> Connection:
        conn = self._connections.get(connection_id)
        if conn is None:
            conn = self._connections[connection_id] = Connection(connection_id)
        return conn

    def disconnect(self, connection_id: str) -> Optional[Resolution]:
        with self._transaction() as outbox:
            self.queue.remove(connection_id)
            conn = self._connections.pop(connection_id, None)
            if conn is None:
                return None
            conn.live = False
            logger.info(f"[disconnect] {connection_id} ({conn.name}) session={conn.session_id}")
            if not conn.session_id:
                return None
            try:
                session = self.registry.get(conn.session_id)
                resolution = session.disconnected(connection_id, self.is_live)
            except IGNORED_EVENT_ERRORS as exc:
                logger.debug(f"[ignored] disconnect from {connection_id}: {exc}")
                return None
            if resolution.winner_name:
                logger.info(f"[forfeit] session={session.id} winner={resolution.winner_name}")
            self._apply(resolution, outbox)
        return resolution

    # ---- matchmaking ----

    def resolve_name(self, requested_name: Any) -> str:
        name = requested_name.strip() if isinstance(requested_name, str) else ''
        return name or f"{self.guest_prefix}{self._rng.randrange(1000)}"

    def _ensure_not_active(self, connection_id: str) -> None:
        if connection_id in self.queue or self.registry.find_playing(connection_id):
            raise AlreadyActive(connection_id)

    def request_match(self, connection_id: str, requested_name: Any = '') -> Optional[Session]:
        """Queue a connection and pair it if an opponent is waiting.

        Returns the new session when this call formed one, otherwise None.
        """
        with self._transaction() as outbox:
            conn = self._register(connection_id)
            name = self.resolve_name(requested_name)
            try:
                self._ensure_not_active(connection_id)
            except AlreadyActive as exc:
                logger.info(f"[already-active] {name}: {exc}")
                outbox.append(('send', connection_id, AlreadyInGameOrSearching.event,
                               AlreadyInGameOrSearching().to_payload()))
                return None

            conn.name = name
            self.queue.remove(connection_id)
            self.queue.enqueue(connection_id)
            logger.info(f"[queued] {name} ({connection_id}) queue={len(self.queue)}")

            try:
                pair = self._take_pair()
            except StaleOpponent as exc:
                logger.info(f"[stale-opponent] {exc}")
                for live_id in exc.live_ids:
                    outbox.append(('send', live_id, WAITING_FOR_OPPONENT, None))
                return None

            if pair is None:
                outbox.append(('send', connection_id, WAITING_FOR_OPPONENT, None))
                return None
            session = self._start_session(*pair, outbox=outbox)
        return session

    def _take_pair(self):
        pair = self.queue.dequeue_pair()
        if pair is None:
            return None
        live = [cid for cid in pair if self.is_live(cid)]
        if len(live) < 2:
            for cid in reversed(live):
                self.queue.requeue_front(cid)
            raise StaleOpponent(live)
        return pair

    def _start_session(self, first_id: str, second_id: str, outbox: List[Delivery]) -> Session:
        first, second = self._connections[first_id], self._connections[second_id]
        word = self.select_word()
        session = self.registry.create(
            Participant(first.id, first.name), Participant(second.id, second.name), word,
        )
        for conn in (first, second):
            self._detach(conn)
            conn.session_id = session.id
            # Room membership must exist before any later group send
            self.notifier.join_group(conn.id, session.group)

        logger.info(f"[match-found] session={session.id} players={first.name},{second.name}")
        logger.debug(f"[match-found] session={session.id} word={word}")

        for me, opponent in ((first, second), (second, first)):
            started = GameStarted(room_id=session.id, word=word,
                                  opponent_name=opponent.name, my_name=me.name)
            outbox.append(('send', me.id, started.event, started.to_payload()))
        return session

    def _detach(self, conn: Connection) -> None:
        # Leave the finished session this connection played last, if any
        if not conn.session_id or conn.session_id not in self.registry:
            return
        previous = self.registry.get(conn.session_id)
        if previous.has_participant(conn.id):
            previous.participant(conn.id).connected = False
        self.notifier.leave_group(conn.id, previous.group)

    # ---- in-session events ----

    def _session_for(self, connection_id: str) -> Session:
        conn = self._connections.get(connection_id)
        return self.registry.get(conn.session_id if conn else None)

    def report_won(self, connection_id: str, attempts: int) -> Optional[Resolution]:
        with self._transaction() as outbox:
            try:
                session = self._session_for(connection_id)
                resolution = session.won(connection_id, attempts, self.is_live)
            except IGNORED_EVENT_ERRORS as exc:
                logger.debug(f"[ignored] win from {connection_id}: {exc}")
                return None
            logger.info(f"[win] session={session.id} winner={session.winner_name} attempts={attempts}")
            self._apply(resolution, outbox)
        return resolution

    def report_exhausted(self, connection_id: str, attempts: int) -> Optional[Resolution]:
        with self._transaction() as outbox:
            try:
                session = self._session_for(connection_id)
                resolution = session.exhausted(connection_id, attempts, self.is_live)
            except IGNORED_EVENT_ERRORS as exc:
                logger.debug(f"[ignored] exhaustion from {connection_id}: {exc}")
                return None
            if session.status is SessionStatus.FINISHED:
                logger.info(f"[draw] session={session.id}")
            else:
                logger.info(f"[exhausted] session={session.id} player={connection_id} attempts={attempts}")
            self._apply(resolution, outbox)
        return resolution

    def _apply(self, resolution: Resolution, outbox: List[Delivery]) -> None:
        if resolution.winner_name and self.leaderboard.record_win(resolution.winner_name):
            outbox.append(('broadcast', None, LEADERBOARD_UPDATE, self.leaderboard.standings()))
        for notice in resolution.notices:
            payload = notice.message.to_payload()
            if notice.group:
                outbox.append(('group', notice.group, notice.message.event, payload))
            else:
                outbox.append(('send', notice.connection_id, notice.message.event, payload))

    # ---- housekeeping ----

    def reap(self, now: Optional[float] = None) -> List[str]:
        """Remove abandoned or long-finished sessions; returns their ids."""
        with self._lock:
            reaped = self.registry.reap(self._clock() if now is None else now, self.session_idle_timeout)
            for session in reaped:
                for p in session.participants:
                    conn = self._connections.get(p.connection_id)
                    if conn and conn.session_id == session.id:
                        conn.session_id = None
                self.notifier.close_group(session.group)
            if reaped:
                logger.info(f"[reap] removed {len(reaped)} session(s), {len(self.registry)} left")
            return [s.id for s in reaped]

    def standings(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self.leaderboard.standings()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'queued': len(self.queue),
                'sessions': len(self.registry),
                'playing': self.registry.count(SessionStatus.PLAYING),
                'connections': len(self._connections),
            }
