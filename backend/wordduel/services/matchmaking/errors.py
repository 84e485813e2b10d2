class MatchmakingError(Exception):
    """Base class for matchmaking failures."""


class AlreadyActive(MatchmakingError):
    """The connection is already queued or playing in a live session."""

    def __init__(self, connection_id: str):
        super().__init__(f"{connection_id} is already searching or in an active game")
        self.connection_id = connection_id


class StaleOpponent(MatchmakingError):
    """A dequeued pairing candidate is no longer connected."""

    def __init__(self, live_ids):
        super().__init__(f"pairing aborted, still live: {list(live_ids)}")
        self.live_ids = list(live_ids)


class UnknownSession(MatchmakingError):
    def __init__(self, session_id):
        super().__init__(f"no session {session_id!r}")
        self.session_id = session_id


class NotAParticipant(MatchmakingError):
    def __init__(self, session_id: str, connection_id: str):
        super().__init__(f"{connection_id} is not a participant of {session_id}")
        self.session_id = session_id
        self.connection_id = connection_id


class SessionAlreadyFinished(MatchmakingError):
    def __init__(self, session_id: str):
        super().__init__(f"session {session_id} is already finished")
        self.session_id = session_id
