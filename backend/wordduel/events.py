"""Socket.IO event schemas.

Inbound payloads are validated here before they reach the matchmaking
coordinator; outbound payloads are built from these models so every
emitted event has one fixed shape with camelCase keys.
"""
from typing import Any, ClassVar, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MAX_ATTEMPTS = 6

# Outbound events that carry no payload
WAITING_FOR_OPPONENT = 'waitingForOpponent'
LEADERBOARD_UPDATE = 'leaderboardUpdate'
ERROR = 'error'


class InboundEvent(BaseModel):
    model_config = ConfigDict(extra='ignore')

    event: ClassVar[str]


class FindGame(InboundEvent):
    event: ClassVar[str] = 'findGame'

    name: str = ''

    @field_validator('name', mode='before')
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        # Anything that is not a string falls back to a guest name later on
        return value if isinstance(value, str) else ''


class AttemptsReport(InboundEvent):
    attempts: int = Field(ge=1)

    @field_validator('attempts')
    @classmethod
    def _within_board(cls, value: int, info: ValidationInfo) -> int:
        limit = (info.context or {}).get('max_attempts', DEFAULT_MAX_ATTEMPTS)
        if value > limit:
            raise ValueError(f'attempts must be at most {limit}')
        return value


class IWon(AttemptsReport):
    event: ClassVar[str] = 'iWon'


class AllAttemptsUsed(AttemptsReport):
    event: ClassVar[str] = 'allAttemptsUsed'


INBOUND_EVENTS: Dict[str, Type[InboundEvent]] = {
    model.event: model for model in (FindGame, IWon, AllAttemptsUsed)
}


def parse_inbound(event: str, data: Any, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> InboundEvent:
    """Validate a raw Socket.IO payload for ``event``.

    ``findGame`` also accepts the bare player name the browser client sends.
    Raises ``KeyError`` for an unknown event and pydantic's
    ``ValidationError`` for a malformed payload.
    """
    model = INBOUND_EVENTS[event]
    if model is FindGame and (data is None or isinstance(data, str)):
        data = {'name': data or ''}
    return model.model_validate(data, context={'max_attempts': max_attempts})


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        where = '.'.join(str(p) for p in err.get('loc', ())) or 'payload'
        parts.append(f"{where}: {err.get('msg')}")
    return '; '.join(parts)


class OutboundEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event: ClassVar[str]

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class AlreadyInGameOrSearching(OutboundEvent):
    event: ClassVar[str] = 'alreadyInGameOrSearching'

    message: str = 'You are already searching or in an active game.'


class GameStarted(OutboundEvent):
    event: ClassVar[str] = 'gameStarted'

    room_id: str
    word: str
    opponent_name: str
    my_name: str


class GameOver(OutboundEvent):
    event: ClassVar[str] = 'gameOver'

    result: Literal['win', 'lose', 'draw']
    word: str
    message: Optional[str] = None


class WaitingForOpponentFinish(OutboundEvent):
    event: ClassVar[str] = 'waitingForOpponentFinish'

    word: str
    message: str


class OpponentUpdate(OutboundEvent):
    event: ClassVar[str] = 'opponentUpdate'

    message: str


class LeaderboardEntry(OutboundEvent):
    name: str
    score: int
