import pytest

from wordduel.services.matchmaking import (
    NotAParticipant,
    Participant,
    Session,
    SessionAlreadyFinished,
    SessionRegistry,
    SessionStatus,
    UnknownSession,
)


def everyone_live(_cid):
    return True


def make_session():
    return Session(id='room-1', participants=(Participant('a', 'Alice'), Participant('b', 'Bob')),
                   secret_word='crane')


def events(resolution):
    return [(n.connection_id or n.group, n.message.event, n.message.to_payload())
            for n in resolution.notices]


def test_win_finishes_session_and_tells_both():
    session = make_session()
    res = session.won('a', 3, everyone_live)
    assert session.status is SessionStatus.FINISHED
    assert session.winner_name == 'Alice'
    assert res.winner_name == 'Alice'
    assert session.participant('a').attempts == 3
    assert events(res) == [
        ('a', 'gameOver', {'result': 'win', 'word': 'crane', 'message': 'You guessed it in 3 tries!'}),
        ('b', 'gameOver', {'result': 'lose', 'word': 'crane', 'message': 'Alice finished first in 3 tries!'}),
    ]


def test_win_skips_dead_opponent():
    session = make_session()
    res = session.won('a', 2, lambda cid: cid == 'a')
    assert [cid for cid, _, _ in events(res)] == ['a']


def test_exhausted_after_win_is_rejected():
    session = make_session()
    session.won('a', 3, everyone_live)
    with pytest.raises(SessionAlreadyFinished):
        session.exhausted('b', 6, everyone_live)
    assert session.participant('b').finished is False


def test_exhausted_waits_for_live_opponent():
    session = make_session()
    res = session.exhausted('a', 6, everyone_live)
    assert session.status is SessionStatus.PLAYING
    assert res.winner_name is None
    assert events(res) == [
        ('a', 'waitingForOpponentFinish', {'word': 'crane', 'message': "You didn't get it. Waiting for opponent..."}),
        ('b', 'opponentUpdate', {'message': 'Alice has used all their attempts.'}),
    ]


def test_both_exhausted_is_a_group_draw():
    session = make_session()
    session.exhausted('a', 6, everyone_live)
    res = session.exhausted('b', 6, everyone_live)
    assert session.status is SessionStatus.FINISHED
    assert session.winner_name is None
    assert events(res) == [
        ('room-1', 'gameOver', {'result': 'draw', 'word': 'crane',
                                'message': "Neither of you got the word! It's a draw."}),
    ]


def test_exhausted_with_unreachable_opponent_finishes_as_draw():
    session = make_session()
    res = session.exhausted('a', 6, lambda cid: cid == 'a')
    assert session.status is SessionStatus.FINISHED
    assert session.winner_name is None
    assert [(cid, p['result']) for cid, _, p in events(res)] == [('a', 'draw')]


def test_duplicate_exhaustion_is_rejected():
    session = make_session()
    session.exhausted('a', 6, everyone_live)
    with pytest.raises(SessionAlreadyFinished):
        session.exhausted('a', 6, everyone_live)


def test_disconnect_forfeits_to_live_opponent():
    session = make_session()
    res = session.disconnected('a', lambda cid: cid == 'b')
    assert session.status is SessionStatus.FINISHED
    assert session.winner_name == 'Bob'
    assert res.winner_name == 'Bob'
    assert events(res) == [
        ('b', 'gameOver', {'result': 'win', 'word': 'crane', 'message': 'Alice disconnected. You win!'}),
    ]


def test_disconnect_after_finish_only_marks_participant():
    session = make_session()
    session.won('a', 1, everyone_live)
    res = session.disconnected('b', everyone_live)
    assert res.notices == []
    assert res.winner_name is None
    assert session.winner_name == 'Alice'
    assert session.participant('b').connected is False
    assert not session.abandoned()


def test_stranger_is_not_a_participant():
    session = make_session()
    with pytest.raises(NotAParticipant):
        session.won('zed', 1, everyone_live)


def test_registry_lookup_and_playing_search():
    registry = SessionRegistry(id_factory=iter(['s1', 's1', 's2']).__next__)
    first = registry.create(Participant('a', 'Alice'), Participant('b', 'Bob'), 'crane')
    second = registry.create(Participant('c', 'Cat'), Participant('d', 'Dan'), 'crane')
    assert (first.id, second.id) == ('s1', 's2')
    assert registry.get('s2') is second
    assert registry.find_playing('c') is second
    second.won('c', 2, everyone_live)
    assert registry.find_playing('c') is None
    with pytest.raises(UnknownSession):
        registry.get('nope')
    with pytest.raises(UnknownSession):
        registry.get(None)


def test_reap_drops_abandoned_and_expired_sessions():
    registry = SessionRegistry(id_factory=iter(['gone', 'old', 'fresh', 'live']).__next__)
    gone = registry.create(Participant('a', 'A'), Participant('b', 'B'), 'crane')
    old = registry.create(Participant('c', 'C'), Participant('d', 'D'), 'crane')
    fresh = registry.create(Participant('e', 'E'), Participant('f', 'F'), 'crane')
    registry.create(Participant('g', 'G'), Participant('h', 'H'), 'crane')

    gone.disconnected('a', lambda cid: False)
    gone.disconnected('b', lambda cid: False)
    old.won('c', 1, everyone_live)
    old.finished_at = 100.0
    fresh.won('e', 1, everyone_live)
    fresh.finished_at = 390.0

    reaped = registry.reap(now=400.0, idle_timeout=300)
    assert sorted(s.id for s in reaped) == ['gone', 'old']
    assert sorted(s.id for s in registry) == ['fresh', 'live']


def test_reap_without_timeout_keeps_finished_sessions():
    registry = SessionRegistry()
    session = registry.create(Participant('a', 'A'), Participant('b', 'B'), 'crane')
    session.won('a', 1, everyone_live)
    session.finished_at = 0.0
    assert registry.reap(now=10_000.0, idle_timeout=0) == []
    assert len(registry) == 1


def test_registry_clock_stamps_finished_at():
    registry = SessionRegistry(clock=lambda: 42.0)
    session = registry.create(Participant('a', 'A'), Participant('b', 'B'), 'crane')
    session.exhausted('a', 6, lambda cid: cid == 'a')
    assert session.finished_at == 42.0
    assert registry.reap(idle_timeout=1) == []
