import pytest

from impostor.errors import AuthorizationError, ConflictError, PreconditionError
from impostor.models import RESOLVED, ScoreRow
from impostor.services.rooms import lifecycle, voting

from conftest import HOST, make_room, started_room


def voting_room(registry, n=5):
    room = started_room(registry, n)
    lifecycle.open_vote(room, HOST)
    return room


def by_name(room):
    return {p.display_name: p for p in room.players.values()}


def test_cast_vote_requires_open_ballot(registry):
    room = started_room(registry)
    a, b = room.ordered_players()[:2]
    with pytest.raises(PreconditionError):
        voting.cast_vote(room, a.sid, b.token)
    assert room.votes == {}


def test_invalid_votes_do_not_alter_ballot(registry):
    room = voting_room(registry)
    a, b = room.ordered_players()[:2]
    voting.cast_vote(room, a.sid, b.token)
    snapshot = dict(room.votes)

    with pytest.raises(ConflictError):
        voting.cast_vote(room, a.sid, a.token)
    with pytest.raises(ConflictError):
        voting.cast_vote(room, a.sid, 'ZZZZ')
    with pytest.raises(AuthorizationError):
        voting.cast_vote(room, HOST, b.token)
    with pytest.raises(AuthorizationError):
        voting.cast_vote(room, 'stranger', b.token)
    assert room.votes == snapshot


def test_host_is_never_a_target(registry):
    room = voting_room(registry)
    a = room.ordered_players()[0]
    # The host has no token; its sid is not a valid target either
    with pytest.raises(ConflictError):
        voting.cast_vote(room, a.sid, HOST)


def test_revote_overwrites(registry):
    room = voting_room(registry)
    a, b, c = room.ordered_players()[:3]
    voting.cast_vote(room, a.sid, b.token)
    voting.cast_vote(room, a.sid, c.token)
    assert room.votes == {a.sid: c.token}
    for p in room.ordered_players():
        target = b if p is not b else c
        voting.cast_vote(room, p.sid, target.token)
        voting.cast_vote(room, p.sid, target.token)
    assert len(room.votes) <= len(room.players)
    counts = voting.tally(room)
    assert sum(counts.values()) == len(room.players)
    assert set(counts) == {p.token for p in room.players.values()}


def test_tie_including_impostor_counts_as_caught(registry):
    room = voting_room(registry, 5)
    p = by_name(room)
    a, b, c, d, e = (p[f'Player{i}'] for i in range(5))
    room.impostor_token = a.token
    voting.cast_vote(room, d.sid, a.token)
    voting.cast_vote(room, e.sid, a.token)
    voting.cast_vote(room, a.sid, b.token)
    voting.cast_vote(room, c.sid, b.token)

    result = lifecycle.close_vote(room, HOST)

    assert result['caught'] is True
    assert result['maxVotes'] == 2
    assert set(result['topTokens']) == {a.token, b.token}
    assert result['counts'][c.token] == 0
    assert result['impostorToken'] == a.token
    assert result['impostorName'] == 'Player0'
    wins = {k: (r.accuser_wins, r.impostor_wins) for k, r in room.scoreboard.items()}
    assert wins['p3@school.test'] == (1, 0)
    assert wins['p4@school.test'] == (1, 0)
    assert wins['p2@school.test'] == (0, 0)
    assert wins['p0@school.test'] == (0, 0)
    assert room.phase == RESOLVED
    assert room.last_result is result


def test_no_votes_means_impostor_escapes(registry):
    room = voting_room(registry, 3)
    impostor = room.impostor()
    result = lifecycle.close_vote(room, HOST)
    assert result['caught'] is False
    assert result['maxVotes'] == 0
    assert result['topTokens'] == []
    assert room.scoreboard[impostor.identity].impostor_wins == 1


def test_unanimous_wrong_vote_rewards_impostor(registry):
    room = voting_room(registry, 4)
    impostor = room.impostor()
    crew = [p for p in room.ordered_players() if p is not impostor]
    target = crew[0]
    for p in room.ordered_players():
        if p is target:
            voting.cast_vote(room, p.sid, crew[1].token)
        else:
            voting.cast_vote(room, p.sid, target.token)

    result = lifecycle.close_vote(room, HOST)

    assert result['caught'] is False
    assert result['topTokens'] == [target.token]
    top = result['leaderboard'][0]
    assert top['name'] == impostor.display_name
    assert top['impostorWins'] == 1
    assert top['totalWins'] == 1
    assert all(r['accuserWins'] == 0 for r in result['leaderboard'])


def test_leaderboard_order_is_total_then_accuser_then_name(registry):
    room = make_room(registry, 0)
    room.scoreboard = {
        'a': ScoreRow('Zed', accuser_wins=1, impostor_wins=1),
        'b': ScoreRow('Amy', accuser_wins=0, impostor_wins=2),
        'c': ScoreRow('Bob', accuser_wins=2, impostor_wins=0),
        'd': ScoreRow('Abe', accuser_wins=2, impostor_wins=0),
        'e': ScoreRow('Cy'),
    }
    names = [r['name'] for r in voting.leaderboard(room)]
    assert names == ['Abe', 'Bob', 'Zed', 'Amy', 'Cy']


def test_ballot_lists_zeroed_counts(registry):
    room = voting_room(registry, 3)
    ballot = voting.ballot(room)
    assert ballot['totalVotes'] == 0
    assert list(ballot['counts'].values()) == [0, 0, 0]
    assert [p['token'] for p in ballot['players']] == [p.token for p in room.ordered_players()]
