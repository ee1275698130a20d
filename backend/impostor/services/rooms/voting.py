from typing import Dict

from impostor.errors import AuthorizationError, ConflictError, PreconditionError
from impostor.models import RESOLVED, VOTING, Room


def cast_vote(room: Room, sid: str, target_token: str) -> None:
    """Record ``sid``'s vote for ``target_token``; a later vote overwrites."""
    if room.phase != VOTING:
        raise PreconditionError('Voting is not open')
    if room.is_host(sid):
        raise AuthorizationError('The host does not vote')
    voter = room.players.get(sid)
    if voter is None:
        raise AuthorizationError('You are not a player in this room')
    target = room.player_by_token(target_token)
    if target is None:
        raise ConflictError('That player is not in the room')
    if target.sid == sid:
        raise ConflictError('You cannot vote for yourself')
    room.votes[sid] = target.token


def tally(room: Room) -> Dict[str, int]:
    """Vote counts per present player, recomputed from ``room.votes``."""
    counts = {p.token: 0 for p in room.ordered_players()}
    for target in room.votes.values():
        if target in counts:
            counts[target] += 1
    return counts


def ballot(room: Room):
    counts = tally(room)
    return {
        'code': room.code,
        'players': [p.to_dict() for p in room.ordered_players()],
        'counts': counts,
        'totalVotes': sum(counts.values()),
    }


def leaderboard(room: Room):
    rows = sorted(
        room.scoreboard.values(),
        key=lambda r: (-r.total_wins, -r.accuser_wins, r.name),
    )
    return [r.to_dict() for r in rows]


def resolve(room: Room):
    """Close the ballot: decide whether the impostor was caught and score it.

    The impostor is caught when they are among the most-voted players, so a
    tie that includes them still counts against them. Caught: each voter who
    picked the impostor gets an accuser win. Otherwise the impostor gets an
    impostor win. Returns the ``vote_closed`` payload.
    """
    impostor = room.impostor()
    counts = tally(room)
    max_votes = max(counts.values(), default=0)
    top_tokens = [t for t, n in counts.items() if max_votes > 0 and n == max_votes]
    caught = impostor is not None and impostor.token in top_tokens

    if impostor is not None:
        if caught:
            for voter_sid, target in room.votes.items():
                voter = room.players.get(voter_sid)
                if voter is None or target != impostor.token:
                    continue
                row = room.scoreboard.get(voter.identity)
                if row is not None:
                    row.accuser_wins += 1
        else:
            row = room.scoreboard.get(impostor.identity)
            if row is not None:
                row.impostor_wins += 1

    room.phase = RESOLVED
    result = ballot(room)
    result.update({
        'impostorName': impostor.display_name if impostor else None,
        'impostorToken': impostor.token if impostor else None,
        'caught': caught,
        'maxVotes': max_votes,
        'topTokens': top_tokens,
        'leaderboard': leaderboard(room),
    })
    room.last_result = result
    return result
