import random

from impostor.errors import AuthorizationError, PreconditionError, ValidationError
from impostor.models import IMPOSTOR_SENTINEL, LOBBY, STARTED, VOTING, Room, sanitize_text

from .voting import resolve


def _require_host(room: Room, sid: str, action: str) -> None:
    if not room.is_host(sid):
        raise AuthorizationError(f'Only the host can {action}')


def start_round(room: Room, sid: str, min_players: int = 3, rng=None):
    """Lobby -> started. Picks the impostor and returns the private reveals.

    Returns a list of ``(sid, payload)`` pairs, one per player; payloads
    must be sent individually, never broadcast.
    """
    _require_host(room, sid, 'start the game')
    if room.phase != LOBBY:
        raise PreconditionError('The round has already started')
    if len(room.players) < min_players:
        raise PreconditionError(f'At least {min_players} players are required to start')

    rng = rng or random
    tokens = [p.token for p in room.ordered_players()]
    room.impostor_token = rng.choice(tokens)
    room.votes.clear()
    room.last_result = None
    room.round_number += 1
    room.phase = STARTED

    reveals = []
    for p in room.ordered_players():
        is_impostor = p.token == room.impostor_token
        reveals.append((p.sid, {
            'code': room.code,
            'name': p.display_name,
            'role': 'impostor' if is_impostor else 'player',
            'shown': IMPOSTOR_SENTINEL if is_impostor else room.secret_word,
        }))
    return reveals


def open_vote(room: Room, sid: str) -> None:
    """Started -> voting. Re-opening an open ballot starts it over."""
    _require_host(room, sid, 'open the vote')
    if room.phase not in (STARTED, VOTING):
        raise PreconditionError('Voting can only open during a round')
    room.votes.clear()
    room.phase = VOTING


def close_vote(room: Room, sid: str):
    """Voting -> resolved; returns the result payload."""
    _require_host(room, sid, 'close the vote')
    if room.phase != VOTING:
        raise PreconditionError('Voting is not open')
    return resolve(room)


def new_round(room: Room, sid: str, word: str, max_len: int = 30) -> None:
    """Any phase -> lobby with a fresh secret word; the scoreboard survives."""
    _require_host(room, sid, 'prepare a new round')
    word = sanitize_text(word, max_len)
    if not word:
        raise ValidationError('Enter a new secret word')
    room.secret_word = word
    abort_round(room)


def abort_round(room: Room) -> None:
    """Back to the lobby without scoring, keeping the secret word."""
    room.phase = LOBBY
    room.impostor_token = None
    room.votes.clear()
    room.last_result = None
