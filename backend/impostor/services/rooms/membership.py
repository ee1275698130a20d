from impostor.codes import random_token
from impostor.errors import (
    ConflictError,
    ExternalVerificationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from impostor.models import LOBBY, RESOLVED, STARTED, VOTING, Player, ScoreRow

from .lifecycle import abort_round


class Identity:
    __slots__ = ('key', 'display_name', 'email')

    def __init__(self, key, display_name=None, email=None):
        self.key = key
        self.display_name = display_name
        self.email = email


class LeaveOutcome:
    """What a departure changed, so the transport knows what to publish."""

    def __init__(self, closed=False, reason=None, player=None, round_aborted=False, ballot_changed=False):
        self.closed = closed
        self.reason = reason
        self.player = player
        self.round_aborted = round_aborted
        self.ballot_changed = ballot_changed


def resolve_identity(name, identity=None, credential=None, verifier=None, require=False) -> Identity:
    """Work out the durable identity a join is scored under.

    A credential is checked with the external verifier (a blocking call, so
    never make it while holding a room lock) and its email wins. Without an
    identity system the client-supplied identity, or else the display name,
    is used as-is.
    """
    if credential:
        if verifier is None:
            raise ExternalVerificationError('Identity verification is not configured')
        verified = verifier.verify(credential)
        return Identity(verified.email.strip().lower(), verified.name, verified.email)
    if require:
        raise ValidationError('Sign in before joining this room')
    key = str(identity or '').strip() or str(name or '').strip()
    return Identity(key.casefold())


def join(registry, room, sid, name, identity: Identity) -> Player:
    """Add ``sid`` to ``room`` as a player. Caller holds ``room.lock``.

    Everything is checked again here even if the caller looked before an
    identity verification wait, since the room may have started or filled
    in the meantime.
    """
    if room.closed:
        raise NotFoundError('Room not found')
    if room.phase != LOBBY:
        raise PreconditionError('The game has already started; ask the host for a new round')
    display_name = registry.sanitize_name(name) or registry.sanitize_name(identity.display_name)
    if not display_name:
        raise ValidationError('Enter your name')
    if not identity.key:
        raise ValidationError('An identity is required')
    if room.is_host(sid):
        raise ConflictError('The host cannot join as a player')
    if registry.affiliation(sid) is not None:
        raise ConflictError('This connection is already in a room; leave it first')
    if any(p.identity == identity.key for p in room.players.values()):
        raise ConflictError('That player is already in the room')

    s = registry.settings
    token = random_token((p.token for p in room.players.values()), s.token_length, s.code_alphabet, registry.rng)
    registry.affiliate(sid, room.code, is_host=False)
    player = Player(sid, display_name, token, identity.key, registry.clock())
    room.players[sid] = player
    row = room.scoreboard.get(identity.key)
    if row is None:
        room.scoreboard[identity.key] = ScoreRow(display_name)
    else:
        row.name = display_name
    return player


def leave(registry, room, sid) -> LeaveOutcome:
    """Remove ``sid`` from ``room``; the host leaving closes the room. Caller holds ``room.lock``."""
    if room.is_host(sid):
        registry.delete(room.code)
        return LeaveOutcome(closed=True, reason='host_left')

    player = room.players.pop(sid, None)
    if player is None:
        return LeaveOutcome()
    registry.release(sid)

    outcome = LeaveOutcome(player=player)
    room.votes.pop(sid, None)
    for voter, target in list(room.votes.items()):
        if target == player.token:
            del room.votes[voter]

    if player.token == room.impostor_token:
        if room.phase in (STARTED, VOTING):
            # The round cannot continue without its impostor
            abort_round(room)
            outcome.round_aborted = True
        elif room.phase == RESOLVED:
            room.impostor_token = None

    outcome.ballot_changed = room.phase == VOTING
    return outcome
