from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from impostor import socketio
from impostor.broadcast import channel_for
from impostor.codes import normalize_code
from impostor.errors import ExternalVerificationError, NotFoundError, PreconditionError, RoomError
from impostor.models import LOBBY
from impostor.schemas import (
    CastVoteRequest,
    CreateRoomRequest,
    JoinRoomRequest,
    NewRoundRequest,
    RoomRequest,
    VerifyIdentityRequest,
    parse_intent,
)
from impostor.services.rooms import lifecycle, membership, voting


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _ctx():
    return current_app.extensions['impostor']


def _touch(ctx, room) -> None:
    room.touch(ctx.registry.clock())


def intent(schema):
    """Wrap a handler as a Socket.IO intent with a ``{ok, error?, ...}`` ack.

    The payload is validated against ``schema`` before the handler runs.
    Room errors become a negative ack instead of propagating.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(data=None):
            sid = _get_sid()
            try:
                req = parse_intent(schema, data)
                result = fn(_ctx(), sid, req)
            except RoomError as exc:
                event = getattr(request, 'event', None) or {}
                current_app.logger.info(
                    f"[intent-rejected] event={event.get('message', fn.__name__)} sid={sid} kind={exc.kind} error={exc.message}"
                )
                return exc.to_ack()
            ack = {'ok': True}
            if result:
                ack.update(result)
            return ack
        return wrapper
    return decorator


def _publish_departure(ctx, room, outcome) -> None:
    if outcome.closed:
        ctx.broadcaster.room_closed(room.code, outcome.reason)
        current_app.logger.info(f"[room-close] code={room.code} reason={outcome.reason}")
        return
    if outcome.player is None:
        return
    _touch(ctx, room)
    if outcome.round_aborted:
        current_app.logger.info(f"[round-abort] code={room.code} reason=impostor_left")
    if outcome.ballot_changed:
        ctx.broadcaster.vote_update(room)
    ctx.broadcaster.room_update(room)


@intent(CreateRoomRequest)
def create_room(ctx, sid, req):
    room = ctx.registry.create(sid, req.hostName, req.word)
    join_room(channel_for(room.code))
    with room.lock:
        ctx.broadcaster.room_update(room)
    current_app.logger.info(f"[room-create] code={room.code} host={room.host_name}")
    return {'code': room.code, 'isHost': True}


@intent(JoinRoomRequest)
def join_game(ctx, sid, req):
    code = normalize_code(req.code)
    # Fail fast before a possibly slow verification call
    with ctx.registry.locked(code) as room:
        if room.phase != LOBBY:
            raise PreconditionError('The game has already started; ask the host for a new round')

    identity = membership.resolve_identity(
        req.name, req.identity, req.credential, ctx.verifier, ctx.require_identity
    )

    with ctx.registry.locked(code) as room:
        player = membership.join(ctx.registry, room, sid, req.name, identity)
        join_room(channel_for(room.code))
        _touch(ctx, room)
        ctx.broadcaster.room_update(room)
    current_app.logger.info(f"[room-join] code={code} token={player.token} players={len(room.players)}")
    return {'code': code, 'token': player.token, 'name': player.display_name, 'isHost': False}


@intent(RoomRequest)
def start_game(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        reveals = lifecycle.start_round(room, sid, ctx.registry.settings.min_players, ctx.registry.rng)
        _touch(ctx, room)
        ctx.broadcaster.reveals(reveals)
        ctx.broadcaster.host_started(room)
        ctx.broadcaster.room_update(room)
        current_app.logger.info(f"[round-start] code={room.code} round={room.round_number} players={len(room.players)}")
        return {'round': room.round_number}


@intent(RoomRequest)
def open_vote(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        lifecycle.open_vote(room, sid)
        _touch(ctx, room)
        ctx.broadcaster.vote_open(room)
        ctx.broadcaster.room_update(room)


@intent(CastVoteRequest)
def cast_vote(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        voting.cast_vote(room, sid, req.targetToken)
        _touch(ctx, room)
        ctx.broadcaster.vote_update(room)
        ctx.broadcaster.room_update(room)


@intent(RoomRequest)
def close_vote(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        result = lifecycle.close_vote(room, sid)
        _touch(ctx, room)
        ctx.broadcaster.vote_closed(room, result)
        ctx.broadcaster.room_update(room)
        current_app.logger.info(
            f"[vote-close] code={room.code} caught={result['caught']} max_votes={result['maxVotes']}"
        )
        return {'caught': result['caught']}


@intent(NewRoundRequest)
def new_round(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        lifecycle.new_round(room, sid, req.word, ctx.registry.settings.word_max_len)
        _touch(ctx, room)
        ctx.broadcaster.room_update(room)


@intent(RoomRequest)
def leave_game(ctx, sid, req):
    with ctx.registry.locked(req.code) as room:
        outcome = membership.leave(ctx.registry, room, sid)
        leave_room(channel_for(room.code))
        _publish_departure(ctx, room, outcome)


@intent(VerifyIdentityRequest)
def verify_identity(ctx, sid, req):
    if ctx.verifier is None:
        raise ExternalVerificationError('Identity verification is not configured')
    return ctx.verifier.verify(req.credential).to_dict()


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {request.namespace}'})


def handle_disconnect(reason=None):
    # A dropped connection is an ordinary leave
    ctx = _ctx()
    sid = _get_sid()
    affiliation = ctx.registry.affiliation(sid)
    if not affiliation:
        return
    code, _ = affiliation
    try:
        with ctx.registry.locked(code) as room:
            outcome = membership.leave(ctx.registry, room, sid)
            _publish_departure(ctx, room, outcome)
    except NotFoundError:
        ctx.registry.release(sid)


def handle_error(exc):
    current_app.logger.exception(f"[intent-error] sid={_get_sid()} error={exc!r}")
    return {'ok': False, 'error': 'Internal server error', 'kind': 'internal'}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', create_room, namespace=namespace)
    socketio.on_event('join_room', join_game, namespace=namespace)
    socketio.on_event('start_game', start_game, namespace=namespace)
    socketio.on_event('open_vote', open_vote, namespace=namespace)
    socketio.on_event('cast_vote', cast_vote, namespace=namespace)
    socketio.on_event('close_vote', close_vote, namespace=namespace)
    socketio.on_event('new_round', new_round, namespace=namespace)
    socketio.on_event('leave_room', leave_game, namespace=namespace)
    socketio.on_event('verify_identity', verify_identity, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
