from impostor.services.rooms.voting import ballot


def channel_for(code: str) -> str:
    return f"room:{code}"


class RoomBroadcaster:
    """Fan-out of room notifications over Socket.IO.

    Public snapshots go to the room channel; reveals and host-only notices
    go to a single sid. Call while holding ``room.lock`` so notifications
    leave in the same order as the mutations that caused them.
    """

    def __init__(self, socketio, namespace='/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def _to_room(self, event, payload, code):
        self.socketio.emit(event, payload, to=channel_for(code), namespace=self.namespace)

    def _to_sid(self, event, payload, sid):
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def room_update(self, room):
        self._to_room('room_update', room.to_dict(), room.code)

    def reveals(self, reveals):
        for sid, payload in reveals:
            self._to_sid('reveal', payload, sid)

    def host_started(self, room):
        self._to_sid('host_started', {
            'code': room.code,
            'playerCount': len(room.players),
            'round': room.round_number,
        }, room.host_sid)

    def vote_open(self, room):
        self._to_room('vote_open', ballot(room), room.code)

    def vote_update(self, room):
        self._to_room('vote_update', ballot(room), room.code)

    def vote_closed(self, room, result):
        self._to_room('vote_closed', result, room.code)

    def room_closed(self, code, reason):
        self._to_room('room_closed', {'code': code, 'reason': reason}, code)
        self.socketio.close_room(channel_for(code), namespace=self.namespace)
