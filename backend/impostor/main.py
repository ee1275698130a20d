from flask import Blueprint, current_app, jsonify

from impostor.models import RESOLVED

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Classroom Impostor game server!'})


@main.route('/healthz')
def healthz():
    registry = current_app.extensions['impostor'].registry
    return jsonify({'ok': True, 'rooms': len(registry)})


@main.route('/api/rooms/<string:code>', methods=['GET'])
def get_room_state(code):
    """Public snapshot of a room, for clients that reconnect mid-round."""
    registry = current_app.extensions['impostor'].registry
    room = registry.get(code)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        if room.closed:
            return jsonify({'error': 'Room not found'}), 404
        payload = room.to_dict()
        if room.phase == RESOLVED and room.last_result:
            payload['lastResult'] = room.last_result
    return jsonify(payload)
