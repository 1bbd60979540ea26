from flask_socketio import join_room, leave_room, emit


def _room_for(data):
    duel_id = (data or {}).get('duel_id')
    if duel_id is None or str(duel_id).strip() == '':
        emit('error', {'message': 'duel_id is required'})
        return None
    return f"duel:{duel_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_duel(data):
    room = _room_for(data)
    if not room:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_duel(data):
    room = _room_for(data)
    if not room:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from hackduel import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_duel', handle_join_duel, namespace='/ws')
    socketio.on_event('leave_duel', handle_leave_duel, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_duel', handle_join_duel, namespace='/')
        socketio.on_event('leave_duel', handle_leave_duel, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
