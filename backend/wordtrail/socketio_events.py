from flask_socketio import join_room, leave_room, emit

from wordtrail.services.store.codes import is_valid_code


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_category(data):
    code = (data or {}).get('category_code')
    if not is_valid_code(code):
        emit('error', {'message': 'category_code is required'})
        return
    room = f"category:{code}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_category(data):
    code = (data or {}).get('category_code')
    if not is_valid_code(code):
        emit('error', {'message': 'category_code is required'})
        return
    room = f"category:{code}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from wordtrail import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_category', handle_join_category, namespace='/ws')
    socketio.on_event('leave_category', handle_leave_category, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_category', handle_join_category, namespace='/')
        socketio.on_event('leave_category', handle_leave_category, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
