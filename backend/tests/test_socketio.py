from conftest import WORDS


def test_socket_connect_and_join(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    sio_client.get_received('/ws')

    sio_client.emit('join_category', {'category_code': '0000001'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'joined' for pkt in received)

    sio_client.emit('join_category', {'category_code': 'nope'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_play_notifies_category_room(sio_client, login):
    alice, _ = login('alice')
    alice.post('/api/categories', json={'title': 'Animals', 'words': WORDS})

    sio_client.emit('join_category', {'category_code': '0000001'}, namespace='/ws')
    sio_client.get_received('/ws')

    alice.post('/api/categories/0000001/plays', json={'newScore': 5})
    events = sio_client.get_received('/ws')
    updates = [e for e in events if e['name'] == 'category_update']
    assert updates
    assert updates[0]['args'][0] == {'category_code': '0000001', 'reason': 'played'}
