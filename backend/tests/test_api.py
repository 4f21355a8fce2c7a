from conftest import WORDS


def test_register_and_check_login(client):
    res = client.post('/register', json={'username': 'alice', 'password': 'pw'})
    assert res.status_code == 201
    assert res.get_json()['user']['username'] == 'alice'
    res = client.get('/check_login')
    assert res.status_code == 200
    assert client.post('/register', json={'username': 'alice', 'password': 'pw'}).status_code == 400
    assert client.post('/register', json={'username': 'bad:name', 'password': 'pw'}).status_code == 400


def test_category_routes_require_login(client):
    assert client.get('/api/categories/session').status_code == 401
    assert client.post('/api/categories', json={'title': 'Animals', 'words': WORDS}).status_code == 401


def test_session_bootstraps_ledger(login):
    alice, user = login('alice')
    data = alice.get('/api/categories/session').get_json()
    assert data['username'] == 'alice'
    assert data['userID'] == user.user_id
    assert data['userAllowedToCreate'] is True
    assert data['createdCount'] == 0
    assert alice.get('/api/categories/form').get_json() == {'correctly': 'true'}


def test_create_list_play_delete(login):
    alice, _ = login('alice')
    bob, _ = login('bob')

    res = alice.post('/api/categories', json={'title': 'Animals', 'words': WORDS})
    assert res.status_code == 201
    assert res.get_json() == {'status': 'formedCorrectly', 'categoryTitle': 'Animals', 'categoryCode': '0000001'}

    res = alice.post('/api/categories', json={'title': 'Bad:title', 'words': WORDS})
    assert res.status_code == 400
    assert res.get_json() == {'status': 'validationFailed', 'titleCorrect': False, 'wordsCorrect': True}

    listing = bob.get('/api/categories?sort=time').get_json()
    assert listing['cursor'] == 0
    assert [c['code'] for c in listing['categories']] == ['0000001']
    assert listing['categories'][0]['creator'] == 'alice'

    words = bob.get('/api/categories/0000001/words').get_json()['words']
    assert len(words) == 10

    played = bob.post('/api/categories/0000001/plays', json={'newScore': 7}).get_json()
    assert played['information'] == 'NEWHS'
    played = alice.post('/api/categories/0000001/plays', json={'newScore': 3}).get_json()
    assert played['information'] == 'NOTHS'
    assert played['categoryInfo'] == 'bob:7'

    category = bob.get('/api/categories/0000001').get_json()
    assert (category['plays'], category['high_score']) == (2, 7)

    assert bob.delete('/api/categories/0000001').get_json()['success'] is False
    res = alice.delete('/api/categories/0000001').get_json()
    assert res == {'success': True, 'categoryCode': '0000001'}
    assert bob.get('/api/categories/0000001').status_code == 404
    assert bob.post('/api/categories/0000001/plays', json={'newScore': 1}).status_code == 404


def test_listing_pages_and_sorts(flask_app, login):
    flask_app.config['CATEGORY_PAGE_SIZE'] = 2
    alice, _ = login('alice')
    bob, _ = login('bob')
    for title in ('One', 'Two', 'Three'):
        assert alice.post('/api/categories', json={'title': title, 'words': WORDS}).status_code == 201
    bob.post('/api/categories/0000002/plays', json={'newScore': 4})

    first = bob.get('/api/categories?sort=plays').get_json()
    assert first['cursor'] == 1
    assert first['categories'][0]['code'] == '0000002'
    second = bob.get('/api/categories?sort=plays&cursor=1').get_json()
    assert second['cursor'] == 0
    assert len(second['categories']) == 1

    best = bob.get('/api/categories?sort=score').get_json()
    assert best['categories'][0]['code'] == '0000002'
    lowest = bob.get('/api/categories?sort=score&reversed=true').get_json()
    assert '0000002' not in [c['code'] for c in lowest['categories']]
    assert lowest['cursor'] == 1

    mine = alice.get('/api/categories/mine').get_json()['createdCategories']
    assert [c['title'] for c in mine] == ['One', 'Two', 'Three']


def test_delete_all_user_data(login):
    alice, user = login('alice')
    alice.post('/api/categories', json={'title': 'Animals', 'words': WORDS})
    assert alice.delete('/api/categories/user-data').get_json() == {'deleted': True}
    assert alice.get('/api/categories/0000001').status_code == 404
    assert alice.delete('/api/categories/user-data').get_json() == {'deleted': False}


def test_post_deleted_trigger_is_moderator_only(login, store):
    from wordtrail.services.store import RecordStore
    alice, _ = login('alice')
    mod, _ = login('mod', is_moderator=True)
    alice.post('/api/categories', json={'title': 'Animals', 'words': WORDS})
    post_id = RecordStore(store).get_category('0000001').post_id

    assert alice.post(f'/api/categories/posts/{post_id}/deleted').status_code == 403
    res = mod.post(f'/api/categories/posts/{post_id}/deleted').get_json()
    assert res == {'kind': 'category', 'categoryCode': '0000001', 'committed': True}
    assert alice.get('/api/categories/0000001').status_code == 404


def test_each_client_keeps_its_own_login(login):
    alice, _ = login('alice')
    bob, _ = login('bob')
    assert alice.get('/check_login').get_json()['user']['username'] == 'alice'
    assert bob.get('/check_login').get_json()['user']['username'] == 'bob'
    assert alice.get('/api/categories/session').get_json()['username'] == 'alice'


def test_unreadable_ledger_is_a_json_error(login, store):
    from wordtrail.services.store import keys
    alice, user = login('alice')
    store.hset(keys.LEDGERS, user.user_id, 'alice:h:0000001:c:0000002')

    res = alice.get('/api/categories/session')
    assert res.status_code == 409
    assert res.get_json() == {'error': 'Stored game data could not be read'}
