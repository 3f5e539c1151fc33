def _create(client, name='Alice', **extra):
    res = client.post('/api/games/create', json=dict(name=name, **extra))
    assert res.status_code == 201
    data = res.get_json()
    return data['game_code'], data['player']


def _join(client, code, name):
    res = client.post('/api/games/join', json={'game_code': code, 'name': name})
    assert res.status_code == 201
    return res.get_json()


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json()['questions_available'] > 0


def test_create_game(client):
    res = client.post('/api/games/create', json={'name': 'Alice'})
    assert res.status_code == 201
    data = res.get_json()
    assert 'game_code' in data
    assert data['player']['is_host'] is True


def test_create_game_requires_name(client):
    res = client.post('/api/games/create', json={})
    assert res.status_code == 400
    assert 'error' in res.get_json()


def test_join_and_state(client):
    code, host = _create(client)
    bob = _join(client, code.lower(), 'Bob')
    res = client.get(f'/api/games/{code}/state', query_string={'player_id': bob['id']})
    assert res.status_code == 200
    game = res.get_json()
    assert game['game_code'] == code
    assert game['phase'] == 'lobby'
    assert [p['name'] for p in game['players']] == ['Alice', 'Bob']
    assert game['view']['can_start'] is True


def test_join_errors(client):
    res = client.post('/api/games/join', json={'game_code': 'ZZZZ', 'name': 'Bob'})
    assert res.status_code == 404
    res = client.post('/api/games/join', json={'name': 'Bob'})
    assert res.status_code == 400

    code, host = _create(client)
    _join(client, code, 'Bob')
    client.post(f'/api/games/{code}/start', json={'player_id': host['id']})
    res = client.post('/api/games/join', json={'game_code': code, 'name': 'Late'})
    assert res.status_code == 403


def test_start_needs_two_players(client):
    code, host = _create(client)
    res = client.post(f'/api/games/{code}/start', json={'player_id': host['id']})
    assert res.status_code == 400
    state = client.get(f'/api/games/{code}/state').get_json()
    assert state['phase'] == 'lobby'


def test_host_only_actions(client):
    code, host = _create(client)
    bob = _join(client, code, 'Bob')
    res = client.post(f'/api/games/{code}/start', json={'player_id': bob['id']})
    assert res.status_code == 403


def test_round_flow(client):
    code, alice = _create(client, total_rounds=1)
    bob = _join(client, code, 'Bob')

    started = client.post(f'/api/games/{code}/start', json={'player_id': alice['id']}).get_json()
    assert started['phase'] == 'answering'
    assert started['current_round'] == 1
    assert started['view']['question'] == started['current_question']

    assert client.post(f'/api/games/{code}/answers', json={'player_id': alice['id'], 'text': 'Bob'}).status_code == 201
    res = client.post(f'/api/games/{code}/answers', json={'player_id': bob['id'], 'text': 'Alice'})
    assert res.status_code == 201
    bob_answer_id = res.get_json()['answer_id']
    dup = client.post(f'/api/games/{code}/answers', json={'player_id': bob['id'], 'text': 'Again'})
    assert dup.status_code == 400

    voting = client.post(f'/api/games/{code}/voting', json={'player_id': alice['id']}).get_json()
    assert voting['phase'] == 'voting'
    # Authors stay hidden while voting
    assert all('player_id' not in a for a in voting['answers'])
    assert [a['id'] for a in voting['view']['answers']] == [bob_answer_id]

    res = client.post(f'/api/games/{code}/votes', json={
        'player_id': alice['id'], 'answer_id': bob_answer_id, 'guessed_player_id': alice['id'],
    })
    assert res.status_code == 400
    res = client.post(f'/api/games/{code}/votes', json={
        'player_id': alice['id'], 'answer_id': bob_answer_id, 'guessed_player_id': bob['id'],
    })
    assert res.status_code == 201

    results = client.post(f'/api/games/{code}/results', json={'player_id': alice['id']}).get_json()
    assert results['phase'] == 'results'
    scores = {p['name']: p['score'] for p in results['players']}
    assert scores == {'Alice': 100, 'Bob': 0}

    # Repeated results request must not award twice
    again = client.post(f'/api/games/{code}/results', json={'player_id': alice['id']}).get_json()
    assert {p['name']: p['score'] for p in again['players']} == scores

    final = client.post(f'/api/games/{code}/advance', json={'player_id': alice['id'], 'from_round': 1}).get_json()
    assert final['phase'] == 'leaderboard'
    assert final['current_round'] == 1
    assert [r['name'] for r in final['view']['ranking']] == ['Alice', 'Bob']


def test_wrong_phase_is_a_conflict(client):
    code, alice = _create(client)
    _join(client, code, 'Bob')
    res = client.post(f'/api/games/{code}/advance', json={'player_id': alice['id']})
    assert res.status_code == 409


def test_bad_from_round(client):
    code, alice = _create(client)
    res = client.post(f'/api/games/{code}/advance', json={'player_id': alice['id'], 'from_round': 'soon'})
    assert res.status_code == 400
