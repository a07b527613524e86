def test_list_games(client):
    res = client.get('/api/games')
    assert res.status_code == 200
    catalog = res.get_json()
    assert [g['id'] for g in catalog] == ['wall-shapes', 'cowboy-duel', 'plumber', 'color-lines']
    titles = {g['id']: g['title'] for g in catalog}
    assert titles['wall-shapes'] == 'Shapes in the wall'
    assert titles['color-lines'] == 'Color Lines'
    assert all(g['html'] for g in catalog)


def test_series(client):
    res = client.get('/api/games/series')
    assert res.status_code == 200
    assert res.get_json()['sequence'][0] == 'wall-shapes'


def test_tutorial(client):
    res = client.get('/api/games/color-lines/tutorial')
    assert res.status_code == 200
    data = res.get_json()
    assert data['id'] == 'color-lines'
    assert 'data-technology="MakeyMakey"' in data['html']
    assert 'data-input="MakeyMakey"' in data['html']
    assert 'Tip:' in data['html']


def test_tutorial_for_unknown_game(client):
    res = client.get('/api/games/tetris/tutorial')
    assert res.status_code == 404
    assert 'error' in res.get_json()
