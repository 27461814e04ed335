import pytest


def post(client, url, token, payload=None):
    return client.post(url, json=payload if payload is not None else {}, headers={'X-CSRF-Token': token})


def make_operator(client, token, username='joana', shifts=('first',)):
    r = post(client, '/api/users', token, {
        'username': username,
        'password': 'senha1',
        'role': 'operator',
        'shifts': list(shifts),
        'allowedPages': ['entry', 'reports'],
    })
    assert r.status_code == 201
    return r.get_json()


# ═══════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def test_session_requires_login(client):
    r = client.get('/api/auth/session')
    assert r.status_code == 401
    assert r.get_json() == {'isAuthenticated': False}


def test_login_and_session(client, admin_token):
    r = client.get('/api/auth/session')
    assert r.status_code == 200
    data = r.get_json()
    assert data['isAuthenticated'] is True
    assert data['username'] == 'admin'
    assert data['csrfToken'] == admin_token


@pytest.mark.parametrize('payload, status, message', [
    ({}, 400, 'Usuário e senha são obrigatórios.'),
    ({'username': 'admin', 'password': 'errada'}, 401, 'Usuário ou senha inválidos.'),
])
def test_login_errors(client, payload, status, message):
    r = client.post('/api/auth/login', json=payload)
    assert r.status_code == status
    assert r.get_json() == {'message': message}


def test_operator_needs_allowed_shift(client, admin_token):
    make_operator(client, admin_token)
    r = client.post('/api/auth/login', json={'username': 'joana', 'password': 'senha1', 'selectedShift': 'second'})
    assert r.status_code == 403
    r = client.post('/api/auth/login', json={'username': 'joana', 'password': 'senha1', 'selectedShift': 'first'})
    assert r.status_code == 200
    assert r.get_json()['shift'] == 'first'


def test_logout_requires_csrf_and_clears_session(client, admin_token):
    r = client.post('/api/auth/logout', json={})
    assert r.status_code == 403
    assert r.get_json() == {'ok': False, 'error': 'CSRF token inválido'}

    r = post(client, '/api/auth/logout', admin_token)
    assert r.status_code == 200
    assert client.get('/api/auth/session').status_code == 401


def test_security_headers(client):
    r = client.get('/api/auth/session')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


# ═══════════════════════════════════════════════════════════════════════════
# LANZAMIENTOS
# ═══════════════════════════════════════════════════════════════════════════

def test_entries_require_login(client):
    r = client.get('/api/daily-entry/2024-07-15')
    assert r.status_code == 401
    assert r.get_json() == {'message': 'Não autorizado: você precisa estar logado.'}


def test_entry_roundtrip(client, admin_token):
    r = client.get('/api/daily-entry/2024-07-15')
    assert r.status_code == 404
    assert r.get_json()['message'] == 'Lançamento para a data 2024-07-15 não encontrado'

    body = {'date': '2024-07-15', 'madrugada': {'channels': {'madrugadaRoomServicePagDireto': {'vtotal': 50}}}}
    r = post(client, '/api/daily-entry/2024-07-15', admin_token, body)
    assert r.status_code == 200
    saved = r.get_json()
    assert saved['message'] == 'Lançamento para 2024-07-15 salvo com sucesso.'
    assert saved['data']['id'] == '2024-07-15'
    assert 'createdAt' in saved['data']

    r = client.get('/api/daily-entry/2024-07-15')
    assert r.get_json()['madrugada'] == body['madrugada']
    r = client.get('/api/daily-entry?fields=id')
    assert r.get_json() == [{'id': '2024-07-15'}]


def test_entry_date_mismatch_is_rejected(client, admin_token):
    r = post(client, '/api/daily-entry/2024-07-15', admin_token, {'date': '2024-07-16'})
    assert r.status_code == 400
    r = client.get('/api/daily-entry/15-07-2024')
    assert r.status_code == 400
    assert r.get_json()['message'] == 'Formato de data inválido na URL.'


def test_entry_post_without_csrf(client, admin_token):
    r = client.post('/api/daily-entry/2024-07-15', json={'date': '2024-07-15'})
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIONES, USUARIOS Y AUDITORÍA
# ═══════════════════════════════════════════════════════════════════════════

def test_settings_roundtrip(client, admin_token):
    assert client.get('/api/setting/appName').get_json() == {'config': None}
    r = post(client, '/api/setting/appName', admin_token, {'config': 'Caixa Tulsi'})
    assert r.status_code == 200
    assert client.get('/api/setting/appName').get_json() == {'config': 'Caixa Tulsi'}

    r = post(client, '/api/setting/appName', admin_token, {'valor': 'x'})
    assert r.status_code == 400
    r = client.get('/api/setting/corDoTema')
    assert r.status_code == 400
    assert r.get_json()['message'] == 'ConfigId inválido: corDoTema.'


def test_operator_cannot_manage_settings_or_users(client, admin_token):
    make_operator(client, admin_token)
    r = client.post('/api/auth/login', json={'username': 'joana', 'password': 'senha1', 'selectedShift': 'first'})
    token = r.get_json()['csrfToken']

    assert post(client, '/api/setting/appName', token, {'config': 'x'}).status_code == 403
    assert client.get('/api/users').status_code == 403
    assert client.get('/api/setting/appName').status_code == 200


def test_users_crud(client, admin_token):
    user = make_operator(client, admin_token)
    assert 'password' not in user

    r = post(client, '/api/users', admin_token, {'username': 'Joana', 'password': 'x', 'role': 'administrator'})
    assert r.status_code == 409

    r = client.put(f"/api/users/{user['id']}", json={'shifts': ['second']},
                   headers={'X-CSRF-Token': admin_token})
    assert r.status_code == 200
    assert r.get_json()['shifts'] == ['second']

    r = client.delete('/api/users/1', headers={'X-CSRF-Token': admin_token})
    assert r.status_code == 403
    r = client.delete(f"/api/users/{user['id']}", headers={'X-CSRF-Token': admin_token})
    assert r.get_json() == {'message': 'Usuário removido com sucesso.'}
    r = client.delete(f"/api/users/{user['id']}", headers={'X-CSRF-Token': admin_token})
    assert r.status_code == 404

    assert [u['username'] for u in client.get('/api/users').get_json()] == ['admin']


def test_audit_log_lists_recent_actions(client, admin_token):
    post(client, '/api/setting/appName', admin_token, {'config': 'Caixa'})
    logs = client.get('/api/audit-log?limit=2').get_json()
    assert [log['action'] for log in logs] == ['SAVE_SETTING', 'LOGIN_SUCCESS']
    assert client.get('/api/audit-log?limit=muitos').status_code == 400


# ═══════════════════════════════════════════════════════════════════════════
# REPORTES
# ═══════════════════════════════════════════════════════════════════════════

def save_lunch(client, token, date_id, qtd, valor):
    post(client, f'/api/daily-entry/{date_id}', token, {
        'date': date_id,
        'almocoPrimeiroTurno': {'channels': {'aptAvulso': {'qtd': qtd, 'vtotal': valor}}},
    })


def test_internal_reports_require_login(client):
    assert client.get('/api/reports?filterType=month&month=2024-07').status_code == 401


def test_internal_month_report(client, admin_token):
    save_lunch(client, admin_token, '2024-07-01', 10, 250)
    save_lunch(client, admin_token, '2024-07-02', 5, 125)
    r = client.get('/api/reports?filterType=month&month=2024-07')
    assert r.status_code == 200
    data = r.get_json()
    assert data['type'] == 'general'
    assert data['data']['summary']['grandTotalComCI'] == 375
    assert data['data']['summary']['grandTotalQtd'] == 15


def test_public_report_preflight(client):
    r = client.options('/api/v1/reports')
    assert r.status_code == 204
    assert r.headers['Access-Control-Allow-Origin'] == '*'
    assert 'GET' in r.headers['Access-Control-Allow-Methods']


def test_public_report_needs_no_session(client, container):
    container.entry_repo.save_entry('2024-07-15', {'date': '2024-07-15', 'eventos': {'items': []}})
    r = client.get('/api/v1/reports?filterType=date&date=2024-07-15')
    assert r.status_code == 200
    assert r.get_json()['id'] == '2024-07-15'
    assert r.headers['Access-Control-Allow-Origin'] == '*'

    assert client.get('/api/v1/reports?filterType=date&date=2024-07-16').get_json() == {}


@pytest.mark.parametrize('query, message', [
    ('filterType=date', "Parâmetro 'date' inválido ou ausente. Use AAAA-MM-DD."),
    ('filterType=semana', "Parâmetro 'filterType' inválido: semana."),
    ('filterType=month&month=2024-13', "Parâmetro 'month' inválido ou ausente para este tipo de filtro. Use AAAA-MM."),
])
def test_public_report_bad_parameters(client, query, message):
    r = client.get(f'/api/v1/reports?{query}')
    assert r.status_code == 400
    assert r.get_json() == {'message': message}
    assert r.headers['Access-Control-Allow-Origin'] == '*'


def test_dashboard_summary(client, admin_token):
    save_lunch(client, admin_token, '2024-07-01', 10, 250)
    r = client.get('/api/dashboard?month=2024-07')
    assert r.status_code == 200
    data = r.get_json()
    assert data['month'] == '2024-07'
    assert data['totalComCI']['valor'] == 250
    assert client.get('/api/dashboard?month=julho').status_code == 400


def test_performance_stats_admin_only(client, admin_token):
    r = client.get('/api/admin/performance')
    assert r.status_code == 200
    assert set(r.get_json()) == {'functions', 'logs'}

    make_operator(client, admin_token)
    client.post('/api/auth/login', json={'username': 'joana', 'password': 'senha1', 'selectedShift': 'first'})
    assert client.get('/api/admin/performance').status_code == 403


# ═══════════════════════════════════════════════════════════════════════════
# ESTORNOS Y PERSONAS
# ═══════════════════════════════════════════════════════════════════════════

def test_estornos_flow(client, admin_token):
    assert client.get('/api/estornos?startDate=2024-07-01').status_code == 400

    r = post(client, '/api/estornos', admin_token, {
        'date': '2024-07-15', 'reason': 'nao consumido', 'quantity': 1,
        'valorEstorno': 25, 'category': 'room-service',
    })
    assert r.status_code == 201
    assert r.get_json() == {'message': 'Estorno salvo com sucesso.'}
    assert post(client, '/api/estornos', admin_token, {'date': '2024-07-15'}).status_code == 400

    items = client.get('/api/estornos?startDate=2024-07-01&endDate=2024-07-31&category=room-service').get_json()
    assert len(items) == 1
    assert items[0]['valorEstorno'] == -25
    assert items[0]['registeredBy'] == 'admin'

    r = post(client, '/api/estornos/relaunch', admin_token, {
        'originalItemId': items[0]['id'], 'originalItemDate': '2024-07-15',
    })
    assert r.status_code == 201
    assert r.get_json() == {'message': 'Estorno relançado como crédito com sucesso.'}

    r = client.delete('/api/estornos', json={'id': items[0]['id'], 'date': '2024-07-15'},
                      headers={'X-CSRF-Token': admin_token})
    assert r.get_json() == {'message': 'Estorno removido com sucesso.'}
    r = client.delete('/api/estornos', json={'id': items[0]['id'], 'date': '2024-07-15'},
                      headers={'X-CSRF-Token': admin_token})
    assert r.status_code == 404
    assert r.get_json() == {'message': 'Item de estorno não encontrado para exclusão.'}


def test_estorno_changes_require_csrf(client, admin_token):
    r = client.post('/api/estornos', json={'date': '2024-07-15'})
    assert r.status_code == 403
    assert client.delete('/api/estornos', json={'id': 'x', 'date': '2024-07-15'}).status_code == 403


def test_rename_person_is_admin_only(client, admin_token):
    post(client, '/api/daily-entry/2024-07-01', admin_token, {
        'date': '2024-07-01',
        'jantar': {'subTabs': {'faturado': {'faturadoItems': [{'clientName': 'Setor Eventos', 'value': 10}]}}},
    })
    r = post(client, '/api/rename-person', admin_token, {
        'oldName': 'Setor Eventos', 'newName': 'Eventos', 'startDate': '2024-07-01', 'endDate': '2024-07-31',
    })
    assert r.status_code == 200
    assert r.get_json() == {'message': 'Nome alterado com sucesso em 1 registro(s).'}
    jantar = client.get('/api/daily-entry/2024-07-01').get_json()['jantar']
    assert jantar['subTabs']['faturado']['faturadoItems'][0]['clientName'] == 'Eventos'

    assert post(client, '/api/rename-person', admin_token, {'oldName': 'x'}).status_code == 400

    make_operator(client, admin_token)
    r = client.post('/api/auth/login', json={'username': 'joana', 'password': 'senha1', 'selectedShift': 'first'})
    token = r.get_json()['csrfToken']
    assert post(client, '/api/rename-person', token, {
        'oldName': 'Eventos', 'newName': 'X', 'startDate': '2024-07-01', 'endDate': '2024-07-31',
    }).status_code == 403
