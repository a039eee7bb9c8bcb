from tests.test_utils_seed import seed_admin, ensure_user
from tests.test_lifecycle_helpers import ADMIN_PERMS, login_headers


def test_login_returns_department_claims(client):
    headers = login_headers(client, 'auth_flow@example.com', ADMIN_PERMS, department='sales')
    me = client.get('/auth/me', headers=headers)
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == 'auth_flow@example.com'
    assert body['department'] == 'sales'
    assert body['department_label'] == 'Sales'
    assert body['sees_all_departments'] is False
    assert set(ADMIN_PERMS) <= set(body['perms'])


def test_login_is_case_insensitive_on_email(client):
    seed_admin('mixed_case@example.com', ['FB.READ'], department='management')
    resp = client.post('/auth/login', json={'email': '  Mixed_Case@Example.com ', 'password': 'pw'})
    assert resp.status_code == 200
    assert resp.get_json()['user']['sees_all_departments'] is True


def test_account_without_permissions_is_refused(client):
    ensure_user('no_perms@example.com', department='hr')
    resp = client.post('/auth/login', json={'email': 'no_perms@example.com', 'password': 'pw'})
    assert resp.status_code == 403
    assert resp.get_json()['error']['detail'] == 'account has no admin access'


def test_bad_credentials(client):
    seed_admin('bad_creds@example.com', ['FB.READ'])
    assert client.post('/auth/login', json={'email': 'bad_creds@example.com', 'password': 'nope'}).status_code == 401
    assert client.post('/auth/login', json={'email': 'ghost@example.com', 'password': 'pw'}).status_code == 401
    assert client.post('/auth/login', json={'email': 'bad_creds@example.com'}).status_code == 400


def test_protected_routes_need_a_token(client):
    assert client.get('/auth/me').status_code == 401
    assert client.get('/admin/views/dashboard').status_code == 401
