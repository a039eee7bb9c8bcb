from tests.test_lifecycle_helpers import admin_headers


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_missing_ticket_is_404(app_context, client):
    resp = client.get('/admin/tickets/does-not-exist', headers=admin_headers('hr'))
    assert resp.status_code == 404
    assert resp.get_json()['error']['title'] == 'Not Found'


def test_internal_error_shape(app_context, client, monkeypatch):
    headers = admin_headers('hr')
    import feedbackdesk.routes.views as views_mod

    def boom(*a, **k):
        raise RuntimeError('explode')
    monkeypatch.setattr(views_mod.reports, 'dashboard_stats', boom)
    resp = client.get('/admin/views/dashboard', headers=headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert 'explode' not in body['error']['detail']
