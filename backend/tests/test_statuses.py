from feedbackdesk import get_db, get_change_feed
from feedbackdesk.models.audit import AdminActionLog
from feedbackdesk.models.task_status import TaskStatus, TaskSubstatus
from feedbackdesk.services.events import TABLE_STATUSES
from tests.test_utils_seed import make_ticket, make_status
from tests.test_lifecycle_helpers import admin_headers, change_field


def test_statuses_append_at_next_position(app_context):
    client = app_context.test_client()
    headers = admin_headers('hr')
    first = client.post('/admin/statuses', json={'department': 'hr', 'name': 'Received'}, headers=headers)
    second = client.post('/admin/statuses', json={'department': 'hr', 'name': ' In review '}, headers=headers)
    assert first.status_code == 201 and second.status_code == 201
    assert (first.get_json()['position'], second.get_json()['position']) == (0, 1)
    assert second.get_json()['name'] == 'In review'
    assert second.get_json()['is_final'] is False
    assert second.get_json()['is_active'] is True

    sid = first.get_json()['id']
    subs = [client.post(f'/admin/statuses/{sid}/substatuses', json={'name': n}, headers=headers).get_json()
            for n in ('Called', 'Visited')]
    assert [s['position'] for s in subs] == [0, 1]
    assert all(s['status_id'] == sid for s in subs)

    listed = client.get('/admin/statuses', headers=headers).get_json()
    assert listed['department'] == 'hr'
    assert [s['name'] for s in listed['data']] == ['Received', 'In review']
    assert [s['name'] for s in listed['data'][0]['substatuses']] == ['Called', 'Visited']


def test_toggle_hides_from_active_listing_only(app_context):
    st = make_status('hr', 'Paused', substatuses=['Waiting'])
    client = app_context.test_client()
    headers = admin_headers('hr')
    body = change_field(client, 'POST', f'/admin/statuses/substatuses/{st.substatuses[0].id}/toggle', {}, headers)
    assert body['is_active'] is False
    active = client.get('/admin/statuses', headers=headers).get_json()['data']
    assert active[0]['substatuses'] == []

    body = change_field(client, 'POST', f'/admin/statuses/{st.id}/toggle', {}, headers)
    assert body['is_active'] is False
    assert client.get('/admin/statuses', headers=headers).get_json()['data'] == []
    everything = client.get('/admin/statuses?active_only=false', headers=headers).get_json()['data']
    assert [s['name'] for s in everything] == ['Paused']
    assert [s['name'] for s in everything[0]['substatuses']] == ['Waiting']


def test_update_name_and_final_flag(app_context):
    st = make_status('hr', 'Done')
    client = app_context.test_client()
    headers = admin_headers('hr')
    body = change_field(client, 'PATCH', f'/admin/statuses/{st.id}', {'name': 'Completed', 'is_final': True}, headers)
    assert (body['name'], body['is_final']) == ('Completed', True)
    change_field(client, 'PATCH', f'/admin/statuses/{st.id}', {'is_final': 'yes'}, headers, expected_status=400)
    change_field(client, 'PATCH', f'/admin/statuses/{st.id}', {'name': ''}, headers, expected_status=400)
    entry = get_db().query(AdminActionLog).filter_by(action='STATUS.UPDATE').one()
    assert entry.old_value == {'name': 'Done', 'is_final': False}
    assert entry.new_value == {'name': 'Completed', 'is_final': True}


def test_referenced_status_cannot_be_deleted(app_context):
    st = make_status('hr', 'In work', substatuses=['Ordered'])
    t = make_ticket('hr')
    client = app_context.test_client()
    headers = admin_headers('hr')
    change_field(client, 'POST', f'/admin/tickets/{t.id}/task-status',
                 {'task_status_id': st.id, 'task_substatus_id': st.substatuses[0].id}, headers)
    assert client.delete(f'/admin/statuses/{st.id}', headers=headers).status_code == 409
    assert client.delete(f'/admin/statuses/substatuses/{st.substatuses[0].id}', headers=headers).status_code == 409

    # detach the sub-status, the parent is still referenced
    change_field(client, 'POST', f'/admin/tickets/{t.id}/task-status', {'task_status_id': st.id}, headers)
    resp = client.delete(f'/admin/statuses/substatuses/{st.substatuses[0].id}', headers=headers)
    assert resp.status_code == 200
    assert client.delete(f'/admin/statuses/{st.id}', headers=headers).status_code == 409


def test_unreferenced_status_delete_takes_children(app_context):
    st = make_status('hr', 'Obsolete', substatuses=['a', 'b'])
    keep = make_status('hr', 'Keep')
    client = app_context.test_client()
    resp = client.delete(f'/admin/statuses/{st.id}', headers=admin_headers('hr'))
    assert resp.status_code == 200
    assert resp.get_json() == {'id': st.id, 'deleted': True}
    session = get_db()
    assert session.query(TaskSubstatus).count() == 0
    assert [s.id for s in session.query(TaskStatus).all()] == [keep.id]
    # positions are not renumbered
    assert make_status('hr', 'Newest').position == 2


def test_other_departments_taxonomy_is_off_limits(app_context):
    st = make_status('sales', 'Quoted')
    client = app_context.test_client()
    hr = admin_headers('hr')
    assert client.patch(f'/admin/statuses/{st.id}', json={'name': 'x'}, headers=hr).status_code == 403
    assert client.post('/admin/statuses', json={'department': 'sales', 'name': 'x'}, headers=hr).status_code == 403
    assert client.get('/admin/statuses?department=sales', headers=hr).status_code == 403
    assert client.get('/admin/statuses', headers=admin_headers('management')).status_code == 400
    listed = client.get('/admin/statuses?department=sales', headers=admin_headers('management')).get_json()
    assert [s['id'] for s in listed['data']] == [st.id]
    assert client.delete('/admin/statuses/9999', headers=hr).status_code == 404


def test_taxonomy_edits_ask_dashboards_to_refetch(app_context):
    feed = get_change_feed()
    before = feed.last_seq
    client = app_context.test_client()
    resp = client.post('/admin/statuses', json={'department': 'hr', 'name': 'Queued'}, headers=admin_headers('hr'))
    events = feed.since(before)
    assert [(e.table, e.kind, e.entity_id) for e in events] == [(TABLE_STATUSES, 'insert', str(resp.get_json()['id']))]
    assert events[0].department is None
